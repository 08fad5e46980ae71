# badminton_shop/main.py
import uvicorn

from badminton_shop.api import create_app
from badminton_shop.utils.logging import get_logger

logger = get_logger(__name__)

# crash handlers are installed in the app lifespan
app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
