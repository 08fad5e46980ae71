from fastapi import APIRouter

from badminton_shop.utils.settings import STORE_NAME

router = APIRouter(tags=["health"])


@router.get("/health")
def health():
    return {"success": True, "message": f"{STORE_NAME} API is running"}
