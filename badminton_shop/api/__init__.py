# badminton_shop/api/__init__.py
import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI

import badminton_shop.data.models  # noqa: F401  registers every table on Base.metadata
from badminton_shop.api.errors import register_exception_handlers
from badminton_shop.api.routers import (
    banners,
    cart,
    catalog,
    chat,
    coupons,
    health,
    orders,
    reviews,
    settings,
    users,
    wishlist,
)
from badminton_shop.data.database import Base, engine
from badminton_shop.utils.logging import get_logger, install_crash_handler, install_loop_crash_handler
from badminton_shop.utils.settings import CRASH_HANDLER_ENABLED, CRASH_LOG_PATH, STORE_NAME

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if CRASH_HANDLER_ENABLED:
        install_crash_handler(CRASH_LOG_PATH)
        install_loop_crash_handler(asyncio.get_running_loop(), CRASH_LOG_PATH)
    logger.info(f"Creating tables: {sorted(Base.metadata.tables)}")
    Base.metadata.create_all(bind=engine)
    yield


def create_app() -> FastAPI:
    app = FastAPI(title=f"{STORE_NAME} Shop API", version="1.0.0", lifespan=lifespan)
    register_exception_handlers(app)

    for router in (
        health.router,
        users.router,
        catalog.categories,
        catalog.brands,
        catalog.products,
        cart.router,
        coupons.router,
        coupons.admin_router,
        orders.router,
        orders.admin_router,
        reviews.router,
        reviews.admin_router,
        chat.router,
        banners.router,
        banners.admin_router,
        settings.router,
        settings.admin_router,
        wishlist.router,
    ):
        app.include_router(router, prefix="/api")

    return app
