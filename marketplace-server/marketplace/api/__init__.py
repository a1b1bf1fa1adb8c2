from fastapi import APIRouter

from marketplace.api.routers import admin, products, support, wallet


def create_api_router(prefix: str = "") -> APIRouter:
    router = APIRouter(prefix=prefix)
    router.include_router(wallet.router, prefix="/wallet", tags=["wallet"])
    router.include_router(products.router, prefix="/products", tags=["products"])
    router.include_router(support.router, prefix="/support", tags=["support"])
    router.include_router(admin.router, prefix="/admin", tags=["admin"])
    return router


__all__ = [
    "create_api_router",
]
