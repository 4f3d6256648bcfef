from fastapi import APIRouter

from leadmarket.interfaces.http.routers import admin, auth, coupons, leads, ledger, notifications, purchases, webhook


def create_api_router(prefix: str = "") -> APIRouter:
    router = APIRouter(prefix=prefix)
    router.include_router(auth.router, prefix="/auth", tags=["auth"])
    router.include_router(leads.router, tags=["leads"])
    router.include_router(ledger.router, prefix="/leadcoins", tags=["leadcoins"])
    router.include_router(purchases.router, prefix="/subscriptions", tags=["purchases"])
    router.include_router(webhook.router, tags=["webhook"])
    router.include_router(coupons.router, prefix="/coupons", tags=["coupons"])
    router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
    router.include_router(admin.router, prefix="/admin", tags=["admin"])
    return router


__all__ = [
    "create_api_router",
]
