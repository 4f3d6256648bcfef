"""Checkout, payment verification and purchase history."""
from fastapi import APIRouter, Depends, Query

from leadmarket.core.exceptions import DomainError
from leadmarket.core.security import get_current_account
from leadmarket.interfaces.http.deps import get_catalog_service, get_purchase_service
from leadmarket.interfaces.http.errors import to_http_exception
from leadmarket.modules.accounts import Account as AccountDomain
from leadmarket.modules.purchases import CatalogService, PurchaseService
from leadmarket.schemas import (
    CatalogItemResponse,
    CheckoutResponse,
    CurrentSubscriptionResponse,
    PurchaseRequest,
    PurchaseResponse,
    ReconcileResponse,
)

router = APIRouter()


@router.get("/plans", response_model=list[CatalogItemResponse], summary="Subscription plans for sale")
async def list_plans(
    _: AccountDomain = Depends(get_current_account),
    catalog: CatalogService = Depends(get_catalog_service),
) -> list[CatalogItemResponse]:
    return [CatalogItemResponse.model_validate(item) for item in await catalog.list_plans()]


@router.post("/purchase", response_model=CheckoutResponse, summary="Open a checkout session for a package or plan")
async def purchase(
    payload: PurchaseRequest,
    account: AccountDomain = Depends(get_current_account),
    purchases: PurchaseService = Depends(get_purchase_service),
) -> CheckoutResponse:
    try:
        result = await purchases.initiate_checkout(account, payload.kind, payload.item_id)
    except DomainError as exc:
        raise to_http_exception(exc) from exc
    return CheckoutResponse(
        session_id=result.session_id,
        redirect_url=result.redirect_url,
        expires_at=result.expires_at,
        purchase_id=result.purchase.id,
        reused=result.reused,
    )


@router.get("/verify-payment", response_model=ReconcileResponse, summary="Reconcile a checkout session")
async def verify_payment(
    session_id: str = Query(..., alias="sessionId", min_length=1),
    account: AccountDomain = Depends(get_current_account),
    purchases: PurchaseService = Depends(get_purchase_service),
) -> ReconcileResponse:
    try:
        result = await purchases.verify_payment(account, session_id)
    except DomainError as exc:
        raise to_http_exception(exc) from exc
    return ReconcileResponse(
        outcome=result.outcome,
        status=result.purchase.status,
        coins_credited=result.coins_credited,
        balance=result.balance,
        purchase=PurchaseResponse.model_validate(result.purchase),
    )


@router.get("/history", response_model=list[PurchaseResponse], summary="Purchases of the current user")
async def purchase_history(
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    account: AccountDomain = Depends(get_current_account),
    purchases: PurchaseService = Depends(get_purchase_service),
) -> list[PurchaseResponse]:
    return [PurchaseResponse.model_validate(p) for p in await purchases.list_history(account.id, limit, offset)]


@router.get("/current", response_model=CurrentSubscriptionResponse, summary="The running subscription, if any")
async def current_subscription(
    account: AccountDomain = Depends(get_current_account),
    purchases: PurchaseService = Depends(get_purchase_service),
) -> CurrentSubscriptionResponse:
    subscription = await purchases.current_subscription(account.id)
    return CurrentSubscriptionResponse(
        subscription=PurchaseResponse.model_validate(subscription) if subscription else None
    )
