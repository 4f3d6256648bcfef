"""Administrator endpoints: coin economics, coupons, catalog and maintenance."""
from fastapi import APIRouter, Depends, status

from leadmarket.core.exceptions import DomainError
from leadmarket.core.security import get_current_admin
from leadmarket.interfaces.http.deps import (
    get_catalog_service,
    get_coupon_service,
    get_entitlement_service,
    get_lead_service,
    get_ledger_service,
    get_purchase_service,
)
from leadmarket.interfaces.http.errors import to_http_exception
from leadmarket.modules.accounts import Account as AccountDomain
from leadmarket.modules.coupons import CouponService
from leadmarket.modules.entitlements import CostSettingsUpdate, EntitlementService
from leadmarket.modules.leads import LeadCreateInput, LeadService
from leadmarket.modules.ledger import LedgerService
from leadmarket.modules.purchases import CatalogService, PurchaseService
from leadmarket.schemas import (
    CatalogItemResponse,
    CostSettingsResponse,
    CostSettingsUpdateRequest,
    CouponCreate,
    CouponResponse,
    CouponUpdate,
    ExpirePendingResponse,
    ExpireSubscriptionsResponse,
    LeadCreate,
    LeadResponse,
    LedgerStatsResponse,
    PackageCreate,
    PlanCreate,
    SendCoinsRequest,
    SendCoinsResponse,
)

router = APIRouter()


@router.post("/users/{user_id}/send-coins", response_model=SendCoinsResponse, summary="Credit LeadCoins to a user")
async def send_coins(
    user_id: str,
    payload: SendCoinsRequest,
    admin: AccountDomain = Depends(get_current_admin),
    ledger: LedgerService = Depends(get_ledger_service),
) -> SendCoinsResponse:
    try:
        change = await ledger.send_coins(admin, user_id, payload.amount, payload.description)
    except DomainError as exc:
        raise to_http_exception(exc) from exc
    return SendCoinsResponse(user_id=user_id, amount=change.amount, new_balance=change.new_balance)


@router.get("/leadcoins/settings", response_model=CostSettingsResponse, summary="LeadCoin cost per unlock tier")
async def get_cost_settings(
    _: AccountDomain = Depends(get_current_admin),
    entitlements: EntitlementService = Depends(get_entitlement_service),
) -> CostSettingsResponse:
    return CostSettingsResponse.model_validate(await entitlements.get_settings())


@router.put("/leadcoins/settings", response_model=CostSettingsResponse, summary="Change unlock tier costs")
async def update_cost_settings(
    payload: CostSettingsUpdateRequest,
    admin: AccountDomain = Depends(get_current_admin),
    entitlements: EntitlementService = Depends(get_entitlement_service),
) -> CostSettingsResponse:
    update = CostSettingsUpdate(
        contact_info_cost=payload.contact_info_cost,
        detailed_info_cost=payload.detailed_info_cost,
        full_access_cost=payload.full_access_cost,
    )
    try:
        saved = await entitlements.update_settings(admin, update)
    except DomainError as exc:
        raise to_http_exception(exc) from exc
    return CostSettingsResponse.model_validate(saved)


@router.get("/leadcoins/stats", response_model=LedgerStatsResponse, summary="Coin economy overview")
async def ledger_stats(
    _: AccountDomain = Depends(get_current_admin),
    ledger: LedgerService = Depends(get_ledger_service),
) -> LedgerStatsResponse:
    return LedgerStatsResponse.model_validate(await ledger.stats())


@router.get("/coupons", response_model=list[CouponResponse], summary="All coupons")
async def list_coupons(
    admin: AccountDomain = Depends(get_current_admin),
    coupons: CouponService = Depends(get_coupon_service),
) -> list[CouponResponse]:
    try:
        items = await coupons.list_coupons(admin)
    except DomainError as exc:
        raise to_http_exception(exc) from exc
    return [CouponResponse.model_validate(item) for item in items]


@router.post(
    "/coupons",
    response_model=CouponResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a coupon with a generated code",
)
async def create_coupon(
    payload: CouponCreate,
    admin: AccountDomain = Depends(get_current_admin),
    coupons: CouponService = Depends(get_coupon_service),
) -> CouponResponse:
    try:
        coupon = await coupons.create_coupon(
            admin,
            max_uses=payload.max_uses,
            coin_amount=payload.coin_amount,
            active=payload.active,
        )
    except DomainError as exc:
        raise to_http_exception(exc) from exc
    return CouponResponse.model_validate(coupon)


@router.patch("/coupons/{coupon_id}", response_model=CouponResponse, summary="Activate or deactivate a coupon")
async def update_coupon(
    coupon_id: str,
    payload: CouponUpdate,
    admin: AccountDomain = Depends(get_current_admin),
    coupons: CouponService = Depends(get_coupon_service),
) -> CouponResponse:
    try:
        coupon = await coupons.set_active(admin, coupon_id, payload.active)
    except DomainError as exc:
        raise to_http_exception(exc) from exc
    return CouponResponse.model_validate(coupon)


@router.post(
    "/packages",
    response_model=CatalogItemResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a coin package",
)
async def create_package(
    payload: PackageCreate,
    admin: AccountDomain = Depends(get_current_admin),
    catalog: CatalogService = Depends(get_catalog_service),
) -> CatalogItemResponse:
    try:
        item = await catalog.create_package(admin, **payload.model_dump())
    except DomainError as exc:
        raise to_http_exception(exc) from exc
    return CatalogItemResponse.model_validate(item)


@router.post(
    "/plans",
    response_model=CatalogItemResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a subscription plan",
)
async def create_plan(
    payload: PlanCreate,
    admin: AccountDomain = Depends(get_current_admin),
    catalog: CatalogService = Depends(get_catalog_service),
) -> CatalogItemResponse:
    try:
        item = await catalog.create_plan(admin, **payload.model_dump())
    except DomainError as exc:
        raise to_http_exception(exc) from exc
    return CatalogItemResponse.model_validate(item)


@router.post(
    "/leads",
    response_model=LeadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Publish a lead",
)
async def create_lead(
    payload: LeadCreate,
    admin: AccountDomain = Depends(get_current_admin),
    leads: LeadService = Depends(get_lead_service),
) -> LeadResponse:
    lead = await leads.create_lead(admin.id, LeadCreateInput(**payload.model_dump()))
    return LeadResponse.model_validate(lead)


@router.post(
    "/purchases/expire-pending",
    response_model=ExpirePendingResponse,
    summary="Settle pending checkouts past their expiry",
)
async def expire_pending(
    admin: AccountDomain = Depends(get_current_admin),
    purchases: PurchaseService = Depends(get_purchase_service),
) -> ExpirePendingResponse:
    try:
        sweep = await purchases.expire_stale_pending(admin)
    except DomainError as exc:
        raise to_http_exception(exc) from exc
    return ExpirePendingResponse.model_validate(sweep)


@router.post(
    "/subscriptions/expire",
    response_model=ExpireSubscriptionsResponse,
    summary="Expire active subscriptions past their end date",
)
async def expire_subscriptions(
    admin: AccountDomain = Depends(get_current_admin),
    purchases: PurchaseService = Depends(get_purchase_service),
) -> ExpireSubscriptionsResponse:
    try:
        expired = await purchases.expire_ended_subscriptions(admin)
    except DomainError as exc:
        raise to_http_exception(exc) from exc
    return ExpireSubscriptionsResponse(expired=expired)
