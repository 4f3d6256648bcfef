"""Coupon redemption."""
from fastapi import APIRouter, Depends

from leadmarket.core.exceptions import DomainError
from leadmarket.core.security import get_current_account
from leadmarket.interfaces.http.deps import get_coupon_service
from leadmarket.interfaces.http.errors import to_http_exception
from leadmarket.modules.accounts import Account as AccountDomain
from leadmarket.modules.coupons import CouponService
from leadmarket.schemas import CouponClaimRequest, CouponClaimResponse

router = APIRouter()


@router.post("/claim", response_model=CouponClaimResponse, summary="Redeem a coupon code for LeadCoins")
async def claim_coupon(
    payload: CouponClaimRequest,
    account: AccountDomain = Depends(get_current_account),
    coupons: CouponService = Depends(get_coupon_service),
) -> CouponClaimResponse:
    try:
        result = await coupons.claim(account.id, payload.code)
    except DomainError as exc:
        raise to_http_exception(exc) from exc
    return CouponClaimResponse.model_validate(result)
