"""Lead detail and LeadCoin unlocks."""
from typing import Optional

from fastapi import APIRouter, Depends

from leadmarket.core.exceptions import DomainError
from leadmarket.core.security import get_current_account
from leadmarket.interfaces.http.deps import get_entitlement_service, get_lead_service
from leadmarket.interfaces.http.errors import to_http_exception
from leadmarket.modules.accounts import Account as AccountDomain
from leadmarket.modules.entitlements import EntitlementService
from leadmarket.modules.leads import LeadService
from leadmarket.schemas import (
    LeadResponse,
    LeadViewResponse,
    UnlockRequest,
    UnlockResponse,
    ViewStatusResponse,
)

router = APIRouter()


@router.get("/leads/{lead_id}", response_model=LeadResponse, summary="Lead detail, contact fields only once unlocked")
async def get_lead(
    lead_id: str,
    account: AccountDomain = Depends(get_current_account),
    leads: LeadService = Depends(get_lead_service),
    entitlements: EntitlementService = Depends(get_entitlement_service),
) -> LeadResponse:
    try:
        lead = await leads.get_lead(lead_id)
    except DomainError as exc:
        raise to_http_exception(exc) from exc

    tiers = await entitlements.has_viewed(account.id, lead_id)
    if not tiers and not account.is_admin() and lead.creator_id != account.id:
        lead = lead.masked()
    response = LeadResponse.model_validate(lead)
    response.unlocked_view_types = sorted(tiers)
    return response


@router.post("/leads/{lead_id}/view", response_model=UnlockResponse, summary="Spend LeadCoins to unlock a lead tier")
async def unlock_lead(
    lead_id: str,
    payload: Optional[UnlockRequest] = None,
    account: AccountDomain = Depends(get_current_account),
    entitlements: EntitlementService = Depends(get_entitlement_service),
) -> UnlockResponse:
    try:
        view_type = payload.view_type if payload is not None else "contact_info"
        result = await entitlements.unlock_lead(account.id, lead_id, view_type)
    except DomainError as exc:
        raise to_http_exception(exc) from exc
    return UnlockResponse.model_validate(result)


@router.get("/leads/{lead_id}/views", response_model=ViewStatusResponse, summary="Tiers of a lead already unlocked")
async def lead_view_status(
    lead_id: str,
    account: AccountDomain = Depends(get_current_account),
    entitlements: EntitlementService = Depends(get_entitlement_service),
) -> ViewStatusResponse:
    tiers = await entitlements.has_viewed(account.id, lead_id)
    return ViewStatusResponse(lead_id=lead_id, viewed=bool(tiers), view_types=sorted(tiers))


@router.get("/lead-views", response_model=list[LeadViewResponse], summary="Unlock history of the current user")
async def list_lead_views(
    limit: int = 50,
    offset: int = 0,
    account: AccountDomain = Depends(get_current_account),
    entitlements: EntitlementService = Depends(get_entitlement_service),
) -> list[LeadViewResponse]:
    views = await entitlements.list_views(account.id, limit, offset)
    return [LeadViewResponse.model_validate(view) for view in views]
