"""LeadCoin balance, history and the coin package catalog."""
from fastapi import APIRouter, Depends, Query

from leadmarket.core.exceptions import DomainError
from leadmarket.core.security import get_current_account
from leadmarket.interfaces.http.deps import get_catalog_service, get_ledger_service
from leadmarket.interfaces.http.errors import to_http_exception
from leadmarket.modules.accounts import Account as AccountDomain
from leadmarket.modules.ledger import LedgerService
from leadmarket.modules.purchases import CatalogService
from leadmarket.schemas import (
    BalanceResponse,
    CatalogItemResponse,
    MonthlySpentResponse,
    TransactionListResponse,
    TransactionResponse,
)

router = APIRouter()


@router.get("/balance", response_model=BalanceResponse, summary="Current LeadCoin balance")
async def get_balance(
    account: AccountDomain = Depends(get_current_account),
    ledger: LedgerService = Depends(get_ledger_service),
) -> BalanceResponse:
    try:
        balance = await ledger.get_balance(account.id)
    except DomainError as exc:
        raise to_http_exception(exc) from exc
    return BalanceResponse(lead_coins=balance)


@router.get("/transactions", response_model=TransactionListResponse, summary="LeadCoin transactions, newest first")
async def list_transactions(
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    account: AccountDomain = Depends(get_current_account),
    ledger: LedgerService = Depends(get_ledger_service),
) -> TransactionListResponse:
    entries = await ledger.list_transactions(account.id, limit, offset)
    return TransactionListResponse(transactions=[TransactionResponse.model_validate(entry) for entry in entries])


@router.get("/monthly-spent", response_model=MonthlySpentResponse, summary="LeadCoins spent this calendar month")
async def monthly_spent(
    account: AccountDomain = Depends(get_current_account),
    ledger: LedgerService = Depends(get_ledger_service),
) -> MonthlySpentResponse:
    return MonthlySpentResponse(monthly_spent=await ledger.monthly_spent(account.id))


@router.get("/packages", response_model=list[CatalogItemResponse], summary="Coin packages for sale")
async def list_packages(
    _: AccountDomain = Depends(get_current_account),
    catalog: CatalogService = Depends(get_catalog_service),
) -> list[CatalogItemResponse]:
    return [CatalogItemResponse.model_validate(item) for item in await catalog.list_packages()]
