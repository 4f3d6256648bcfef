"""Registration, login and the current account."""
from fastapi import APIRouter, Depends, HTTPException, status

from leadmarket.core.security import create_access_token, get_current_account
from leadmarket.interfaces.http.deps import get_account_service
from leadmarket.modules.accounts import (
    Account as AccountDomain,
    AccountAlreadyExistsError,
    AccountCreateInput,
    AccountService,
)
from leadmarket.schemas import AccountLoginResponse, AccountResponse, LoginRequest, RegisterRequest

router = APIRouter()


def _login_response(account: AccountDomain) -> AccountLoginResponse:
    access_token = create_access_token(account.id, account.email, account.role)
    return AccountLoginResponse(access_token=access_token, account=AccountResponse.model_validate(account))


@router.post(
    "/register",
    response_model=AccountLoginResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a user account with the starting LeadCoin balance",
)
async def register(
    payload: RegisterRequest,
    account_service: AccountService = Depends(get_account_service),
) -> AccountLoginResponse:
    try:
        account = await account_service.create_account(
            AccountCreateInput(email=payload.email, password=payload.password, name=payload.name)
        )
    except AccountAlreadyExistsError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered") from exc
    return _login_response(account)


@router.post("/login", response_model=AccountLoginResponse, summary="Exchange credentials for a bearer token")
async def login(
    payload: LoginRequest,
    account_service: AccountService = Depends(get_account_service),
) -> AccountLoginResponse:
    account = await account_service.authenticate(payload.email, payload.password)
    if not account:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")

    await account_service.set_last_login(account.id)
    return _login_response(account)


@router.get("/me", response_model=AccountResponse, summary="Current account")
async def me(account: AccountDomain = Depends(get_current_account)) -> AccountResponse:
    return AccountResponse.model_validate(account)
