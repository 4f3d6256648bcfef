"""JWT helpers and the identity dependencies every ledger route depends on."""
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession

from leadmarket.core.config import get_settings
from leadmarket.interfaces.http.deps.database import get_db_session
from leadmarket.modules.accounts import Account as AccountDomain
from leadmarket.modules.accounts import AccountService
from leadmarket.schemas import TokenData

security = HTTPBearer(auto_error=False)

_CREDENTIALS_ERROR = "Could not validate credentials"


def create_access_token(account_id: str, email: str, role: str, expires_delta: Optional[timedelta] = None) -> str:
    settings = get_settings()
    expire_delta = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    payload = {
        "sub": account_id,
        "email": email,
        "role": role,
        "exp": datetime.now(timezone.utc) + expire_delta,
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)


def decode_access_token(token: str) -> TokenData:
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=_CREDENTIALS_ERROR) from exc

    account_id = payload.get("sub")
    email = payload.get("email")
    role = payload.get("role")
    if not all([account_id, email, role]):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=_CREDENTIALS_ERROR)
    return TokenData(account_id=account_id, email=email, role=role)


async def get_current_account(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db_session),
) -> AccountDomain:
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    token_data = decode_access_token(credentials.credentials)
    service = AccountService.with_session(db)
    account = await service.get_by_id(token_data.account_id)
    if account is None or not account.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Account not found or disabled")
    return account


async def get_current_admin(account: AccountDomain = Depends(get_current_account)) -> AccountDomain:
    if not account.is_admin():
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Administrator privileges required")
    return account
