"""Application configuration using pydantic settings with structured sections."""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerSettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = False


class DatabaseSettings(BaseModel):
    url: str = Field(default="sqlite+aiosqlite:///./leadmarket.db", alias="url")
    echo: bool = False
    pool_size: Optional[int] = None
    max_overflow: Optional[int] = None


class SecuritySettings(BaseModel):
    secret_key: str = Field(default="change-me", min_length=8)
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7


class StripeSettings(BaseModel):
    secret_key: str = ""
    webhook_secret: str = ""
    currency: str = "usd"
    success_url: str = "http://localhost:5173/user/subscriptions?success=true&session_id={CHECKOUT_SESSION_ID}"
    cancel_url: str = "http://localhost:5173/user/subscriptions?canceled=true"
    checkout_expiry_minutes: int = Field(default=30, ge=30, le=60 * 24)


class MailSettings(BaseModel):
    enabled: bool = False
    host: str = ""
    port: int = 587
    username: str = ""
    password: str = ""
    use_tls: bool = True
    from_email: str = "no-reply@leadmarket.local"
    from_name: str = "LeadMarket"
    app_url: str = "http://localhost:5173"


class LedgerSettings(BaseModel):
    initial_lead_coins: int = Field(default=20, ge=0)
    low_balance_thresholds: list[int] = Field(default_factory=lambda: [10, 5, 0])
    email_threshold: int = 5
    pending_grace_minutes: int = 60


class Settings(BaseSettings):
    """Top-level application settings with nested sections."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_nested_delimiter="__",
        extra="ignore",
        case_sensitive=False,
    )

    environment: Literal["development", "staging", "production", "test"] = "development"
    debug: bool = False
    project_name: str = "LeadMarket Server"
    api_prefix: str = "/api"

    server: ServerSettings = ServerSettings()
    database: DatabaseSettings = DatabaseSettings()
    security: SecuritySettings = SecuritySettings()
    stripe: StripeSettings = StripeSettings()
    mail: MailSettings = MailSettings()
    ledger: LedgerSettings = LedgerSettings()

    @property
    def database_url(self) -> str:
        return self.database.url

    @property
    def host(self) -> str:
        return self.server.host

    @property
    def port(self) -> int:
        return self.server.port

    @property
    def secret_key(self) -> str:
        return self.security.secret_key

    @property
    def algorithm(self) -> str:
        return self.security.algorithm

    @property
    def access_token_expire_minutes(self) -> int:
        return self.security.access_token_expire_minutes


@lru_cache()
def get_settings() -> Settings:
    return Settings()
