import os
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SECURITY__SECRET_KEY", "test-secret-key-min-32-characters-long")
os.environ.setdefault("STRIPE__WEBHOOK_SECRET", "whsec_test")

from leadmarket.core.config import get_settings  # noqa: E402
from leadmarket.core.container import get_container  # noqa: E402
from leadmarket.core.exceptions import ProviderUnavailableError  # noqa: E402
from leadmarket.core.security import create_access_token  # noqa: E402
from leadmarket.infrastructure.database.session import dispose_engine, get_session_factory, init_db  # noqa: E402
from leadmarket.interfaces.http.deps import get_mailer, get_payment_provider  # noqa: E402
from leadmarket.modules.accounts import AccountCreateInput, AccountService  # noqa: E402
from leadmarket.modules.leads import LeadCreateInput, LeadService  # noqa: E402
from leadmarket.modules.purchases import CatalogService, InvalidWebhookSignatureError  # noqa: E402
from leadmarket.modules.purchases.models import (  # noqa: E402
    PAYMENT_UNPAID,
    CheckoutSession,
    SessionStatus,
)

VALID_SIGNATURE = "t=1,v1=valid"


class FakePaymentProvider:
    """In-memory checkout provider; tests flip session states by hand."""

    def __init__(self) -> None:
        self.sessions: dict[str, str] = {}
        self.created = []
        self.status_calls = 0
        self.unavailable = False
        self.event = None

    async def create_checkout_session(self, request):
        if self.unavailable:
            raise ProviderUnavailableError("provider down")
        self.created.append(request)
        session_id = f"cs_test_{len(self.created)}"
        self.sessions[session_id] = PAYMENT_UNPAID
        return CheckoutSession(
            session_id=session_id,
            redirect_url=f"https://checkout.example.com/{session_id}",
            expires_at=request.expires_at,
        )

    async def get_session_status(self, session_id):
        self.status_calls += 1
        if self.unavailable:
            raise ProviderUnavailableError("provider down")
        return SessionStatus(session_id=session_id, status=self.sessions.get(session_id, PAYMENT_UNPAID))

    def parse_webhook(self, payload, signature):
        if signature != VALID_SIGNATURE or self.event is None:
            raise InvalidWebhookSignatureError("No signatures found matching the expected signature")
        return self.event


class RecordingMailer:
    def __init__(self) -> None:
        self.sent: list[tuple[str, int]] = []

    async def send_low_balance_alert(self, email, name, balance):
        self.sent.append((email, balance))


@pytest_asyncio.fixture(autouse=True)
async def database(tmp_path, monkeypatch) -> AsyncGenerator[None, None]:
    monkeypatch.setenv("DATABASE__URL", f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    get_settings.cache_clear()
    get_container.cache_clear()
    await dispose_engine()
    await init_db()
    yield
    await dispose_engine()
    get_settings.cache_clear()
    get_container.cache_clear()


@pytest.fixture
def session_factory():
    return get_session_factory()


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as db:
        yield db


@pytest.fixture
def provider() -> FakePaymentProvider:
    return FakePaymentProvider()


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def make_account(session):
    counter = {"n": 0}

    async def _make(role: str = "user", lead_coins: int | None = None, email: str | None = None):
        counter["n"] += 1
        service = AccountService.with_session(session)
        return await service.create_account(
            AccountCreateInput(
                email=email or f"{role}{counter['n']}@example.com",
                password="secret123",
                name=f"{role.title()} {counter['n']}",
                role=role,
                lead_coins=lead_coins,
            )
        )

    return _make


@pytest_asyncio.fixture
async def user(make_account):
    return await make_account()


@pytest_asyncio.fixture
async def admin(make_account):
    return await make_account(role="admin", lead_coins=0)


@pytest_asyncio.fixture
async def lead(session, admin):
    return await LeadService.with_session(session).create_lead(
        admin.id,
        LeadCreateInput(
            title="Kitchen remodel in Austin",
            email="owner@example.com",
            contact_number="+1 512 555 0100",
            description="Full kitchen remodel, budget 40k",
            location="Austin, TX",
        ),
    )


@pytest_asyncio.fixture
async def package(session, admin):
    return await CatalogService.with_session(session).create_package(
        admin, name="Starter", lead_coins=100, price_cents=1999
    )


@pytest_asyncio.fixture
async def plan(session, admin):
    return await CatalogService.with_session(session).create_plan(
        admin, name="Monthly Pro", lead_coins=300, price_cents=4999, duration_days=30
    )


@pytest.fixture
def auth_headers():
    def _headers(account) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(account.id, account.email, account.role)}"}

    return _headers


@pytest.fixture
def app(provider, mailer):
    from leadmarket.main import create_app

    application = create_app()
    application.dependency_overrides[get_payment_provider] = lambda: provider
    application.dependency_overrides[get_mailer] = lambda: mailer
    return application


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
