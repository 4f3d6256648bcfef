"""
Create the first admin account.

Reads ADMIN_EMAIL / ADMIN_PASSWORD / ADMIN_NAME from the environment.
"""
import asyncio
import os

from leadmarket.core.logging import configure_logging
from leadmarket.infrastructure.database.session import dispose_engine, get_session_factory, init_db
from leadmarket.modules.accounts import AccountCreateInput, AccountService


async def create_default_admin() -> None:
    await init_db()

    email = os.environ.get("ADMIN_EMAIL", "admin@example.com")
    password = os.environ.get("ADMIN_PASSWORD", "admin123")
    name = os.environ.get("ADMIN_NAME", "Administrator")

    factory = get_session_factory()
    async with factory() as session:
        service = AccountService.with_session(session)
        if await service.get_by_email(email) is not None:
            print(f"Admin account {email} already exists, nothing to do")
            return

        account = await service.create_account(
            AccountCreateInput(
                email=email,
                password=password,
                name=name,
                role="admin",
                is_active=True,
                lead_coins=0,
            )
        )

    print("=" * 50)
    print("Admin account created")
    print("=" * 50)
    print(f"Email: {account.email}")
    print(f"Password: {password}")
    print("=" * 50)
    print("Change the password after the first login!")
    print("=" * 50)
    await dispose_engine()


if __name__ == "__main__":
    configure_logging(False)
    asyncio.run(create_default_admin())
