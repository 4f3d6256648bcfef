"""Unit-of-work helper used by every ledger-mutating service call."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from leadmarket.core.exceptions import PersistenceFailureError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def atomic(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """Commit everything written inside the block, or nothing.

    Any exception rolls the session back. Store errors that the block did not
    translate itself surface as ``PersistenceFailureError``.
    """
    try:
        yield session
        await session.commit()
    except SQLAlchemyError as exc:
        await session.rollback()
        logger.exception("Transaction rolled back after store error")
        raise PersistenceFailureError(str(exc)) from exc
    except BaseException:
        await session.rollback()
        raise


__all__ = ["atomic"]
