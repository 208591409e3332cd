"""FastAPI dependency injection providers.

These are used with Depends() in route handlers to inject database sessions,
services, the caller's identity and configuration.

The request-scoped session is the transaction boundary: it commits when the
route returns and rolls back when it raises.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Depends, Header, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: TC002 - resolved by FastAPI at runtime

from trustless_escrow.config import Settings, get_settings
from trustless_escrow.infrastructure.database.engine import get_async_session
from trustless_escrow.logging_config import bind_caller
from trustless_escrow.services.escrow_service import EscrowService
from trustless_escrow.services.query_service import QueryService
from trustless_escrow.services.registry_service import RegistryService

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield an async database session for a request."""
    async for session in get_async_session():
        yield session


def get_app_settings() -> Settings:
    """Provide the application settings."""
    return get_settings()


def get_caller(
    x_account_id: str = Header(..., min_length=1, max_length=64),
) -> str:
    """Identity of the account invoking the operation (X-Account-Id header)."""
    bind_caller(x_account_id)
    return x_account_id


def require_admin(
    x_admin_key: str = Header(default=""),
    settings: Settings = Depends(get_app_settings),
) -> None:
    """Gate operator routes behind the configured admin key."""
    if not settings.admin_api_key or x_admin_key != settings.admin_api_key:
        raise HTTPException(status_code=403, detail="Admin access denied")


async def get_escrow_service(
    session: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
) -> EscrowService:
    return EscrowService(session, custodial_account=settings.custodial_account)


async def get_query_service(
    session: AsyncSession = Depends(get_db_session),
) -> QueryService:
    return QueryService(session)


async def get_registry_service(
    session: AsyncSession = Depends(get_db_session),
) -> RegistryService:
    return RegistryService(session)
