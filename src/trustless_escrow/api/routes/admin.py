"""Operator REST API routes.

Disabled unless ADMIN_API_KEY is set; every call must present it in the
X-Admin-Key header.

Routes:
    POST   /api/v1/admin/arbitrators                 — Seed an arbitrator record
    POST   /api/v1/admin/accounts/{account}/credit   — Fund a host account
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from trustless_escrow.api.deps import get_registry_service, require_admin
from trustless_escrow.logging_config import get_logger
from trustless_escrow.schemas.escrow import (
    AccountBalanceResponse,
    ArbitratorReputationResponse,
    CreditAccountRequest,
    SeedArbitratorRequest,
)
from trustless_escrow.services.registry_service import RegistryService

router = APIRouter(
    prefix="/api/v1/admin",
    tags=["Admin"],
    dependencies=[Depends(require_admin)],
)
logger = get_logger(__name__)


@router.post(
    "/arbitrators",
    response_model=ArbitratorReputationResponse,
    status_code=201,
    summary="Seed an arbitrator reputation record",
)
async def seed_arbitrator(
    request: SeedArbitratorRequest,
    registry: RegistryService = Depends(get_registry_service),
) -> ArbitratorReputationResponse:
    rep = await registry.seed_arbitrator(request.account)
    return ArbitratorReputationResponse.model_validate(rep)


@router.post(
    "/accounts/{account}/credit",
    response_model=AccountBalanceResponse,
    summary="Credit a host account",
)
async def credit_account(
    account: str,
    request: CreditAccountRequest,
    registry: RegistryService = Depends(get_registry_service),
) -> AccountBalanceResponse:
    balance = await registry.fund_account(account, request.amount)
    logger.info("admin.account_credited", account=account, amount=request.amount)
    return AccountBalanceResponse(account=account, balance=balance)
