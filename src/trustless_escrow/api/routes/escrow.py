"""Escrow REST API routes.

These endpoints provide the HTTP interface for the escrow lifecycle and its
read-only queries. The caller's account is taken from the X-Account-Id
header; the simulation calls the same service layer directly.

Routes:
    POST   /api/v1/escrow                  — Lock funds in a new escrow
    POST   /api/v1/escrow/{id}/complete    — Counterparty confirms and is paid
    POST   /api/v1/escrow/{id}/dispute     — Either party raises a dispute
    POST   /api/v1/escrow/{id}/arbitrate   — Arbitrator resolves the dispute
    GET    /api/v1/escrow/{id}             — Escrow record
    GET    /api/v1/escrow/{id}/balance     — Amount still held
    GET    /api/v1/escrow/{id}/events      — Audit trail
    GET    /api/v1/custody/balance         — Aggregate held in custody
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from trustless_escrow.api.deps import (
    get_app_settings,
    get_caller,
    get_escrow_service,
    get_query_service,
)
from trustless_escrow.config import Settings
from trustless_escrow.domain.exceptions import EscrowNotFoundError
from trustless_escrow.schemas.escrow import (
    ArbitrateDisputeRequest,
    CreateEscrowRequest,
    CustodialBalanceResponse,
    EscrowBalanceResponse,
    EscrowCreatedResponse,
    EscrowEventResponse,
    EscrowResponse,
)
from trustless_escrow.services.escrow_service import EscrowService
from trustless_escrow.services.query_service import QueryService

router = APIRouter(prefix="/api/v1", tags=["Escrow"])


# ---------------------------------------------------------------------------
# Lifecycle
# ---------------------------------------------------------------------------


@router.post(
    "/escrow",
    response_model=EscrowCreatedResponse,
    status_code=201,
    summary="Lock funds in a new escrow",
)
async def create_escrow(
    request: CreateEscrowRequest,
    caller: str = Depends(get_caller),
    svc: EscrowService = Depends(get_escrow_service),
) -> EscrowCreatedResponse:
    """Transfer the amount into custody and open a PENDING escrow."""
    escrow_id = await svc.create_escrow(
        caller=caller,
        counterparty=request.counterparty,
        arbitrator=request.arbitrator,
        amount=request.amount,
    )
    return EscrowCreatedResponse(escrow_id=escrow_id)


@router.post(
    "/escrow/{escrow_id}/complete",
    status_code=204,
    summary="Counterparty confirms and receives the funds",
)
async def complete_escrow(
    escrow_id: int,
    caller: str = Depends(get_caller),
    svc: EscrowService = Depends(get_escrow_service),
) -> Response:
    """PENDING -> COMPLETED. Only the counterparty may call this."""
    await svc.complete_escrow(caller, escrow_id)
    return Response(status_code=204)


@router.post(
    "/escrow/{escrow_id}/dispute",
    status_code=204,
    summary="Raise a dispute",
)
async def initiate_dispute(
    escrow_id: int,
    caller: str = Depends(get_caller),
    svc: EscrowService = Depends(get_escrow_service),
) -> Response:
    """PENDING -> DISPUTED. Either party may call this."""
    await svc.initiate_dispute(caller, escrow_id)
    return Response(status_code=204)


@router.post(
    "/escrow/{escrow_id}/arbitrate",
    status_code=204,
    summary="Resolve a dispute",
)
async def arbitrate_dispute(
    escrow_id: int,
    request: ArbitrateDisputeRequest,
    caller: str = Depends(get_caller),
    svc: EscrowService = Depends(get_escrow_service),
) -> Response:
    """DISPUTED -> COMPLETED. Only the assigned arbitrator may call this."""
    await svc.arbitrate_dispute(caller, escrow_id, request.release_to_counterparty)
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Read endpoints
# ---------------------------------------------------------------------------


@router.get(
    "/escrow/{escrow_id}",
    response_model=EscrowResponse,
    summary="Get escrow details",
)
async def get_escrow(
    escrow_id: int,
    queries: QueryService = Depends(get_query_service),
) -> EscrowResponse:
    escrow = await queries.get_escrow(escrow_id)
    if escrow is None:
        raise EscrowNotFoundError(escrow_id)
    return EscrowResponse.model_validate(escrow)


@router.get(
    "/escrow/{escrow_id}/balance",
    response_model=EscrowBalanceResponse,
    summary="Get the amount still held",
)
async def get_escrow_balance(
    escrow_id: int,
    queries: QueryService = Depends(get_query_service),
) -> EscrowBalanceResponse:
    balance = await queries.get_escrow_balance(escrow_id)
    return EscrowBalanceResponse(escrow_id=escrow_id, balance=balance)


@router.get(
    "/escrow/{escrow_id}/events",
    response_model=list[EscrowEventResponse],
    summary="Get audit trail",
)
async def get_events(
    escrow_id: int,
    queries: QueryService = Depends(get_query_service),
) -> list[EscrowEventResponse]:
    events = await queries.get_events(escrow_id)
    return [EscrowEventResponse.model_validate(e) for e in events]


@router.get(
    "/custody/balance",
    response_model=CustodialBalanceResponse,
    summary="Get the aggregate amount held in custody",
)
async def get_custodial_balance(
    queries: QueryService = Depends(get_query_service),
    settings: Settings = Depends(get_app_settings),
) -> CustodialBalanceResponse:
    balance = await queries.get_custodial_balance()
    return CustodialBalanceResponse(
        custodial_account=settings.custodial_account,
        balance=balance,
    )
