"""Reputation REST API routes.

Unknown accounts are reported with the default record and are not stored.

Routes:
    GET    /api/v1/reputation/users/{account}
    GET    /api/v1/reputation/arbitrators/{account}
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from trustless_escrow.api.deps import get_query_service
from trustless_escrow.schemas.escrow import (
    ArbitratorReputationResponse,
    ParticipantReputationResponse,
)
from trustless_escrow.services.query_service import QueryService

router = APIRouter(prefix="/api/v1/reputation", tags=["Reputation"])


@router.get(
    "/users/{account}",
    response_model=ParticipantReputationResponse,
    summary="Get a participant's reputation",
)
async def get_user_reputation(
    account: str,
    queries: QueryService = Depends(get_query_service),
) -> ParticipantReputationResponse:
    rep = await queries.get_user_reputation(account)
    return ParticipantReputationResponse.model_validate(rep)


@router.get(
    "/arbitrators/{account}",
    response_model=ArbitratorReputationResponse,
    summary="Get an arbitrator's reputation",
)
async def get_arbitrator_reputation(
    account: str,
    queries: QueryService = Depends(get_query_service),
) -> ArbitratorReputationResponse:
    rep = await queries.get_arbitrator_reputation(account)
    return ArbitratorReputationResponse.model_validate(rep)
