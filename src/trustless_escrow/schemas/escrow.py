"""Pydantic schemas for the Escrow API.

These schemas define the request/response shapes for the REST API. They are
separate from the ORM models to maintain clean boundaries between the API
and database layers.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

ACCOUNT_ID_FIELD = {"min_length": 1, "max_length": 64}

# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------


class CreateEscrowRequest(BaseModel):
    """Request body for locking funds in a new escrow."""

    counterparty: str = Field(
        ...,
        **ACCOUNT_ID_FIELD,
        description="Account paid when the escrow completes",
        examples=["bob"],
    )
    arbitrator: str = Field(
        ...,
        **ACCOUNT_ID_FIELD,
        description="Registered arbitrator who resolves a dispute",
        examples=["carol"],
    )
    amount: int = Field(
        ...,
        ge=0,
        description="Amount to lock, in the ledger's smallest unit. Zero is rejected",
        examples=[1000],
    )


class ArbitrateDisputeRequest(BaseModel):
    """Request body for the arbitrator's decision."""

    release_to_counterparty: bool = Field(
        ...,
        description="True pays the counterparty, False refunds the initiator",
    )


class SeedArbitratorRequest(BaseModel):
    """Request body for the admin arbitrator bootstrap."""

    account: str = Field(..., **ACCOUNT_ID_FIELD)


class CreditAccountRequest(BaseModel):
    """Request body for funding a host account."""

    amount: int = Field(..., gt=0)


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------


class EscrowCreatedResponse(BaseModel):
    escrow_id: int


class EscrowResponse(BaseModel):
    """Response schema for an escrow record."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    initiator: str
    counterparty: str
    arbitrator: str
    amount: int
    status: str
    dispute_initiator: str | None
    created_at: datetime
    updated_at: datetime


class EscrowBalanceResponse(BaseModel):
    """Amount still held for an escrow; null once it has been paid out."""

    escrow_id: int
    balance: int | None


class CustodialBalanceResponse(BaseModel):
    custodial_account: str
    balance: int


class ParticipantReputationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    account: str
    score: int
    total_trades: int
    successful_trades: int
    disputes_initiated: int
    disputes_lost: int


class ArbitratorReputationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    account: str
    score: int
    cases_resolved: int
    active_since: datetime


class AccountBalanceResponse(BaseModel):
    account: str
    balance: int


class EscrowEventResponse(BaseModel):
    """Response schema for an audit event."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: UUID
    escrow_id: int
    event_type: str
    old_status: str | None
    new_status: str
    actor: str
    metadata: dict | None = Field(default=None, validation_alias="metadata_json")
    created_at: datetime


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str = "0.1.0"
    database: str = "unknown"
