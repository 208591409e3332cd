"""Pydantic API schemas."""

from trustless_escrow.schemas.escrow import (
    AccountBalanceResponse,
    ArbitrateDisputeRequest,
    ArbitratorReputationResponse,
    CreateEscrowRequest,
    CreditAccountRequest,
    CustodialBalanceResponse,
    EscrowBalanceResponse,
    EscrowCreatedResponse,
    EscrowEventResponse,
    EscrowResponse,
    HealthResponse,
    ParticipantReputationResponse,
    SeedArbitratorRequest,
)

__all__ = [
    "AccountBalanceResponse",
    "ArbitrateDisputeRequest",
    "ArbitratorReputationResponse",
    "CreateEscrowRequest",
    "CreditAccountRequest",
    "CustodialBalanceResponse",
    "EscrowBalanceResponse",
    "EscrowCreatedResponse",
    "EscrowEventResponse",
    "EscrowResponse",
    "HealthResponse",
    "ParticipantReputationResponse",
    "SeedArbitratorRequest",
]
