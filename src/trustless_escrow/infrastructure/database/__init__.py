"""Database infrastructure — engine, ORM models, and repositories."""

from trustless_escrow.infrastructure.database.engine import (
    close_db,
    get_async_session,
    init_db,
    make_session_factory,
    transaction,
)
from trustless_escrow.infrastructure.database.orm_models import (
    ArbitratorReputation,
    Base,
    Escrow,
    EscrowBalance,
    EscrowEvent,
    LedgerAccount,
    LedgerCounter,
    ParticipantReputation,
)
from trustless_escrow.infrastructure.database.repositories import (
    AccountRepository,
    EscrowRepository,
    EventRepository,
    ReputationRepository,
)

__all__ = [
    "ArbitratorReputation",
    "Base",
    "Escrow",
    "EscrowBalance",
    "EscrowEvent",
    "LedgerAccount",
    "LedgerCounter",
    "ParticipantReputation",
    "AccountRepository",
    "EscrowRepository",
    "EventRepository",
    "ReputationRepository",
    "get_async_session",
    "init_db",
    "close_db",
    "make_session_factory",
    "transaction",
]
