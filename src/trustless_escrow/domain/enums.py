"""Domain enumerations for the trustless escrow ledger.

These enums define the canonical states and audit event types used throughout
the system. They are framework-agnostic (no SQLAlchemy, no FastAPI imports).
"""

import enum


class EscrowStatus(enum.StrEnum):
    """Lifecycle states of an escrow.

    State transitions are enforced by the EscrowStateMachine guard.
    See domain/state_machine.py for the transition table.

    REFUNDED is reserved: no operation transitions into it.
    """

    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    DISPUTED = "DISPUTED"
    REFUNDED = "REFUNDED"


class EventType(enum.StrEnum):
    """Types of audit events recorded in the escrow_events table.

    Every state transition produces exactly one event.
    """

    ESCROW_CREATED = "ESCROW_CREATED"
    ESCROW_COMPLETED = "ESCROW_COMPLETED"

    DISPUTE_RAISED = "DISPUTE_RAISED"
    DISPUTE_RESOLVED_FOR_COUNTERPARTY = "DISPUTE_RESOLVED_FOR_COUNTERPARTY"
    DISPUTE_RESOLVED_FOR_INITIATOR = "DISPUTE_RESOLVED_FOR_INITIATOR"
