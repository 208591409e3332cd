"""Domain layer — pure business logic with zero framework dependencies."""

from trustless_escrow.domain.enums import (
    EscrowStatus,
    EventType,
)
from trustless_escrow.domain.exceptions import (
    EscrowError,
    EscrowNotFoundError,
    InsufficientFundsError,
    InvalidArbitratorError,
    InvalidCounterpartyError,
    InvalidEscrowIdError,
    InvalidStatusError,
    NotAuthorizedError,
    TransferFailedError,
    ZeroAmountError,
)
from trustless_escrow.domain.guards import (
    valid_arbitrator,
    valid_counterparty,
    valid_escrow_id,
)
from trustless_escrow.domain.state_machine import (
    EscrowStateMachine,
    validate_transition,
)
from trustless_escrow.domain.transfer_protocol import TransferPrimitive

__all__ = [
    "EscrowStatus",
    "EventType",
    "EscrowError",
    "EscrowNotFoundError",
    "InsufficientFundsError",
    "InvalidArbitratorError",
    "InvalidCounterpartyError",
    "InvalidEscrowIdError",
    "InvalidStatusError",
    "NotAuthorizedError",
    "TransferFailedError",
    "ZeroAmountError",
    "valid_arbitrator",
    "valid_counterparty",
    "valid_escrow_id",
    "EscrowStateMachine",
    "validate_transition",
    "TransferPrimitive",
]
