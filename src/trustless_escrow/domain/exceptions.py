"""Domain exceptions for the trustless escrow ledger.

These exceptions are framework-agnostic and represent business rule violations.
They are caught and translated to HTTP responses by the API layer's middleware.
Any of them aborts the surrounding transaction.
"""


class EscrowError(Exception):
    """Base exception for all domain errors."""

    def __init__(self, message: str, code: str = "ESCROW_ERROR") -> None:
        self.message = message
        self.code = code
        super().__init__(self.message)


# --- Authorization Errors ---


class NotAuthorizedError(EscrowError):
    """Raised when the caller lacks the role required for an operation."""

    def __init__(self, caller: str, action: str, escrow_id: int) -> None:
        super().__init__(
            message=f"Account {caller} is not authorized to {action} escrow {escrow_id}",
            code="NOT_AUTHORIZED",
        )
        self.caller = caller
        self.action = action
        self.escrow_id = escrow_id


# --- State Machine Errors ---


class InvalidStatusError(EscrowError):
    """Raised when the escrow is not in the state an operation requires.

    Example: complete_escrow on a COMPLETED escrow.
    """

    def __init__(self, escrow_id: int, current_status: str, attempted: str) -> None:
        super().__init__(
            message=(
                f"Escrow {escrow_id} is {current_status}; "
                f"'{attempted}' is not allowed from this status"
            ),
            code="INVALID_STATUS",
        )
        self.escrow_id = escrow_id
        self.current_status = current_status
        self.attempted = attempted


# --- Escrow Lookup Errors ---


class EscrowNotFoundError(EscrowError):
    """Raised when an escrow id (or its held balance) has no record."""

    def __init__(self, escrow_id: int, what: str = "Escrow") -> None:
        super().__init__(
            message=f"{what} not found: {escrow_id}",
            code="NOT_FOUND",
        )
        self.escrow_id = escrow_id


class InvalidEscrowIdError(EscrowError):
    """Raised when an escrow id lies outside the allocated range."""

    def __init__(self, escrow_id: int) -> None:
        super().__init__(
            message=f"Escrow id out of range: {escrow_id}",
            code="INVALID_ESCROW_ID",
        )
        self.escrow_id = escrow_id


# --- Creation Errors ---


class ZeroAmountError(EscrowError):
    """Raised when an escrow is created without a positive deposit."""

    def __init__(self, amount: int) -> None:
        super().__init__(
            message=f"Escrow amount must be greater than zero, got {amount}",
            code="ZERO_AMOUNT",
        )
        self.amount = amount


class InvalidCounterpartyError(EscrowError):
    """Raised when the counterparty is the caller itself."""

    def __init__(self, counterparty: str) -> None:
        super().__init__(
            message=f"Invalid counterparty: {counterparty}",
            code="INVALID_COUNTERPARTY",
        )
        self.counterparty = counterparty


class InvalidArbitratorError(EscrowError):
    """Raised when the arbitrator is the caller or has no reputation record."""

    def __init__(self, arbitrator: str, reason: str) -> None:
        super().__init__(
            message=f"Invalid arbitrator {arbitrator}: {reason}",
            code="INVALID_ARBITRATOR",
        )
        self.arbitrator = arbitrator
        self.reason = reason


# --- Transfer Errors ---


class TransferFailedError(EscrowError):
    """Raised when the value-transfer primitive declines to move funds."""

    def __init__(self, message: str) -> None:
        super().__init__(message=message, code="TRANSFER_FAILED")


class InsufficientFundsError(TransferFailedError):
    """Raised when the sending account cannot cover the transfer."""

    def __init__(self, account: str, required: int, available: int) -> None:
        super().__init__(
            message=(
                f"Insufficient funds in {account}: "
                f"required {required}, available {available}"
            ),
        )
        self.code = "INSUFFICIENT_FUNDS"
        self.account = account
        self.required = required
        self.available = available


class SelfTransferError(TransferFailedError):
    """Raised when the sender and recipient of a transfer are the same account."""

    def __init__(self, account: str) -> None:
        super().__init__(message=f"Cannot transfer from {account} to itself")
        self.code = "SELF_TRANSFER"
        self.account = account


# --- Reserved Errors ---
# Part of the public error vocabulary but never raised by any operation.


class AlreadyExistsError(EscrowError):
    """Reserved: a record that must be unique already exists."""

    def __init__(self, what: str) -> None:
        super().__init__(message=f"Already exists: {what}", code="ALREADY_EXISTS")
