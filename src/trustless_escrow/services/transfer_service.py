"""Transfer Service — the host ledger's value-transfer primitive.

Moves integer amounts between rows of the ledger_accounts table using the
same session as the escrow operation that calls it. The fund movement
therefore commits or rolls back together with the escrow and reputation
writes of that operation.

A declined transfer raises before touching any balance. Moving funds from an
account to itself is declined, since it would leave every balance unchanged.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from trustless_escrow.domain.exceptions import (
    InsufficientFundsError,
    SelfTransferError,
    TransferFailedError,
)
from trustless_escrow.infrastructure.database.repositories import AccountRepository
from trustless_escrow.logging_config import get_logger

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


class LedgerTransferService:
    """Implements TransferPrimitive against the ledger_accounts table."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._accounts = AccountRepository(session)

    async def transfer(self, amount: int, sender: str, recipient: str) -> None:
        """Move ``amount`` from ``sender`` to ``recipient`` or raise."""
        if amount <= 0:
            raise TransferFailedError(f"Transfer amount must be positive, got {amount}")
        if sender == recipient:
            raise SelfTransferError(sender)

        source = await self._accounts.get(sender)
        available = source.balance if source is not None else 0
        if source is None or available < amount:
            logger.warning(
                "transfer.declined",
                sender=sender,
                recipient=recipient,
                amount=amount,
                available=available,
            )
            raise InsufficientFundsError(sender, required=amount, available=available)

        target = await self._accounts.get_or_create(recipient)
        source.balance -= amount
        target.balance += amount
        await self._session.flush()

        logger.info("transfer.completed", sender=sender, recipient=recipient, amount=amount)

    async def credit(self, account: str, amount: int) -> int:
        """Mint ``amount`` into an account (host funding). Returns the new balance."""
        if amount <= 0:
            raise TransferFailedError(f"Credit amount must be positive, got {amount}")
        ledger_account = await self._accounts.get_or_create(account)
        ledger_account.balance += amount
        await self._session.flush()
        logger.info("transfer.credited", account=account, amount=amount)
        return ledger_account.balance

    async def balance_of(self, account: str) -> int:
        ledger_account = await self._accounts.get(account)
        return ledger_account.balance if ledger_account is not None else 0
