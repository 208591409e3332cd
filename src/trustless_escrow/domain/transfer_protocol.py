"""Value-Transfer Primitive Protocol.

Defines the interface the lifecycle manager uses to move funds between host
accounts. This is a Protocol (structural subtyping) so a host ledger only has
to match the shape.

Contract:
    - A transfer is atomic: either the full amount moves or nothing does.
    - A declined transfer raises TransferFailedError (InsufficientFundsError
      when the sender cannot cover the amount).
    - The lifecycle manager calls it at most once per operation, before the
      escrow status or balance of that operation changes.

Implementations:
    - services/transfer_service.py (ledger_accounts table, same transaction)
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class TransferPrimitive(Protocol):
    """Protocol that every host value-transfer implementation must satisfy."""

    async def transfer(self, amount: int, sender: str, recipient: str) -> None:
        """Move ``amount`` from ``sender`` to ``recipient``.

        Raises:
            TransferFailedError: If the host ledger declines the movement.
        """
        ...
