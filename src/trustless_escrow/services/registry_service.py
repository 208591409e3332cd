"""Registry Service — out-of-band bootstrap for the host ledger.

create_escrow only accepts arbitrators that already have a reputation
record, and the lifecycle itself only creates one when an arbitrator resolves
a dispute. On a fresh ledger nothing could ever be arbitrated, so an operator
seeds arbitrators here. Seeding writes the same default record the lifecycle
would have written; it does not relax the create_escrow check.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from trustless_escrow.infrastructure.database.repositories import ReputationRepository
from trustless_escrow.logging_config import get_logger
from trustless_escrow.services.transfer_service import LedgerTransferService

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from trustless_escrow.infrastructure.database.orm_models import ArbitratorReputation

logger = get_logger(__name__)


class RegistryService:
    """Operator actions: arbitrator seeding and host account funding."""

    def __init__(self, session: AsyncSession) -> None:
        self._reputation_repo = ReputationRepository(session)
        self._transfers = LedgerTransferService(session)

    async def seed_arbitrator(self, account: str) -> ArbitratorReputation:
        """Ensure ``account`` has an arbitrator record. Idempotent."""
        existing = await self._reputation_repo.get_arbitrator(account)
        if existing is not None:
            return existing
        rep = await self._reputation_repo.get_or_init_arbitrator(account)
        logger.info("registry.arbitrator_seeded", account=account)
        return rep

    async def fund_account(self, account: str, amount: int) -> int:
        """Credit a host account so it can open escrows. Returns the new balance."""
        return await self._transfers.credit(account, amount)
