"""Query Service — read-only view of escrow, balance and reputation state.

No authorization checks and no writes. Reputation lookups for accounts the
store has never seen return a default record that is NOT added to the
session, so reading never materializes a reputation.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from trustless_escrow.domain.guards import valid_escrow_id
from trustless_escrow.infrastructure.database.repositories import (
    EscrowRepository,
    EventRepository,
    ReputationRepository,
    new_arbitrator_reputation,
    new_participant_reputation,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from trustless_escrow.infrastructure.database.orm_models import (
        ArbitratorReputation,
        Escrow,
        EscrowEvent,
        ParticipantReputation,
    )


class QueryService:
    """Read accessors exposed to external callers."""

    def __init__(self, session: AsyncSession) -> None:
        self._escrow_repo = EscrowRepository(session)
        self._reputation_repo = ReputationRepository(session)
        self._event_repo = EventRepository(session)

    async def get_escrow(self, escrow_id: int) -> Escrow | None:
        if not valid_escrow_id(escrow_id, await self._escrow_repo.next_id()):
            return None
        return await self._escrow_repo.get_by_id(escrow_id)

    async def get_escrow_balance(self, escrow_id: int) -> int | None:
        return await self._escrow_repo.get_balance(escrow_id)

    async def get_user_reputation(self, account: str) -> ParticipantReputation:
        rep = await self._reputation_repo.get_participant(account)
        return rep if rep is not None else new_participant_reputation(account)

    async def get_arbitrator_reputation(self, account: str) -> ArbitratorReputation:
        rep = await self._reputation_repo.get_arbitrator(account)
        return rep if rep is not None else new_arbitrator_reputation(account)

    async def get_custodial_balance(self) -> int:
        """Aggregate amount held in custody across all active escrows."""
        return await self._escrow_repo.custodial_total()

    async def get_events(self, escrow_id: int) -> list[EscrowEvent]:
        """Audit trail of an escrow, oldest first."""
        return await self._event_repo.get_by_escrow(escrow_id)
