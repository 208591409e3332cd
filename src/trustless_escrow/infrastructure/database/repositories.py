"""Repository classes for database access.

Repositories encapsulate all SQL queries and provide a clean interface
to the service layer. They accept an AsyncSession and never manage
their own transactions (that's the caller's responsibility).

    EscrowRepository      — the Escrow Ledger (escrows, balances, id allocator)
    ReputationRepository  — the Reputation Store (both reputation tables)
    AccountRepository     — host-ledger account balances
    EventRepository       — append-only audit log
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import func, select

from trustless_escrow.domain.enums import EscrowStatus
from trustless_escrow.domain.exceptions import ZeroAmountError
from trustless_escrow.domain.reputation import NEW_ARBITRATOR_SCORE, NEW_PARTICIPANT_SCORE
from trustless_escrow.infrastructure.database.orm_models import (
    ArbitratorReputation,
    Escrow,
    EscrowBalance,
    EscrowEvent,
    LedgerAccount,
    LedgerCounter,
    ParticipantReputation,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from trustless_escrow.domain.enums import EventType

NEXT_ESCROW_ID = "next_escrow_id"
FIRST_ESCROW_ID = 1


def new_participant_reputation(account: str) -> ParticipantReputation:
    """Build (but do not persist) the default record for a new participant."""
    return ParticipantReputation(
        account=account,
        score=NEW_PARTICIPANT_SCORE,
        total_trades=0,
        successful_trades=0,
        disputes_initiated=0,
        disputes_lost=0,
    )


def new_arbitrator_reputation(account: str) -> ArbitratorReputation:
    """Build (but do not persist) the default record for a new arbitrator."""
    return ArbitratorReputation(
        account=account,
        score=NEW_ARBITRATOR_SCORE,
        cases_resolved=0,
        active_since=datetime.now(UTC),
    )


class EscrowRepository:
    """Data access for escrows, their held balances and the id allocator."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def next_id(self) -> int:
        """Return the id the next allocation will receive."""
        counter = await self._session.get(LedgerCounter, NEXT_ESCROW_ID)
        return counter.value if counter is not None else FIRST_ESCROW_ID

    async def allocate(
        self,
        initiator: str,
        counterparty: str,
        arbitrator: str,
        amount: int,
    ) -> Escrow:
        """Store a new PENDING escrow with its balance and advance the allocator."""
        if amount <= 0:
            raise ZeroAmountError(amount)

        counter = await self._lock_counter()
        escrow_id = counter.value

        escrow = Escrow(
            id=escrow_id,
            initiator=initiator,
            counterparty=counterparty,
            arbitrator=arbitrator,
            amount=amount,
            status=EscrowStatus.PENDING.value,
            dispute_initiator=None,
            created_at=datetime.now(UTC),
        )
        self._session.add(escrow)
        await self._session.flush()

        self._session.add(EscrowBalance(escrow_id=escrow_id, amount=amount))
        counter.value = escrow_id + 1
        await self._session.flush()
        return escrow

    async def get_by_id(self, escrow_id: int) -> Escrow | None:
        """Fetch an escrow by id."""
        return await self._session.get(Escrow, escrow_id)

    async def get_balance(self, escrow_id: int) -> int | None:
        """Fetch the amount held for an escrow, None once it is settled."""
        balance = await self._session.get(EscrowBalance, escrow_id)
        return balance.amount if balance is not None else None

    async def transition_status(
        self,
        escrow: Escrow,
        new_status: EscrowStatus,
        dispute_initiator: str | None = None,
    ) -> Escrow:
        """Update the status of an escrow (call AFTER state machine validation)."""
        escrow.status = new_status.value
        if dispute_initiator is not None:
            escrow.dispute_initiator = dispute_initiator
        await self._session.flush()
        return escrow

    async def clear_balance(self, escrow_id: int) -> None:
        """Remove the held balance of an escrow that reached COMPLETED."""
        balance = await self._session.get(EscrowBalance, escrow_id)
        if balance is not None:
            await self._session.delete(balance)
            await self._session.flush()

    async def custodial_total(self) -> int:
        """Sum of every balance currently held in custody."""
        result = await self._session.execute(
            select(func.coalesce(func.sum(EscrowBalance.amount), 0))
        )
        return int(result.scalar_one())

    async def _lock_counter(self) -> LedgerCounter:
        result = await self._session.execute(
            select(LedgerCounter)
            .where(LedgerCounter.name == NEXT_ESCROW_ID)
            .with_for_update()
        )
        counter = result.scalar_one_or_none()
        if counter is None:
            counter = LedgerCounter(name=NEXT_ESCROW_ID, value=FIRST_ESCROW_ID)
            self._session.add(counter)
        return counter


class ReputationRepository:
    """Data access for participant and arbitrator reputation."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_participant(self, account: str) -> ParticipantReputation | None:
        return await self._session.get(ParticipantReputation, account)

    async def get_arbitrator(self, account: str) -> ArbitratorReputation | None:
        return await self._session.get(ArbitratorReputation, account)

    async def get_or_init_participant(self, account: str) -> ParticipantReputation:
        """Return the participant's record, persisting the default on first use."""
        rep = await self.get_participant(account)
        if rep is None:
            rep = new_participant_reputation(account)
            self._session.add(rep)
            await self._session.flush()
        return rep

    async def get_or_init_arbitrator(self, account: str) -> ArbitratorReputation:
        """Return the arbitrator's record, persisting the default on first use."""
        rep = await self.get_arbitrator(account)
        if rep is None:
            rep = new_arbitrator_reputation(account)
            self._session.add(rep)
            await self._session.flush()
        return rep

    async def save(self) -> None:
        """Flush rule updates applied to loaded records."""
        await self._session.flush()


class AccountRepository:
    """Data access for host-ledger account balances."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, account: str) -> LedgerAccount | None:
        return await self._session.get(LedgerAccount, account)

    async def get_or_create(self, account: str) -> LedgerAccount:
        ledger_account = await self.get(account)
        if ledger_account is None:
            ledger_account = LedgerAccount(account=account, balance=0)
            self._session.add(ledger_account)
            await self._session.flush()
        return ledger_account

    async def total(self) -> int:
        """Sum of all host balances (conserved by every transfer)."""
        result = await self._session.execute(
            select(func.coalesce(func.sum(LedgerAccount.balance), 0))
        )
        return int(result.scalar_one())


class EventRepository:
    """Data access for the append-only audit event log."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def record(
        self,
        escrow_id: int,
        event_type: EventType,
        old_status: EscrowStatus | None,
        new_status: EscrowStatus,
        actor: str,
        metadata: dict | None = None,
    ) -> EscrowEvent:
        """Append a new audit event. This is the ONLY write operation allowed."""
        evt = EscrowEvent(
            escrow_id=escrow_id,
            event_type=event_type.value,
            old_status=old_status.value if old_status else None,
            new_status=new_status.value,
            actor=actor,
            metadata_json=metadata,
            created_at=datetime.now(UTC),
        )
        self._session.add(evt)
        await self._session.flush()
        return evt

    async def get_by_escrow(self, escrow_id: int) -> list[EscrowEvent]:
        """Fetch all events for an escrow in chronological order."""
        result = await self._session.execute(
            select(EscrowEvent)
            .where(EscrowEvent.escrow_id == escrow_id)
            .order_by(EscrowEvent.created_at.asc())
        )
        return list(result.scalars().all())
