"""Escrow Service — the escrow lifecycle manager.

This is the application layer that coordinates between:
    - Authorization guard and domain state machine (preconditions)
    - Transfer primitive (fund movement)
    - Repositories (escrow ledger, reputation store)
    - Event log (audit trail)

Both REST routes and the simulation call into this service, ensuring a
single source of truth for all business rules.

Every public method is one unit of work on the session it was given: it
either returns normally and the caller commits, or it raises and the caller
rolls back. Preconditions are checked in a fixed order and the transfer runs
before any escrow or reputation write is staged, except for the lazy
reputation initialization of create_escrow, which the rollback discards.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from statemachine.exceptions import TransitionNotAllowed

from trustless_escrow.config import get_settings
from trustless_escrow.domain import reputation as rules
from trustless_escrow.domain.enums import EscrowStatus, EventType
from trustless_escrow.domain.exceptions import (
    EscrowNotFoundError,
    InvalidArbitratorError,
    InvalidCounterpartyError,
    InvalidEscrowIdError,
    InvalidStatusError,
    NotAuthorizedError,
    ZeroAmountError,
)
from trustless_escrow.domain.guards import (
    valid_arbitrator,
    valid_counterparty,
    valid_escrow_id,
)
from trustless_escrow.domain.state_machine import validate_transition
from trustless_escrow.infrastructure.database.repositories import (
    EscrowRepository,
    EventRepository,
    ReputationRepository,
)
from trustless_escrow.logging_config import get_logger
from trustless_escrow.services.transfer_service import LedgerTransferService

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from trustless_escrow.domain.transfer_protocol import TransferPrimitive
    from trustless_escrow.infrastructure.database.orm_models import Escrow

logger = get_logger(__name__)


class EscrowService:
    """Manages the escrow lifecycle: create, complete, dispute, arbitrate."""

    def __init__(
        self,
        session: AsyncSession,
        transfer: TransferPrimitive | None = None,
        custodial_account: str | None = None,
    ) -> None:
        self._session = session
        self._escrow_repo = EscrowRepository(session)
        self._reputation_repo = ReputationRepository(session)
        self._event_repo = EventRepository(session)
        self._transfer = transfer or LedgerTransferService(session)
        self._custody = custodial_account or get_settings().custodial_account

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    async def create_escrow(
        self,
        caller: str,
        counterparty: str,
        arbitrator: str,
        amount: int,
    ) -> int:
        """Lock ``amount`` from the caller in a new PENDING escrow. Returns its id."""
        if amount <= 0:
            raise ZeroAmountError(amount)
        if not valid_counterparty(caller, counterparty) or counterparty == self._custody:
            raise InvalidCounterpartyError(counterparty)

        registered = await self._reputation_repo.get_arbitrator(arbitrator) is not None
        if not valid_arbitrator(caller, arbitrator, registered):
            if arbitrator == caller:
                raise InvalidArbitratorError(arbitrator, "arbitrator cannot be the initiator")
            raise InvalidArbitratorError(arbitrator, "no arbitrator reputation record")

        # Only after validation, so an unknown arbitrator stays unknown.
        await self._reputation_repo.get_or_init_participant(caller)
        await self._reputation_repo.get_or_init_participant(counterparty)
        await self._reputation_repo.get_or_init_arbitrator(arbitrator)

        await self._transfer.transfer(amount, caller, self._custody)

        escrow = await self._escrow_repo.allocate(caller, counterparty, arbitrator, amount)

        await self._event_repo.record(
            escrow_id=escrow.id,
            event_type=EventType.ESCROW_CREATED,
            old_status=None,
            new_status=EscrowStatus.PENDING,
            actor=caller,
            metadata={
                "amount": amount,
                "counterparty": counterparty,
                "arbitrator": arbitrator,
            },
        )

        logger.info(
            "escrow.created",
            escrow_id=escrow.id,
            initiator=caller,
            counterparty=counterparty,
            arbitrator=arbitrator,
            amount=amount,
        )
        return escrow.id

    # ------------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------------

    async def complete_escrow(self, caller: str, escrow_id: int) -> None:
        """Counterparty confirms; the held amount is released to them."""
        escrow = await self._get_escrow_or_raise(escrow_id)

        if caller != escrow.counterparty:
            raise NotAuthorizedError(caller, "complete", escrow_id)

        new_status = self._fire_transition(escrow, "counterparty_confirms")
        held = await self._get_balance_or_raise(escrow_id)

        await self._transfer.transfer(held, self._custody, escrow.counterparty)

        initiator_rep = await self._reputation_repo.get_or_init_participant(escrow.initiator)
        counterparty_rep = await self._reputation_repo.get_or_init_participant(
            escrow.counterparty
        )
        rules.apply_successful_trade(initiator_rep)
        rules.apply_successful_trade(counterparty_rep)
        await self._reputation_repo.save()

        await self._escrow_repo.transition_status(escrow, new_status)
        await self._escrow_repo.clear_balance(escrow_id)

        await self._event_repo.record(
            escrow_id=escrow_id,
            event_type=EventType.ESCROW_COMPLETED,
            old_status=EscrowStatus.PENDING,
            new_status=EscrowStatus.COMPLETED,
            actor=caller,
            metadata={"recipient": escrow.counterparty, "amount": held},
        )

        logger.info("escrow.completed", escrow_id=escrow_id, amount=held)

    # ------------------------------------------------------------------
    # Disputes
    # ------------------------------------------------------------------

    async def initiate_dispute(self, caller: str, escrow_id: int) -> None:
        """Either party freezes a PENDING escrow for arbitration. No funds move."""
        escrow = await self._get_escrow_or_raise(escrow_id)

        if caller not in (escrow.initiator, escrow.counterparty):
            raise NotAuthorizedError(caller, "dispute", escrow_id)

        new_status = self._fire_transition(escrow, "party_disputes")

        caller_rep = await self._reputation_repo.get_or_init_participant(caller)
        rules.apply_dispute_initiated(caller_rep)
        await self._reputation_repo.save()

        await self._escrow_repo.transition_status(escrow, new_status, dispute_initiator=caller)

        await self._event_repo.record(
            escrow_id=escrow_id,
            event_type=EventType.DISPUTE_RAISED,
            old_status=EscrowStatus.PENDING,
            new_status=EscrowStatus.DISPUTED,
            actor=caller,
        )

        logger.info("escrow.dispute_raised", escrow_id=escrow_id, by=caller)

    async def arbitrate_dispute(
        self,
        caller: str,
        escrow_id: int,
        release_to_counterparty: bool,
    ) -> None:
        """The assigned arbitrator decides who receives the held amount.

        The decision alone picks the winner; who raised the dispute plays no part.
        """
        escrow = await self._get_escrow_or_raise(escrow_id)

        if caller != escrow.arbitrator:
            raise NotAuthorizedError(caller, "arbitrate", escrow_id)

        new_status = self._fire_transition(escrow, "arbitrator_resolves")
        held = await self._get_balance_or_raise(escrow_id)

        if release_to_counterparty:
            winner, loser = escrow.counterparty, escrow.initiator
            event_type = EventType.DISPUTE_RESOLVED_FOR_COUNTERPARTY
        else:
            winner, loser = escrow.initiator, escrow.counterparty
            event_type = EventType.DISPUTE_RESOLVED_FOR_INITIATOR

        await self._transfer.transfer(held, self._custody, winner)

        winner_rep = await self._reputation_repo.get_or_init_participant(winner)
        loser_rep = await self._reputation_repo.get_or_init_participant(loser)
        arbitrator_rep = await self._reputation_repo.get_or_init_arbitrator(caller)
        rules.apply_dispute_won(winner_rep)
        rules.apply_dispute_lost(loser_rep)
        rules.apply_case_resolved(arbitrator_rep)
        await self._reputation_repo.save()

        await self._escrow_repo.transition_status(escrow, new_status)
        await self._escrow_repo.clear_balance(escrow_id)

        await self._event_repo.record(
            escrow_id=escrow_id,
            event_type=event_type,
            old_status=EscrowStatus.DISPUTED,
            new_status=EscrowStatus.COMPLETED,
            actor=caller,
            metadata={"recipient": winner, "amount": held},
        )

        logger.info(
            "escrow.dispute_resolved",
            escrow_id=escrow_id,
            winner=winner,
            loser=loser,
            amount=held,
        )

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    async def _get_escrow_or_raise(self, escrow_id: int) -> Escrow:
        if not valid_escrow_id(escrow_id, await self._escrow_repo.next_id()):
            raise InvalidEscrowIdError(escrow_id)
        escrow = await self._escrow_repo.get_by_id(escrow_id)
        if escrow is None:
            raise EscrowNotFoundError(escrow_id)
        return escrow

    async def _get_balance_or_raise(self, escrow_id: int) -> int:
        held = await self._escrow_repo.get_balance(escrow_id)
        if held is None:
            raise EscrowNotFoundError(escrow_id, what="Escrow balance")
        return held

    def _fire_transition(self, escrow: Escrow, event_name: str) -> EscrowStatus:
        """Return the status ``event_name`` leads to, without mutating the escrow.

        Raises InvalidStatusError if the transition is illegal.
        """
        try:
            return EscrowStatus(validate_transition(escrow.status, event_name))
        except (TransitionNotAllowed, ValueError) as err:
            # ValueError: a status the machine does not model (REFUNDED).
            raise InvalidStatusError(escrow.id, escrow.status, event_name) from err
