"""Tests for the EscrowService lifecycle operations.

Each operation runs in its own transaction on an in-memory SQLite ledger,
so a raised error must leave no trace of the operation behind.
"""

from __future__ import annotations

import pytest

from trustless_escrow.domain.exceptions import (
    EscrowNotFoundError,
    InsufficientFundsError,
    InvalidArbitratorError,
    InvalidCounterpartyError,
    InvalidEscrowIdError,
    InvalidStatusError,
    NotAuthorizedError,
    SelfTransferError,
    TransferFailedError,
    ZeroAmountError,
)
from trustless_escrow.infrastructure.database.orm_models import EscrowBalance
from trustless_escrow.services.escrow_service import EscrowService

ALICE = "alice"
BOB = "bob"
CAROL = "carol"
DAVE = "dave"
CUSTODY = "escrow-custody"


class DecliningTransfer:
    """A transfer primitive that refuses every movement."""

    def __init__(self) -> None:
        self.calls: list[tuple[int, str, str]] = []

    async def transfer(self, amount: int, sender: str, recipient: str) -> None:
        self.calls.append((amount, sender, recipient))
        raise TransferFailedError("host ledger unavailable")


# ---------------------------------------------------------------------------
# create_escrow
# ---------------------------------------------------------------------------


class TestCreateEscrow:
    @pytest.mark.asyncio
    async def test_locks_funds_in_custody(self, ledger) -> None:
        escrow_id = await ledger.create(ALICE, BOB, CAROL, 1000)

        assert escrow_id == 1
        escrow = await ledger.escrow(escrow_id)
        assert escrow.status == "PENDING"
        assert escrow.initiator == ALICE
        assert escrow.counterparty == BOB
        assert escrow.arbitrator == CAROL
        assert escrow.amount == 1000
        assert escrow.dispute_initiator is None

        assert await ledger.balance(escrow_id) == 1000
        assert await ledger.custody() == 1000
        assert await ledger.funds(ALICE) == 9000
        assert await ledger.funds(CUSTODY) == 1000

    @pytest.mark.asyncio
    async def test_ids_are_sequential(self, ledger) -> None:
        first = await ledger.create(ALICE, BOB, CAROL, 100)
        second = await ledger.create(BOB, ALICE, CAROL, 200)
        assert (first, second) == (1, 2)
        assert await ledger.next_id() == 3
        assert await ledger.custody() == 300

    @pytest.mark.asyncio
    async def test_initializes_party_reputation(self, ledger) -> None:
        await ledger.create(ALICE, BOB, CAROL, 100)

        for account in (ALICE, BOB):
            rep = await ledger.stored_user(account)
            assert rep is not None
            assert rep.score == 50
            assert rep.total_trades == 0

    @pytest.mark.asyncio
    async def test_zero_amount_checked_first(self, ledger) -> None:
        # Self counterparty AND zero amount: the amount is reported.
        with pytest.raises(ZeroAmountError):
            await ledger.create(ALICE, ALICE, CAROL, 0)

    @pytest.mark.asyncio
    async def test_self_counterparty(self, ledger) -> None:
        with pytest.raises(InvalidCounterpartyError):
            await ledger.create(ALICE, ALICE, CAROL, 100)

    @pytest.mark.asyncio
    async def test_unregistered_arbitrator(self, ledger) -> None:
        with pytest.raises(InvalidArbitratorError, match="no arbitrator reputation record"):
            await ledger.create(ALICE, BOB, DAVE, 100)

        assert await ledger.stored_arbitrator(DAVE) is None
        assert await ledger.stored_user(ALICE) is None
        assert await ledger.next_id() == 1
        assert await ledger.funds(ALICE) == 10_000

    @pytest.mark.asyncio
    async def test_seeded_arbitrator_accepted(self, ledger) -> None:
        with pytest.raises(InvalidArbitratorError):
            await ledger.create(ALICE, BOB, DAVE, 100)

        await ledger.seed_arbitrator(DAVE)
        assert await ledger.create(ALICE, BOB, DAVE, 100) == 1

    @pytest.mark.asyncio
    async def test_caller_as_arbitrator(self, ledger) -> None:
        await ledger.seed_arbitrator(ALICE)
        with pytest.raises(InvalidArbitratorError, match="cannot be the initiator"):
            await ledger.create(ALICE, BOB, ALICE, 100)

    @pytest.mark.asyncio
    async def test_custodial_account_cannot_open_escrow(self, ledger) -> None:
        await ledger.create(ALICE, BOB, CAROL, 1000)

        with pytest.raises(SelfTransferError):
            await ledger.create(CUSTODY, BOB, CAROL, 1000)

        assert await ledger.funds(CUSTODY) == 1000
        assert await ledger.custody() == 1000
        assert await ledger.next_id() == 2
        assert await ledger.stored_user(CUSTODY) is None

        await ledger.complete(BOB, 1)
        assert await ledger.funds(CUSTODY) == 0
        assert await ledger.custody() == 0

    @pytest.mark.asyncio
    async def test_custodial_account_cannot_be_counterparty(self, ledger) -> None:
        with pytest.raises(InvalidCounterpartyError):
            await ledger.create(ALICE, CUSTODY, CAROL, 1000)
        assert await ledger.next_id() == 1
        assert await ledger.funds(ALICE) == 10_000

    @pytest.mark.asyncio
    async def test_insufficient_funds_rolls_back(self, ledger) -> None:
        with pytest.raises(InsufficientFundsError):
            await ledger.create(DAVE, BOB, CAROL, 100)

        assert await ledger.stored_user(DAVE) is None
        assert await ledger.stored_user(BOB) is None
        assert await ledger.next_id() == 1
        assert await ledger.custody() == 0
        assert await ledger.events(1) == []


# ---------------------------------------------------------------------------
# complete_escrow
# ---------------------------------------------------------------------------


class TestCompleteEscrow:
    @pytest.mark.asyncio
    async def test_counterparty_is_paid(self, ledger) -> None:
        escrow_id = await ledger.create(ALICE, BOB, CAROL, 1000)
        await ledger.complete(BOB, escrow_id)

        escrow = await ledger.escrow(escrow_id)
        assert escrow.status == "COMPLETED"
        assert await ledger.balance(escrow_id) is None
        assert await ledger.custody() == 0
        assert await ledger.funds(BOB) == 11_000
        assert await ledger.funds(ALICE) == 9000

        for account in (ALICE, BOB):
            rep = await ledger.user(account)
            assert rep.score == 55
            assert rep.total_trades == 1
            assert rep.successful_trades == 1

    @pytest.mark.asyncio
    async def test_only_counterparty(self, ledger) -> None:
        escrow_id = await ledger.create(ALICE, BOB, CAROL, 1000)

        for caller in (ALICE, CAROL, DAVE):
            with pytest.raises(NotAuthorizedError):
                await ledger.complete(caller, escrow_id)

        assert (await ledger.escrow(escrow_id)).status == "PENDING"
        assert await ledger.balance(escrow_id) == 1000

    @pytest.mark.asyncio
    async def test_second_completion_rejected(self, ledger) -> None:
        escrow_id = await ledger.create(ALICE, BOB, CAROL, 1000)
        await ledger.complete(BOB, escrow_id)

        with pytest.raises(InvalidStatusError):
            await ledger.complete(BOB, escrow_id)

        assert await ledger.funds(BOB) == 11_000
        assert (await ledger.user(BOB)).score == 55

    @pytest.mark.asyncio
    async def test_disputed_cannot_be_completed(self, ledger) -> None:
        escrow_id = await ledger.create(ALICE, BOB, CAROL, 1000)
        await ledger.dispute(ALICE, escrow_id)

        with pytest.raises(InvalidStatusError):
            await ledger.complete(BOB, escrow_id)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("escrow_id", [0, 2, 99])
    async def test_invalid_escrow_id(self, ledger, escrow_id: int) -> None:
        await ledger.create(ALICE, BOB, CAROL, 1000)
        with pytest.raises(InvalidEscrowIdError):
            await ledger.complete(BOB, escrow_id)

    @pytest.mark.asyncio
    async def test_missing_balance(self, ledger, uow) -> None:
        escrow_id = await ledger.create(ALICE, BOB, CAROL, 1000)
        async with uow() as session:
            await session.delete(await session.get(EscrowBalance, escrow_id))

        with pytest.raises(EscrowNotFoundError, match="Escrow balance"):
            await ledger.complete(BOB, escrow_id)
        assert (await ledger.escrow(escrow_id)).status == "PENDING"

    @pytest.mark.asyncio
    async def test_declined_transfer_leaves_state(self, ledger, uow) -> None:
        escrow_id = await ledger.create(ALICE, BOB, CAROL, 1000)
        declining = DecliningTransfer()

        with pytest.raises(TransferFailedError):
            async with uow() as session:
                svc = EscrowService(session, transfer=declining, custodial_account=CUSTODY)
                await svc.complete_escrow(BOB, escrow_id)

        assert declining.calls == [(1000, CUSTODY, BOB)]
        assert (await ledger.escrow(escrow_id)).status == "PENDING"
        assert await ledger.balance(escrow_id) == 1000
        assert (await ledger.user(BOB)).total_trades == 0
        assert await ledger.events(escrow_id) == ["ESCROW_CREATED"]


# ---------------------------------------------------------------------------
# initiate_dispute
# ---------------------------------------------------------------------------


class TestInitiateDispute:
    @pytest.mark.asyncio
    async def test_transition_touches_updated_at(self, ledger) -> None:
        escrow_id = await ledger.create(ALICE, BOB, CAROL, 500)
        before = (await ledger.escrow(escrow_id)).updated_at

        await ledger.dispute(ALICE, escrow_id)

        after = (await ledger.escrow(escrow_id)).updated_at
        assert after > before

    @pytest.mark.asyncio
    @pytest.mark.parametrize("party", [ALICE, BOB])
    async def test_either_party(self, ledger, party: str) -> None:
        escrow_id = await ledger.create(ALICE, BOB, CAROL, 500)
        await ledger.dispute(party, escrow_id)

        escrow = await ledger.escrow(escrow_id)
        assert escrow.status == "DISPUTED"
        assert escrow.dispute_initiator == party
        assert await ledger.balance(escrow_id) == 500

        rep = await ledger.user(party)
        assert rep.score == 47
        assert rep.disputes_initiated == 1

    @pytest.mark.asyncio
    async def test_arbitrator_cannot_dispute(self, ledger) -> None:
        escrow_id = await ledger.create(ALICE, BOB, CAROL, 500)
        with pytest.raises(NotAuthorizedError):
            await ledger.dispute(CAROL, escrow_id)

    @pytest.mark.asyncio
    async def test_no_double_dispute(self, ledger) -> None:
        escrow_id = await ledger.create(ALICE, BOB, CAROL, 500)
        await ledger.dispute(ALICE, escrow_id)

        with pytest.raises(InvalidStatusError):
            await ledger.dispute(BOB, escrow_id)

        escrow = await ledger.escrow(escrow_id)
        assert escrow.dispute_initiator == ALICE
        assert (await ledger.user(BOB)).disputes_initiated == 0

    @pytest.mark.asyncio
    async def test_completed_cannot_be_disputed(self, ledger) -> None:
        escrow_id = await ledger.create(ALICE, BOB, CAROL, 500)
        await ledger.complete(BOB, escrow_id)

        with pytest.raises(InvalidStatusError):
            await ledger.dispute(ALICE, escrow_id)
        assert (await ledger.user(ALICE)).score == 55

    @pytest.mark.asyncio
    async def test_unknown_escrow(self, ledger) -> None:
        with pytest.raises(InvalidEscrowIdError):
            await ledger.dispute(ALICE, 1)


# ---------------------------------------------------------------------------
# arbitrate_dispute
# ---------------------------------------------------------------------------


class TestArbitrateDispute:
    @pytest.mark.asyncio
    async def test_release_to_counterparty(self, ledger) -> None:
        escrow_id = await ledger.create(ALICE, BOB, CAROL, 500)
        await ledger.dispute(ALICE, escrow_id)
        await ledger.arbitrate(CAROL, escrow_id, release_to_counterparty=True)

        assert (await ledger.escrow(escrow_id)).status == "COMPLETED"
        assert await ledger.balance(escrow_id) is None
        assert await ledger.funds(BOB) == 10_500
        assert await ledger.funds(ALICE) == 9500

        alice = await ledger.user(ALICE)
        assert alice.score == 37
        assert alice.disputes_lost == 1
        bob = await ledger.user(BOB)
        assert bob.score == 50
        assert bob.successful_trades == 1
        assert bob.total_trades == 0

        carol = await ledger.arbitrator(CAROL)
        assert carol.score == 52
        assert carol.cases_resolved == 1

    @pytest.mark.asyncio
    async def test_refund_initiator(self, ledger) -> None:
        escrow_id = await ledger.create(ALICE, BOB, CAROL, 500)
        await ledger.dispute(BOB, escrow_id)
        await ledger.arbitrate(CAROL, escrow_id, release_to_counterparty=False)

        assert await ledger.funds(ALICE) == 10_000
        assert await ledger.funds(BOB) == 10_000
        assert (await ledger.user(ALICE)).successful_trades == 1

        # The counterparty raised the dispute and lost it.
        bob = await ledger.user(BOB)
        assert bob.score == 37
        assert bob.disputes_initiated == 1
        assert bob.disputes_lost == 1

    @pytest.mark.asyncio
    async def test_only_assigned_arbitrator(self, ledger) -> None:
        await ledger.seed_arbitrator(DAVE)
        escrow_id = await ledger.create(ALICE, BOB, CAROL, 500)
        await ledger.dispute(ALICE, escrow_id)

        for caller in (ALICE, BOB, DAVE):
            with pytest.raises(NotAuthorizedError):
                await ledger.arbitrate(caller, escrow_id, release_to_counterparty=True)

        assert (await ledger.escrow(escrow_id)).status == "DISPUTED"

    @pytest.mark.asyncio
    async def test_pending_cannot_be_arbitrated(self, ledger) -> None:
        escrow_id = await ledger.create(ALICE, BOB, CAROL, 500)
        with pytest.raises(InvalidStatusError):
            await ledger.arbitrate(CAROL, escrow_id, release_to_counterparty=True)
        assert await ledger.balance(escrow_id) == 500

    @pytest.mark.asyncio
    async def test_second_ruling_rejected(self, ledger) -> None:
        escrow_id = await ledger.create(ALICE, BOB, CAROL, 500)
        await ledger.dispute(ALICE, escrow_id)
        await ledger.arbitrate(CAROL, escrow_id, release_to_counterparty=True)

        with pytest.raises(InvalidStatusError):
            await ledger.arbitrate(CAROL, escrow_id, release_to_counterparty=False)

        assert await ledger.funds(BOB) == 10_500
        assert (await ledger.arbitrator(CAROL)).cases_resolved == 1

    @pytest.mark.asyncio
    async def test_repeated_losses_floor_score_at_zero(self, ledger) -> None:
        for _ in range(4):
            escrow_id = await ledger.create(ALICE, BOB, CAROL, 100)
            await ledger.dispute(ALICE, escrow_id)
            await ledger.arbitrate(CAROL, escrow_id, release_to_counterparty=True)

        alice = await ledger.user(ALICE)
        assert alice.score == 0
        assert alice.disputes_initiated == 4
        assert alice.disputes_lost == 4

        bob = await ledger.user(BOB)
        assert bob.successful_trades == 4
        assert bob.score == 50

        carol = await ledger.arbitrator(CAROL)
        assert carol.score == 58
        assert carol.cases_resolved == 4

        assert await ledger.funds(ALICE) == 9600
        assert await ledger.custody() == 0
