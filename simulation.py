#!/usr/bin/env python3
"""Trustless Escrow — End-to-End Simulation.

Plays three accounts against the escrow ledger:

    Scenario 1: Happy Path
        - Alice locks 1000 for Bob, Carol (pre-registered) arbitrates
        - Bob confirms -> Bob is paid, both scores rise to 55

    Scenario 2: Dispute
        - Alice locks 500 for Bob and raises a dispute (score 47)
        - Carol rules for the initiator -> Alice is refunded, Bob loses 10,
          Carol gains 2

    Scenario 3: Unregistered Arbitrator
        - Alice names Dave, who has never arbitrated -> InvalidArbitrator

Usage:
    # SQLite in-memory (no database server needed):
    python simulation.py --sqlite

    # Against DATABASE_URL from the environment / .env:
    python simulation.py

    # Run a specific scenario:
    python simulation.py --sqlite --scenario 2
"""

from __future__ import annotations

import argparse
import asyncio
from dataclasses import dataclass
from typing import Any

from sqlalchemy.pool import StaticPool

# ---------------------------------------------------------------------------
# Configure structured logging BEFORE importing app modules
# ---------------------------------------------------------------------------
from trustless_escrow.logging_config import get_logger, setup_logging

setup_logging(log_level="INFO", json_logs=False)
logger = get_logger("simulation")

# Module-level state
_sqlite_engine = None
_session_factory = None


# ---------------------------------------------------------------------------
# Database lifecycle helpers
# ---------------------------------------------------------------------------
async def init_database(use_sqlite: bool = False) -> None:
    """Initialize database engine and create tables."""
    global _sqlite_engine, _session_factory

    from trustless_escrow.infrastructure.database.engine import (
        _get_session_factory,
        init_db,
        make_session_factory,
    )

    if use_sqlite:
        from sqlalchemy.ext.asyncio import create_async_engine

        from trustless_escrow.infrastructure.database.orm_models import Base

        _sqlite_engine = create_async_engine(
            "sqlite+aiosqlite:///:memory:",
            poolclass=StaticPool,
            echo=False,
        )
        _session_factory = make_session_factory(_sqlite_engine)
        async with _sqlite_engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("database.sqlite_initialized")
    else:
        await init_db()
        _session_factory = _get_session_factory()


def unit_of_work() -> Any:
    """One committed-or-rolled-back transaction on the simulation database."""
    from trustless_escrow.infrastructure.database.engine import transaction

    return transaction(_session_factory)


async def shutdown_database() -> None:
    """Close database connections."""
    global _sqlite_engine, _session_factory

    if _sqlite_engine is not None:
        await _sqlite_engine.dispose()
        _sqlite_engine = None
    else:
        from trustless_escrow.infrastructure.database.engine import close_db
        await close_db()
    _session_factory = None


# ---------------------------------------------------------------------------
# Participants
# ---------------------------------------------------------------------------
@dataclass
class Party:
    """An account that opens, confirms or disputes escrows."""

    account: str

    async def open_escrow(self, counterparty: str, arbitrator: str, amount: int) -> int:
        from trustless_escrow.services.escrow_service import EscrowService

        async with unit_of_work() as session:
            escrow_id = await EscrowService(session).create_escrow(
                self.account, counterparty, arbitrator, amount
            )
        logger.info("🔵 PARTY: Escrow opened", account=self.account, escrow_id=escrow_id)
        return escrow_id

    async def confirm(self, escrow_id: int) -> None:
        from trustless_escrow.services.escrow_service import EscrowService

        async with unit_of_work() as session:
            await EscrowService(session).complete_escrow(self.account, escrow_id)
        logger.info("🟢 PARTY: Escrow confirmed", account=self.account, escrow_id=escrow_id)

    async def dispute(self, escrow_id: int) -> None:
        from trustless_escrow.services.escrow_service import EscrowService

        async with unit_of_work() as session:
            await EscrowService(session).initiate_dispute(self.account, escrow_id)
        logger.info("🟠 PARTY: Dispute raised", account=self.account, escrow_id=escrow_id)


@dataclass
class Arbitrator(Party):
    """A third party that resolves disputes."""

    async def rule(self, escrow_id: int, release_to_counterparty: bool) -> None:
        from trustless_escrow.services.escrow_service import EscrowService

        async with unit_of_work() as session:
            await EscrowService(session).arbitrate_dispute(
                self.account, escrow_id, release_to_counterparty
            )
        logger.info(
            "⚖️  ARBITRATOR: Ruling",
            account=self.account,
            escrow_id=escrow_id,
            release_to_counterparty=release_to_counterparty,
        )


async def bootstrap(funding: dict[str, int], arbitrators: list[str]) -> None:
    """Fund host accounts and seed arbitrators out of band."""
    from trustless_escrow.services.registry_service import RegistryService

    async with unit_of_work() as session:
        registry = RegistryService(session)
        for account, amount in funding.items():
            await registry.fund_account(account, amount)
        for account in arbitrators:
            await registry.seed_arbitrator(account)


# ---------------------------------------------------------------------------
# Print helpers
# ---------------------------------------------------------------------------
def banner(text: str) -> None:
    width = 70
    print("\n" + "=" * width)
    print(f"  {text}")
    print("=" * width + "\n")


def section(text: str) -> None:
    print(f"\n--- {text} ---\n")


async def print_escrow(escrow_id: int, accounts: list[str]) -> None:
    """Print an escrow, the amount still held and the parties' reputation."""
    from trustless_escrow.services.query_service import QueryService
    from trustless_escrow.services.transfer_service import LedgerTransferService

    async with unit_of_work() as session:
        queries = QueryService(session)
        transfers = LedgerTransferService(session)
        escrow = await queries.get_escrow(escrow_id)
        held = await queries.get_escrow_balance(escrow_id)
        print(f"  Escrow #{escrow_id}: status={escrow.status} amount={escrow.amount}")
        print(f"  Held: {held if held is not None else '-'}")
        if escrow.dispute_initiator:
            print(f"  Dispute raised by: {escrow.dispute_initiator}")
        for account in accounts:
            rep = await queries.get_user_reputation(account)
            balance = await transfers.balance_of(account)
            print(
                f"  {account:<8} balance={balance:<6} score={rep.score:<3} "
                f"trades={rep.successful_trades}/{rep.total_trades} "
                f"disputes={rep.disputes_initiated} lost={rep.disputes_lost}"
            )
        for event in await queries.get_events(escrow_id):
            print(f"    [{event.event_type}] {event.old_status} -> {event.new_status} by {event.actor}")


async def print_arbitrator(account: str) -> None:
    from trustless_escrow.services.query_service import QueryService

    async with unit_of_work() as session:
        rep = await QueryService(session).get_arbitrator_reputation(account)
    print(f"  {account:<8} arbitrator score={rep.score} cases={rep.cases_resolved}")


# ===========================================================================
# Scenarios
# ===========================================================================
ALICE = Party("alice")
BOB = Party("bob")
CAROL = Arbitrator("carol")
DAVE = Party("dave")


async def scenario_1_happy_path() -> None:
    banner("SCENARIO 1: Happy Path — counterparty confirms")
    await bootstrap({ALICE.account: 10_000}, [CAROL.account])

    section("Step 1: Alice locks 1000 for Bob")
    escrow_id = await ALICE.open_escrow(BOB.account, CAROL.account, 1000)
    await print_escrow(escrow_id, [ALICE.account, BOB.account])

    section("Step 2: Bob confirms")
    await BOB.confirm(escrow_id)
    await print_escrow(escrow_id, [ALICE.account, BOB.account])


async def scenario_2_dispute() -> None:
    banner("SCENARIO 2: Dispute — arbitrator refunds the initiator")
    await bootstrap({ALICE.account: 10_000}, [CAROL.account])

    section("Step 1: Alice locks 500 for Bob")
    escrow_id = await ALICE.open_escrow(BOB.account, CAROL.account, 500)

    section("Step 2: Alice disputes")
    await ALICE.dispute(escrow_id)
    await print_escrow(escrow_id, [ALICE.account, BOB.account])

    section("Step 3: Carol rules for Alice")
    await CAROL.rule(escrow_id, release_to_counterparty=False)
    await print_escrow(escrow_id, [ALICE.account, BOB.account])
    await print_arbitrator(CAROL.account)


async def scenario_3_unregistered_arbitrator() -> None:
    from trustless_escrow.domain.exceptions import InvalidArbitratorError

    banner("SCENARIO 3: Unregistered arbitrator is rejected")
    await bootstrap({ALICE.account: 10_000}, [])

    section("Alice names Dave, who never arbitrated")
    try:
        await ALICE.open_escrow(BOB.account, DAVE.account, 100)
    except InvalidArbitratorError as exc:
        print(f"  ❌ Rejected: {exc.code} — {exc.message}")
    await print_arbitrator(DAVE.account)


# ===========================================================================
# Main
# ===========================================================================
SCENARIOS = {
    1: scenario_1_happy_path,
    2: scenario_2_dispute,
    3: scenario_3_unregistered_arbitrator,
}


async def run(scenario: int, use_sqlite: bool = False) -> None:
    """Run one scenario, or all of them when ``scenario`` is 0."""
    await init_database(use_sqlite=use_sqlite)
    try:
        if scenario == 0:
            for fn in SCENARIOS.values():
                await fn()
        elif scenario in SCENARIOS:
            await SCENARIOS[scenario]()
        else:
            print(f"Unknown scenario {scenario}. Available: 1, 2, 3")
    finally:
        await shutdown_database()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Trustless Escrow Simulation")
    parser.add_argument(
        "--scenario",
        type=int,
        default=0,
        help="Run a specific scenario (1, 2, or 3). Default: run all.",
    )
    parser.add_argument(
        "--sqlite",
        action="store_true",
        help="Use SQLite in-memory instead of DATABASE_URL.",
    )
    args = parser.parse_args()

    asyncio.run(run(args.scenario, use_sqlite=args.sqlite))
