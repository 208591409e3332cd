"""Shared test fixtures for the trustless escrow test suite.

Provides:
    - An in-memory SQLite database per test (aiosqlite + StaticPool)
    - A unit-of-work factory mirroring one committed transaction per operation
    - A funded ledger with a seeded arbitrator, driven through the services
"""

from __future__ import annotations

import pytest
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from trustless_escrow.infrastructure.database.engine import make_session_factory, transaction
from trustless_escrow.infrastructure.database.orm_models import Base
from trustless_escrow.infrastructure.database.repositories import (
    AccountRepository,
    EscrowRepository,
    ReputationRepository,
)
from trustless_escrow.services.escrow_service import EscrowService
from trustless_escrow.services.query_service import QueryService
from trustless_escrow.services.registry_service import RegistryService
from trustless_escrow.services.transfer_service import LedgerTransferService

CUSTODY = "escrow-custody"
STARTING_BALANCE = 10_000


# ---------------------------------------------------------------------------
# Database Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def uow(session_factory):
    """Return a callable opening one transaction on the test database."""

    def _uow():
        return transaction(session_factory)

    return _uow


# ---------------------------------------------------------------------------
# Ledger Driver
# ---------------------------------------------------------------------------


class LedgerDriver:
    """Runs each escrow operation and query in its own transaction."""

    def __init__(self, uow) -> None:
        self._uow = uow

    # --- lifecycle ---

    async def create(self, caller: str, counterparty: str, arbitrator: str, amount: int) -> int:
        async with self._uow() as session:
            svc = EscrowService(session, custodial_account=CUSTODY)
            return await svc.create_escrow(caller, counterparty, arbitrator, amount)

    async def complete(self, caller: str, escrow_id: int) -> None:
        async with self._uow() as session:
            await EscrowService(session, custodial_account=CUSTODY).complete_escrow(
                caller, escrow_id
            )

    async def dispute(self, caller: str, escrow_id: int) -> None:
        async with self._uow() as session:
            await EscrowService(session, custodial_account=CUSTODY).initiate_dispute(
                caller, escrow_id
            )

    async def arbitrate(self, caller: str, escrow_id: int, release_to_counterparty: bool) -> None:
        async with self._uow() as session:
            await EscrowService(session, custodial_account=CUSTODY).arbitrate_dispute(
                caller, escrow_id, release_to_counterparty
            )

    # --- bootstrap ---

    async def fund(self, account: str, amount: int) -> int:
        async with self._uow() as session:
            return await RegistryService(session).fund_account(account, amount)

    async def seed_arbitrator(self, account: str) -> None:
        async with self._uow() as session:
            await RegistryService(session).seed_arbitrator(account)

    # --- queries ---

    async def escrow(self, escrow_id: int):
        async with self._uow() as session:
            return await QueryService(session).get_escrow(escrow_id)

    async def balance(self, escrow_id: int) -> int | None:
        async with self._uow() as session:
            return await QueryService(session).get_escrow_balance(escrow_id)

    async def custody(self) -> int:
        async with self._uow() as session:
            return await QueryService(session).get_custodial_balance()

    async def user(self, account: str):
        async with self._uow() as session:
            return await QueryService(session).get_user_reputation(account)

    async def arbitrator(self, account: str):
        async with self._uow() as session:
            return await QueryService(session).get_arbitrator_reputation(account)

    async def events(self, escrow_id: int) -> list[str]:
        async with self._uow() as session:
            return [e.event_type for e in await QueryService(session).get_events(escrow_id)]

    async def funds(self, account: str) -> int:
        async with self._uow() as session:
            return await LedgerTransferService(session).balance_of(account)

    async def total_funds(self) -> int:
        async with self._uow() as session:
            return await AccountRepository(session).total()

    async def stored_user(self, account: str):
        async with self._uow() as session:
            return await ReputationRepository(session).get_participant(account)

    async def stored_arbitrator(self, account: str):
        async with self._uow() as session:
            return await ReputationRepository(session).get_arbitrator(account)

    async def next_id(self) -> int:
        async with self._uow() as session:
            return await EscrowRepository(session).next_id()


@pytest.fixture
def driver(uow) -> LedgerDriver:
    """A driver over an empty ledger: no funds, no arbitrators."""
    return LedgerDriver(uow)


@pytest.fixture
async def ledger(driver) -> LedgerDriver:
    """alice and bob hold 10_000 each; carol is a seeded arbitrator."""
    await driver.fund("alice", STARTING_BALANCE)
    await driver.fund("bob", STARTING_BALANCE)
    await driver.seed_arbitrator("carol")
    return driver
