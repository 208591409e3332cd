"""SQLAlchemy 2.0 ORM models for the trustless escrow ledger.

Tables:
    1. escrows                  — Escrow records (never deleted).
    2. escrow_balances          — Funds currently held per active escrow.
    3. participant_reputations  — Reputation of initiators and counterparties.
    4. arbitrator_reputations   — Reputation of arbitrators.
    5. ledger_counters          — Named allocators (next escrow id).
    6. ledger_accounts          — Host account balances, custodial account included.
    7. escrow_events            — Append-only audit log of every state transition.

Design decisions:
    - Integer escrow ids handed out by the ledger_counters allocator, never reused.
    - Integer amounts in the ledger's smallest unit; CHECK constraints keep them
      positive (escrows) or non-negative (balances, scores).
    - A balance row exists iff its escrow is PENDING or DISPUTED.
    - Generic JSON (JSONB on PostgreSQL) so the schema runs on SQLite too.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from sqlalchemy import (
    JSON,
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Uuid,
    event,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

ACCOUNT_ID_LENGTH = 64


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


def _set_updated_at(mapper, connection, target):  # noqa: ANN001
    """SQLAlchemy event listener that updates `updated_at` before flush."""
    if hasattr(target, "updated_at"):
        target.updated_at = _utcnow()


# ---------------------------------------------------------------------------
# 1. escrows
# ---------------------------------------------------------------------------
class Escrow(Base):
    """A custodial record locking a fixed amount between two parties."""

    __tablename__ = "escrows"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=False,
        comment="Sequential id from the next_escrow_id allocator",
    )

    # --- Participants ---
    initiator: Mapped[str] = mapped_column(
        String(ACCOUNT_ID_LENGTH),
        nullable=False,
        comment="Account that created the escrow and supplied the funds",
    )
    counterparty: Mapped[str] = mapped_column(
        String(ACCOUNT_ID_LENGTH),
        nullable=False,
        comment="Account paid on successful completion",
    )
    arbitrator: Mapped[str] = mapped_column(
        String(ACCOUNT_ID_LENGTH),
        nullable=False,
        comment="Account empowered to resolve a dispute",
    )

    # --- Financials ---
    amount: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        comment="Deposited amount; fixed at creation",
    )

    # --- Status (Enum-guarded) ---
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="PENDING",
        comment="Current lifecycle state (guarded by EscrowStateMachine)",
    )
    dispute_initiator: Mapped[str | None] = mapped_column(
        String(ACCOUNT_ID_LENGTH),
        nullable=True,
        default=None,
        comment="Party that raised the dispute (set on PENDING -> DISPUTED)",
    )

    # --- Timestamps ---
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('PENDING', 'COMPLETED', 'DISPUTED', 'REFUNDED')",
            name="ck_escrow_valid_status",
        ),
        CheckConstraint("amount > 0", name="ck_escrow_positive_amount"),
        Index("idx_escrow_status", "status"),
        Index("idx_escrow_initiator", "initiator"),
        Index("idx_escrow_counterparty", "counterparty"),
        Index("idx_escrow_arbitrator", "arbitrator"),
    )

    def __repr__(self) -> str:
        return f"<Escrow id={self.id} status={self.status} amount={self.amount}>"


# ---------------------------------------------------------------------------
# 2. escrow_balances
# ---------------------------------------------------------------------------
class EscrowBalance(Base):
    """Amount currently held in custody for one active escrow."""

    __tablename__ = "escrow_balances"

    escrow_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("escrows.id", ondelete="RESTRICT"),
        primary_key=True,
        autoincrement=False,
    )
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)

    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_balance_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<EscrowBalance escrow={self.escrow_id} amount={self.amount}>"


# ---------------------------------------------------------------------------
# 3. participant_reputations
# ---------------------------------------------------------------------------
class ParticipantReputation(Base):
    """Trust metric for an account acting as initiator or counterparty."""

    __tablename__ = "participant_reputations"

    account: Mapped[str] = mapped_column(String(ACCOUNT_ID_LENGTH), primary_key=True)
    score: Mapped[int] = mapped_column(Integer, nullable=False)
    total_trades: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    successful_trades: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    disputes_initiated: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    disputes_lost: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint("score >= 0", name="ck_participant_score_unsigned"),
    )

    def __repr__(self) -> str:
        return f"<ParticipantReputation account={self.account} score={self.score}>"


# ---------------------------------------------------------------------------
# 4. arbitrator_reputations
# ---------------------------------------------------------------------------
class ArbitratorReputation(Base):
    """Trust metric for an account acting as arbitrator."""

    __tablename__ = "arbitrator_reputations"

    account: Mapped[str] = mapped_column(String(ACCOUNT_ID_LENGTH), primary_key=True)
    score: Mapped[int] = mapped_column(Integer, nullable=False)
    cases_resolved: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    active_since: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        comment="First time the account was referenced as arbitrator",
    )

    __table_args__ = (
        CheckConstraint("score >= 0", name="ck_arbitrator_score_unsigned"),
    )

    def __repr__(self) -> str:
        return f"<ArbitratorReputation account={self.account} score={self.score}>"


# ---------------------------------------------------------------------------
# 5. ledger_counters
# ---------------------------------------------------------------------------
class LedgerCounter(Base):
    """A named monotonically increasing counter."""

    __tablename__ = "ledger_counters"

    name: Mapped[str] = mapped_column(String(40), primary_key=True)
    value: Mapped[int] = mapped_column(BigInteger, nullable=False)


# ---------------------------------------------------------------------------
# 6. ledger_accounts
# ---------------------------------------------------------------------------
class LedgerAccount(Base):
    """Host-ledger balance of one account."""

    __tablename__ = "ledger_accounts"

    account: Mapped[str] = mapped_column(String(ACCOUNT_ID_LENGTH), primary_key=True)
    balance: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    __table_args__ = (
        CheckConstraint("balance >= 0", name="ck_account_balance_non_negative"),
    )

    def __repr__(self) -> str:
        return f"<LedgerAccount account={self.account} balance={self.balance}>"


# ---------------------------------------------------------------------------
# 7. escrow_events (Append-Only Audit Log)
# ---------------------------------------------------------------------------
class EscrowEvent(Base):
    """Immutable audit record of a state transition in an escrow's lifecycle.

    This table is APPEND-ONLY. No UPDATE or DELETE operations are permitted
    at the application level.
    """

    __tablename__ = "escrow_events"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    escrow_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("escrows.id", ondelete="RESTRICT"),
        nullable=False,
    )
    event_type: Mapped[str] = mapped_column(String(40), nullable=False)
    old_status: Mapped[str | None] = mapped_column(
        String(20),
        nullable=True,
        comment="Escrow status before this event (null for creation)",
    )
    new_status: Mapped[str] = mapped_column(String(20), nullable=False)
    actor: Mapped[str] = mapped_column(
        String(ACCOUNT_ID_LENGTH),
        nullable=False,
        comment="Account that invoked the operation",
    )
    metadata_json: Mapped[dict | None] = mapped_column(
        "metadata",
        JSON().with_variant(JSONB, "postgresql"),
        nullable=True,
        default=None,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    __table_args__ = (
        Index("idx_event_escrow", "escrow_id"),
        Index("idx_event_type", "event_type"),
        Index("idx_event_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<EscrowEvent id={self.id} type={self.event_type} "
            f"{self.old_status}->{self.new_status}>"
        )


event.listen(Escrow, "before_update", _set_updated_at)
