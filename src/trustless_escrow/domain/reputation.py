"""Reputation scoring rules.

Each rule is a read-modify-write on exactly the record it is handed. The
rules are storage-agnostic: they accept anything shaped like a participant or
arbitrator reputation (the ORM models satisfy both protocols).

Scoring table:
    new participant / new arbitrator      score := 50
    escrow completed normally             +5, total_trades +1, successful_trades +1
    party initiates a dispute             -3, disputes_initiated +1
    party loses an arbitrated dispute     -10, disputes_lost +1
    party wins an arbitrated dispute      successful_trades +1
    arbitrator resolves a dispute         +2, cases_resolved +1

Scores are unsigned. Penalties saturate at zero.
"""

from __future__ import annotations

from typing import Protocol

NEW_PARTICIPANT_SCORE = 50
NEW_ARBITRATOR_SCORE = 50

SUCCESSFUL_TRADE_REWARD = 5
DISPUTE_INITIATED_PENALTY = 3
DISPUTE_LOST_PENALTY = 10
CASE_RESOLVED_REWARD = 2


class ParticipantRecord(Protocol):
    score: int
    total_trades: int
    successful_trades: int
    disputes_initiated: int
    disputes_lost: int


class ArbitratorRecord(Protocol):
    score: int
    cases_resolved: int


def saturating_sub(score: int, penalty: int) -> int:
    """Subtract a penalty without going below zero."""
    return max(score - penalty, 0)


def apply_successful_trade(rep: ParticipantRecord) -> None:
    rep.score += SUCCESSFUL_TRADE_REWARD
    rep.total_trades += 1
    rep.successful_trades += 1


def apply_dispute_initiated(rep: ParticipantRecord) -> None:
    rep.score = saturating_sub(rep.score, DISPUTE_INITIATED_PENALTY)
    rep.disputes_initiated += 1


def apply_dispute_lost(rep: ParticipantRecord) -> None:
    rep.score = saturating_sub(rep.score, DISPUTE_LOST_PENALTY)
    rep.disputes_lost += 1


def apply_dispute_won(rep: ParticipantRecord) -> None:
    # Winning restores nothing; only the trade is counted.
    rep.successful_trades += 1


def apply_case_resolved(rep: ArbitratorRecord) -> None:
    rep.score += CASE_RESOLVED_REWARD
    rep.cases_resolved += 1
