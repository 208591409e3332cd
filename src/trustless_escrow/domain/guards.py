"""Identity & authorization guard.

Stateless predicates over a caller's identity and the escrow parameters.
They never touch storage: callers look up whatever the predicate needs
(the id allocator position, whether an arbitrator is registered) and pass
it in.
"""

from __future__ import annotations


def valid_escrow_id(escrow_id: int, next_escrow_id: int) -> bool:
    """True iff the id has been allocated, i.e. ``0 < id < next_escrow_id``."""
    return 0 < escrow_id < next_escrow_id


def valid_counterparty(caller: str, counterparty: str) -> bool:
    """True iff the caller is not escrowing funds to itself."""
    return counterparty != caller


def valid_arbitrator(caller: str, arbitrator: str, registered: bool) -> bool:
    """True iff the arbitrator is a third party with a reputation record.

    ``registered`` must reflect the arbitrator table *before* the calling
    operation initializes anything, so an account that has never resolved a
    dispute (and was never seeded) cannot be named.
    """
    return arbitrator != caller and registered
