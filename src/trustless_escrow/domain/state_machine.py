"""Escrow Lifecycle State Machine Guard.

Uses python-statemachine to enforce legal state transitions at the domain level.
Whatever the API or a service does, an illegal transition (e.g. COMPLETED ->
DISPUTED) raises TransitionNotAllowed before any record is touched.

The state machine is instantiated per-escrow and validates transitions before
the ORM model's status field is updated.

Transition table:
    PENDING   -> COMPLETED   (counterparty_confirms)
    PENDING   -> DISPUTED    (party_disputes)
    DISPUTED  -> COMPLETED   (arbitrator_resolves)

REFUNDED is part of EscrowStatus but has no inbound transition, so it is not
modelled here.
"""

from __future__ import annotations

from statemachine import State, StateMachine


class EscrowStateMachine(StateMachine):
    """State machine that guards escrow lifecycle transitions.

    Usage:
        sm = EscrowStateMachine(current_status="PENDING")
        sm.party_disputes()   # transitions to DISPUTED
        sm.status             # "DISPUTED"
    """

    # --- States ---
    PENDING = State("Pending", value="PENDING", initial=True)
    DISPUTED = State("Disputed", value="DISPUTED")
    COMPLETED = State("Completed", value="COMPLETED", final=True)

    # --- Events / Transitions ---
    counterparty_confirms = PENDING.to(COMPLETED)
    party_disputes = PENDING.to(DISPUTED)
    arbitrator_resolves = DISPUTED.to(COMPLETED)

    def __init__(self, current_status: str = "PENDING") -> None:
        """Initialize the state machine at a given status.

        Args:
            current_status: The current EscrowStatus value (e.g., "PENDING").

        Raises:
            ValueError: If the status is not a state of this machine.
        """
        valid_values = {s.value for s in self.states}
        if current_status not in valid_values:
            valid = ", ".join(sorted(valid_values))
            raise ValueError(
                f"Unknown status '{current_status}'. Valid states: {valid}"
            )
        super().__init__(start_value=current_status)

    @property
    def status(self) -> str:
        """Return the current state value as a string (matches EscrowStatus enum)."""
        return str(self.current_state.value)


EVENT_NAMES = frozenset({"counterparty_confirms", "party_disputes", "arbitrator_resolves"})


def validate_transition(current_status: str, event_name: str) -> str:
    """Validate a state transition and return the new status.

    Creates a temporary state machine, fires the named event, and returns
    the resulting status string.

    Raises:
        TransitionNotAllowed: If the transition is illegal.
        ValueError: If the status or event name is unknown.
    """
    sm = EscrowStateMachine(current_status=current_status)

    event_method = getattr(sm, event_name, None)
    if event_name not in EVENT_NAMES or event_method is None:
        raise ValueError(f"Unknown event '{event_name}'")

    event_method()
    return sm.status

