"""State machine for two-phase moves.

A move batch is produced by a mover's prepare step and consumed exactly
once by its confirm step.
"""

from enum import Enum

from listentries.domain.exceptions import InvalidStateTransitionError


class MoveStatus(str, Enum):
    """Move batch lifecycle states.

    State diagram:
        UNPREPARED
          │
          │ prepare
          ▼
        PREPARED ───────────────► DISCARDED
          │
          │ confirm
          ▼
        CONFIRMED
    """

    UNPREPARED = "unprepared"
    PREPARED = "prepared"
    CONFIRMED = "confirmed"
    DISCARDED = "discarded"

    def can_transition_to(self, target: "MoveStatus") -> bool:
        """Check if transition to target state is valid.

        Args:
            target: Target state to transition to.

        Returns:
            True if transition is valid.
        """
        return target in _MOVE_TRANSITIONS.get(self, set())

    def allowed_transitions(self) -> list["MoveStatus"]:
        """Get list of valid target states.

        Returns:
            List of states that can be transitioned to.
        """
        return list(_MOVE_TRANSITIONS.get(self, set()))

    def is_terminal(self) -> bool:
        """Check if this is a terminal (final) state."""
        return len(_MOVE_TRANSITIONS.get(self, set())) == 0


_MOVE_TRANSITIONS: dict[MoveStatus, set[MoveStatus]] = {
    MoveStatus.UNPREPARED: {MoveStatus.PREPARED},
    MoveStatus.PREPARED: {MoveStatus.CONFIRMED, MoveStatus.DISCARDED},
    MoveStatus.CONFIRMED: set(),  # Terminal state
    MoveStatus.DISCARDED: set(),  # Terminal state
}


def validate_move_transition(
    batch_id: str,
    current: MoveStatus,
    target: MoveStatus,
) -> None:
    """Validate a move batch state transition.

    Args:
        batch_id: ID of the batch.
        current: Current state.
        target: Target state.

    Raises:
        InvalidStateTransitionError: If transition is not valid.
    """
    if not current.can_transition_to(target):
        raise InvalidStateTransitionError(
            entity_type="MoveBatch",
            entity_id=batch_id,
            current_state=current.value,
            target_state=target.value,
            allowed_transitions=[s.value for s in current.allowed_transitions()],
        )
