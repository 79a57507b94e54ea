"""Per-file intake lifecycle as a static transition table."""

from enum import Enum

from intake.pipeline.exceptions import InvalidTransitionError


class FileState(str, Enum):
    SELECTED = "selected"
    QUICK_CHECKED = "quick_checked"
    SCANNING = "scanning"
    READY = "ready"
    CONVERTING = "converting"
    UPLOADING = "uploading"
    REJECTED = "rejected"
    STORED = "stored"
    FAILED = "failed"


TRANSITIONS: dict[FileState, frozenset[FileState]] = {
    FileState.SELECTED: frozenset({FileState.QUICK_CHECKED, FileState.REJECTED}),
    FileState.QUICK_CHECKED: frozenset({FileState.SCANNING, FileState.REJECTED}),
    FileState.SCANNING: frozenset({FileState.READY, FileState.REJECTED}),
    FileState.READY: frozenset(
        {FileState.CONVERTING, FileState.UPLOADING, FileState.REJECTED}
    ),
    FileState.CONVERTING: frozenset({FileState.READY, FileState.REJECTED}),
    FileState.UPLOADING: frozenset({FileState.STORED, FileState.FAILED}),
    FileState.REJECTED: frozenset(),
    FileState.STORED: frozenset(),
    FileState.FAILED: frozenset(),
}

TERMINAL_STATES: frozenset[FileState] = frozenset(
    state for state, targets in TRANSITIONS.items() if not targets
)

WITHDRAWABLE_STATES: frozenset[FileState] = frozenset(
    {FileState.SELECTED, FileState.QUICK_CHECKED, FileState.READY}
)


def is_terminal(state: FileState) -> bool:
    return state in TERMINAL_STATES


def ensure_transition(current: FileState, target: FileState) -> None:
    """Raises InvalidTransitionError if ``current -> target`` is not in the table."""
    if target not in TRANSITIONS[current]:
        raise InvalidTransitionError(
            f"Illegal intake transition {current.value} -> {target.value}"
        )
