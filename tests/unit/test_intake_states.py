import pytest

from intake.pipeline.exceptions import InvalidTransitionError
from intake.pipeline.states import (
    TERMINAL_STATES,
    TRANSITIONS,
    WITHDRAWABLE_STATES,
    FileState,
    ensure_transition,
    is_terminal,
)


class TestTransitionTable:
    def test_terminal_states(self) -> None:
        assert TERMINAL_STATES == {FileState.REJECTED, FileState.STORED, FileState.FAILED}

    def test_every_state_has_an_entry(self) -> None:
        assert set(TRANSITIONS) == set(FileState)

    @pytest.mark.parametrize(
        ("current", "target"),
        [
            (FileState.SELECTED, FileState.QUICK_CHECKED),
            (FileState.QUICK_CHECKED, FileState.SCANNING),
            (FileState.SCANNING, FileState.READY),
            (FileState.READY, FileState.CONVERTING),
            (FileState.CONVERTING, FileState.READY),
            (FileState.READY, FileState.UPLOADING),
            (FileState.UPLOADING, FileState.STORED),
            (FileState.UPLOADING, FileState.FAILED),
            (FileState.SCANNING, FileState.REJECTED),
        ],
    )
    def test_legal_transitions(self, current: FileState, target: FileState) -> None:
        ensure_transition(current, target)

    @pytest.mark.parametrize(
        ("current", "target"),
        [
            (FileState.SELECTED, FileState.SCANNING),
            (FileState.QUICK_CHECKED, FileState.UPLOADING),
            (FileState.UPLOADING, FileState.REJECTED),
            (FileState.STORED, FileState.UPLOADING),
            (FileState.REJECTED, FileState.READY),
            (FileState.CONVERTING, FileState.UPLOADING),
        ],
    )
    def test_illegal_transitions(self, current: FileState, target: FileState) -> None:
        with pytest.raises(InvalidTransitionError, match="Illegal intake transition"):
            ensure_transition(current, target)

    def test_withdrawable_states_can_reach_rejected(self) -> None:
        for state in WITHDRAWABLE_STATES:
            assert FileState.REJECTED in TRANSITIONS[state]
            assert not is_terminal(state)
