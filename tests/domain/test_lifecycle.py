"""Tests for run phases and error codes."""

from memoboot.domain.lifecycle import ErrorCode, Phase


def test_phase_values() -> None:
    assert Phase.START == "start"
    assert Phase.DONE == "done"
    assert Phase.FAILED == "failed"


def test_error_codes_match_names() -> None:
    for code in ErrorCode:
        assert code.value == code.name
