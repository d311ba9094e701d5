"""Tests for per-session state."""

from sureviz.models.data_classes import ValidationResult
from sureviz.session.state import SessionState


class TestSessionState:

    def test_fresh_state_is_unvalidated_and_empty(self):
        state = SessionState()
        assert state.is_validated() is False
        assert state.current_query() is None
        assert state.click_memory() is None
        assert state.form_values() == ("", "")

    def test_current_query_from_accepted_window(self):
        state = SessionState()
        state.set_query("chr1", 1000, 50000)
        query = state.current_query()
        assert query.locus == "chr1:50000"
        assert query.flank == 1000

    def test_reset_clears_everything(self):
        state = SessionState()
        state.set_query("chr1", 1000, 50000)
        state.set_click_memory(100.0)
        state.mark_validated(True)
        state.last_validation = ValidationResult(passed=True)

        state.reset()

        assert state.current_query() is None
        assert state.click_memory() is None
        assert not state.is_validated()
        assert state.last_validation is None

    def test_form_values_are_stored_as_text(self):
        state = SessionState()
        state.set_form_values("chr2:100", 250)
        assert state.form_values() == ("chr2:100", "250")

    def test_snapshot_is_plain_data(self):
        state = SessionState()
        state.set_query("chrX", 10, 500)
        state.mark_validated(True)
        snap = state.snapshot()
        assert snap["locus"] == "chrX:500"
        assert snap["validated"] is True
        assert snap["artifacts"] == []
        assert snap["last_validation"] is None
