"""
End-to-end tests of the per-session state machine.

Drives SessionWorkflow with the same events the dashboard sends: render
button presses, plot clicks, confirmation answers and file changes.
"""

import pytest

from sureviz.core.exceptions import ReferenceNotAvailableError
from sureviz.genome.reference import GenomeReference
from sureviz.models.data_classes import ArtifactSet, ClickEvent
from sureviz.models.enums import FileRole, OutcomeStatus, SessionPhase
from sureviz.session.workflow import (
    ButtonPressed,
    ConfirmationResponded,
    FilesChanged,
    PlotClicked,
    SessionWorkflow,
)
from sureviz.session.validator import InputValidator


def _click(x: float, y=0.5) -> PlotClicked:
    return PlotClicked(ClickEvent(x=x, y=y))


# =============================================================================
# Button
# =============================================================================

class TestButtonPress:
    """The render button: parse, validate, render."""

    def test_valid_query_renders(self, workflow, pipeline):
        outcome = workflow.submit(ButtonPressed("chr1:50000", "1000"))

        assert outcome.status == OutcomeStatus.RENDERED
        assert (outcome.query.chromosome, outcome.query.position, outcome.query.flank) == ("chr1", 50000, 1000)
        assert workflow.state.last_validation.passed
        assert len(pipeline.calls) == 1
        assert workflow.phase == SessionPhase.DONE

    def test_unknown_contig_is_rejected_without_render(self, workflow, pipeline):
        outcome = workflow.submit(ButtonPressed("chrZZ:50000", "1000"))

        assert outcome.status == OutcomeStatus.REJECTED
        assert any("unknown chromosome" in r for r in outcome.reasons)
        assert workflow.state.last_validation.passed is False
        assert pipeline.calls == []

    def test_parse_error_is_rejected(self, workflow, pipeline):
        workflow.submit(ButtonPressed("chr1:50000", "1000"))

        outcome = workflow.submit(ButtonPressed("chr1-50000", "1000"))

        assert outcome.status == OutcomeStatus.REJECTED
        assert "malformed locus syntax" in outcome.reasons[0]
        assert not workflow.state.is_validated()
        assert len(pipeline.calls) == 1

    def test_form_values_follow_the_button(self, workflow):
        workflow.submit(ButtonPressed("chr1:50000", 1000))
        assert workflow.state.form_values() == ("chr1:50000", "1000")

    def test_missing_files_block_render(self, validator, pipeline):
        workflow = SessionWorkflow(validator, pipeline)
        outcome = workflow.submit(ButtonPressed("chr1:50000", "1000"))

        assert outcome.status == OutcomeStatus.REJECTED
        assert pipeline.calls == []


# =============================================================================
# Clicks and confirmation
# =============================================================================

class TestClickConfirmation:
    """Click -> confirm -> re-render, or click -> decline -> download."""

    @pytest.fixture
    def rendered(self, workflow):
        outcome = workflow.submit(ButtonPressed("chr1:50000", "1000"))
        assert outcome.status == OutcomeStatus.RENDERED
        return workflow

    def test_click_waits_for_confirmation(self, rendered):
        outcome = rendered.submit(_click(75000))

        assert outcome.status == OutcomeStatus.AWAITING_CONFIRMATION
        assert outcome.query.locus == "chr1:75000"
        assert outcome.query.flank == 1000
        assert rendered.phase == SessionPhase.AWAITING_CONFIRMATION
        assert rendered.snapshot()["pending_prompt"].endswith("chr1:75000")

    def test_accept_revalidates_and_renders(self, rendered, pipeline):
        rendered.submit(_click(75000))

        outcome = rendered.submit(ConfirmationResponded(True))

        assert outcome.status == OutcomeStatus.RENDERED
        assert [q.locus for q in pipeline.calls] == ["chr1:50000", "chr1:75000"]
        assert rendered.state.current_query().locus == "chr1:75000"
        assert rendered.state.form_values() == ("chr1:75000", "1000")
        assert rendered.pending is None

    def test_decline_downloads_and_keeps_memory(self, rendered, pipeline, downloader):
        rendered.submit(_click(75000))

        outcome = rendered.submit(ConfirmationResponded(False))

        assert outcome.status == OutcomeStatus.IGNORED
        assert len(pipeline.calls) == 1
        assert len(downloader.calls) == 1
        assert isinstance(downloader.calls[0], ArtifactSet)
        assert rendered.state.click_memory() == 75000
        assert rendered.state.current_query().locus == "chr1:50000"
        assert rendered.phase == SessionPhase.DONE

    def test_repeated_click_after_decline_is_ignored(self, rendered):
        rendered.submit(_click(75000))
        rendered.submit(ConfirmationResponded(False))

        outcome = rendered.submit(_click(75000))

        assert outcome.status == OutcomeStatus.IGNORED
        assert rendered.phase == SessionPhase.DONE

    def test_accepted_click_that_fails_validation(self, workflow, pipeline, contig_lengths):
        workflow.submit(ButtonPressed("chr1:50000", "1000"))
        workflow.submit(_click(contig_lengths["chr1"]))

        outcome = workflow.submit(ConfirmationResponded(True))

        assert outcome.status == OutcomeStatus.REJECTED
        assert len(pipeline.calls) == 1
        assert workflow.state.current_query().locus == "chr1:50000"

    def test_click_without_accepted_query_is_ignored(self, workflow):
        assert workflow.submit(_click(75000)).status == OutcomeStatus.IGNORED

    def test_confirmation_with_nothing_pending(self, workflow):
        assert workflow.submit(ConfirmationResponded(True)).status == OutcomeStatus.IGNORED

    def test_cleared_selection(self, rendered):
        assert rendered.submit(PlotClicked(None)).status == OutcomeStatus.IGNORED


# =============================================================================
# Deferral while a confirmation is pending
# =============================================================================

class TestDeferral:

    def test_button_during_confirmation_is_deferred_then_replayed(self, workflow, pipeline):
        workflow.submit(ButtonPressed("chr1:50000", "1000"))
        workflow.submit(_click(75000))

        deferred = workflow.submit(ButtonPressed("chr1:52000", "500"))

        assert deferred.status == OutcomeStatus.AWAITING_CONFIRMATION
        assert len(workflow.deferred) == 1
        assert len(pipeline.calls) == 1

        workflow.submit(ConfirmationResponded(False))

        assert len(workflow.deferred) == 0
        assert [q.locus for q in pipeline.calls] == ["chr1:50000", "chr1:52000"]
        assert workflow.state.current_query().flank == 500
        assert workflow.history[-1].status == OutcomeStatus.RENDERED

    def test_deferred_events_keep_their_order(self, workflow, pipeline):
        workflow.submit(ButtonPressed("chr1:50000", "1000"))
        workflow.submit(_click(75000))
        workflow.submit(ButtonPressed("chr1:51000", "1000"))
        workflow.submit(ButtonPressed("chr1:53000", "1000"))

        workflow.submit(ConfirmationResponded(True))

        assert [q.locus for q in pipeline.calls] == [
            "chr1:50000", "chr1:75000", "chr1:51000", "chr1:53000",
        ]

    def test_replay_stops_at_a_new_confirmation(self, workflow, pipeline):
        workflow.submit(ButtonPressed("chr1:50000", "1000"))
        workflow.submit(_click(75000))
        workflow.submit(_click(60000))
        workflow.submit(ButtonPressed("chr1:51000", "1000"))

        workflow.submit(ConfirmationResponded(True))

        # the deferred click asks again; the button waits behind it
        assert workflow.phase == SessionPhase.AWAITING_CONFIRMATION
        assert workflow.pending.query.locus == "chr1:60000"
        assert len(workflow.deferred) == 1

        workflow.submit(ConfirmationResponded(True))
        assert [q.locus for q in pipeline.calls] == [
            "chr1:50000", "chr1:75000", "chr1:60000", "chr1:51000",
        ]


# =============================================================================
# File changes
# =============================================================================

class TestFileChanges:

    def test_removing_a_required_file_invalidates_without_render(self, workflow, pipeline):
        workflow.submit(ButtonPressed("chr1:50000", "1000"))
        assert workflow.state.is_validated()

        workflow.remove_file(FileRole.ASSAY_SIGNAL)

        assert not workflow.state.is_validated()
        assert workflow.history[-1].status == OutcomeStatus.REJECTED
        assert len(pipeline.calls) == 1

    def test_restoring_the_file_revalidates(self, workflow, pipeline, assay_bed):
        workflow.submit(ButtonPressed("chr1:50000", "1000"))
        workflow.remove_file(FileRole.ASSAY_SIGNAL)

        workflow.register_file(FileRole.ASSAY_SIGNAL, assay_bed)

        assert workflow.state.is_validated()
        assert len(pipeline.calls) == 1

    def test_non_overlapping_file_is_reported(self, workflow, chr2_peaks):
        workflow.submit(ButtonPressed("chr1:50000", "1000"))

        workflow.register_file(FileRole.PEAK_ANNOTATION, chr2_peaks)

        assert not workflow.state.is_validated()
        assert "peaks" in workflow.state.last_validation.reasons[0]

    def test_file_change_before_any_query(self, validator, pipeline, snp_table):
        workflow = SessionWorkflow(validator, pipeline)
        workflow.register_file(FileRole.SNP_TABLE, snp_table)
        assert workflow.history[-1].status == OutcomeStatus.IGNORED

    def test_explicit_files_changed_event(self, workflow):
        workflow.submit(ButtonPressed("chr1:50000", "1000"))
        assert workflow.submit(FilesChanged()).status == OutcomeStatus.IGNORED

    def test_phase_settles_when_reference_is_unavailable(self, pipeline):
        validator = InputValidator(GenomeReference("hg38"), max_flank=25_000)
        workflow = SessionWorkflow(validator, pipeline, session_id="no-reference")
        workflow.state.set_query("chr1", 1000, 50000)

        with pytest.raises(ReferenceNotAvailableError):
            workflow.submit(FilesChanged())

        assert workflow.phase == SessionPhase.DONE
        assert pipeline.calls == []


# =============================================================================
# Sessions and downloads
# =============================================================================

class TestSessionIsolation:

    def test_two_workflows_do_not_share_state(self, validator, pipeline, snp_table, assay_bed):
        first = SessionWorkflow(validator, pipeline, session_id="a")
        second = SessionWorkflow(validator, pipeline, session_id="b")
        for wf in (first, second):
            wf.register_file(FileRole.SNP_TABLE, snp_table)
            wf.register_file(FileRole.ASSAY_SIGNAL, assay_bed)

        first.submit(ButtonPressed("chr1:50000", "1000"))

        assert first.state.is_validated()
        assert second.state.current_query() is None
        assert second.state.click_memory() is None


class TestDownloadCurrent:

    def test_download_after_render(self, workflow, downloader):
        workflow.submit(ButtonPressed("chr1:50000", "1000"))
        path = workflow.download_current()
        assert path == downloader.download_dir / "results.zip"
        assert workflow.snapshot()["last_download"] == str(path)

    def test_download_without_downloader(self, validator, pipeline):
        from sureviz.core.exceptions import DownloadError

        workflow = SessionWorkflow(validator, pipeline)
        with pytest.raises(DownloadError):
            workflow.download_current()
