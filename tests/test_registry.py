"""Tests for the session registry and workflow wiring."""

import pytest

from sureviz.config import SureVizConfig
from sureviz.core.exceptions import SessionNotFoundError
from sureviz.render.download import ArchiveDownloader
from sureviz.render.pipeline import ReferenceWindowPipeline
from sureviz.session.registry import SessionRegistry, build_workflow
from sureviz.session.workflow import ButtonPressed


@pytest.fixture
def config(tmp_path) -> SureVizConfig:
    return SureVizConfig(
        data_dir=tmp_path / "data",
        output_dir=tmp_path / "output",
        download_dir=tmp_path / "downloads",
    )


@pytest.fixture
def registry(config, reference) -> SessionRegistry:
    return SessionRegistry.from_config(config, reference)


class TestBuildWorkflow:

    def test_collaborators_come_from_config(self, config, reference):
        workflow = build_workflow(config, reference, "abc")

        assert workflow.session_id == "abc"
        assert workflow.validator.max_flank == config.validation.max_flank
        assert workflow.validator.required_roles == config.validation.required_file_roles
        assert isinstance(workflow.coordinator.pipeline, ReferenceWindowPipeline)
        assert workflow.coordinator.pipeline.output_dir == config.output_dir / "abc"
        assert isinstance(workflow.clicks.downloader, ArchiveDownloader)
        assert workflow.uploads.max_upload_bytes == 30 * 1024 ** 2


class TestSessionRegistry:

    def test_create_and_get(self, registry):
        workflow = registry.create()
        assert registry.get(workflow.session_id) is workflow
        assert len(registry) == 1

    def test_explicit_session_id(self, registry):
        registry.create("fixed")
        assert registry.session_ids() == ["fixed"]

    def test_unknown_session(self, registry):
        with pytest.raises(SessionNotFoundError):
            registry.get("missing")

    def test_close(self, registry):
        workflow = registry.create()
        registry.close(workflow.session_id)
        with pytest.raises(SessionNotFoundError):
            registry.get(workflow.session_id)
        with pytest.raises(SessionNotFoundError):
            registry.close(workflow.session_id)

    def test_sessions_are_isolated(self, registry):
        first = registry.create()
        second = registry.create()

        assert first.state is not second.state
        assert first.files is not second.files
        assert first.lock is not second.lock

        first.submit(ButtonPressed("chr1:50000", "1000"))
        assert first.state.form_values() == ("chr1:50000", "1000")
        assert second.state.form_values() == ("", "")
