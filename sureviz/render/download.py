"""
Download collaborator: packages the current results as a zip archive.
"""

from __future__ import annotations

import logging
import zipfile
from datetime import datetime
from pathlib import Path
from typing import Optional

from sureviz.core.exceptions import DownloadError
from sureviz.models.data_classes import ArtifactSet

logger = logging.getLogger(__name__)


class ArchiveDownloader:
    """Writes an ArtifactSet into ``download_dir`` as one zip file."""

    def __init__(self, download_dir: Path):
        self.download_dir = Path(download_dir)

    def archive_name(self, artifacts: ArtifactSet) -> str:
        query = artifacts.query
        stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return f"sureviz_{query.chromosome}_{query.position}_{stamp}.zip"

    def download(self, artifacts: Optional[ArtifactSet]) -> Path:
        """
        Package every artifact that still exists on disk.

        Raises:
            DownloadError: If nothing has been rendered or the archive cannot be written
        """
        if artifacts is None:
            raise DownloadError("Nothing has been rendered yet")

        self.download_dir.mkdir(parents=True, exist_ok=True)
        archive = self.download_dir / self.archive_name(artifacts)

        try:
            with zipfile.ZipFile(archive, "w", compression=zipfile.ZIP_DEFLATED) as zf:
                for artifact in artifacts.artifacts:
                    if artifact.path.exists():
                        zf.write(artifact.path, arcname=artifact.name)
                    else:
                        logger.warning(f"Artifact {artifact.path} disappeared, skipping")
        except OSError as e:
            raise DownloadError(f"Failed to write {archive}: {e}") from e

        logger.info(f"Packaged {len(artifacts.artifacts)} artifacts for {artifacts.query.locus} into {archive}")
        return archive
