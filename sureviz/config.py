"""
Configuration system for SuREViz.

Uses Pydantic Settings for type-safe configuration with environment variable support.
"""

from pathlib import Path
from typing import Optional, List
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache

from sureviz.models.enums import FileRole


class ValidationConfig(BaseSettings):
    """Input validation limits."""
    # Largest flank accepted before rendering (bases on each side)
    max_flank: int = 25000

    # Roles that must be uploaded before a render is allowed
    required_file_roles: List[FileRole] = Field(
        default_factory=lambda: [FileRole.SNP_TABLE, FileRole.ASSAY_SIGNAL]
    )


class UploadConfig(BaseSettings):
    """Upload handling configuration."""
    max_upload_bytes: int = 30 * 1024 ** 2

    # Lines sampled when learning the chromosome ranges of a tabular file
    max_scan_lines: int = 2_000_000


class SureVizConfig(BaseSettings):
    """Main configuration for SuREViz."""

    model_config = SettingsConfigDict(
        env_prefix="SUREVIZ_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # Paths
    data_dir: Path = Path("~/.sureviz").expanduser()
    output_dir: Path = Path("~/.sureviz/output").expanduser()
    download_dir: Path = Path("~/.sureviz/downloads").expanduser()

    # Reference genome
    genome_build: str = "hg38"
    reference_fasta: Optional[Path] = None

    # Sub-configs
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    upload: UploadConfig = Field(default_factory=UploadConfig)

    # Query submitted when a session is opened with autorun
    default_query: str = "chr1:50000"
    default_flank: int = 1000

    # Logging
    log_level: str = "INFO"
    log_file: Optional[Path] = None

    # API
    api_host: str = "127.0.0.1"
    api_port: int = 3838

    def ensure_directories(self) -> None:
        """Create required directories if they don't exist."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.download_dir.mkdir(parents=True, exist_ok=True)

    def resolve_reference_fasta(self) -> Optional[Path]:
        """Find the reference FASTA.

        Searches, in order:
        1. SUREVIZ_REFERENCE_FASTA
        2. ~/.sureviz/genomes/{build}.fa(.fasta)
        """
        if self.reference_fasta is not None:
            return self.reference_fasta

        genome_dir = self.data_dir / "genomes"
        for name in (f"{self.genome_build}.fa", f"{self.genome_build}.fasta"):
            candidate = genome_dir / name
            if candidate.exists():
                return candidate
        return None


@lru_cache()
def get_config() -> SureVizConfig:
    """Get cached configuration singleton."""
    return SureVizConfig()
