"""
Upload handling.

Registers user-supplied files by role, works out their type and the
chromosome ranges they cover, and tells listeners when a session's file set
changes. Only the first columns of tabular files are read; full parsing is
left to the render pipeline.
"""

from __future__ import annotations

import csv
import gzip
import io
import logging
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from sureviz.models.data_classes import GenomicRegion, UploadedFile, UploadedFileSet
from sureviz.models.enums import FileRole

logger = logging.getLogger(__name__)

# extension -> declared type
EXTENSION_TYPES = {
    ".bed": "bed",
    ".narrowpeak": "narrowpeak",
    ".broadpeak": "broadpeak",
    ".bedgraph": "bedgraph",
    ".bdg": "bedgraph",
    ".tsv": "tsv",
    ".txt": "tsv",
    ".csv": "csv",
    ".vcf": "vcf",
    ".meme": "meme",
    ".fa": "fasta",
    ".fasta": "fasta",
    ".fna": "fasta",
}

# BED-family coordinates are 0-based half-open
ZERO_BASED_TYPES = {"bed", "narrowpeak", "broadpeak", "bedgraph"}
TABULAR_TYPES = ZERO_BASED_TYPES | {"tsv", "csv", "vcf"}
SKIP_PREFIXES = ("#", "track", "browser")

FilesListener = Callable[[FileRole], None]


def sniff_type(path: Path) -> Optional[str]:
    """Declared type from the file extension, ignoring a trailing .gz."""
    suffixes = [s.lower() for s in path.suffixes]
    if suffixes and suffixes[-1] == ".gz":
        suffixes = suffixes[:-1]
    if not suffixes:
        return None
    return EXTENSION_TYPES.get(suffixes[-1])


def open_text(path: Path) -> io.TextIOBase:
    """Open plain or gzip-compressed text."""
    if path.suffix.lower() == ".gz":
        return gzip.open(path, "rt")
    return open(path, "r")


def iter_records(path: Path, file_type: str, limit: Optional[int] = None) -> Iterator[Tuple[str, int, int, List[str]]]:
    """
    Yield ``(chromosome, start, end, fields)`` for each data line.

    Coordinates are converted to 1-based inclusive. Header, comment and
    malformed lines are skipped.
    """
    delimiter = "," if file_type == "csv" else "\t"

    with open_text(path) as handle:
        reader = csv.reader(handle, delimiter=delimiter)
        for i, fields in enumerate(reader):
            if limit is not None and i >= limit:
                logger.warning(
                    f"Stopped reading {path.name} after {limit} lines; "
                    f"records further down are not known to validation"
                )
                break
            if not fields or not fields[0] or fields[0].startswith(SKIP_PREFIXES):
                continue
            if len(fields) < 2:
                continue
            try:
                start = int(fields[1])
            except ValueError:
                continue  # header row

            end = start
            if file_type != "vcf" and len(fields) > 2:
                try:
                    end = int(fields[2])
                except ValueError:
                    end = start

            if file_type in ZERO_BASED_TYPES:
                start += 1

            yield fields[0], start, max(start, end), fields


def scan_regions(path: Path, file_type: str, limit: Optional[int] = None) -> List[GenomicRegion]:
    """
    Intervals covered by the records of a tabular file.

    Overlapping or touching records are merged; gaps between records are kept,
    so a window falling between two sparse records overlaps nothing.
    """
    intervals: Dict[str, List[Tuple[int, int]]] = {}
    for chrom, start, end, _ in iter_records(path, file_type, limit=limit):
        intervals.setdefault(chrom, []).append((start, end))

    regions = []
    for chrom, spans in intervals.items():
        spans.sort()
        cur_start, cur_end = spans[0]
        for start, end in spans[1:]:
            if start <= cur_end + 1:
                cur_end = max(cur_end, end)
                continue
            regions.append(GenomicRegion(chromosome=chrom, start=cur_start, end=cur_end))
            cur_start, cur_end = start, end
        regions.append(GenomicRegion(chromosome=chrom, start=cur_start, end=cur_end))
    return regions


class UploadHandler:
    """
    Registers files into a session's UploadedFileSet.

    A file that cannot be used is still registered, with ``parsed = False``
    and an error message, so validation can report it.
    """

    def __init__(self, max_upload_bytes: int = 30 * 1024 ** 2, max_scan_lines: Optional[int] = None):
        self.max_upload_bytes = max_upload_bytes
        self.max_scan_lines = max_scan_lines
        self._listeners: List[FilesListener] = []

    def subscribe(self, listener: FilesListener) -> None:
        """Call ``listener(role)`` after every change."""
        self._listeners.append(listener)

    def _notify(self, role: FileRole) -> None:
        for listener in self._listeners:
            listener(role)

    def inspect(self, role: FileRole, path: Path, declared_type: Optional[str] = None) -> UploadedFile:
        """Build file metadata without registering it."""
        path = Path(path)
        file_type = (declared_type or sniff_type(path) or "").lower() or None
        uploaded = UploadedFile(role=role, path=path, declared_type=file_type)

        if not path.is_file():
            uploaded.error = f"file not found: {path}"
            return uploaded

        uploaded.present = True
        uploaded.size_bytes = path.stat().st_size

        if uploaded.size_bytes > self.max_upload_bytes:
            uploaded.error = (
                f"file is {uploaded.size_bytes} bytes, over the upload limit of {self.max_upload_bytes}"
            )
            return uploaded

        if file_type is None:
            uploaded.error = f"cannot determine file type of {path.name}"
            return uploaded

        try:
            if file_type in TABULAR_TYPES:
                uploaded.regions = scan_regions(path, file_type, limit=self.max_scan_lines)
                if not uploaded.regions:
                    uploaded.error = f"no genomic records found in {path.name}"
                    return uploaded
            elif file_type == "fasta":
                with open_text(path) as handle:
                    if not handle.read(1) == ">":
                        uploaded.error = f"{path.name} is not FASTA"
                        return uploaded
            elif file_type == "meme":
                with open_text(path) as handle:
                    if "MOTIF" not in handle.read():
                        uploaded.error = f"no MOTIF entries in {path.name}"
                        return uploaded
            else:
                uploaded.error = f"unsupported file type '{file_type}'"
                return uploaded
        except (OSError, UnicodeDecodeError, csv.Error) as e:
            uploaded.error = f"failed to read {path.name}: {e}"
            return uploaded

        uploaded.parsed = True
        return uploaded

    def register(
        self,
        files: UploadedFileSet,
        role: FileRole,
        path: Path,
        declared_type: Optional[str] = None,
    ) -> UploadedFile:
        """Add or replace the file for ``role`` and notify listeners."""
        uploaded = self.inspect(role, path, declared_type)
        files.put(uploaded)

        if uploaded.parsed:
            logger.info(f"Registered {role.value} file {uploaded.path} ({uploaded.declared_type})")
        else:
            logger.warning(f"Registered unusable {role.value} file {uploaded.path}: {uploaded.error}")

        self._notify(role)
        return uploaded

    def remove(self, files: UploadedFileSet, role: FileRole) -> None:
        files.remove(role)
        logger.info(f"Removed {role.value} file")
        self._notify(role)
