"""Render pipeline and download collaborators."""

from sureviz.render.pipeline import RenderPipeline, ReferenceWindowPipeline
from sureviz.render.download import ArchiveDownloader

__all__ = [
    "RenderPipeline",
    "ReferenceWindowPipeline",
    "ArchiveDownloader",
]
