"""Reference genome package."""

from sureviz.genome.reference import GenomeReference

__all__ = ["GenomeReference"]
