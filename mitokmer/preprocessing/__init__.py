"""
Preprocessing module for MitoKmer.

Trimming, quality and length-window filtering, per-gene summaries.
"""

from .sequence_filter import (
    FilterReport,
    FilterResult,
    FilteredSequence,
    GeneSummary,
    SequenceFilter,
    ambiguous_fraction,
    base_composition,
    summarize_pool,
    trim_sequence,
)

__all__ = [
    "FilterReport",
    "FilterResult",
    "FilteredSequence",
    "GeneSummary",
    "SequenceFilter",
    "ambiguous_fraction",
    "base_composition",
    "summarize_pool",
    "trim_sequence",
]
