"""
Utilities module for MitoKmer.

The pipeline orchestrator lives in ``mitokmer.utils.pipeline``.
"""

from .random_source import RandomSource
from .sequence_utils import (
    NUCLEOTIDES,
    calculate_gc_content,
    canonical_kmers,
    extract_kmers,
)

__all__ = [
    "NUCLEOTIDES",
    "RandomSource",
    "calculate_gc_content",
    "canonical_kmers",
    "extract_kmers",
]
