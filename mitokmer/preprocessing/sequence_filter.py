#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
MitoKmer v0.1.0

Sequence Filter: trims ambiguous edges and alignment gaps, then drops
low-quality and length-outlier sequences from each gene pool.

Filtering runs in two passes per pool: the quality pass first produces the
complete quality-filtered pool, and only then is the median trimmed length
computed and the length window applied, so the result never depends on
processing order.

Author: MitoKmer Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from ..errors import FilterExhaustionError
from ..io.fasta_io import Gene, SequenceRecord
from ..utils.sequence_utils import NUCLEOTIDES, calculate_gc_content

logger = logging.getLogger(__name__)

AMBIGUOUS_BASE = 'N'
GAP = '-'
ALLOWED_SYMBOLS = frozenset(NUCLEOTIDES) | {AMBIGUOUS_BASE}

DEFAULT_MAX_N_FRACTION = 0.01
DEFAULT_LENGTH_WINDOW = 100


# ═══════════════════════════════════════════════════════════════════════
#  DATA STRUCTURES
# ═══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class FilteredSequence:
    """
    Trimmed sequence that passed quality and length filtering.

    Attributes:
        identifier: Source record identifier
        sequence: Trimmed sequence (no gaps, no N at either end)
        gene: Gene pool the sequence belongs to
    """
    identifier: str
    sequence: str
    gene: Optional[Gene] = None

    @property
    def length(self) -> int:
        return len(self.sequence)

    @property
    def n_count(self) -> int:
        return self.sequence.count(AMBIGUOUS_BASE)

    @property
    def n_fraction(self) -> float:
        return ambiguous_fraction(self.sequence)


@dataclass(frozen=True)
class FilterReport:
    """Per-stage counts for one gene pool."""
    gene: Optional[str]
    raw_count: int
    quality_passed: int
    window_passed: int
    median_length: float
    dropped_ambiguous: int = 0
    dropped_invalid_symbol: int = 0
    dropped_empty: int = 0
    dropped_window: int = 0

    def to_dict(self) -> Dict[str, object]:
        return {
            'gene': self.gene,
            'raw_count': self.raw_count,
            'quality_passed': self.quality_passed,
            'window_passed': self.window_passed,
            'median_length': self.median_length,
            'dropped_ambiguous': self.dropped_ambiguous,
            'dropped_invalid_symbol': self.dropped_invalid_symbol,
            'dropped_empty': self.dropped_empty,
            'dropped_window': self.dropped_window,
        }


@dataclass(frozen=True)
class FilterResult:
    """Output of filtering one pool: retained sequences plus the report."""
    sequences: Tuple[FilteredSequence, ...]
    report: FilterReport


@dataclass(frozen=True)
class GeneSummary:
    """Summary statistics for one filtered gene pool."""
    gene: str
    raw_count: int
    quality_passed: int
    window_passed: int
    median_length: float
    min_length: int
    max_length: int
    mean_gc_content: float
    base_composition: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, object]:
        row: Dict[str, object] = {
            'gene': self.gene,
            'raw_count': self.raw_count,
            'quality_passed': self.quality_passed,
            'window_passed': self.window_passed,
            'median_length': self.median_length,
            'min_length': self.min_length,
            'max_length': self.max_length,
            'mean_gc_content': self.mean_gc_content,
        }
        for base in NUCLEOTIDES:
            row[f'prop_{base}'] = self.base_composition.get(base, 0.0)
        return row


# ═══════════════════════════════════════════════════════════════════════
#  PURE HELPERS
# ═══════════════════════════════════════════════════════════════════════

def trim_sequence(sequence: str) -> str:
    """
    Remove every gap, then the leading and trailing runs of N.

    Gaps go first so that an N run split by a gap is stripped whole, which
    keeps the operation idempotent.

    Example:
        >>> trim_sequence("NN-AC-GTNN")
        'ACGT'
    """
    return sequence.upper().replace(GAP, '').strip(AMBIGUOUS_BASE)


def ambiguous_fraction(sequence: str) -> float:
    """
    Fraction of N in a trimmed sequence (N count / trimmed length).

    Empty sequences count as fully ambiguous.
    """
    if not sequence:
        return 1.0
    return sequence.count(AMBIGUOUS_BASE) / len(sequence)


def has_invalid_symbols(sequence: str) -> bool:
    """True if *sequence* holds anything besides A, C, G, T and N."""
    return not set(sequence) <= ALLOWED_SYMBOLS


def base_composition(sequences: Sequence[str]) -> Dict[str, float]:
    """
    Pooled single-nucleotide proportions over ACGT.

    Ambiguous symbols are excluded from both numerator and denominator.
    """
    counts = {base: 0 for base in NUCLEOTIDES}
    for seq in sequences:
        for base in NUCLEOTIDES:
            counts[base] += seq.count(base)
    total = sum(counts.values())
    if total == 0:
        return {base: 0.0 for base in NUCLEOTIDES}
    return {base: counts[base] / total for base in NUCLEOTIDES}


# ═══════════════════════════════════════════════════════════════════════
#  FILTER
# ═══════════════════════════════════════════════════════════════════════

class SequenceFilter:
    """
    Trim and filter the raw records of a gene pool.

    Steps (per pool):
    1. Trim gaps and N-runs at both ends
    2. Drop sequences whose N fraction exceeds ``max_n_fraction`` (and any
       sequence carrying symbols outside ACGTN)
    3. Drop sequences whose length lies outside ``median ± length_window``,
       the median taken over the whole quality-filtered pool

    Example:
        seq_filter = SequenceFilter(max_n_fraction=0.01, length_window=100)
        result = seq_filter.filter(records, gene=Gene.COI)
        kept = result.sequences
    """

    def __init__(self,
                 max_n_fraction: float = DEFAULT_MAX_N_FRACTION,
                 length_window: int = DEFAULT_LENGTH_WINDOW):
        """
        Initialize sequence filter.

        Args:
            max_n_fraction: Maximum tolerated N proportion (0.0-1.0)
            length_window: Half-width W of the accepted length window (bp)
        """
        if not 0.0 <= max_n_fraction <= 1.0:
            raise ValueError(f"max_n_fraction must be between 0 and 1, got {max_n_fraction}")
        if length_window < 0:
            raise ValueError(f"length_window must be non-negative, got {length_window}")

        self.max_n_fraction = max_n_fraction
        self.length_window = length_window

    def quality_filter(
        self,
        records: Sequence[SequenceRecord],
        gene: Optional[Gene] = None,
    ) -> Tuple[List[FilteredSequence], Dict[str, int]]:
        """
        Trim every record and keep those passing the ambiguity threshold.

        Returns:
            (kept sequences in input order, drop counts by reason)
        """
        kept: List[FilteredSequence] = []
        dropped = {'ambiguous': 0, 'invalid_symbol': 0, 'empty': 0}

        for record in records:
            trimmed = trim_sequence(record.raw_sequence)
            if not trimmed:
                dropped['empty'] += 1
                continue
            if has_invalid_symbols(trimmed):
                dropped['invalid_symbol'] += 1
                continue
            if ambiguous_fraction(trimmed) > self.max_n_fraction:
                dropped['ambiguous'] += 1
                continue
            kept.append(FilteredSequence(record.identifier, trimmed, gene))

        return kept, dropped

    def length_window_filter(
        self,
        sequences: Sequence[FilteredSequence],
    ) -> Tuple[List[FilteredSequence], float]:
        """
        Keep sequences within ``median ± length_window`` of the pool median.

        Returns:
            (kept sequences in input order, median trimmed length)
        """
        if not sequences:
            return [], float('nan')

        median = float(np.median([s.length for s in sequences]))
        low = median - self.length_window
        high = median + self.length_window
        kept = [s for s in sequences if low <= s.length <= high]
        return kept, median

    def filter(
        self,
        records: Sequence[SequenceRecord],
        gene: Optional[Gene] = None,
    ) -> FilterResult:
        """
        Run both filtering passes over one gene pool.

        Raises:
            FilterExhaustionError: If no sequence survives a stage
        """
        gene_name = gene.value if gene is not None else None

        quality_kept, dropped = self.quality_filter(records, gene)
        if not quality_kept:
            raise FilterExhaustionError(
                "No sequences survived the quality filter",
                gene=gene_name,
                stage='quality_filter',
                counts={
                    'raw': len(records),
                    'max_n_fraction': self.max_n_fraction,
                    **{f'dropped_{k}': v for k, v in dropped.items()},
                },
            )

        window_kept, median = self.length_window_filter(quality_kept)
        if not window_kept:
            raise FilterExhaustionError(
                "No sequences survived the length window filter",
                gene=gene_name,
                stage='length_window',
                counts={
                    'quality_passed': len(quality_kept),
                    'median_length': median,
                    'length_window': self.length_window,
                },
            )

        report = FilterReport(
            gene=gene_name,
            raw_count=len(records),
            quality_passed=len(quality_kept),
            window_passed=len(window_kept),
            median_length=median,
            dropped_ambiguous=dropped['ambiguous'],
            dropped_invalid_symbol=dropped['invalid_symbol'],
            dropped_empty=dropped['empty'],
            dropped_window=len(quality_kept) - len(window_kept),
        )
        logger.info(
            "  %s: %d raw → %d quality → %d in window (median %.1f bp)",
            gene_name or 'pool', report.raw_count, report.quality_passed,
            report.window_passed, median,
        )
        return FilterResult(sequences=tuple(window_kept), report=report)

    def filter_pools(
        self,
        pools: Dict[Gene, Sequence[SequenceRecord]],
    ) -> Dict[Gene, FilterResult]:
        """Filter every gene pool independently."""
        return {gene: self.filter(records, gene) for gene, records in pools.items()}


def summarize_pool(result: FilterResult) -> GeneSummary:
    """Summary statistics (counts, lengths, composition) for a filtered pool."""
    sequences = [s.sequence for s in result.sequences]
    lengths = [len(s) for s in sequences]
    report = result.report
    return GeneSummary(
        gene=report.gene or '',
        raw_count=report.raw_count,
        quality_passed=report.quality_passed,
        window_passed=report.window_passed,
        median_length=report.median_length,
        min_length=min(lengths),
        max_length=max(lengths),
        mean_gc_content=float(np.mean([calculate_gc_content(s) for s in sequences])),
        base_composition=base_composition(sequences),
    )


__all__ = [
    'AMBIGUOUS_BASE',
    'DEFAULT_LENGTH_WINDOW',
    'DEFAULT_MAX_N_FRACTION',
    'FilterReport',
    'FilterResult',
    'FilteredSequence',
    'GeneSummary',
    'SequenceFilter',
    'ambiguous_fraction',
    'base_composition',
    'has_invalid_symbols',
    'summarize_pool',
    'trim_sequence',
]

# MitoKmer v0.1.0
# Any usage is subject to this software's license.
