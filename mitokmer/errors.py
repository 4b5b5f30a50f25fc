#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
MitoKmer v0.1.0

Exception taxonomy: every pipeline failure is fatal to the run that
triggered it and carries enough context (gene, stage, counts) to diagnose
without re-running.

Author: MitoKmer Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

from typing import Any, Dict, Optional


class MitoKmerError(Exception):
    """
    Base class for all analysis errors.

    Attributes:
        gene: Gene pool the failure belongs to (if any)
        stage: Pipeline stage that raised
        counts: Relevant counts at the time of failure
    """

    def __init__(
        self,
        message: str,
        gene: Optional[str] = None,
        stage: Optional[str] = None,
        counts: Optional[Dict[str, Any]] = None,
    ):
        self.gene = gene
        self.stage = stage
        self.counts = dict(counts or {})
        super().__init__(self._format(message))

    def _format(self, message: str) -> str:
        context = []
        if self.gene:
            context.append(f"gene={self.gene}")
        if self.stage:
            context.append(f"stage={self.stage}")
        for key, value in self.counts.items():
            context.append(f"{key}={value}")
        if not context:
            return message
        return f"{message} [{', '.join(context)}]"


class ParseError(MitoKmerError):
    """Raised for malformed FASTA or tabular input."""
    pass


class FilterExhaustionError(MitoKmerError):
    """Raised when no sequence of a gene pool survives filtering."""
    pass


class FeaturizationError(MitoKmerError):
    """Raised when a sequence has no countable k-mer window."""
    pass


class InsufficientDataError(MitoKmerError):
    """Raised when a pool is smaller than the requested split sizes."""
    pass


class DuplicateIdentifierError(MitoKmerError):
    """Raised when one gene pool holds the same record identifier twice."""
    pass


class ConvergenceError(MitoKmerError):
    """Raised when a model fit does not converge or a CV fold is degenerate."""
    pass


class ShapeMismatchError(MitoKmerError):
    """Raised when feature widths or schemas differ between model and data."""
    pass


__all__ = [
    'MitoKmerError',
    'ParseError',
    'FilterExhaustionError',
    'FeaturizationError',
    'InsufficientDataError',
    'DuplicateIdentifierError',
    'ConvergenceError',
    'ShapeMismatchError',
]

# MitoKmer v0.1.0
# Any usage is subject to this software's license.
