#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
MitoKmer v0.1.0

Composition features: nucleotide, dinucleotide and general k-mer
proportion vectors with a named, canonical feature schema.

The schema (ordered k values → ordered feature names) is fixed when
features are computed and travels with every FeatureVector, so splitting,
training and evaluation never rely on column positions.

Author: MitoKmer Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import logging
from collections import Counter
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Iterable, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from ..errors import FeaturizationError
from ..io.fasta_io import Gene
from ..preprocessing.sequence_filter import FilteredSequence
from ..utils.sequence_utils import canonical_kmers, extract_kmers

logger = logging.getLogger(__name__)

# Upper bound keeps the feature matrix tractable (4^8 = 65 536 columns).
MAX_K = 8


@lru_cache(maxsize=None)
def _kmer_index(k: int) -> Dict[str, int]:
    return {kmer: i for i, kmer in enumerate(canonical_kmers(k))}


# ═══════════════════════════════════════════════════════════════════════
#  SCHEMA AND VECTORS
# ═══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class FeatureSchema:
    """
    Ordered feature layout: one block of 4^k proportions per k value.

    Attributes:
        k_values: K-mer sizes, in block order (e.g. ``(1, 2)`` gives the
            4 nucleotide proportions followed by the 16 dinucleotides)
    """
    k_values: Tuple[int, ...] = (2,)

    def __post_init__(self):
        k_values = tuple(int(k) for k in self.k_values)
        if not k_values:
            raise ValueError("FeatureSchema needs at least one k value")
        if len(set(k_values)) != len(k_values):
            raise ValueError(f"Duplicate k values in schema: {k_values}")
        for k in k_values:
            if not 1 <= k <= MAX_K:
                raise ValueError(f"k must be between 1 and {MAX_K}, got {k}")
        object.__setattr__(self, 'k_values', k_values)

    @classmethod
    def for_k(cls, k: int) -> "FeatureSchema":
        return cls(k_values=(k,))

    @property
    def feature_names(self) -> Tuple[str, ...]:
        names: Tuple[str, ...] = ()
        for k in self.k_values:
            names += canonical_kmers(k)
        return names

    @property
    def width(self) -> int:
        return sum(4 ** k for k in self.k_values)

    def block(self, k: int) -> slice:
        """Column slice holding the proportions for k-mer size *k*."""
        start = 0
        for value in self.k_values:
            if value == k:
                return slice(start, start + 4 ** k)
            start += 4 ** value
        raise KeyError(f"k={k} is not part of schema {self.k_values}")


@dataclass(frozen=True)
class FeatureVector:
    """
    Composition features for one filtered sequence.

    Attributes:
        source_id: Identifier of the source sequence
        label: Gene of origin
        features: Proportions in ``schema.feature_names`` order
        schema: Feature layout the values follow
    """
    source_id: str
    label: Gene
    features: Tuple[float, ...]
    schema: FeatureSchema

    def __post_init__(self):
        if len(self.features) != self.schema.width:
            raise ValueError(
                f"Feature vector for '{self.source_id}' has {len(self.features)} "
                f"values, schema expects {self.schema.width}"
            )

    def as_dict(self) -> Dict[str, float]:
        return dict(zip(self.schema.feature_names, self.features))


# ═══════════════════════════════════════════════════════════════════════
#  COUNTING
# ═══════════════════════════════════════════════════════════════════════

def kmer_proportions(sequence: str, k: int) -> np.ndarray:
    """
    Proportion of every canonical k-mer among the countable windows.

    Windows containing any symbol other than ACGT are skipped; the
    denominator is the number of windows actually counted.

    Args:
        sequence: Nucleotide sequence
        k: K-mer size

    Returns:
        Array of length 4^k in canonical (lexicographic) order

    Raises:
        FeaturizationError: If the sequence has no countable window

    Example:
        >>> kmer_proportions("ACGT", 2)[[1, 6, 11]]   # AC, CG, GT
        array([0.33333333, 0.33333333, 0.33333333])
    """
    index = _kmer_index(k)
    counts = Counter(extract_kmers(sequence, k, valid_only=True))
    total = sum(counts.values())
    if total == 0:
        raise FeaturizationError(
            f"No countable {k}-mer window in a sequence of length {len(sequence)}",
            stage='featurize',
            counts={'k': k, 'length': len(sequence)},
        )

    proportions = np.zeros(len(index), dtype=np.float64)
    for kmer, count in counts.items():
        proportions[index[kmer]] = count
    return proportions / total


class CompositionFeaturizer:
    """
    Compute FeatureVectors for filtered sequences under one schema.

    Example:
        featurizer = CompositionFeaturizer(FeatureSchema(k_values=(2,)))
        vectors = featurizer.featurize_pool(filtered_sequences)
    """

    def __init__(self, schema: Union[FeatureSchema, int, Sequence[int]] = 2):
        """
        Initialize featurizer.

        Args:
            schema: FeatureSchema, a single k, or a sequence of k values
        """
        if isinstance(schema, FeatureSchema):
            self.schema = schema
        elif isinstance(schema, int):
            self.schema = FeatureSchema.for_k(schema)
        else:
            self.schema = FeatureSchema(k_values=tuple(schema))

    def featurize(
        self,
        seq: FilteredSequence,
        label: Optional[Gene] = None,
    ) -> FeatureVector:
        """
        Featurize one sequence.

        Args:
            seq: Filtered sequence
            label: Class label (defaults to ``seq.gene``)
        """
        label = label if label is not None else seq.gene
        if label is None:
            raise ValueError(f"Sequence '{seq.identifier}' has no gene label")

        blocks = []
        for k in self.schema.k_values:
            try:
                blocks.append(kmer_proportions(seq.sequence, k))
            except FeaturizationError as exc:
                raise FeaturizationError(
                    f"Cannot featurize sequence '{seq.identifier}'",
                    gene=label.value,
                    stage='featurize',
                    counts=exc.counts,
                ) from exc

        values = np.concatenate(blocks)
        return FeatureVector(
            source_id=seq.identifier,
            label=label,
            features=tuple(float(v) for v in values),
            schema=self.schema,
        )

    def featurize_pool(
        self,
        sequences: Iterable[FilteredSequence],
        label: Optional[Gene] = None,
    ) -> Tuple[FeatureVector, ...]:
        """Featurize a pool, preserving order."""
        return tuple(self.featurize(seq, label) for seq in sequences)

    def featurize_pools(
        self,
        pools: Mapping[Gene, Iterable[FilteredSequence]],
    ) -> Dict[Gene, Tuple[FeatureVector, ...]]:
        """Featurize every gene pool, labelling vectors with their gene."""
        vectors = {gene: self.featurize_pool(seqs, gene) for gene, seqs in pools.items()}
        logger.debug(
            "Featurized %s with k=%s",
            ', '.join(f"{g.value}={len(v)}" for g, v in vectors.items()),
            self.schema.k_values,
        )
        return vectors


def featurize(seq: FilteredSequence, k: int) -> FeatureVector:
    """Featurize one sequence with a single-k schema."""
    return CompositionFeaturizer(k).featurize(seq)


__all__ = [
    'CompositionFeaturizer',
    'FeatureSchema',
    'FeatureVector',
    'MAX_K',
    'featurize',
    'kmer_proportions',
]

# MitoKmer v0.1.0
# Any usage is subject to this software's license.
