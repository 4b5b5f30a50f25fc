#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
MitoKmer v0.1.0

Dataset splitting: seeded, disjoint training / validation partitions of
fixed per-class size, plus matrix views for the trainers.

Author: MitoKmer Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from ..errors import DuplicateIdentifierError, InsufficientDataError, ShapeMismatchError
from ..features.composition import FeatureSchema, FeatureVector
from ..io.fasta_io import Gene
from ..utils.random_source import RandomSource

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════
#  MATRIX VIEWS
# ═══════════════════════════════════════════════════════════════════════

def feature_matrix(
    vectors: Sequence[FeatureVector],
    schema: Optional[FeatureSchema] = None,
) -> np.ndarray:
    """
    Stack feature vectors into an ``(n_samples, n_features)`` matrix.

    Raises:
        ShapeMismatchError: If a vector does not follow *schema* (or the
            schema of the first vector)
    """
    if not vectors:
        width = schema.width if schema is not None else 0
        return np.empty((0, width), dtype=np.float64)

    expected = schema if schema is not None else vectors[0].schema
    for vector in vectors:
        if vector.schema != expected or len(vector.features) != expected.width:
            raise ShapeMismatchError(
                f"Feature vector '{vector.source_id}' does not match the expected schema",
                gene=vector.label.value,
                stage='feature_matrix',
                counts={
                    'expected_width': expected.width,
                    'actual_width': len(vector.features),
                    'expected_k': expected.k_values,
                    'actual_k': vector.schema.k_values,
                },
            )
    return np.array([v.features for v in vectors], dtype=np.float64)


def label_vector(vectors: Sequence[FeatureVector]) -> np.ndarray:
    """Gene labels as an array of gene values (``'COI'``, ``'CytB'``)."""
    return np.array([v.label.value for v in vectors], dtype=object)


def vectors_to_frame(vectors: Sequence[FeatureVector]) -> pd.DataFrame:
    """Tabular view: ``source_id``, ``label`` then one column per feature."""
    if vectors:
        names = list(vectors[0].schema.feature_names)
    else:
        names = []
    frame = pd.DataFrame(feature_matrix(vectors), columns=names)
    frame.insert(0, 'label', [v.label.value for v in vectors])
    frame.insert(0, 'source_id', [v.source_id for v in vectors])
    return frame


# ═══════════════════════════════════════════════════════════════════════
#  DATASET
# ═══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class LabeledDataset:
    """
    Training and validation partitions sharing one feature schema.

    Attributes:
        schema: Feature layout of every vector
        training: Training vectors
        validation: Validation vectors (disjoint from training by source_id)
    """
    schema: FeatureSchema
    training: Tuple[FeatureVector, ...]
    validation: Tuple[FeatureVector, ...]

    def __post_init__(self):
        object.__setattr__(self, 'training', tuple(self.training))
        object.__setattr__(self, 'validation', tuple(self.validation))

        # Width/schema validation happens in feature_matrix.
        feature_matrix(self.training, self.schema)
        feature_matrix(self.validation, self.schema)

        overlap = ({(v.label, v.source_id) for v in self.training}
                   & {(v.label, v.source_id) for v in self.validation})
        if overlap:
            label, source_id = sorted(overlap, key=lambda x: (x[0].value, x[1]))[0]
            raise DuplicateIdentifierError(
                f"Training and validation share {len(overlap)} records (e.g. '{source_id}')",
                gene=label.value,
                stage='split',
                counts={'shared': len(overlap)},
            )

    @property
    def feature_names(self) -> Tuple[str, ...]:
        return self.schema.feature_names

    @property
    def classes(self) -> Tuple[Gene, ...]:
        present = {v.label for v in self.training} | {v.label for v in self.validation}
        return tuple(g for g in Gene if g in present)

    def training_matrix(self) -> Tuple[np.ndarray, np.ndarray]:
        return feature_matrix(self.training, self.schema), label_vector(self.training)

    def validation_matrix(self) -> Tuple[np.ndarray, np.ndarray]:
        return feature_matrix(self.validation, self.schema), label_vector(self.validation)

    def class_counts(self, partition: str = 'training') -> Dict[Gene, int]:
        vectors = self._partition(partition)
        return {g: sum(1 for v in vectors if v.label is g) for g in self.classes}

    def to_frame(self, partition: str = 'training') -> pd.DataFrame:
        return vectors_to_frame(self._partition(partition))

    def _partition(self, partition: str) -> Tuple[FeatureVector, ...]:
        if partition == 'training':
            return self.training
        if partition == 'validation':
            return self.validation
        raise ValueError(f"Unknown partition '{partition}' (use 'training' or 'validation')")


# ═══════════════════════════════════════════════════════════════════════
#  SPLITTING
# ═══════════════════════════════════════════════════════════════════════

def split(
    pool: Sequence[FeatureVector],
    train_count: int,
    valid_count: int,
    random_source: RandomSource,
) -> Tuple[Tuple[FeatureVector, ...], Tuple[FeatureVector, ...]]:
    """
    Draw a validation set, then a training set from the remainder.

    Both draws are uniform without replacement, so the two sets are
    disjoint; the same *random_source* always yields the same membership.

    Returns:
        (training, validation)

    Raises:
        InsufficientDataError: If ``len(pool) < train_count + valid_count``
        DuplicateIdentifierError: If a record identifier appears twice
    """
    if train_count < 0 or valid_count < 0:
        raise ValueError(
            f"Split sizes must be non-negative, got train={train_count}, valid={valid_count}"
        )

    pool = list(pool)
    labels = {v.label.value for v in pool}
    gene = labels.pop() if len(labels) == 1 else None

    if len(pool) < train_count + valid_count:
        raise InsufficientDataError(
            "Pool is smaller than the requested split sizes",
            gene=gene,
            stage='split',
            counts={'pool': len(pool), 'train': train_count, 'valid': valid_count},
        )

    ids = Counter(v.source_id for v in pool)
    repeated = sorted(i for i, n in ids.items() if n > 1)
    if repeated:
        raise DuplicateIdentifierError(
            f"Pool holds repeated record identifiers (e.g. '{repeated[0]}')",
            gene=gene,
            stage='split',
            counts={'pool': len(pool), 'unique': len(ids), 'repeated': len(repeated)},
        )

    rng = random_source.generator()
    indices = np.arange(len(pool))
    valid_idx = rng.choice(indices, size=valid_count, replace=False)
    remaining = np.setdiff1d(indices, valid_idx)
    train_idx = rng.choice(remaining, size=train_count, replace=False)

    training = tuple(pool[i] for i in train_idx)
    validation = tuple(pool[i] for i in valid_idx)
    return training, validation


def split_by_class(
    pools: Mapping[Gene, Sequence[FeatureVector]],
    train_count: int,
    valid_count: int,
    random_source: RandomSource,
) -> LabeledDataset:
    """
    Split each gene pool independently and combine into one dataset.

    Each gene draws from its own stream derived from *random_source*, so a
    pool's partition does not depend on the size of the other pools.
    """
    if not pools:
        raise ValueError("No gene pools to split")

    schemas = {vectors[0].schema for vectors in pools.values() if vectors}
    if len(schemas) > 1:
        raise ShapeMismatchError(
            "Gene pools were featurized with different schemas",
            stage='split',
            counts={'schemas': sorted(s.k_values for s in schemas)},
        )
    if not schemas:
        raise InsufficientDataError(
            "All gene pools are empty", stage='split',
            counts={'train': train_count, 'valid': valid_count},
        )
    schema = schemas.pop()

    training: List[FeatureVector] = []
    validation: List[FeatureVector] = []
    for gene in Gene:
        if gene not in pools:
            continue
        train_part, valid_part = split(
            pools[gene], train_count, valid_count, random_source.derive(gene.value)
        )
        training.extend(train_part)
        validation.extend(valid_part)
        logger.info("  %s: %d training / %d validation (pool %d)",
                    gene.value, len(train_part), len(valid_part), len(pools[gene]))

    return LabeledDataset(schema=schema, training=tuple(training), validation=tuple(validation))


__all__ = [
    'LabeledDataset',
    'feature_matrix',
    'label_vector',
    'split',
    'split_by_class',
    'vectors_to_frame',
]

# MitoKmer v0.1.0
# Any usage is subject to this software's license.
