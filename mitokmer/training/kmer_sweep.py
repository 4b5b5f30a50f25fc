#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
MitoKmer v0.1.0

K-mer size sweep: refeaturize, resplit and refit both classifiers for
each k, recording validation accuracy against model fit time.

Author: MitoKmer Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Sequence, Union

import pandas as pd

from ..errors import ParseError
from ..features.composition import CompositionFeaturizer
from ..io.fasta_io import Gene
from ..preprocessing.sequence_filter import FilteredSequence
from ..utils.random_source import RandomSource
from .classifiers import MODEL_NAMES, ClassifierTrainer
from .dataset import split_by_class
from .evaluation import confusion_matrix, predict

logger = logging.getLogger(__name__)

DEFAULT_SWEEP_K = (1, 2, 3, 4)
SWEEP_COLUMNS = ('k', 'accuracy', 'model', 'elapsed_seconds')


@dataclass(frozen=True)
class SweepResult:
    """Validation accuracy and fit time of one model at one k."""
    k: int
    accuracy: float
    model: str
    elapsed_seconds: float

    def to_dict(self) -> Dict[str, object]:
        return {
            'k': self.k,
            'accuracy': self.accuracy,
            'model': self.model,
            'elapsed_seconds': self.elapsed_seconds,
        }


def run_sweep(
    pools: Mapping[Gene, Sequence[FilteredSequence]],
    k_values: Sequence[int] = DEFAULT_SWEEP_K,
    train_count: int = 950,
    valid_count: int = 250,
    trainer: ClassifierTrainer = None,
    random_source: RandomSource = None,
    models: Sequence[str] = MODEL_NAMES,
) -> List[SweepResult]:
    """
    Fit every model in *models* once per k.

    Every k uses the same *random_source*, so the training and validation
    membership is identical across k and only the feature set changes.

    Args:
        pools: Filtered sequences per gene
        k_values: K-mer sizes to evaluate
        train_count: Training sequences per gene
        valid_count: Validation sequences per gene
        trainer: Classifier trainer (defaults if None)
        random_source: Seed source (seed 42 if None)
        models: Model names to fit

    Returns:
        One SweepResult per (k, model), in k then model order
    """
    random_source = random_source or RandomSource()
    trainer = trainer or ClassifierTrainer(random_source=random_source)

    results: List[SweepResult] = []
    for k in k_values:
        logger.info("-" * 60)
        logger.info("K-mer sweep: k=%d (%d features)", k, 4 ** k)
        logger.info("-" * 60)

        vectors = CompositionFeaturizer(k).featurize_pools(pools)
        dataset = split_by_class(vectors, train_count, valid_count, random_source)
        observed = [v.label for v in dataset.validation]

        for name in models:
            model = trainer.fit(name, dataset)
            confusion = confusion_matrix(observed, predict(model, dataset.validation),
                                         labels=dataset.classes)
            result = SweepResult(
                k=k,
                accuracy=confusion.accuracy,
                model=name,
                elapsed_seconds=model.fit_seconds,
            )
            logger.info("  %s: accuracy %.4f in %.2fs", name, result.accuracy,
                        result.elapsed_seconds)
            results.append(result)

    return results


def sweep_frame(results: Sequence[SweepResult]) -> pd.DataFrame:
    return pd.DataFrame([r.to_dict() for r in results], columns=list(SWEEP_COLUMNS))


def load_sweep_results(path: Union[str, Path]) -> List[SweepResult]:
    """
    Load a sweep table written by a previous run.

    ``.tsv`` / ``.tab`` files are tab-separated, anything else is read as
    CSV. Extra columns are ignored.

    Raises:
        FileNotFoundError: If the table does not exist
        ParseError: If a required column is missing or a value is malformed
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Sweep table not found: {path}")

    sep = '\t' if path.suffix.lower() in ('.tsv', '.tab') else ','
    try:
        frame = pd.read_csv(path, sep=sep)
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
        raise ParseError(f"Cannot read sweep table {path.name}: {exc}", stage='load_sweep') from exc

    missing = [c for c in SWEEP_COLUMNS if c not in frame.columns]
    if missing:
        raise ParseError(
            f"Sweep table {path.name} is missing columns: {', '.join(missing)}",
            stage='load_sweep',
            counts={'columns': list(frame.columns)},
        )

    results = []
    for row_number, row in enumerate(frame.itertuples(index=False), 1):
        try:
            results.append(SweepResult(
                k=int(row.k),
                accuracy=float(row.accuracy),
                model=str(row.model),
                elapsed_seconds=float(row.elapsed_seconds),
            ))
        except (TypeError, ValueError) as exc:
            raise ParseError(
                f"Malformed row in sweep table {path.name}: {exc}",
                stage='load_sweep',
                counts={'row': row_number},
            ) from exc

    logger.info("Loaded %d sweep results from %s", len(results), path.name)
    return results


__all__ = [
    'DEFAULT_SWEEP_K',
    'SWEEP_COLUMNS',
    'SweepResult',
    'load_sweep_results',
    'run_sweep',
    'sweep_frame',
]

# MitoKmer v0.1.0
# Any usage is subject to this software's license.
