#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
MitoKmer v0.1.0

Model evaluation: validation-set predictions, confusion matrices and
per-feature importance tables.

Author: MitoKmer Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
from sklearn.metrics import confusion_matrix as sk_confusion_matrix

from ..errors import ShapeMismatchError
from ..features.composition import FeatureVector
from ..io.fasta_io import Gene
from .classifiers import LOGISTIC_REGRESSION, RANDOM_FOREST, TrainedModel, linear_columns
from .dataset import LabeledDataset, feature_matrix

logger = logging.getLogger(__name__)

OVERALL_COLUMN = 'Overall'


# ═══════════════════════════════════════════════════════════════════════
#  PREDICTION
# ═══════════════════════════════════════════════════════════════════════

def predict(model: TrainedModel, vectors: Sequence[FeatureVector]) -> List[Gene]:
    """
    Predict the gene of origin for each vector.

    Raises:
        ShapeMismatchError: If any vector was computed under a different
            schema than the one the model was trained on
    """
    if not vectors:
        return []

    for vector in vectors:
        if vector.schema != model.schema:
            raise ShapeMismatchError(
                f"Vector '{vector.source_id}' does not match the {model.name} feature schema",
                gene=vector.label.value,
                stage='predict',
                counts={
                    'model_width': model.schema.width,
                    'vector_width': len(vector.features),
                    'model_k': model.schema.k_values,
                    'vector_k': vector.schema.k_values,
                },
            )

    X = feature_matrix(vectors, model.schema)
    expected = getattr(model.estimator, 'n_features_in_', X.shape[1])
    if X.shape[1] != expected:
        raise ShapeMismatchError(
            f"Feature matrix width differs from the fitted {model.name}",
            stage='predict',
            counts={'expected_width': expected, 'actual_width': X.shape[1]},
        )

    return [Gene(label) for label in model.estimator.predict(X)]


# ═══════════════════════════════════════════════════════════════════════
#  CONFUSION MATRIX
# ═══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ConfusionMatrix:
    """
    Counts of (observed, predicted) label pairs.

    Attributes:
        labels: Label order shared by rows (observed) and columns (predicted)
        counts: ``counts[i][j]`` = observed ``labels[i]`` predicted ``labels[j]``
    """
    labels: Tuple[str, ...]
    counts: Tuple[Tuple[int, ...], ...]

    def count(self, observed: Union[str, Gene], predicted: Union[str, Gene]) -> int:
        i = self.labels.index(_label_value(observed))
        j = self.labels.index(_label_value(predicted))
        return self.counts[i][j]

    @property
    def total(self) -> int:
        return sum(sum(row) for row in self.counts)

    @property
    def correct(self) -> int:
        return sum(self.counts[i][i] for i in range(len(self.labels)))

    @property
    def off_diagonal(self) -> int:
        return self.total - self.correct

    @property
    def accuracy(self) -> float:
        return self.correct / self.total if self.total else 0.0

    def to_frame(self) -> pd.DataFrame:
        """Square table: rows observed, columns predicted."""
        frame = pd.DataFrame(list(self.counts), index=list(self.labels), columns=list(self.labels))
        frame.index.name = 'observed'
        frame.columns.name = 'predicted'
        return frame

    def to_long_frame(self) -> pd.DataFrame:
        """One row per (observed, predicted) pair."""
        rows = [
            {'observed': obs, 'predicted': pred, 'count': self.counts[i][j]}
            for i, obs in enumerate(self.labels)
            for j, pred in enumerate(self.labels)
        ]
        return pd.DataFrame(rows, columns=['observed', 'predicted', 'count'])


def _label_value(label: Union[str, Gene]) -> str:
    return label.value if isinstance(label, Gene) else str(label)


def confusion_matrix(
    observed: Sequence[Union[str, Gene]],
    predicted: Sequence[Union[str, Gene]],
    labels: Optional[Sequence[Union[str, Gene]]] = None,
) -> ConfusionMatrix:
    """
    Tabulate observed against predicted labels.

    Args:
        observed: True labels
        predicted: Predicted labels, aligned with *observed*
        labels: Row/column order (defaults to the labels seen, in Gene order)
    """
    if len(observed) != len(predicted):
        raise ShapeMismatchError(
            "Observed and predicted label sequences differ in length",
            stage='confusion_matrix',
            counts={'observed': len(observed), 'predicted': len(predicted)},
        )

    obs = [_label_value(v) for v in observed]
    pred = [_label_value(v) for v in predicted]

    if labels is None:
        seen = set(obs) | set(pred)
        ordered = [g.value for g in Gene if g.value in seen]
        ordered += sorted(seen - set(ordered))
    else:
        ordered = [_label_value(v) for v in labels]

    if not obs:
        counts = np.zeros((len(ordered), len(ordered)), dtype=int)
    else:
        counts = sk_confusion_matrix(obs, pred, labels=ordered)

    return ConfusionMatrix(
        labels=tuple(ordered),
        counts=tuple(tuple(int(c) for c in row) for row in counts),
    )


# ═══════════════════════════════════════════════════════════════════════
#  IMPORTANCE
# ═══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ImportanceTable:
    """
    Feature importance scores, one row per feature.

    Attributes:
        model_name: Model the scores belong to
        feature_names: Row labels, in schema order
        columns: Score columns (one per class, or ``Overall``)
        values: ``values[i][j]`` = score of feature i in column j
    """
    model_name: str
    feature_names: Tuple[str, ...]
    columns: Tuple[str, ...]
    values: Tuple[Tuple[float, ...], ...]

    def __post_init__(self):
        if len(self.values) != len(self.feature_names):
            raise ShapeMismatchError(
                "Importance rows do not match the feature names",
                stage='importance',
                counts={'rows': len(self.values), 'features': len(self.feature_names)},
            )

    def score(self, feature: str, column: Optional[str] = None) -> float:
        """Score of *feature* in *column* (mean over columns if None)."""
        row = self.values[self.feature_names.index(feature)]
        if column is None:
            return float(np.mean(row))
        return row[self.columns.index(column)]

    def overall(self) -> Dict[str, float]:
        return {name: float(np.mean(row)) for name, row in zip(self.feature_names, self.values)}

    def ranked(self, top: Optional[int] = None) -> List[Tuple[str, float]]:
        """Features by decreasing overall score."""
        ranking = sorted(self.overall().items(), key=lambda x: x[1], reverse=True)
        return ranking[:top] if top is not None else ranking

    def to_frame(self) -> pd.DataFrame:
        frame = pd.DataFrame(list(self.values), index=list(self.feature_names),
                             columns=list(self.columns))
        frame.index.name = 'feature'
        return frame


def _class_correct(predicted: np.ndarray, observed: np.ndarray, n_classes: int) -> np.ndarray:
    """Correct predictions per class index."""
    return np.bincount(observed[predicted == observed], minlength=n_classes)


def oob_permutation_importance(
    forest: Any,
    X: np.ndarray,
    y: np.ndarray,
    n_repeats: int = 5,
    random_state: Optional[int] = None,
) -> np.ndarray:
    """
    Per-class mean decrease in out-of-bag accuracy.

    Each tree predicts the training rows left out of its bootstrap sample,
    once as is and once with one feature shuffled across those rows. The
    loss in the fraction of each class predicted correctly is averaged over
    *n_repeats* shuffles and over the trees that saw that class out of bag.

    Args:
        forest: Fitted bootstrap ``RandomForestClassifier``
        X: Training matrix the forest was fit on
        y: Training labels
        n_repeats: Shuffles per feature per tree
        random_state: Seed for the shuffles

    Returns:
        Array of shape (n_features, n_classes), columns in ``forest.classes_``
        order
    """
    if not forest.bootstrap:
        raise ValueError("Out-of-bag importance needs a forest fit with bootstrap=True")

    rng = np.random.default_rng(random_state)
    n_samples, n_features = X.shape
    n_classes = len(forest.classes_)
    observed = np.searchsorted(forest.classes_, y)

    totals = np.zeros((n_features, n_classes))
    trees_per_class = np.zeros(n_classes)

    for tree, in_bag in zip(forest.estimators_, forest.estimators_samples_):
        oob = np.setdiff1d(np.arange(n_samples), in_bag)
        if oob.size == 0:
            continue
        X_oob = X[oob]
        y_oob = observed[oob]
        class_sizes = np.bincount(y_oob, minlength=n_classes)
        present = class_sizes > 0

        baseline = _class_correct(tree.predict(X_oob).astype(int), y_oob, n_classes)
        for j in range(n_features):
            lost = np.zeros(n_classes)
            for _ in range(n_repeats):
                shuffled = X_oob.copy()
                shuffled[:, j] = rng.permutation(shuffled[:, j])
                permuted = _class_correct(tree.predict(shuffled).astype(int), y_oob, n_classes)
                lost += baseline - permuted
            totals[j, present] += lost[present] / (n_repeats * class_sizes[present])
        trees_per_class += present

    return totals / np.maximum(trees_per_class, 1)


def importance(model: TrainedModel, n_repeats: int = 5) -> ImportanceTable:
    """
    Importance table for a trained model.

    Random forest: per-class permutation importance over out-of-bag rows
    (see ``oob_permutation_importance``), one column per class.

    Logistic regression: absolute coefficient on the standardized scale,
    in a single ``Overall`` column. The reference k-mer of each block is
    not part of the fit and scores 0.0; the other coefficients are
    contrasts against it.
    """
    names = model.schema.feature_names

    if model.name == RANDOM_FOREST:
        if model.training_data is None:
            raise ValueError("Random forest importance needs the training data on the model")
        X, y = model.training_data
        values = oob_permutation_importance(
            model.estimator, X, y,
            n_repeats=n_repeats,
            random_state=model.random_state,
        )
        columns = [str(c) for c in model.estimator.classes_]

    elif model.name == LOGISTIC_REGRESSION:
        coef = model.estimator.named_steps['clf'].coef_
        columns = [OVERALL_COLUMN]
        values = np.zeros((len(names), 1))
        values[linear_columns(model.schema), 0] = np.abs(coef[0])

    else:
        raise ValueError(f"No importance measure for model '{model.name}'")

    table = ImportanceTable(
        model_name=model.name,
        feature_names=names,
        columns=tuple(columns),
        values=tuple(tuple(float(v) for v in row) for row in values),
    )
    top = ', '.join(f"{name}={score:.4f}" for name, score in table.ranked(5))
    logger.info("  %s top features: %s", model.name, top)
    return table


# ═══════════════════════════════════════════════════════════════════════
#  EVALUATION
# ═══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class EvaluationResult:
    """Validation predictions, confusion matrix and importance for one model."""
    model_name: str
    predictions: Tuple[Gene, ...]
    confusion: ConfusionMatrix
    importance: ImportanceTable
    fit_seconds: float

    @property
    def accuracy(self) -> float:
        return self.confusion.accuracy

    def to_dict(self) -> Dict[str, object]:
        return {
            'model': self.model_name,
            'accuracy': round(self.accuracy, 4),
            'validation_size': self.confusion.total,
            'misclassified': self.confusion.off_diagonal,
            'fit_seconds': round(self.fit_seconds, 3),
            'top_features': [name for name, _ in self.importance.ranked(5)],
        }


def evaluate(
    model: TrainedModel,
    dataset: LabeledDataset,
    importance_repeats: int = 5,
) -> EvaluationResult:
    """Predict the validation set and tabulate accuracy and importance."""
    predictions = predict(model, dataset.validation)
    observed = [v.label for v in dataset.validation]
    confusion = confusion_matrix(observed, predictions, labels=dataset.classes)
    logger.info("  %s validation accuracy: %.4f (%d/%d)",
                model.name, confusion.accuracy, confusion.correct, confusion.total)

    return EvaluationResult(
        model_name=model.name,
        predictions=tuple(predictions),
        confusion=confusion,
        importance=importance(model, n_repeats=importance_repeats),
        fit_seconds=model.fit_seconds,
    )


__all__ = [
    'ConfusionMatrix',
    'EvaluationResult',
    'ImportanceTable',
    'OVERALL_COLUMN',
    'confusion_matrix',
    'evaluate',
    'importance',
    'oob_permutation_importance',
    'predict',
]

# MitoKmer v0.1.0
# Any usage is subject to this software's license.
