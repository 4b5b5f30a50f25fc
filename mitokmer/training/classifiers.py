#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
MitoKmer v0.1.0

Classifier training: random forest tuned by stratified k-fold
cross-validation and an unpenalized logistic regression, both fit on the
same feature matrix with the same seed.

Author: MitoKmer Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import logging
import time
import warnings
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
from sklearn.compose import ColumnTransformer
from sklearn.ensemble import RandomForestClassifier
from sklearn.exceptions import ConvergenceWarning
from sklearn.linear_model import LogisticRegression
from sklearn.model_selection import GridSearchCV, StratifiedKFold
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import StandardScaler

from ..errors import ConvergenceError
from ..features.composition import FeatureSchema
from ..io.fasta_io import Gene
from ..utils.random_source import RandomSource
from .dataset import LabeledDataset

logger = logging.getLogger(__name__)

RANDOM_FOREST = 'random_forest'
LOGISTIC_REGRESSION = 'logistic_regression'
MODEL_NAMES = (RANDOM_FOREST, LOGISTIC_REGRESSION)


# ═══════════════════════════════════════════════════════════════════════
#  CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════

@dataclass
class TrainerConfig:
    """
    Hyperparameters shared by both fitting procedures.

    Attributes:
        cv_folds: Stratified folds used to tune the forest
        n_estimators: Trees per forest
        tune_length: Number of ``max_features`` candidates when no explicit
            grid is given
        max_features_grid: Explicit ``max_features`` candidates
        n_jobs: Parallel workers for scikit-learn (None = 1)
        importance_repeats: Permutations per feature for forest importance
        logistic_c: Inverse L2 strength (``inf`` = maximum likelihood)
        logistic_max_iter: lbfgs iteration cap
        logistic_tol: lbfgs stopping tolerance
    """
    cv_folds: int = 10
    n_estimators: int = 500
    tune_length: int = 3
    max_features_grid: Optional[List[int]] = None
    n_jobs: Optional[int] = None
    importance_repeats: int = 5

    logistic_c: float = float('inf')
    logistic_max_iter: int = 1000
    logistic_tol: float = 1e-4

    def __post_init__(self):
        if self.cv_folds < 2:
            raise ValueError(f"cv_folds must be at least 2, got {self.cv_folds}")
        if self.n_estimators < 1:
            raise ValueError(f"n_estimators must be positive, got {self.n_estimators}")
        if self.tune_length < 1:
            raise ValueError(f"tune_length must be positive, got {self.tune_length}")
        if self.importance_repeats < 1:
            raise ValueError(f"importance_repeats must be positive, got {self.importance_repeats}")
        if not self.logistic_c > 0:
            raise ValueError(f"logistic_c must be positive, got {self.logistic_c}")
        if self.logistic_max_iter < 1:
            raise ValueError(f"logistic_max_iter must be positive, got {self.logistic_max_iter}")

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "TrainerConfig":
        """Build from the ``random_forest`` / ``logistic_regression`` config sections."""
        rf = config.get('random_forest', {})
        lr = config.get('logistic_regression', {})
        return cls(
            cv_folds=rf.get('cv_folds', 10),
            n_estimators=rf.get('n_estimators', 500),
            tune_length=rf.get('tune_length', 3),
            max_features_grid=rf.get('max_features_grid'),
            n_jobs=rf.get('n_jobs'),
            importance_repeats=rf.get('importance_repeats', 5),
            logistic_c=float(lr.get('C', float('inf'))),
            logistic_max_iter=lr.get('max_iter', 1000),
            logistic_tol=lr.get('tol', 1e-4),
        )


@dataclass
class TrainedModel:
    """
    Fitted classifier and the context needed to evaluate it.

    Attributes:
        name: ``random_forest`` or ``logistic_regression``
        estimator: Fitted scikit-learn estimator
        schema: Feature layout the estimator was trained on
        classes: Class labels known to the estimator
        fit_seconds: Wall time of the fit (including tuning)
        random_state: Seed handed to every stochastic step
        tuning: Cross-validation / optimizer details
        training_data: (X, y) the model was fit on
    """
    name: str
    estimator: Any
    schema: FeatureSchema
    classes: Tuple[Gene, ...]
    fit_seconds: float
    random_state: int
    tuning: Dict[str, Any] = field(default_factory=dict)
    training_data: Optional[Tuple[np.ndarray, np.ndarray]] = field(
        default=None, repr=False, compare=False
    )

    @property
    def n_features(self) -> int:
        return self.schema.width


def mtry_grid(n_features: int, tune_length: int = 3) -> List[int]:
    """
    Candidate ``max_features`` values spread evenly from 2 to *n_features*.

    Example:
        >>> mtry_grid(16, 3)
        [2, 9, 16]
    """
    if n_features <= tune_length:
        return list(range(1, n_features + 1))
    values = np.floor(np.linspace(2, n_features, tune_length)).astype(int)
    return sorted({int(v) for v in values})


def reference_columns(schema: FeatureSchema) -> List[int]:
    """
    Column index of the reference k-mer (last in order) of each k block.

    Proportions in a block sum to 1, so together with the intercept one
    column per block is a linear combination of the others. The logistic
    regression leaves these columns out and reports them with zero weight.

    Example:
        >>> reference_columns(FeatureSchema(k_values=(1, 2)))
        [3, 19]
    """
    return [schema.block(k).stop - 1 for k in schema.k_values]


def linear_columns(schema: FeatureSchema) -> List[int]:
    """Columns the logistic regression is fit on (all but the references)."""
    dropped = set(reference_columns(schema))
    return [i for i in range(schema.width) if i not in dropped]


# ═══════════════════════════════════════════════════════════════════════
#  TRAINER
# ═══════════════════════════════════════════════════════════════════════

class ClassifierTrainer:
    """
    Fits the random forest and the logistic regression on one dataset.

    Both models see the identical training matrix (schema column order)
    and the identical ``random_state``, so accuracy and timing compare
    like for like.

    Example:
        trainer = ClassifierTrainer(TrainerConfig(cv_folds=10), RandomSource(42))
        models = trainer.fit_all(dataset)
        forest = models['random_forest']
    """

    def __init__(self,
                 config: Optional[TrainerConfig] = None,
                 random_source: Optional[RandomSource] = None):
        """
        Initialize trainer.

        Args:
            config: Hyperparameters (defaults if None)
            random_source: Seed source (seed 42 if None)
        """
        self.config = config or TrainerConfig()
        self.random_source = random_source or RandomSource()

    # ── random forest ─────────────────────────────────────────────────

    def fit_random_forest(self, dataset: LabeledDataset) -> TrainedModel:
        """
        Tune ``max_features`` by stratified k-fold CV, refit on all rows.

        Raises:
            ConvergenceError: If the training set or any CV fold holds a
                single class
        """
        X, y = dataset.training_matrix()
        self._check_classes(y, RANDOM_FOREST)
        folds = self._cv_folds(X, y)

        seed = self.random_source.random_state()
        grid = self.config.max_features_grid or mtry_grid(X.shape[1], self.config.tune_length)
        grid = [m for m in grid if 1 <= m <= X.shape[1]]
        if not grid:
            raise ValueError(f"No valid max_features candidate for {X.shape[1]} features")

        search = GridSearchCV(
            estimator=RandomForestClassifier(
                n_estimators=self.config.n_estimators,
                random_state=seed,
                n_jobs=self.config.n_jobs,
            ),
            param_grid={'max_features': grid},
            cv=folds,
            scoring='accuracy',
            refit=True,
            n_jobs=self.config.n_jobs,
            error_score='raise',
        )

        logger.info("Random forest: %d samples × %d features, %d-fold CV over max_features=%s",
                    X.shape[0], X.shape[1], len(folds), grid)
        t_start = time.perf_counter()
        search.fit(X, y)
        elapsed = time.perf_counter() - t_start

        best = search.best_index_
        fold_scores = [
            float(search.cv_results_[f'split{i}_test_score'][best]) for i in range(len(folds))
        ]
        tuning = {
            'best_params': dict(search.best_params_),
            'cv_folds': len(folds),
            'cv_accuracy_mean': round(float(search.best_score_), 4),
            'cv_accuracy_std': round(float(np.std(fold_scores)), 4),
            'cv_fold_scores': [round(s, 4) for s in fold_scores],
            'grid': {
                int(params['max_features']): round(float(score), 4)
                for params, score in zip(search.cv_results_['params'],
                                         search.cv_results_['mean_test_score'])
            },
        }
        logger.info("  Best max_features=%s  CV acc: %.4f ± %.4f  (%.2fs)",
                    search.best_params_['max_features'], tuning['cv_accuracy_mean'],
                    tuning['cv_accuracy_std'], elapsed)

        return TrainedModel(
            name=RANDOM_FOREST,
            estimator=search.best_estimator_,
            schema=dataset.schema,
            classes=tuple(Gene(c) for c in search.best_estimator_.classes_),
            fit_seconds=elapsed,
            random_state=seed,
            tuning=tuning,
            training_data=(X, y),
        )

    # ── logistic regression ───────────────────────────────────────────

    def fit_logistic_regression(self, dataset: LabeledDataset) -> TrainedModel:
        """
        Fit a binomial logistic regression on standardized features.

        Raises:
            ConvergenceError: If lbfgs stops before converging or the
                training set holds a single class
        """
        X, y = dataset.training_matrix()
        self._check_classes(y, LOGISTIC_REGRESSION)

        seed = self.random_source.random_state()
        columns = linear_columns(dataset.schema)
        pipeline = Pipeline([
            ('select', ColumnTransformer([('kmers', 'passthrough', columns)], remainder='drop')),
            ('scaler', StandardScaler()),
            ('clf', LogisticRegression(
                C=self.config.logistic_c,
                solver='lbfgs',
                max_iter=self.config.logistic_max_iter,
                tol=self.config.logistic_tol,
                random_state=seed,
            )),
        ])

        logger.info("Logistic regression: %d samples × %d features (C=%s)",
                    X.shape[0], X.shape[1], self.config.logistic_c)
        t_start = time.perf_counter()
        with warnings.catch_warnings():
            warnings.simplefilter('error', ConvergenceWarning)
            try:
                pipeline.fit(X, y)
            except ConvergenceWarning as exc:
                raise ConvergenceError(
                    f"Logistic regression did not converge: {exc}",
                    stage=LOGISTIC_REGRESSION,
                    counts={'max_iter': self.config.logistic_max_iter, 'samples': len(y)},
                ) from exc
        elapsed = time.perf_counter() - t_start

        clf = pipeline.named_steps['clf']
        n_iter = int(np.max(clf.n_iter_))
        if n_iter >= self.config.logistic_max_iter:
            raise ConvergenceError(
                "Logistic regression hit the iteration limit",
                stage=LOGISTIC_REGRESSION,
                counts={'n_iter': n_iter, 'max_iter': self.config.logistic_max_iter},
            )

        names = dataset.schema.feature_names
        tuning = {
            'C': self.config.logistic_c,
            'reference_features': [names[i] for i in reference_columns(dataset.schema)],
            'n_iter': n_iter,
            'training_accuracy': round(float(pipeline.score(X, y)), 4),
        }
        logger.info("  Converged in %d iterations  train acc: %.4f  (%.2fs)",
                    n_iter, tuning['training_accuracy'], elapsed)

        return TrainedModel(
            name=LOGISTIC_REGRESSION,
            estimator=pipeline,
            schema=dataset.schema,
            classes=tuple(Gene(c) for c in clf.classes_),
            fit_seconds=elapsed,
            random_state=seed,
            tuning=tuning,
            training_data=(X, y),
        )

    def fit_all(self, dataset: LabeledDataset) -> Dict[str, TrainedModel]:
        """Fit both models; any failure aborts the run."""
        return {
            RANDOM_FOREST: self.fit_random_forest(dataset),
            LOGISTIC_REGRESSION: self.fit_logistic_regression(dataset),
        }

    def fit(self, name: str, dataset: LabeledDataset) -> TrainedModel:
        """Fit one model by name."""
        if name == RANDOM_FOREST:
            return self.fit_random_forest(dataset)
        if name == LOGISTIC_REGRESSION:
            return self.fit_logistic_regression(dataset)
        raise ValueError(f"Unknown model '{name}'. Choices: {', '.join(MODEL_NAMES)}")

    # ── helpers ───────────────────────────────────────────────────────

    @staticmethod
    def _check_classes(y: np.ndarray, model_name: str) -> None:
        classes, counts = np.unique(y, return_counts=True)
        if len(classes) < 2:
            raise ConvergenceError(
                "Training set contains fewer than two classes",
                stage=model_name,
                counts={'samples': len(y), **{str(c): int(n) for c, n in zip(classes, counts)}},
            )

    def _cv_folds(self, X: np.ndarray, y: np.ndarray) -> List[Tuple[np.ndarray, np.ndarray]]:
        """Materialize stratified folds, rejecting any single-class fold."""
        cv = StratifiedKFold(
            n_splits=self.config.cv_folds,
            shuffle=True,
            random_state=self.random_source.random_state(),
        )
        try:
            with warnings.catch_warnings():
                warnings.simplefilter('ignore', UserWarning)
                folds = list(cv.split(X, y))
        except ValueError as exc:
            raise ConvergenceError(
                f"Cannot build {self.config.cv_folds} stratified folds: {exc}",
                stage=RANDOM_FOREST,
                counts={'samples': len(y)},
            ) from exc

        for i, (train_idx, test_idx) in enumerate(folds):
            for part, idx in (('training', train_idx), ('held-out', test_idx)):
                if len(np.unique(y[idx])) < 2:
                    raise ConvergenceError(
                        f"Cross-validation {part} fold {i + 1} contains a single class",
                        stage=RANDOM_FOREST,
                        counts={'fold': i + 1, 'fold_size': len(idx),
                                'cv_folds': self.config.cv_folds},
                    )
        return folds


__all__ = [
    'ClassifierTrainer',
    'LOGISTIC_REGRESSION',
    'MODEL_NAMES',
    'RANDOM_FOREST',
    'TrainedModel',
    'TrainerConfig',
    'linear_columns',
    'mtry_grid',
    'reference_columns',
]

# MitoKmer v0.1.0
# Any usage is subject to this software's license.
