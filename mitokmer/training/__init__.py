"""
Training module for MitoKmer.

CONSOLIDATED MODULES:
- dataset.py: Seeded per-class training / validation split
- classifiers.py: Random forest (CV tuned) and logistic regression
- evaluation.py: Predictions, confusion matrices, importance tables
- kmer_sweep.py: Accuracy and fit time across k-mer sizes
"""

from .dataset import LabeledDataset, split, split_by_class
from .classifiers import (
    LOGISTIC_REGRESSION,
    RANDOM_FOREST,
    ClassifierTrainer,
    TrainedModel,
    TrainerConfig,
)
from .evaluation import (
    ConfusionMatrix,
    EvaluationResult,
    ImportanceTable,
    confusion_matrix,
    evaluate,
    importance,
    predict,
)
from .kmer_sweep import SweepResult, load_sweep_results, run_sweep

__all__ = [
    # Splitting
    "LabeledDataset",
    "split",
    "split_by_class",

    # Classifiers
    "ClassifierTrainer",
    "TrainedModel",
    "TrainerConfig",
    "RANDOM_FOREST",
    "LOGISTIC_REGRESSION",

    # Evaluation
    "ConfusionMatrix",
    "EvaluationResult",
    "ImportanceTable",
    "confusion_matrix",
    "evaluate",
    "importance",
    "predict",

    # K-mer sweep
    "SweepResult",
    "load_sweep_results",
    "run_sweep",
]
