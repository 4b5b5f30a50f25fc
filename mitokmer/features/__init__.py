"""
Feature extraction module for MitoKmer.
"""

from .composition import (
    CompositionFeaturizer,
    FeatureSchema,
    FeatureVector,
    featurize,
    kmer_proportions,
)

__all__ = [
    "CompositionFeaturizer",
    "FeatureSchema",
    "FeatureVector",
    "featurize",
    "kmer_proportions",
]
