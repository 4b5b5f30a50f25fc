#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
MitoKmer v0.1.0

Pytest configuration and shared fixtures.

Author: MitoKmer Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import pytest
from pathlib import Path
import tempfile
import shutil

import numpy as np

from mitokmer.config.schema import load_config
from mitokmer.features.composition import CompositionFeaturizer
from mitokmer.io.fasta_io import Gene
from mitokmer.preprocessing.sequence_filter import FilteredSequence
from mitokmer.training.classifiers import TrainerConfig
from mitokmer.training.dataset import split_by_class
from mitokmer.utils.random_source import RandomSource

# Distinct base compositions (A, C, G, T) so composition separates the genes
GENE_PROBS = {
    Gene.COI: (0.35, 0.15, 0.15, 0.35),
    Gene.CYTB: (0.20, 0.30, 0.30, 0.20),
}

SMALL_CONFIG_YAML = """\
random_seed: 7
split:
  train_per_class: 30
  valid_per_class: 10
random_forest:
  n_estimators: 20
  cv_folds: 3
  tune_length: 2
  importance_repeats: 1
logistic_regression:
  C: 1.0
sweep:
  k_values: [1, 2]
"""


def pytest_configure(config):
    config.addinivalue_line("markers", "slow: end-to-end pipeline runs")


def _write(path: Path, content: str) -> Path:
    path.write_text(content)
    return path


def random_sequence(rng: np.random.Generator, length: int, probs) -> str:
    return ''.join(rng.choice(list('ACGT'), size=length, p=probs))


def synthetic_pool(gene: Gene, count: int, seed: int = 0, length: int = 300):
    """Filtered sequences of one gene, lengths within ±10 bp of *length*."""
    rng = np.random.default_rng(seed)
    return tuple(
        FilteredSequence(
            identifier=f"{gene.value}_{i:04d}",
            sequence=random_sequence(rng, length + int(rng.integers(-10, 11)), GENE_PROBS[gene]),
            gene=gene,
        )
        for i in range(count)
    )


def fasta_text(sequences) -> str:
    return ''.join(f">{s.identifier} synthetic\n{s.sequence}\n" for s in sequences)


@pytest.fixture
def temp_output_dir():
    """Create temporary output directory for tests."""
    temp_dir = tempfile.mkdtemp(prefix="mitokmer_test_")
    yield Path(temp_dir)
    # Cleanup after test
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def filtered_pools():
    """60 well-separated synthetic sequences per gene."""
    return {
        Gene.COI: synthetic_pool(Gene.COI, 60, seed=1),
        Gene.CYTB: synthetic_pool(Gene.CYTB, 60, seed=2),
    }


@pytest.fixture
def gene_fastas(temp_output_dir, filtered_pools):
    """COI and CytB FASTA files holding the synthetic pools."""
    return {
        gene: _write(temp_output_dir / f"{gene.value.lower()}.fasta", fasta_text(seqs))
        for gene, seqs in filtered_pools.items()
    }


@pytest.fixture
def labeled_dataset(filtered_pools):
    """Dinucleotide dataset: 40 training / 20 validation per gene."""
    vectors = CompositionFeaturizer(2).featurize_pools(filtered_pools)
    return split_by_class(vectors, 40, 20, RandomSource(11))


@pytest.fixture
def small_trainer_config():
    """Fast trainer settings for unit tests."""
    return TrainerConfig(
        cv_folds=3,
        n_estimators=25,
        tune_length=2,
        importance_repeats=2,
        logistic_c=1.0,
    )


@pytest.fixture
def small_config_file(temp_output_dir):
    """YAML config sized for the synthetic pools."""
    return _write(temp_output_dir / "small_config.yaml", SMALL_CONFIG_YAML)


@pytest.fixture
def small_config(small_config_file):
    return load_config(small_config_file)

# MitoKmer v0.1.0
# Any usage is subject to this software's license.
