#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
MitoKmer v0.1.0

Tests for predictions, confusion matrices and importance tables.

Author: MitoKmer Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import pytest

from mitokmer.errors import ShapeMismatchError
from mitokmer.features.composition import CompositionFeaturizer
from mitokmer.io.fasta_io import Gene
from mitokmer.training.classifiers import ClassifierTrainer
from mitokmer.training.evaluation import (
    OVERALL_COLUMN,
    ImportanceTable,
    confusion_matrix,
    evaluate,
    importance,
    predict,
)
from mitokmer.utils.random_source import RandomSource


@pytest.fixture
def trained_models(labeled_dataset, small_trainer_config):
    return ClassifierTrainer(small_trainer_config, RandomSource(2)).fit_all(labeled_dataset)


class TestConfusionMatrix:
    """Test confusion matrix tabulation."""

    def test_perfect_classifier(self):
        """Test a perfect classifier on 500 balanced items has no off-diagonal counts."""
        observed = [Gene.COI] * 250 + [Gene.CYTB] * 250

        matrix = confusion_matrix(observed, list(observed))

        assert matrix.off_diagonal == 0
        assert matrix.count(Gene.COI, Gene.COI) == 250
        assert matrix.count(Gene.CYTB, Gene.CYTB) == 250
        assert matrix.accuracy == 1.0
        assert matrix.total == 500

    def test_rows_observed_columns_predicted(self):
        """Test counts land at (observed, predicted)."""
        observed = ["COI", "COI", "COI", "CytB"]
        predicted = ["COI", "CytB", "CytB", "CytB"]

        matrix = confusion_matrix(observed, predicted)

        assert matrix.count("COI", "CytB") == 2
        assert matrix.count("CytB", "COI") == 0
        assert matrix.accuracy == pytest.approx(0.5)

    def test_fixed_label_order(self):
        """Test labels absent from the data still get a row and column."""
        matrix = confusion_matrix([Gene.COI], [Gene.COI], labels=[Gene.COI, Gene.CYTB])

        assert matrix.labels == ("COI", "CytB")
        assert matrix.counts == ((1, 0), (0, 0))

    def test_length_mismatch(self):
        """Test unequal observed / predicted lengths raise."""
        with pytest.raises(ShapeMismatchError):
            confusion_matrix([Gene.COI, Gene.COI], [Gene.COI])

    def test_frames(self):
        """Test square and long table views."""
        matrix = confusion_matrix(["COI", "CytB"], ["COI", "COI"])

        square = matrix.to_frame()
        long = matrix.to_long_frame()

        assert square.loc["CytB", "COI"] == 1
        assert list(long.columns) == ['observed', 'predicted', 'count']
        assert long['count'].sum() == 2


class TestPredict:
    """Test prediction on feature vectors."""

    def test_predict_validation(self, trained_models, labeled_dataset):
        """Test one Gene per validation vector."""
        predictions = predict(trained_models['random_forest'], labeled_dataset.validation)

        assert len(predictions) == len(labeled_dataset.validation)
        assert all(isinstance(p, Gene) for p in predictions)

    def test_schema_mismatch(self, trained_models, filtered_pools):
        """Test vectors of another k raise ShapeMismatchError."""
        vectors = CompositionFeaturizer(1).featurize_pool(filtered_pools[Gene.COI][:5])

        for model in trained_models.values():
            with pytest.raises(ShapeMismatchError):
                predict(model, vectors)


class TestImportance:
    """Test importance tables."""

    def test_forest_per_class_columns(self, trained_models):
        """Test forest importance has one column per class."""
        table = importance(trained_models['random_forest'], n_repeats=2)

        assert table.columns == ("COI", "CytB")
        assert len(table.feature_names) == 16
        assert table.to_frame().shape == (16, 2)

    def test_forest_scores_informative_features(self, trained_models):
        """Test out-of-bag shuffling of the top feature costs accuracy in both classes."""
        table = importance(trained_models['random_forest'], n_repeats=2)

        top, score = table.ranked(1)[0]
        assert score > 0.0
        assert table.score(top, "COI") > 0.0
        assert table.score(top, "CytB") > 0.0

    def test_forest_importance_repeatable(self, trained_models):
        """Test the same model and seed give the same scores."""
        forest = trained_models['random_forest']

        assert importance(forest, n_repeats=2).values == importance(forest, n_repeats=2).values

    def test_logistic_overall_column(self, trained_models):
        """Test logistic importance is one non-negative Overall column."""
        table = importance(trained_models['logistic_regression'])

        assert table.columns == (OVERALL_COLUMN,)
        assert all(row[0] >= 0.0 for row in table.values)
        assert table.ranked(1)[0][1] == max(row[0] for row in table.values)

    def test_logistic_reference_kmer_zero(self, trained_models):
        """Test the reference dinucleotide scores zero and the rest are contrasts."""
        table = importance(trained_models['logistic_regression'])

        assert table.score('TT', OVERALL_COLUMN) == 0.0
        assert sum(1 for row in table.values if row[0] > 0.0) == 15

    def test_table_shape_checked(self):
        """Test rows must match feature names."""
        with pytest.raises(ShapeMismatchError):
            ImportanceTable("m", ("A", "C"), ("Overall",), ((1.0,),))


class TestEvaluate:
    """Test evaluation of both models on one dataset."""

    def test_both_models_evaluated_independently(self, trained_models, labeled_dataset):
        """Test each model gets its own confusion matrix over the validation set."""
        results = {
            name: evaluate(model, labeled_dataset, importance_repeats=2)
            for name, model in trained_models.items()
        }

        for name, result in results.items():
            assert result.model_name == name
            assert result.confusion.total == len(labeled_dataset.validation)
            assert result.accuracy >= 0.9
            summary = result.to_dict()
            assert summary['validation_size'] == 40
            assert len(summary['top_features']) == 5

# MitoKmer v0.1.0
# Any usage is subject to this software's license.
