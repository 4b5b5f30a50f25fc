#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
MitoKmer v0.1.0

Tests for output table writers.

Author: MitoKmer Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import json

import pandas as pd

from mitokmer.io import tables
from mitokmer.io.fasta_io import Gene, SequenceRecord, read_fasta
from mitokmer.preprocessing.sequence_filter import SequenceFilter, summarize_pool
from mitokmer.training.evaluation import ImportanceTable, confusion_matrix
from mitokmer.training.kmer_sweep import SweepResult, load_sweep_results


class TestTableWriters:
    """Test CSV and JSON artifacts."""

    def test_gene_summary(self, temp_output_dir):
        """Test one summary row per gene with composition columns."""
        result = SequenceFilter().filter([SequenceRecord("a", "ACGT")], Gene.COI)

        path = tables.write_gene_summary([summarize_pool(result)], temp_output_dir)

        frame = pd.read_csv(path)
        assert path.name == 'gene_summary.csv'
        assert frame.loc[0, 'gene'] == 'COI'
        assert {'prop_A', 'prop_C', 'prop_G', 'prop_T'} <= set(frame.columns)

    def test_confusion_long_format(self, temp_output_dir):
        """Test the confusion table is observed / predicted / count."""
        matrix = confusion_matrix(["COI", "CytB"], ["COI", "COI"])

        path = tables.write_confusion(matrix, 'random_forest', temp_output_dir)

        frame = pd.read_csv(path)
        assert path.name == 'confusion_random_forest.csv'
        assert len(frame) == 4
        row = frame[(frame.observed == 'CytB') & (frame.predicted == 'COI')]
        assert int(row['count'].iloc[0]) == 1

    def test_importance(self, temp_output_dir):
        """Test the importance table keeps feature names and columns."""
        table = ImportanceTable('logistic_regression', ('A', 'C'), ('Overall',), ((0.5,), (1.5,)))

        path = tables.write_importance(table, temp_output_dir)

        frame = pd.read_csv(path)
        assert path.name == 'importance_logistic_regression.csv'
        assert list(frame.columns) == ['feature', 'Overall']
        assert list(frame['feature']) == ['A', 'C']

    def test_sweep_reloads(self, temp_output_dir):
        """Test a written sweep table is accepted as a precomputed table."""
        results = [SweepResult(1, 0.75, 'random_forest', 0.4),
                   SweepResult(2, 0.95, 'logistic_regression', 0.1)]

        path = tables.write_sweep(results, temp_output_dir)

        assert load_sweep_results(path) == results

    def test_filtered_pools(self, temp_output_dir):
        """Test filtered sequences are written per gene."""
        result = SequenceFilter().filter([SequenceRecord("a", "NNACGTNN")], Gene.CYTB)

        paths = tables.write_filtered_pools({Gene.CYTB: result}, temp_output_dir)

        assert paths[Gene.CYTB].name == 'filtered_CytB.fasta'
        assert read_fasta(paths[Gene.CYTB])[0].raw_sequence == 'ACGT'

    def test_report(self, temp_output_dir):
        """Test the run report is JSON."""
        path = tables.write_report({'status': 'success', 'k': [1, 2]}, temp_output_dir / 'sub')

        assert json.loads(path.read_text()) == {'status': 'success', 'k': [1, 2]}

# MitoKmer v0.1.0
# Any usage is subject to this software's license.
