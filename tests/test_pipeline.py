#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
MitoKmer v0.1.0

End-to-end tests for the analysis pipeline.

Author: MitoKmer Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import json

import pandas as pd
import pytest

from mitokmer.errors import FilterExhaustionError
from mitokmer.io.fasta_io import Gene
from mitokmer.utils.pipeline import AnalysisPipeline


class TestAnalysisPipeline:
    """Test the full summarize → classify → sweep run."""

    @pytest.mark.slow
    def test_full_run(self, gene_fastas, small_config, temp_output_dir):
        """Test every artifact is written and the report is complete."""
        out = temp_output_dir / "results"

        report = AnalysisPipeline(small_config, gene_fastas, out).run()

        assert report['status'] == 'success'
        assert report['steps_completed'] == ['summarize', 'classify', 'sweep']
        for name in ('gene_summary.csv', 'confusion_random_forest.csv',
                     'confusion_logistic_regression.csv', 'importance_random_forest.csv',
                     'importance_logistic_regression.csv', 'kmer_sweep.csv',
                     'filtered_COI.fasta', 'filtered_CytB.fasta', 'run_report.json',
                     'mitokmer.log'):
            assert (out / name).exists(), name

        summary = pd.read_csv(out / 'gene_summary.csv')
        assert list(summary['gene']) == ['COI', 'CytB']
        assert list(summary['window_passed']) == [60, 60]

        sweep = pd.read_csv(out / 'kmer_sweep.csv')
        assert list(sweep['k']) == [1, 1, 2, 2]

        written = json.loads((out / 'run_report.json').read_text())
        classify = written['steps']['classify']
        assert classify['training_size'] == 60
        assert classify['validation_size'] == 20
        assert set(classify['models']) == {'random_forest', 'logistic_regression'}

    @pytest.mark.slow
    def test_same_seed_same_results(self, gene_fastas, small_config, temp_output_dir):
        """Test two runs with one seed give identical confusion matrices."""
        small_config['pipeline']['steps'] = ['classify']

        AnalysisPipeline(small_config, gene_fastas, temp_output_dir / "a").run()
        AnalysisPipeline(small_config, gene_fastas, temp_output_dir / "b").run()

        for name in ('random_forest', 'logistic_regression'):
            a = (temp_output_dir / "a" / f'confusion_{name}.csv').read_text()
            b = (temp_output_dir / "b" / f'confusion_{name}.csv').read_text()
            assert a == b

    def test_failure_is_reported(self, gene_fastas, small_config, temp_output_dir):
        """Test a failing step raises and leaves a failed run report."""
        bad = temp_output_dir / "bad.fasta"
        bad.write_text(">x\nNNNN\n")
        paths = {Gene.COI: gene_fastas[Gene.COI], Gene.CYTB: bad}
        out = temp_output_dir / "failed"

        with pytest.raises(FilterExhaustionError):
            AnalysisPipeline(small_config, paths, out).run(steps=['summarize'])

        written = json.loads((out / 'run_report.json').read_text())
        assert written['status'] == 'failed'
        assert written['error']['step'] == 'summarize'
        assert written['error']['type'] == 'FilterExhaustionError'

    def test_unknown_step(self, gene_fastas, small_config, temp_output_dir):
        """Test an unknown step name is rejected."""
        with pytest.raises(ValueError, match="Unknown step"):
            AnalysisPipeline(small_config, gene_fastas, temp_output_dir).run(steps=['assemble'])

# MitoKmer v0.1.0
# Any usage is subject to this software's license.
