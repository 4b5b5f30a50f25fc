#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Output tables for MitoKmer.

Every artifact a reporting collaborator consumes is written here:
gene summary, confusion matrices, importance tables, the k-mer sweep
table, filtered FASTA pools and the JSON run report.
"""

import json
import logging
from pathlib import Path
from typing import Dict, Iterable, Mapping, Sequence, Union

import pandas as pd

from ..preprocessing.sequence_filter import FilterResult, GeneSummary
from ..training.evaluation import ConfusionMatrix, ImportanceTable
from ..training.kmer_sweep import SweepResult, sweep_frame
from .fasta_io import Gene, write_fasta

logger = logging.getLogger(__name__)

GENE_SUMMARY_FILE = 'gene_summary.csv'
SWEEP_FILE = 'kmer_sweep.csv'
REPORT_FILE = 'run_report.json'


def confusion_filename(model_name: str) -> str:
    return f'confusion_{model_name}.csv'


def importance_filename(model_name: str) -> str:
    return f'importance_{model_name}.csv'


def filtered_fasta_filename(gene: Gene) -> str:
    return f'filtered_{gene.value}.fasta'


def _prepare(output_dir: Union[str, Path], filename: str) -> Path:
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    return output_dir / filename


def write_gene_summary(summaries: Iterable[GeneSummary], output_dir: Union[str, Path]) -> Path:
    path = _prepare(output_dir, GENE_SUMMARY_FILE)
    pd.DataFrame([s.to_dict() for s in summaries]).to_csv(path, index=False)
    logger.info("  Wrote %s", path.name)
    return path


def write_confusion(
    matrix: ConfusionMatrix,
    model_name: str,
    output_dir: Union[str, Path],
) -> Path:
    """Long format: observed, predicted, count."""
    path = _prepare(output_dir, confusion_filename(model_name))
    matrix.to_long_frame().to_csv(path, index=False)
    logger.info("  Wrote %s", path.name)
    return path


def write_importance(table: ImportanceTable, output_dir: Union[str, Path]) -> Path:
    path = _prepare(output_dir, importance_filename(table.model_name))
    table.to_frame().reset_index().to_csv(path, index=False)
    logger.info("  Wrote %s", path.name)
    return path


def write_sweep(results: Sequence[SweepResult], output_dir: Union[str, Path]) -> Path:
    path = _prepare(output_dir, SWEEP_FILE)
    sweep_frame(results).to_csv(path, index=False)
    logger.info("  Wrote %s", path.name)
    return path


def write_filtered_pools(
    results: Mapping[Gene, FilterResult],
    output_dir: Union[str, Path],
) -> Dict[Gene, Path]:
    paths = {}
    for gene, result in results.items():
        path = _prepare(output_dir, filtered_fasta_filename(gene))
        count = write_fasta(result.sequences, path)
        logger.info("  Wrote %s (%d sequences)", path.name, count)
        paths[gene] = path
    return paths


def write_report(report: Dict, output_dir: Union[str, Path]) -> Path:
    path = _prepare(output_dir, REPORT_FILE)
    with open(path, 'w') as fh:
        json.dump(report, fh, indent=2, default=str)
    logger.info("  Wrote %s", path.name)
    return path


__all__ = [
    'GENE_SUMMARY_FILE',
    'REPORT_FILE',
    'SWEEP_FILE',
    'confusion_filename',
    'filtered_fasta_filename',
    'importance_filename',
    'write_confusion',
    'write_filtered_pools',
    'write_gene_summary',
    'write_importance',
    'write_report',
    'write_sweep',
]
