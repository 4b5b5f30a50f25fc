"""
MitoKmer Analysis Pipeline.

Coordinates the analysis steps over one COI and one CytB FASTA file:
- summarize: load, trim and filter each gene pool; per-gene summary table
- classify: dinucleotide features, seeded split, random forest and logistic
  regression, confusion matrices and importance tables
- sweep: validation accuracy and fit time for k = 1..4 (or a precomputed
  sweep table)

Every step writes its tables to the output directory; the run report
(run_report.json) records parameters, counts and accuracies.
"""

from pathlib import Path
from typing import Optional, Dict, Any, List, Union
import logging
import time

from ..errors import MitoKmerError
from ..features.composition import CompositionFeaturizer, FeatureSchema
from ..io.fasta_io import Gene, read_gene_pools
from ..io import tables
from ..preprocessing.sequence_filter import FilterResult, SequenceFilter, summarize_pool
from ..training.classifiers import ClassifierTrainer, TrainerConfig
from ..training.dataset import split_by_class
from ..training.evaluation import evaluate
from ..training.kmer_sweep import load_sweep_results, run_sweep
from ..version import __version__
from .random_source import RandomSource

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class AnalysisPipeline:
    """
    Runs the configured analysis steps in order.

    Filtering happens once per run and is shared by every step that needs
    the filtered pools.

    Example:
        pipeline = AnalysisPipeline(config, {Gene.COI: 'coi.fasta',
                                             Gene.CYTB: 'cytb.fasta'}, 'results/')
        report = pipeline.run()
    """

    def __init__(self,
                 config: Dict[str, Any],
                 gene_paths: Dict[Union[str, Gene], Union[str, Path]],
                 output_dir: Union[str, Path]):
        """
        Initialize pipeline.

        Args:
            config: Validated configuration dictionary
            gene_paths: FASTA path per gene
            output_dir: Directory for every output artifact
        """
        self.config = config
        self.gene_paths = {Gene.parse(g): Path(p) for g, p in gene_paths.items()}
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

        self.steps: List[str] = list(config['pipeline']['steps'])
        self.random_source = RandomSource(config['random_seed'])
        self.seq_filter = SequenceFilter(
            max_n_fraction=config['filtering']['max_n_fraction'],
            length_window=config['filtering']['length_window'],
        )
        self.trainer = ClassifierTrainer(TrainerConfig.from_config(config), self.random_source)

        # Runtime state
        self.state: Dict[str, Any] = {
            'current_step': None,
            'completed_steps': [],
            'filter_results': None,
        }
        self.report: Dict[str, Any] = {
            'mitokmer_version': __version__,
            'timestamp': time.strftime('%Y-%m-%dT%H:%M:%S'),
            'random_seed': config['random_seed'],
            'inputs': {g.value: str(p) for g, p in self.gene_paths.items()},
            'config': config,
            'steps': {},
        }

    def run(self, steps: Optional[List[str]] = None) -> Dict[str, Any]:
        """
        Run the pipeline.

        Args:
            steps: Steps to run (None = ``pipeline.steps`` from config)

        Returns:
            Run report dictionary (also written to run_report.json)
        """
        steps = list(steps) if steps is not None else self.steps
        handler = self._attach_log_file()
        t_start = time.perf_counter()

        try:
            logger.info("=" * 60)
            logger.info("Starting MitoKmer Pipeline")
            logger.info("=" * 60)

            for i, step in enumerate(steps):
                self.state['current_step'] = step

                logger.info("")
                logger.info("=" * 60)
                logger.info("STEP %d/%d: %s", i + 1, len(steps), step.upper())
                logger.info("=" * 60)

                try:
                    self._execute_step(step)
                    self.state['completed_steps'].append(step)
                except (MitoKmerError, FileNotFoundError, ValueError) as e:
                    logger.error("Step %s failed: %s", step, e)
                    self.report['status'] = 'failed'
                    self.report['error'] = {'step': step, 'type': type(e).__name__, 'message': str(e)}
                    tables.write_report(self.report, self.output_dir)
                    raise

            self.report['status'] = 'success'
            self.report['elapsed_seconds'] = round(time.perf_counter() - t_start, 2)
            self.report['steps_completed'] = list(self.state['completed_steps'])
            tables.write_report(self.report, self.output_dir)

            logger.info("")
            logger.info("=" * 60)
            logger.info("Pipeline Complete!")
            logger.info("=" * 60)
            return self.report

        finally:
            logging.getLogger('mitokmer').removeHandler(handler)
            handler.close()

    def _execute_step(self, step: str):
        """Execute a single pipeline step."""
        if step == 'summarize':
            self._step_summarize()
        elif step == 'classify':
            self._step_classify()
        elif step == 'sweep':
            self._step_sweep()
        else:
            raise ValueError(f"Unknown step: {step}")

    def _attach_log_file(self) -> logging.Handler:
        log_cfg = self.config['output']['logging']
        handler = logging.FileHandler(self.output_dir / log_cfg['log_file'])
        handler.setLevel(getattr(logging, log_cfg['level']))
        handler.setFormatter(logging.Formatter(LOG_FORMAT))

        package_logger = logging.getLogger('mitokmer')
        package_logger.addHandler(handler)
        if package_logger.getEffectiveLevel() > handler.level:
            package_logger.setLevel(handler.level)
        return handler

    # ── shared state ──────────────────────────────────────────────────

    def filtered_pools(self) -> Dict[Gene, FilterResult]:
        """Load and filter every gene pool (once per run)."""
        if self.state['filter_results'] is None:
            logger.info("Loading FASTA input...")
            pools = read_gene_pools(self.gene_paths)

            logger.info("Filtering (max N fraction %.3f, length window ±%d bp)...",
                        self.seq_filter.max_n_fraction, self.seq_filter.length_window)
            self.state['filter_results'] = self.seq_filter.filter_pools(pools)
            self.report['filtering'] = {
                g.value: r.report.to_dict() for g, r in self.state['filter_results'].items()
            }
        return self.state['filter_results']

    def _sequences(self):
        return {g: r.sequences for g, r in self.filtered_pools().items()}

    # ── steps ─────────────────────────────────────────────────────────

    def _step_summarize(self):
        """Per-gene counts, length statistics and base composition."""
        results = self.filtered_pools()
        summaries = [summarize_pool(r) for r in results.values()]

        for summary in summaries:
            logger.info("  %s: %d sequences, median %.1f bp (%d-%d), GC %.3f",
                        summary.gene, summary.window_passed, summary.median_length,
                        summary.min_length, summary.max_length, summary.mean_gc_content)

        tables.write_gene_summary(summaries, self.output_dir)
        if self.config['output'].get('write_filtered_fasta', True):
            tables.write_filtered_pools(results, self.output_dir)

        self.report['steps']['summarize'] = {'genes': [s.to_dict() for s in summaries]}

    def _step_classify(self):
        """Train both classifiers on one feature schema and evaluate them."""
        schema = FeatureSchema(k_values=tuple(self.config['features']['k_values']))
        logger.info("Featurizing with k=%s (%d features)...", schema.k_values, schema.width)
        vectors = CompositionFeaturizer(schema).featurize_pools(self._sequences())

        split_cfg = self.config['split']
        logger.info("Splitting %d training / %d validation per gene (seed %d)...",
                    split_cfg['train_per_class'], split_cfg['valid_per_class'],
                    self.random_source.seed)
        dataset = split_by_class(vectors, split_cfg['train_per_class'],
                                 split_cfg['valid_per_class'], self.random_source)

        models = self.trainer.fit_all(dataset)

        step_report: Dict[str, Any] = {
            'feature_k': list(schema.k_values),
            'training_size': len(dataset.training),
            'validation_size': len(dataset.validation),
            'models': {},
        }
        for name, model in models.items():
            result = evaluate(
                model, dataset,
                importance_repeats=self.trainer.config.importance_repeats,
            )
            tables.write_confusion(result.confusion, name, self.output_dir)
            tables.write_importance(result.importance, self.output_dir)
            step_report['models'][name] = {**result.to_dict(), 'tuning': model.tuning}

        self.report['steps']['classify'] = step_report

    def _step_sweep(self):
        """Accuracy and fit time across k-mer sizes."""
        sweep_cfg = self.config['sweep']
        if sweep_cfg.get('precomputed'):
            logger.info("Using precomputed sweep table: %s", sweep_cfg['precomputed'])
            results = load_sweep_results(sweep_cfg['precomputed'])
            source = str(sweep_cfg['precomputed'])
        else:
            split_cfg = self.config['split']
            results = run_sweep(
                self._sequences(),
                k_values=sweep_cfg['k_values'],
                train_count=split_cfg['train_per_class'],
                valid_count=split_cfg['valid_per_class'],
                trainer=self.trainer,
                random_source=self.random_source,
                models=sweep_cfg['models'],
            )
            source = 'computed'

        tables.write_sweep(results, self.output_dir)
        self.report['steps']['sweep'] = {
            'source': source,
            'results': [r.to_dict() for r in results],
        }
