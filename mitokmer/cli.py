#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Command-line interface for MitoKmer.

This module provides the main CLI entry point and all subcommands for
the MitoKmer COI / CytB composition analysis.
"""

import logging
import sys
import click
from pathlib import Path
import yaml

from .version import __version__
from .config.parser import ConfigParser, ConfigValidationError
from .config.schema import TEMPLATES, load_config, save_config_template, validate_config
from .errors import MitoKmerError
from .io.fasta_io import Gene


@click.group()
@click.version_option(version=__version__)
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose output')
@click.option('--quiet', '-q', is_flag=True, help='Suppress non-error output')
@click.pass_context
def main(ctx, verbose, quiet):
    """
    MitoKmer: gene-of-origin classification from k-mer composition

    Filters COI and CytB sequences, derives nucleotide / dinucleotide /
    k-mer proportions, and compares a random forest with a logistic
    regression at telling the two genes apart.
    """
    # Ensure context object exists
    ctx.ensure_object(dict)
    ctx.obj['VERBOSE'] = verbose
    ctx.obj['QUIET'] = quiet

    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    else:
        level = logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%H:%M:%S',
    )


# ============================================================================
# Configuration Management Commands
# ============================================================================

@main.group()
def config():
    """Configuration management commands."""
    pass


@config.command('init')
@click.option('--output', '-o', type=click.Path(), default='mitokmer_config.yaml',
              help='Output configuration file path')
@click.option('--template', '-t', type=click.Choice(TEMPLATES), default='default',
              help='Configuration template type')
def config_init(output, template):
    """Generate a template configuration file with all available parameters."""
    click.echo(f"Generating {template} configuration template: {output}")

    try:
        save_config_template(Path(output), template=template)
    except OSError as e:
        click.echo(f"✗ Error creating configuration: {e}", err=True)
        sys.exit(1)

    click.echo(f"✓ Configuration file created: {output}")
    click.echo("\nThe configuration file includes:")
    click.echo("  • Trimming and filtering thresholds")
    click.echo("  • Feature k values and split sizes")
    click.echo("  • Random forest and logistic regression settings")
    click.echo("  • K-mer sweep, pipeline steps and logging")
    click.echo("\nEdit this file to customize your analysis.")


@config.command('validate')
@click.argument('config_file', type=click.Path(exists=True))
def config_validate(config_file):
    """Validate a configuration file."""
    click.echo(f"Validating configuration file: {config_file}")

    try:
        config = load_config(Path(config_file))
    except ConfigValidationError as e:
        click.echo(f"✗ Error validating configuration: {e}", err=True)
        sys.exit(1)

    errors = validate_config(config)
    if errors:
        click.echo("\n✗ Configuration validation failed:")
        for error in errors:
            click.echo(f"  • {error}", err=True)
        sys.exit(1)

    click.echo("✓ Configuration is valid")

    # Show key settings
    click.echo("\nKey Settings:")
    click.echo(f"  Seed: {config['random_seed']}")
    click.echo(f"  Feature k: {config['features']['k_values']}")
    click.echo(f"  Pipeline steps: {', '.join(config['pipeline']['steps'])}")


@config.command('show')
@click.argument('config_file', type=click.Path(exists=True))
@click.option('--format', '-f', type=click.Choice(['yaml', 'summary']), default='summary',
              help='Output format')
def config_show(config_file, format):
    """Display configuration settings."""
    try:
        config = load_config(Path(config_file))
    except ConfigValidationError as e:
        click.echo(f"✗ Error reading configuration: {e}", err=True)
        sys.exit(1)

    if format == 'yaml':
        click.echo(yaml.safe_dump(config, default_flow_style=False, sort_keys=False))
        return

    filtering = config['filtering']
    rf = config['random_forest']
    lr = config['logistic_regression']

    click.echo(f"Configuration from: {config_file}")
    click.echo("=" * 60)

    click.echo("\nFiltering:")
    click.echo(f"  Max N fraction: {filtering['max_n_fraction']}")
    click.echo(f"  Length window: ±{filtering['length_window']} bp around the median")

    click.echo("\nFeatures / Split:")
    click.echo(f"  k values: {config['features']['k_values']}")
    click.echo(f"  Per gene: {config['split']['train_per_class']} training, "
               f"{config['split']['valid_per_class']} validation")
    click.echo(f"  Seed: {config['random_seed']}")

    click.echo("\nModels:")
    click.echo(f"  Random forest: {rf['n_estimators']} trees, {rf['cv_folds']}-fold CV, "
               f"tune length {rf['tune_length']}")
    click.echo(f"  Logistic regression: C={lr['C']}, max_iter={lr['max_iter']}")

    click.echo("\nPipeline:")
    click.echo(f"  Steps: {' → '.join(config['pipeline']['steps'])}")
    click.echo(f"  Sweep k: {config['sweep']['k_values']}")
    click.echo("=" * 60)


# ============================================================================
# Analysis Commands
# ============================================================================

def _input_options(func):
    """Options shared by every analysis command."""
    func = click.option('--config', '-c', 'config_file', type=click.Path(exists=True),
                        help='Configuration file (YAML)')(func)
    func = click.option('--output', '-o', required=True, type=click.Path(),
                        help='Output directory')(func)
    func = click.option('--cytb', required=True, type=click.Path(exists=True),
                        help='CytB FASTA file')(func)
    func = click.option('--coi', required=True, type=click.Path(exists=True),
                        help='COI FASTA file')(func)
    return func


def _run_pipeline(coi, cytb, output, config_file, steps, overrides=None):
    """Build the config, run the requested steps, exit 1 on failure."""
    from .utils.pipeline import AnalysisPipeline

    try:
        parser = ConfigParser(config_file)
        parser.merge_cli_overrides(overrides or {})
        if steps is not None:
            parser.merge_cli_overrides({'pipeline.steps': steps})
        parser.validate()

        pipeline = AnalysisPipeline(
            config=parser.to_dict(),
            gene_paths={Gene.COI: coi, Gene.CYTB: cytb},
            output_dir=output,
        )
        report = pipeline.run()
    except (MitoKmerError, ConfigValidationError, FileNotFoundError) as e:
        click.echo(f"✗ {e}", err=True)
        sys.exit(1)

    click.echo("✓ Analysis complete")
    click.echo(f"  Steps: {', '.join(report['steps_completed'])}")
    classify = report['steps'].get('classify')
    if classify:
        for name, result in classify['models'].items():
            click.echo(f"  {name}: accuracy {result['accuracy']:.4f} "
                       f"({result['fit_seconds']:.2f}s)")
    click.echo(f"  Output directory: {output}")
    return report


@main.command()
@_input_options
def summarize(coi, cytb, output, config_file):
    """Filter both gene pools and write the per-gene summary table."""
    _run_pipeline(coi, cytb, output, config_file, ['summarize'])


@main.command()
@_input_options
@click.option('--seed', type=int, default=None, help='Random seed (overrides config)')
def classify(coi, cytb, output, config_file, seed):
    """
    Train and evaluate both classifiers on dinucleotide composition.

    Examples:
        mitokmer classify --coi coi.fasta --cytb cytb.fasta -o results/ --seed 7
    """
    _run_pipeline(coi, cytb, output, config_file, ['classify'],
                  overrides={'random_seed': seed})


@main.command()
@_input_options
@click.option('--k', 'k_values', type=int, multiple=True,
              help='K-mer size to evaluate (repeatable; default from config)')
@click.option('--precomputed', type=click.Path(exists=True),
              help='Load sweep results from a previous kmer_sweep table instead of refitting')
def sweep(coi, cytb, output, config_file, k_values, precomputed):
    """Record accuracy and fit time of both models across k-mer sizes."""
    _run_pipeline(coi, cytb, output, config_file, ['sweep'], overrides={
        'sweep.k_values': list(k_values) if k_values else None,
        'sweep.precomputed': precomputed,
    })


@main.command()
@_input_options
def run(coi, cytb, output, config_file):
    """Run every step listed in pipeline.steps."""
    _run_pipeline(coi, cytb, output, config_file, None)


# ============================================================================
# Utility Commands
# ============================================================================

@main.command()
def version():
    """Show version information."""
    import Bio
    import numpy
    import pandas
    import sklearn

    click.echo(f"MitoKmer v{__version__}")
    click.echo("\nDependencies:")
    click.echo(f"  BioPython: {Bio.__version__}")
    click.echo(f"  NumPy: {numpy.__version__}")
    click.echo(f"  pandas: {pandas.__version__}")
    click.echo(f"  scikit-learn: {sklearn.__version__}")


if __name__ == '__main__':
    sys.exit(main())
