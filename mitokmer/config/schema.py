"""
MitoKmer v0.1.0

Configuration schema for MitoKmer.

Defines all available configuration parameters with defaults and validation.

Author: MitoKmer Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import copy
import logging
import numbers
from typing import Dict, Any, Optional, List
from pathlib import Path
import yaml

from .parser import ConfigValidationError, substitute_env_vars
from ..features.composition import MAX_K
from ..training.classifiers import MODEL_NAMES

logger = logging.getLogger(__name__)


VALID_STEPS = ['summarize', 'classify', 'sweep']
TEMPLATES = ['default', 'quick', 'full_sweep']
LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR']

# Default configuration values
DEFAULT_CONFIG = {
    # Seed for every split, fold assignment and tree ensemble
    'random_seed': 42,

    # ========================================================================
    # Trimming and Filtering
    # ========================================================================
    'filtering': {
        'max_n_fraction': 0.01,  # N count / trimmed length
        'length_window': 100,  # Keep median ± window (bp)
    },

    # ========================================================================
    # Composition Features
    # ========================================================================
    'features': {
        'k_values': [2],  # Dinucleotides for the main classification
    },

    # ========================================================================
    # Training / Validation Split (per gene)
    # ========================================================================
    'split': {
        'train_per_class': 950,
        'valid_per_class': 250,
    },

    # ========================================================================
    # Classifiers
    # ========================================================================
    'random_forest': {
        'n_estimators': 500,
        'cv_folds': 10,
        'tune_length': 3,  # Number of max_features candidates
        'max_features_grid': None,  # Explicit candidates override tune_length
        'importance_repeats': 5,  # Permutations per feature
        'n_jobs': None,
    },
    'logistic_regression': {
        'C': float('inf'),  # inf = unpenalized
        'max_iter': 1000,
        'tol': 1e-4,
    },

    # ========================================================================
    # K-mer Size Sweep
    # ========================================================================
    'sweep': {
        'k_values': [1, 2, 3, 4],
        'models': list(MODEL_NAMES),
        'precomputed': None,  # Path to a previous kmer_sweep table
    },

    # ========================================================================
    # Pipeline Control
    # ========================================================================
    'pipeline': {
        'steps': ['summarize', 'classify', 'sweep'],
    },

    # ========================================================================
    # Output
    # ========================================================================
    'output': {
        'write_filtered_fasta': True,

        # Logging
        'logging': {
            'level': 'INFO',  # 'DEBUG', 'INFO', 'WARNING', 'ERROR'
            'log_file': 'mitokmer.log',
        },
    },
}


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load configuration from file or return defaults.

    ``${VAR}`` and ``${VAR:-default}`` references in the file are replaced
    from the environment before the YAML is parsed.

    Args:
        config_path: Path to YAML config file (None = use defaults)

    Returns:
        Configuration dictionary

    Raises:
        FileNotFoundError: If config_path does not exist
        ConfigValidationError: If the file is not a YAML mapping
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    if config_path:
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path) as f:
            text = substitute_env_vars(f.read())

        try:
            user_config = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigValidationError(
                f"Invalid YAML in config file {config_path}: {e}"
            ) from e

        if user_config is None:
            return config
        if not isinstance(user_config, dict):
            raise ConfigValidationError(
                f"Config file {config_path} must contain a mapping, got {type(user_config).__name__}"
            )

        # Deep merge user config into defaults
        config = _deep_merge(config, user_config)

    return config


def _deep_merge(base: Dict, override: Dict) -> Dict:
    """
    Deep merge two dictionaries.

    Args:
        base: Base dictionary
        override: Override dictionary

    Returns:
        Merged dictionary
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def build_template(template: str = 'default') -> Dict[str, Any]:
    """
    Configuration dictionary for a named template.

    Args:
        template: 'default', 'quick' or 'full_sweep'
    """
    if template not in TEMPLATES:
        raise ValueError(f"Unknown template '{template}'. Choices: {', '.join(TEMPLATES)}")

    config = copy.deepcopy(DEFAULT_CONFIG)

    # Customize for specific templates
    if template == 'quick':
        config['pipeline']['steps'] = ['summarize', 'classify']
        config['random_forest']['n_estimators'] = 100
        config['random_forest']['cv_folds'] = 5
        config['random_forest']['tune_length'] = 2
        config['random_forest']['importance_repeats'] = 2

    elif template == 'full_sweep':
        config['sweep']['k_values'] = [1, 2, 3, 4, 5, 6]
        config['random_forest']['n_jobs'] = -1

    return config


def save_config_template(output_path: Path, template: str = 'default'):
    """
    Save a configuration template to file.

    Args:
        output_path: Output file path
        template: Template type ('default', 'quick', 'full_sweep')
    """
    config = build_template(template)

    with open(output_path, 'w') as f:
        yaml.safe_dump(config, f, default_flow_style=False, sort_keys=False)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def _check_k_values(values: Any, key: str, errors: List[str]):
    if not isinstance(values, list) or not values:
        errors.append(f"{key} must be a non-empty list")
        return
    for k in values:
        if not _is_int(k) or not 1 <= k <= MAX_K:
            errors.append(f"{key}: k must be an integer between 1 and {MAX_K}, got {k!r}")
    if len(set(map(str, values))) != len(values):
        errors.append(f"{key} contains duplicates: {values}")


def validate_config(config: Dict[str, Any]) -> List[str]:
    """
    Validate configuration dictionary.

    Args:
        config: Configuration to validate

    Returns:
        List of validation errors (empty if valid)
    """
    errors = []

    seed = config.get('random_seed')
    if not _is_int(seed) or seed < 0:
        errors.append(f"random_seed must be a non-negative integer, got {seed!r}")

    # Filtering thresholds
    filtering = config.get('filtering', {})
    max_n = filtering.get('max_n_fraction')
    if not _is_number(max_n) or not 0.0 <= max_n <= 1.0:
        errors.append(f"filtering.max_n_fraction must be between 0 and 1, got {max_n!r}")
    window = filtering.get('length_window')
    if not _is_number(window) or window < 0:
        errors.append(f"filtering.length_window must be non-negative, got {window!r}")

    _check_k_values(config.get('features', {}).get('k_values'), 'features.k_values', errors)

    # Split sizes
    for key in ('train_per_class', 'valid_per_class'):
        value = config.get('split', {}).get(key)
        if not _is_int(value) or value < 1:
            errors.append(f"split.{key} must be a positive integer, got {value!r}")

    # Random forest
    rf = config.get('random_forest', {})
    for key, minimum in (('n_estimators', 1), ('cv_folds', 2), ('tune_length', 1),
                         ('importance_repeats', 1)):
        value = rf.get(key)
        if not _is_int(value) or value < minimum:
            errors.append(f"random_forest.{key} must be an integer >= {minimum}, got {value!r}")
    grid = rf.get('max_features_grid')
    if grid is not None:
        if not isinstance(grid, list) or not grid or not all(_is_int(m) and m >= 1 for m in grid):
            errors.append(f"random_forest.max_features_grid must be a list of positive integers, got {grid!r}")
    n_jobs = rf.get('n_jobs')
    if n_jobs is not None and (not _is_int(n_jobs) or n_jobs == 0):
        errors.append(f"random_forest.n_jobs must be null or a non-zero integer, got {n_jobs!r}")

    # Logistic regression
    lr = config.get('logistic_regression', {})
    c_value = lr.get('C')
    if not _is_number(c_value) or not c_value > 0:
        errors.append(f"logistic_regression.C must be positive (.inf for no penalty), got {c_value!r}")
    max_iter = lr.get('max_iter')
    if not _is_int(max_iter) or max_iter < 1:
        errors.append(f"logistic_regression.max_iter must be a positive integer, got {max_iter!r}")
    tol = lr.get('tol')
    if not _is_number(tol) or not tol > 0:
        errors.append(f"logistic_regression.tol must be positive, got {tol!r}")

    # Sweep
    sweep = config.get('sweep', {})
    _check_k_values(sweep.get('k_values'), 'sweep.k_values', errors)
    for model in sweep.get('models') or []:
        if model not in MODEL_NAMES:
            errors.append(f"Invalid sweep model: {model}")
    if not sweep.get('models'):
        errors.append("sweep.models must name at least one model")
    precomputed = sweep.get('precomputed')
    if precomputed and not Path(precomputed).exists():
        errors.append(f"Precomputed sweep table not found: {precomputed}")

    # Validate pipeline steps
    steps = config.get('pipeline', {}).get('steps', [])
    if not steps:
        errors.append("pipeline.steps must list at least one step")
    for step in steps:
        if step not in VALID_STEPS:
            errors.append(f"Invalid pipeline step: {step}")

    level = config.get('output', {}).get('logging', {}).get('level')
    if level not in LOG_LEVELS:
        errors.append(f"Invalid logging level: {level!r} (choices: {', '.join(LOG_LEVELS)})")

    return errors


def check_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """Raise ConfigValidationError listing every problem, else return config."""
    errors = validate_config(config)
    if errors:
        for error in errors:
            logger.debug("Config error: %s", error)
        raise ConfigValidationError(
            f"{len(errors)} configuration error(s): " + '; '.join(errors)
        )
    return config
