#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
MitoKmer v0.1.0

Configuration parser: YAML config loading, environment substitution,
CLI overrides and dotted access.

Author: MitoKmer Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import os
import re
from pathlib import Path
from typing import Any, Dict, Optional, Union

# Pattern: ${VAR} or ${VAR:-default}
_ENV_PATTERN = re.compile(r'\$\{([^}:]+)(?::-(.*?))?\}')


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""
    pass


def substitute_env_vars(text: str) -> str:
    """
    Substitute environment variables in configuration text.

    Supports:
    - ${VAR}: Replace with environment variable VAR
    - ${VAR:-default}: Replace with VAR, or 'default' if not set

    Example:
        >>> os.environ['SEED'] = '7'
        >>> substitute_env_vars('random_seed: ${SEED:-42}')
        'random_seed: 7'
    """
    def replace_var(match):
        var_name = match.group(1)
        default_value = match.group(2)

        # Get environment variable, or use default
        return os.environ.get(var_name, default_value or '')

    return _ENV_PATTERN.sub(replace_var, text)


class ConfigParser:
    """
    Parse MitoKmer configuration files.

    Features:
    - Load YAML configuration files over the built-in defaults
    - Environment variable substitution (${VAR} and ${VAR:-default})
    - CLI parameter overrides
    - Dotted notation access (e.g., config.get('split.train_per_class'))
    """

    def __init__(self, config_file: Optional[Union[str, Path]] = None):
        """
        Initialize configuration parser.

        Args:
            config_file: Path to YAML configuration file (optional)
        """
        from .schema import load_config

        self.config_file = Path(config_file) if config_file else None
        self._config: Dict[str, Any] = load_config(self.config_file)

    def merge_cli_overrides(self, overrides: Dict[str, Any]):
        """
        Merge command-line overrides into configuration.

        Args:
            overrides: Dictionary of override values. Keys can use dotted
                notation (e.g., 'random_forest.n_estimators'); None values
                are skipped so unset CLI options keep the file value.
        """
        for key, value in overrides.items():
            if value is None:
                continue

            keys = key.split('.')

            # Navigate to the nested dictionary
            target = self._config
            for k in keys[:-1]:
                if not isinstance(target.get(k), dict):
                    target[k] = {}
                target = target[k]

            target[keys[-1]] = value

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value by key.

        Supports dotted notation for nested access.

        Args:
            key: Configuration key (e.g., 'split.valid_per_class')
            default: Default value if key not found

        Returns:
            Configuration value
        """
        keys = key.split('.')
        value = self._config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def to_dict(self) -> Dict[str, Any]:
        return self._config

    def validate(self) -> bool:
        """
        Validate the merged configuration.

        Raises:
            ConfigValidationError: Listing every problem found
        """
        from .schema import check_config

        check_config(self._config)
        return True

    def __repr__(self) -> str:
        return f"ConfigParser(config_file={self.config_file})"
