"""
YAML Configuration Loader
Handles loading and merging of YAML configurations with inheritance,
environment variables and dot-notation overrides
"""

import os
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from ..core.errors import InputValidationError


class ConfigLoader:
    """
    Loads YAML configuration files

    Supports `extends:` inheritance, ${VAR} / ${VAR:default} environment
    substitution and dot-notation overrides.
    """

    def __init__(self, base_path: Optional[str] = None):
        """
        Initialize configuration loader

        Args:
            base_path: Base directory for resolving relative `extends` paths
        """
        self.base_path = Path(base_path) if base_path else Path.cwd()

    def load_config(self, config_path: Union[str, Path],
                    overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Load configuration from YAML file with support for inheritance

        Args:
            config_path: Path to YAML configuration file
            overrides: Dictionary of parameter overrides ('signal.noise_std_db': 0)

        Returns:
            Merged configuration dictionary
        """
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path, 'r') as f:
            config = yaml.safe_load(f) or {}

        if not isinstance(config, dict):
            raise InputValidationError(f"Config file {config_path} must contain a mapping")

        if 'extends' in config:
            base_configs = config.pop('extends')
            if not isinstance(base_configs, list):
                base_configs = [base_configs]

            merged_config = {}
            for base_config in base_configs:
                base_path = self._resolve_path(base_config, config_path.parent)
                base = self.load_config(base_path)
                merged_config = self._deep_merge(merged_config, base)

            config = self._deep_merge(merged_config, config)

        config = self._substitute_env_vars(config)

        if overrides:
            config = self.apply_overrides(config, overrides)

        return config

    def load_multiple_configs(self, config_paths: List[Union[str, Path]]) -> Dict[str, Any]:
        """Load and merge several configuration files, later files win"""
        merged = {}
        for path in config_paths:
            merged = self._deep_merge(merged, self.load_config(path))
        return merged

    def _resolve_path(self, path: str, relative_to: Path) -> Path:
        """Resolve path relative to the including file, then the base path"""
        path = Path(path)
        if not path.is_absolute():
            resolved = relative_to / path
            if resolved.exists():
                return resolved
            resolved = self.base_path / path
            if resolved.exists():
                return resolved
            return relative_to / path
        return path

    def _deep_merge(self, dict1: Dict, dict2: Dict) -> Dict:
        """Deep merge two dictionaries"""
        result = dict1.copy()
        for key, value in dict2.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value
        return result

    def _substitute_env_vars(self, config: Any) -> Any:
        """Substitute environment variables in configuration"""
        if isinstance(config, dict):
            return {k: self._substitute_env_vars(v) for k, v in config.items()}
        elif isinstance(config, list):
            return [self._substitute_env_vars(item) for item in config]
        elif isinstance(config, str):
            # ${VAR_NAME} or ${VAR_NAME:default}
            pattern = r'\$\{([^}:]+)(?::([^}]*))?\}'

            def replacer(match):
                var_name = match.group(1)
                default = match.group(2)
                return os.environ.get(var_name, default if default is not None else match.group(0))

            return re.sub(pattern, replacer, config)
        else:
            return config

    def apply_overrides(self, config: Dict, overrides: Dict) -> Dict:
        """Apply parameter overrides to configuration"""
        result = self._deep_merge({}, config)

        for key, value in overrides.items():
            keys = key.split('.')
            target = result

            for k in keys[:-1]:
                if not isinstance(target.get(k), dict):
                    target[k] = {}
                target = target[k]

            target[keys[-1]] = value

        return result


def parse_overrides(assignments: List[str]) -> Dict[str, Any]:
    """
    Parse command-line style 'key.path=value' assignments

    Values are parsed as YAML scalars, so '0', '2.5', 'true' and 'null' keep
    their types.
    """
    overrides = {}
    for assignment in assignments:
        if '=' not in assignment:
            raise InputValidationError(f"Override must look like key=value, got '{assignment}'")
        key, raw = assignment.split('=', 1)
        key = key.strip()
        if not key:
            raise InputValidationError(f"Override is missing a key: '{assignment}'")
        overrides[key] = yaml.safe_load(raw) if raw.strip() else None
    return overrides
