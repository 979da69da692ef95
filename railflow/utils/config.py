"""Configuration management for Railflow"""

import yaml
from pathlib import Path
from typing import Any, Optional


PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DEFAULT_CONFIG = "config/config.yaml"


class ConfigLoader:
    """
    YAML-backed project configuration

    Keys are looked up with dot notation, so
    ``config.get('forecast.window_size', default=30)`` reads
    ``forecast: {window_size: ...}`` from the file. Relative file paths
    are resolved against the project root when they do not exist as given.
    """

    def __init__(self, config_path: str = DEFAULT_CONFIG):
        candidate = Path(config_path)
        if not candidate.exists() and not candidate.is_absolute():
            candidate = PROJECT_ROOT / candidate

        self.config_path: Optional[Path] = candidate
        self.config = self._read()

    @classmethod
    def from_dict(cls, values: dict) -> 'ConfigLoader':
        """
        Wrap an in-memory mapping instead of a file

        Args:
            values: Nested configuration dictionary

        Returns:
            ConfigLoader with no backing file; reload() keeps the values
        """
        loader = cls.__new__(cls)
        loader.config_path = None
        loader.config = dict(values or {})
        return loader

    def _read(self) -> dict:
        if not self.config_path.exists():
            raise FileNotFoundError(
                f"Configuration file not found: {self.config_path} "
                f"(pass --config or create {DEFAULT_CONFIG})"
            )

        with open(self.config_path, 'r', encoding='utf-8') as f:
            loaded = yaml.safe_load(f)

        if loaded is None:
            return {}
        if not isinstance(loaded, dict):
            raise ValueError(f"Configuration root must be a mapping: {self.config_path}")
        return loaded

    def get(self, key: str, default: Any = None) -> Any:
        """
        Look up a dotted key

        Args:
            key: Dotted path such as 'analysis.correlation_threshold'
            default: Returned when any segment is missing

        Returns:
            The configured value, or default
        """
        node: Any = self.config
        for part in key.split('.'):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def get_path(self, key: str, default: Optional[Path] = None) -> Path:
        """Dotted key as a Path; relative values are anchored at the project root"""
        value = self.get(key, default)
        if value is None:
            raise ValueError(f"Configuration key '{key}' not found and no default provided")

        path = Path(value)
        return path if path.is_absolute() else PROJECT_ROOT / path

    def reload(self):
        """Re-read the backing file, if there is one"""
        if self.config_path is not None:
            self.config = self._read()

    def __repr__(self) -> str:
        return f"ConfigLoader(config_path='{self.config_path}')"
