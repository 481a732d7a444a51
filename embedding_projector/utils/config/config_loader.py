"""Configuration for projection runs.

Settings come from ``configs/projection.yaml`` (``.yml`` and ``.json`` are
also recognised) layered over :attr:`ConfigLoader.DEFAULTS`. A missing default
file is not an error; the defaults are used as they are.
"""

import copy
import json
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import jsonschema
import yaml

from .validator import ConfigValidator

CONFIG_DIR = Path("configs")
CONFIG_CANDIDATES = ("projection.yaml", "projection.yml", "projection.json")


def _merge(defaults: Mapping[str, Any], overrides: Mapping[str, Any]) -> Dict[str, Any]:
    """Recursively layer ``overrides`` on a copy of ``defaults``."""
    merged = copy.deepcopy(dict(defaults))
    for key, value in overrides.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            merged[key] = _merge(current, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def _read_document(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        return json.loads(text)
    # .yaml, .yml and anything else; YAML is a superset of JSON
    return yaml.safe_load(text) or {}


_OPTIONAL_POSITIVE_INT = {"type": ["integer", "null"], "minimum": 1}
_OPTIONAL_POSITIVE_NUMBER = {"type": ["number", "null"], "exclusiveMinimum": 0}

# JSON schema for the per-algorithm parameter bundles
ALGORITHM_PARAMS_SCHEMA = {
    "type": "object",
    "properties": {
        "umap": {
            "type": ["object", "null"],
            "properties": {
                "n_neighbors": _OPTIONAL_POSITIVE_INT,
                "n_epochs": _OPTIONAL_POSITIVE_INT,
                "learning_rate": _OPTIONAL_POSITIVE_NUMBER,
                "negative_sample_rate": {"type": ["integer", "null"], "minimum": 0},
            },
            "additionalProperties": False,
        },
        "tsne": {
            "type": ["object", "null"],
            "properties": {
                "perplexity": _OPTIONAL_POSITIVE_NUMBER,
                "learning_rate": _OPTIONAL_POSITIVE_NUMBER,
                "iterations": {"type": ["integer", "null"], "minimum": 0},
                "early_exaggeration": _OPTIONAL_POSITIVE_NUMBER,
                "momentum": {
                    "type": ["number", "null"],
                    "minimum": 0,
                    "exclusiveMaximum": 1,
                },
            },
            "additionalProperties": False,
        },
        "pca": {
            "type": ["object", "null"],
            "properties": {
                "power_iterations": {"type": ["integer", "null"], "minimum": 0},
            },
            "additionalProperties": False,
        },
    },
    "additionalProperties": False,
}

PROJECTION_CONFIG_SCHEMA = {
    "type": "object",
    "properties": {
        "projection": {
            "type": "object",
            "properties": {
                "algorithm": {
                    "type": "string",
                    "enum": ["auto", "umap", "tsne", "pca"],
                },
                "params": ALGORITHM_PARAMS_SCHEMA,
            },
        },
        "logging": {
            "type": "object",
            "properties": {
                "level": {
                    "type": "string",
                    "enum": ["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"],
                },
                "log_file": {"type": ["string", "null"]},
                "enable_wandb": {"type": "boolean"},
                "wandb_project": {"type": "string"},
            },
        },
        "executor": {
            "type": "object",
            "properties": {
                "start_method": {
                    "type": "string",
                    "enum": ["spawn", "fork", "forkserver"],
                },
            },
        },
    },
}


class ConfigLoader:
    """Load, merge and validate one projection configuration file.

    The merged result is cached; call :meth:`reload` after editing the file.
    """

    DEFAULTS: Dict[str, Any] = {
        "projection": {
            "algorithm": "auto",
            "params": {"umap": {}, "tsne": {}, "pca": {}},
        },
        "logging": {
            "level": "INFO",
            "log_file": None,
            "enable_wandb": False,
            "wandb_project": "embedding_projector",
        },
        "executor": {"start_method": "spawn"},
    }

    def __init__(self, config_path: Optional[Union[Path, str]] = None):
        """Create a loader for ``config_path``.

        Args:
            config_path: Explicit file. When omitted the first existing file
                among ``configs/projection.{yaml,yml,json}`` is used, if any.
        """
        if config_path is None:
            config_path = self.discover()
        self.config_path = Path(config_path) if config_path is not None else None
        self._config: Optional[Dict[str, Any]] = None

    @staticmethod
    def discover(directory: Path = CONFIG_DIR) -> Optional[Path]:
        """Return the first config file present in ``directory``."""
        for filename in CONFIG_CANDIDATES:
            path = directory / filename
            if path.exists():
                return path
        return None

    def load(self, validate: bool = True) -> Dict[str, Any]:
        """Return the merged configuration.

        Raises:
            FileNotFoundError: If an explicitly given file is missing
            jsonschema.ValidationError: On structural problems
            ValueError: If a parameter is outside its hard limits
        """
        if self._config is None:
            overrides = _read_document(self.config_path) if self.config_path else {}
            merged = _merge(self.DEFAULTS, overrides)
            if validate:
                jsonschema.validate(merged, PROJECTION_CONFIG_SCHEMA)
                ConfigValidator.validate_or_raise(merged)
            self._config = merged
        return copy.deepcopy(self._config)

    def get(self, key: str, default: Any = None) -> Any:
        """Look up ``key`` in dot notation, e.g. ``"projection.params.tsne"``."""
        node: Any = self.load()
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def get_logging_config(self) -> Dict[str, Any]:
        return self.get("logging", self.DEFAULTS["logging"])

    def get_executor_config(self) -> Dict[str, Any]:
        return self.get("executor", self.DEFAULTS["executor"])

    def reload(self) -> Dict[str, Any]:
        """Drop the cached configuration and read the file again."""
        self._config = None
        return self.load()


# Process-wide loader used by loggers and the CLI
_shared_loader: Optional[ConfigLoader] = None


def _loader() -> ConfigLoader:
    global _shared_loader
    if _shared_loader is None:
        _shared_loader = ConfigLoader()
    return _shared_loader


def load_config(config_path: Union[str, Path]) -> Dict[str, Any]:
    """Load and validate the configuration stored at ``config_path``."""
    return ConfigLoader(Path(config_path)).load()


def get_config_value(key: str, default: Any = None) -> Any:
    """Dot-notation lookup in the process-wide configuration."""
    return _loader().get(key, default)


def set_config_path(config_path: Optional[Union[str, Path]]) -> ConfigLoader:
    """Point the process-wide loader at ``config_path`` and return it.

    Loggers created afterwards read their WandB settings from this file.
    """
    global _shared_loader
    _shared_loader = ConfigLoader(config_path)
    return _shared_loader
