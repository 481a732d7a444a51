"""Configuration validation utilities for projection runs.

Hard limits produce errors. Values outside the ranges the interactive tool
exposes produce warnings, since they are legal but rarely useful.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger("embedding_projector.config")

ALGORITHM_NAMES = ("auto", "umap", "tsne", "pca")

# (low, high) ranges offered by the interactive parameter controls
RECOMMENDED_RANGES: Dict[str, Dict[str, Tuple[float, float]]] = {
    "tsne": {
        "perplexity": (5, 50),
        "learning_rate": (10, 1000),
        "iterations": (500, 3000),
        "early_exaggeration": (1, 10),
    },
    "umap": {
        "n_neighbors": (3, 100),
        "n_epochs": (100, 2000),
        "learning_rate": (0.1, 10),
    },
    "pca": {
        "power_iterations": (5, 100),
    },
}


def _lookup(config: Dict[str, Any], dotted: str) -> Any:
    node: Any = config
    for part in dotted.split("."):
        if not isinstance(node, dict):
            return None
        node = node.get(part)
    return node


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class ConfigValidator:
    """Validate projection configuration parameters."""

    @staticmethod
    def validate_params(params: Optional[Dict[str, Any]]) -> Tuple[List[str], List[str]]:
        """Check a ``{"umap": ..., "tsne": ..., "pca": ...}`` bundle.

        Returns:
            Tuple of (errors, warnings)
        """
        errors: List[str] = []
        warnings: List[str] = []
        if not params:
            return errors, warnings

        for algorithm, bundle in params.items():
            if algorithm not in RECOMMENDED_RANGES:
                errors.append(f"Unknown parameter group: {algorithm}")
                continue
            if not bundle:
                continue
            for name, value in bundle.items():
                if value is None:
                    continue
                key = f"{algorithm}.{name}"
                if not _is_number(value):
                    errors.append(f"{key}={value!r} must be numeric")
                    continue
                if name == "momentum":
                    if not 0 <= value < 1:
                        errors.append(f"{key}={value} must be in [0, 1)")
                    continue
                if name == "negative_sample_rate":
                    if value < 0:
                        errors.append(f"{key}={value} must be >= 0")
                    continue
                if name in ("iterations", "power_iterations"):
                    if value < 0:
                        errors.append(f"{key}={value} must be >= 0")
                elif value <= 0:
                    errors.append(f"{key}={value} must be positive")
                    continue

                bounds = RECOMMENDED_RANGES[algorithm].get(name)
                if bounds is not None:
                    low, high = bounds
                    if value < low or value > high:
                        warnings.append(
                            f"{key}={value} is outside the usual range [{low}, {high}]"
                        )

        return errors, warnings

    @staticmethod
    def check(config: Dict[str, Any]) -> Tuple[List[str], List[str]]:
        """Return ``(errors, warnings)`` for a merged configuration."""
        algorithm = _lookup(config, "projection.algorithm")
        errors: List[str] = []
        if algorithm is not None and algorithm not in ALGORITHM_NAMES:
            errors.append(
                f"projection.algorithm={algorithm} must be one of: {', '.join(ALGORITHM_NAMES)}"
            )

        param_errors, warnings = ConfigValidator.validate_params(
            _lookup(config, "projection.params")
        )
        errors.extend(param_errors)

        if _lookup(config, "executor.start_method") == "fork":
            warnings.append(
                "executor.start_method=fork can deadlock when threads are running; prefer spawn"
            )
        return errors, warnings

    @staticmethod
    def validate(config: Dict[str, Any]) -> List[str]:
        """Return ``"ERROR: ..."`` and ``"WARNING: ..."`` messages; empty when clean."""
        errors, warnings = ConfigValidator.check(config)
        return [f"ERROR: {e}" for e in errors] + [f"WARNING: {w}" for w in warnings]

    @staticmethod
    def validate_or_raise(config: Dict[str, Any]) -> None:
        """Raise ``ValueError`` listing every error; log warnings otherwise."""
        errors, warnings = ConfigValidator.check(config)
        if errors:
            raise ValueError(
                "Configuration validation failed:\n" + "\n".join(f"ERROR: {e}" for e in errors)
            )
        for warning in warnings:
            logger.warning("Config: %s", warning)
