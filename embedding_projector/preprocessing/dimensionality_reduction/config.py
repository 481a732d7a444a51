"""Configuration objects for dimensionality reduction strategies.

Every tuning knob is optional. ``None`` means "derive from the dataset size"
and is resolved by the helpers at the bottom of this module when a reducer
runs, so the same options object can be reused across datasets.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, Mapping, Optional

import jsonschema

from ...utils.config.config_loader import ALGORITHM_PARAMS_SCHEMA
from ...utils.config.validator import ConfigValidator

ALGORITHMS = ("auto", "umap", "tsne", "pca")

# camelCase names used by the browser-side request format
_CAMEL_CASE_ALIASES = {
    "nNeighbors": "n_neighbors",
    "nEpochs": "n_epochs",
    "learningRate": "learning_rate",
    "negativeSampleRate": "negative_sample_rate",
    "earlyExaggeration": "early_exaggeration",
    "powerIterations": "power_iterations",
}


@dataclass
class UMAPParams:
    n_neighbors: Optional[int] = None
    n_epochs: Optional[int] = None
    learning_rate: Optional[float] = None
    negative_sample_rate: Optional[int] = None


@dataclass
class TSNEParams:
    perplexity: Optional[float] = None
    learning_rate: Optional[float] = None
    iterations: Optional[int] = None
    early_exaggeration: Optional[float] = None
    momentum: Optional[float] = None


@dataclass
class PCAParams:
    power_iterations: Optional[int] = None


_PARAM_TYPES = {"umap": UMAPParams, "tsne": TSNEParams, "pca": PCAParams}


@dataclass
class AlgorithmParams:
    """Per-algorithm parameter bundles."""

    umap: UMAPParams = field(default_factory=UMAPParams)
    tsne: TSNEParams = field(default_factory=TSNEParams)
    pca: PCAParams = field(default_factory=PCAParams)

    def for_method(self, method: str) -> Dict[str, Any]:
        """Return the keyword arguments for the reducer registered as ``method``."""

        bundle = getattr(self, method, None)
        if bundle is None:
            return {}
        return asdict(bundle)

    def to_serialisable_dict(self) -> Dict[str, Any]:
        return {name: asdict(getattr(self, name)) for name in _PARAM_TYPES}


@dataclass
class AlgorithmOptions:
    """Algorithm choice plus optional tuning parameters.

    ``algorithm`` is one of ``auto``, ``umap``, ``tsne`` or ``pca``.
    """

    algorithm: str = "auto"
    params: AlgorithmParams = field(default_factory=AlgorithmParams)

    def __post_init__(self) -> None:
        self.algorithm = (self.algorithm or "auto").lower()
        if self.algorithm not in ALGORITHMS:
            raise ValueError(
                f"Unknown algorithm '{self.algorithm}'. Expected one of: {', '.join(ALGORITHMS)}."
            )
        errors, _ = ConfigValidator.validate_params(self.params.to_serialisable_dict())
        if errors:
            raise ValueError("Invalid algorithm parameters:\n" + "\n".join(errors))

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "AlgorithmOptions":
        """Build options from a request mapping.

        Accepts snake_case or camelCase parameter names::

            {"algorithm": "tsne", "params": {"tsne": {"perplexity": 12}}}
        """

        raw_params = payload.get("params") or {}
        params = {
            group: (
                {_CAMEL_CASE_ALIASES.get(key, key): value for key, value in bundle.items()}
                if bundle
                else {}
            )
            for group, bundle in raw_params.items()
        }
        try:
            jsonschema.validate(params, ALGORITHM_PARAMS_SCHEMA)
        except jsonschema.ValidationError as exc:
            raise ValueError(f"Invalid algorithm parameters: {exc.message}") from exc

        bundles = {
            group: param_type(**params.get(group, {}))
            for group, param_type in _PARAM_TYPES.items()
        }
        return cls(
            algorithm=str(payload.get("algorithm", "auto")),
            params=AlgorithmParams(**bundles),
        )

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "AlgorithmOptions":
        """Build options from a loaded configuration's ``projection`` section."""

        return cls.from_dict(config.get("projection", {}))

    def with_overrides(self, algorithm: Optional[str] = None, **overrides: Any) -> "AlgorithmOptions":
        """Return a copy with ``algorithm`` and ``<group>.<field>`` values replaced.

        ``overrides`` keys use the form ``tsne__perplexity``; ``None`` values
        are ignored so unset CLI flags keep the configured value.
        """

        payload = {
            "algorithm": algorithm or self.algorithm,
            "params": self.params.to_serialisable_dict(),
        }
        for key, value in overrides.items():
            if value is None:
                continue
            group, _, name = key.partition("__")
            if group not in _PARAM_TYPES or name not in {f.name for f in fields(_PARAM_TYPES[group])}:
                raise ValueError(f"Unknown parameter override '{key}'.")
            payload["params"][group][name] = value
        return AlgorithmOptions.from_dict(payload)

    def to_serialisable_dict(self) -> Dict[str, Any]:
        return {"algorithm": self.algorithm, "params": self.params.to_serialisable_dict()}


# Size-dependent defaults ------------------------------------------------------


def default_perplexity(n_samples: int) -> float:
    if n_samples < 30:
        return 5.0
    if n_samples <= 100:
        return 10.0
    return float(min(30, n_samples - 1))


def default_tsne_iterations(n_samples: int) -> int:
    return 1500 if n_samples < 200 else 1000


def default_exaggeration_iterations(n_samples: int) -> int:
    return 350 if n_samples < 200 else 250


def default_n_neighbors(n_samples: int) -> int:
    if n_samples < 50:
        return max(3, min(8, int(math.floor(math.sqrt(n_samples)))))
    if n_samples < 200:
        # Sizes in [50, 100] have no real square root term; they get 10
        return int(math.floor(10 + math.sqrt(max(0, n_samples - 100)) / 3))
    return min(15, n_samples // 50)


def default_n_epochs(n_samples: int) -> int:
    return 500 if n_samples < 1000 else 200


__all__ = [
    "ALGORITHMS",
    "AlgorithmOptions",
    "AlgorithmParams",
    "PCAParams",
    "TSNEParams",
    "UMAPParams",
    "default_exaggeration_iterations",
    "default_n_epochs",
    "default_n_neighbors",
    "default_perplexity",
    "default_tsne_iterations",
]
