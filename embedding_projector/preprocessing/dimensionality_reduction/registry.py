"""Reducer registry used by the projection orchestrator.

Reducers register under a lower-case method name together with the label the
orchestrator reports in :class:`~embedding_projector.types.ProjectionResult`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Dict, Optional, Type

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .config import AlgorithmOptions
    from .reducers.base import DimensionalityReducer

ReducerFactory = Callable[..., "DimensionalityReducer"]


@dataclass(frozen=True)
class RegisteredReducer:
    method: str
    label: str
    factory: ReducerFactory


class DimensionalityReducerRegistry:
    """Maps method names to reducer factories and display labels."""

    def __init__(self) -> None:
        self._registry: Dict[str, RegisteredReducer] = {}

    def register(
        self,
        method: str,
        factory: ReducerFactory,
        *,
        label: Optional[str] = None,
        overwrite: bool = False,
    ) -> None:
        key = method.lower()
        if not overwrite and key in self._registry:
            raise ValueError(f"Reducer already registered for method '{method}'.")
        self._registry[key] = RegisteredReducer(key, label or key.upper(), factory)

    def unregister(self, method: str) -> None:
        self._registry.pop(method.lower(), None)

    def entry(self, method: str) -> RegisteredReducer:
        key = method.lower()
        try:
            return self._registry[key]
        except KeyError as exc:
            raise KeyError(f"No reducer registered for method '{method}'.") from exc

    def create(self, method: str, **kwargs) -> "DimensionalityReducer":
        return self.entry(method).factory(**kwargs)

    def create_from_options(self, method: str, options: "AlgorithmOptions") -> "DimensionalityReducer":
        """Instantiate ``method`` with its parameter bundle from ``options``."""

        return self.create(method, **options.params.for_method(method.lower()))

    def label(self, method: str) -> str:
        return self.entry(method).label

    def available_methods(self) -> Dict[str, ReducerFactory]:
        return {key: entry.factory for key, entry in self._registry.items()}


global_reducer_registry = DimensionalityReducerRegistry()


def register_reducer(
    method: str,
    *,
    label: Optional[str] = None,
) -> Callable[[Type["DimensionalityReducer"]], Type["DimensionalityReducer"]]:
    """Class decorator to register reducers via their ``method`` name."""

    def decorator(cls: Type[DimensionalityReducer]) -> Type[DimensionalityReducer]:
        global_reducer_registry.register(method, cls, label=label)
        return cls

    return decorator


__all__ = [
    "DimensionalityReducerRegistry",
    "ReducerFactory",
    "RegisteredReducer",
    "global_reducer_registry",
    "register_reducer",
]
