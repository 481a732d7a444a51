"""Logging facade for the embedding projector.

Every component logs through a :class:`LoggingManager` obtained from
:func:`get_logger`. Names below ``embedding_projector`` (for example
``embedding_projector.umap``) are children of one project logger that owns
the handlers, so levels and files are configured in a single place.

Besides plain records the facade emits *trace events*: DEBUG records of the
form ``"<event> key=value ..."`` at algorithm checkpoints. When Weights &
Biases mirroring is enabled the same fields are logged there as
``<event>/<key>`` metrics.
"""

import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Union

try:
    import wandb

    HAS_WANDB = True
except ImportError:
    HAS_WANDB = False

from ..config.config_loader import get_config_value

PROJECT_LOGGER = "embedding_projector"

# Set by the CLI --no-wandb flag; wins over the config file
WANDB_DISABLED_ENV_VAR = "EMBEDDING_PROJECTOR_WANDB_DISABLED"

CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
FILE_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(module)s:%(lineno)d | %(message)s"


def _wandb_disabled_by_env() -> bool:
    return os.environ.get(WANDB_DISABLED_ENV_VAR, "").strip().lower() in ("1", "true", "yes")


class WandbMirror:
    """Forward metric dictionaries to an active WandB run.

    Failures are reported through ``logger`` and switch the mirror off; they
    never interrupt a projection.
    """

    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger
        self.active = False

    def _attach(self, project: Optional[str] = None, run_config: Optional[Dict[str, Any]] = None) -> None:
        try:
            if wandb.run is None:
                project = project or get_config_value("logging.wandb_project", PROJECT_LOGGER)
                wandb.init(project=project, config=run_config)
                self._logger.info("Started WandB run in project %s", project)
            self.active = True
        except Exception as exc:
            self._logger.warning("WandB unavailable, continuing without it: %s", exc)
            self.active = False

    def start(self, project: Optional[str], run_config: Optional[Dict[str, Any]]) -> None:
        if HAS_WANDB and not self.active:
            self._attach(project, run_config)

    def log(self, metrics: Dict[str, Any], step: Optional[int] = None) -> None:
        if not (self.active and metrics):
            return
        try:
            wandb.log(metrics, step=step)
        except Exception as exc:
            self._logger.warning("Dropping WandB metrics after error: %s", exc)
            self.active = False

    def close(self) -> None:
        if not self.active:
            return
        try:
            wandb.finish()
        except Exception as exc:
            self._logger.warning("WandB run did not close cleanly: %s", exc)
        self.active = False


class LoggingManager:
    """Standard logging plus optional WandB mirroring for one logger name."""

    def __init__(
        self,
        name: str = PROJECT_LOGGER,
        level: int = logging.INFO,
        log_file: Optional[Union[str, Path]] = None,
        enable_wandb: Optional[bool] = None,
        wandb_project: Optional[str] = None,
        wandb_config: Optional[Dict[str, Any]] = None,
    ):
        """Create the manager.

        Only a top-level name (no dots) configures handlers and the level;
        dotted names inherit both from their parent.

        Args:
            name: Logger name
            level: Level for the logger and its console handler
            log_file: File that receives every record at DEBUG level
            enable_wandb: Mirror to WandB; ``None`` reads ``logging.enable_wandb``
            wandb_project: Project used when a new run has to be started
            wandb_config: Run configuration recorded by WandB
        """
        self.name = name
        self.logger = logging.getLogger(name)

        if "." not in name:
            self._configure_handlers(level, log_file)

        if _wandb_disabled_by_env():
            wanted = False
        elif enable_wandb is None:
            wanted = bool(get_config_value("logging.enable_wandb", False))
        else:
            wanted = enable_wandb
        self.enable_wandb = wanted
        self._mirror = WandbMirror(self.logger)
        if wanted:
            self._mirror.start(wandb_project, wandb_config)

    @property
    def wandb_initialized(self) -> bool:
        return self._mirror.active

    def _configure_handlers(self, level: int, log_file: Optional[Union[str, Path]]) -> None:
        self.logger.setLevel(level)

        consoles = [h for h in self.logger.handlers if not isinstance(h, logging.FileHandler)]
        if consoles:
            for handler in consoles:
                handler.setLevel(level)
        else:
            # stdout is reserved for command output
            console = logging.StreamHandler(sys.stderr)
            console.setLevel(level)
            console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
            self.logger.addHandler(console)

        if log_file and not any(isinstance(h, logging.FileHandler) for h in self.logger.handlers):
            path = Path(log_file)
            path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(path, encoding="utf-8")
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
            self.logger.addHandler(file_handler)

    def info(self, message: str, *args: Any, **metrics: Any) -> None:
        """Log at INFO.

        Args:
            message: %-style format string
            *args: Format arguments
            **metrics: Values mirrored to WandB alongside the record
        """
        self.logger.info(message, *args)
        self._mirror.log(metrics)

    def debug(self, message: str, *args: Any, **metrics: Any) -> None:
        self.logger.debug(message, *args)
        self._mirror.log(metrics)

    def warning(self, message: str, *args: Any, **metrics: Any) -> None:
        self.logger.warning(message, *args)
        self._mirror.log(metrics)

    def error(self, message: str, *args: Any, **metrics: Any) -> None:
        self.logger.error(message, *args)
        self._mirror.log(metrics)

    def exception(self, message: str, *args: Any, **metrics: Any) -> None:
        self.logger.exception(message, *args)
        self._mirror.log(metrics)

    def event(self, name: str, step: Optional[int] = None, **fields: Any) -> None:
        """Emit a trace event at an algorithm checkpoint.

        Args:
            name: Dotted event name, e.g. ``"umap.epoch"``
            step: WandB step; not part of the rendered record
            **fields: Event payload
        """
        if self.logger.isEnabledFor(logging.DEBUG):
            rendered = " ".join(f"{key}={value}" for key, value in fields.items())
            self.logger.debug("%s %s", name, rendered)
        self._mirror.log({f"{name}/{key}": value for key, value in fields.items()}, step)

    def log_metrics(self, metrics: Dict[str, Any], step: Optional[int] = None) -> None:
        """Log a metrics dictionary as one INFO line and mirror it to WandB."""
        rendered = ", ".join(f"{key}={value}" for key, value in metrics.items())
        if step is None:
            self.logger.info("Metrics: %s", rendered)
        else:
            self.logger.info("Metrics at step %d: %s", step, rendered)
        self._mirror.log(metrics, step)

    def finish(self) -> None:
        """Close the WandB run if this manager owns an active one."""
        self._mirror.close()


_managers: Dict[str, LoggingManager] = {}


def get_logger(name: str = PROJECT_LOGGER, **kwargs: Any) -> LoggingManager:
    """Return the cached manager for ``name``, creating it on first use.

    A dotted name also creates its top-level parent so records always reach a
    configured handler. ``kwargs`` only apply when the manager is created.
    """
    parent = name.split(".", 1)[0]
    if parent != name and parent not in _managers:
        _managers[parent] = LoggingManager(parent)

    manager = _managers.get(name)
    if manager is None:
        manager = _managers[name] = LoggingManager(name, **kwargs)
    return manager


def setup_logging(
    name: str = PROJECT_LOGGER,
    level: int = logging.INFO,
    log_file: Optional[Union[str, Path]] = None,
    enable_wandb: Optional[bool] = None,
    wandb_project: Optional[str] = None,
    wandb_config: Optional[Dict[str, Any]] = None,
) -> LoggingManager:
    """(Re)configure the project logger and return its manager.

    Existing console handlers take the new level; a file handler is added if
    ``log_file`` is given and none is attached yet.
    """
    manager = LoggingManager(
        name=name,
        level=level,
        log_file=log_file,
        enable_wandb=enable_wandb,
        wandb_project=wandb_project,
        wandb_config=wandb_config,
    )
    _managers[name] = manager
    return manager
