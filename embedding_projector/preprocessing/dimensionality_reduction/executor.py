"""Run projections in a separate process with coarse cancellation.

Only one projection is in flight per executor. Submitting a new one
terminates the previous worker outright; there is no partial result and no
resume. The worker receives its own copy of the dataset and answers with a
single message over a pipe.
"""

from __future__ import annotations

import multiprocessing
from multiprocessing.connection import Connection
from typing import Any, Dict, Optional, Tuple

from ...types import Dataset, ProjectionResult
from ...utils.logging.logging_manager import get_logger
from .config import AlgorithmOptions
from .projector import project_dataset

logger = get_logger("embedding_projector.executor")

_JOIN_TIMEOUT = 5.0


class ProjectionWorkerError(RuntimeError):
    """The hosting worker failed to start, crashed, or reported an error."""


class ProjectionCancelledError(RuntimeError):
    """The requested projection was terminated before it answered."""


def _projection_worker(
    connection: Connection, dataset: Dataset, options: Dict[str, Any]
) -> None:
    try:
        result = project_dataset(dataset, AlgorithmOptions.from_dict(options))
        connection.send(("ok", result))
    except Exception as exc:  # noqa: BLE001 - reported to the parent as a string
        connection.send(("error", f"{type(exc).__name__}: {exc}"))
    finally:
        connection.close()


class ProjectionExecutor:
    """Host a single projection at a time in a child process.

    Example:
        >>> with ProjectionExecutor() as executor:
        ...     executor.submit(dataset, AlgorithmOptions(algorithm="pca"))
        ...     result = executor.result(timeout=60)
    """

    def __init__(self, *, start_method: str = "spawn") -> None:
        self._context = multiprocessing.get_context(start_method)
        self._process: Optional[multiprocessing.process.BaseProcess] = None
        self._connection: Optional[Connection] = None
        self._cancelled = False

    @property
    def running(self) -> bool:
        return self._process is not None and self._process.is_alive()

    def submit(self, dataset: Dataset, options: Optional[AlgorithmOptions] = None) -> None:
        """Start projecting ``dataset``, abandoning any computation in flight."""

        self.cancel()
        options = options or AlgorithmOptions()

        receiver, sender = self._context.Pipe(duplex=False)
        process = self._context.Process(
            target=_projection_worker,
            args=(sender, dataset, options.to_serialisable_dict()),
            name="projection-worker",
            daemon=True,
        )
        try:
            process.start()
        except (OSError, RuntimeError) as exc:
            receiver.close()
            sender.close()
            raise ProjectionWorkerError(f"Failed to start worker: {exc}") from exc
        finally:
            self._cancelled = False
        sender.close()

        self._process = process
        self._connection = receiver
        logger.debug(
            "Started projection worker pid=%s for %d samples (algorithm=%s)",
            process.pid,
            len(dataset),
            options.algorithm,
        )

    def result(self, timeout: Optional[float] = None) -> ProjectionResult:
        """Wait for the single response of the current submission.

        Raises:
            ProjectionCancelledError: If the computation was cancelled.
            ProjectionWorkerError: If the worker crashed or reported an error.
            TimeoutError: If no response arrived within ``timeout`` seconds.
                The worker keeps running; call :meth:`cancel` to stop it.
        """

        if self._cancelled:
            raise ProjectionCancelledError("Projection was cancelled.")
        if self._connection is None or self._process is None:
            raise ProjectionWorkerError("No projection has been submitted.")

        try:
            ready = self._connection.poll(timeout)
        except (EOFError, OSError) as exc:
            self._cleanup()
            raise ProjectionWorkerError(f"Worker connection failed: {exc}") from exc
        if not ready:
            raise TimeoutError(f"Projection did not finish within {timeout} seconds.")

        try:
            status, payload = self._receive()
        finally:
            self._cleanup()

        if status != "ok":
            raise ProjectionWorkerError(str(payload))
        return payload

    def run_inline(
        self, dataset: Dataset, options: Optional[AlgorithmOptions] = None
    ) -> ProjectionResult:
        """Project in the calling thread; cancels any worker in flight first."""

        self.cancel()
        return project_dataset(dataset, options)

    def cancel(self) -> bool:
        """Terminate the in-flight worker; return whether one was running."""

        if self._process is None:
            return False
        was_running = self._process.is_alive()
        if was_running:
            logger.info("Terminating projection worker pid=%s", self._process.pid)
            self._process.terminate()
        self._cleanup()
        self._cancelled = was_running
        return was_running

    def close(self) -> None:
        self.cancel()

    def __enter__(self) -> "ProjectionExecutor":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # Internal helpers -----------------------------------------------------

    def _receive(self) -> Tuple[str, Any]:
        assert self._connection is not None and self._process is not None
        try:
            return self._connection.recv()
        except EOFError:
            self._process.join(_JOIN_TIMEOUT)
            return "error", f"Worker exited with code {self._process.exitcode} without a result."

    def _cleanup(self) -> None:
        if self._connection is not None:
            self._connection.close()
            self._connection = None
        if self._process is not None:
            self._process.join(_JOIN_TIMEOUT)
            self._process = None


__all__ = [
    "ProjectionCancelledError",
    "ProjectionExecutor",
    "ProjectionWorkerError",
]
