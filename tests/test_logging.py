import logging

import pytest

from embedding_projector.utils.logging.logging_manager import LoggingManager, get_logger


def test_loggers_are_cached_per_name() -> None:
    assert get_logger("embedding_projector.cache_check") is get_logger("embedding_projector.cache_check")
    assert get_logger("embedding_projector.cache_check").logger.name == "embedding_projector.cache_check"


def test_events_are_debug_records(caplog: pytest.LogCaptureFixture) -> None:
    logger = get_logger("embedding_projector.events_check")

    with caplog.at_level(logging.DEBUG, logger="embedding_projector"):
        logger.event("demo.step", step=3, value=0.5, total=10)

    [record] = [r for r in caplog.records if r.name == "embedding_projector.events_check"]
    assert record.levelno == logging.DEBUG
    assert record.getMessage() == "demo.step value=0.5 total=10"


def test_child_loggers_propagate_to_project_logger(caplog: pytest.LogCaptureFixture) -> None:
    logger = get_logger("embedding_projector.propagation_check")

    with caplog.at_level(logging.INFO):
        logger.info("projected %d points", 7)

    assert "projected 7 points" in caplog.text
    assert not logger.logger.handlers
    assert get_logger("embedding_projector").logger.handlers


def test_wandb_stays_off_when_disabled_by_environment() -> None:
    manager = LoggingManager("embedding_projector.wandb_check", enable_wandb=True)

    assert not manager.enable_wandb
    assert not manager.wandb_initialized
    manager.log_metrics({"time_ms": 1.5})
    manager.finish()
    assert not manager.wandb_initialized
