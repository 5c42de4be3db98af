from __future__ import annotations

import logging
from io import StringIO

from schedule_import.logging.init import (
    APP_LOGGER_NAME,
    LabeledFormatter,
    get_logger,
    log_summary,
    reset_logging,
    setup_logging,
)


def test_setup_logging_creates_logger_with_labeled_formatter():
    logger = setup_logging()
    assert logger.name == APP_LOGGER_NAME
    assert logger.level == logging.INFO
    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0].formatter, LabeledFormatter)
    assert logger.propagate is False


def test_logging_labeled_prefixes():
    captured = StringIO()
    logger = logging.getLogger("test_schedule_import_labels")
    logger.setLevel(logging.INFO)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    logging.addLevelName(25, "SUMMARY")
    handler = logging.StreamHandler(captured)
    handler.setFormatter(LabeledFormatter())
    logger.addHandler(handler)
    logger.propagate = False

    logger.info("Test info message")
    logger.warning("Test warning message")
    logger.error("Test error message")
    logger.log(25, "Test summary message")

    lines = captured.getvalue().strip().split("\n")
    assert lines == [
        "INFO Test info message",
        "WARN Test warning message",
        "ERROR Test error message",
        "SUMMARY Test summary message",
    ]


def test_module_loggers_propagate_to_app_logger(capsys):
    reset_logging()
    setup_logging()
    logging.getLogger("schedule_import.services.coordinator").warning("row rejected")
    assert "WARN row rejected" in capsys.readouterr().out


def test_setup_logging_idempotent_and_relevels():
    logger1 = setup_logging()
    logger2 = setup_logging(debug=True)
    assert logger1 is logger2
    assert len(logger1.handlers) == 1
    assert logger2.level == logging.DEBUG
    assert logger2.handlers[0].level == logging.DEBUG


def test_get_logger_returns_configured_logger():
    assert get_logger() is setup_logging()


def test_log_summary(capsys):
    reset_logging()
    log_summary("total=1 success=1")
    assert "SUMMARY total=1 success=1" in capsys.readouterr().out


def test_reset_logging_restores_propagation():
    logger = setup_logging()
    reset_logging()
    assert logger.handlers == []
    assert logger.propagate is True
