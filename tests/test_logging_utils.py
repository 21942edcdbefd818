import logging

import pytest

from logging_utils import get_error_info, log_exception, setup_run_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_setup_run_logging_writes_log_file(tmp_path, restore_root_logger):
    run_logger, log_path = setup_run_logging("ev batteries", log_dir=str(tmp_path))
    run_logger.info("hello from the run")
    for handler in logging.getLogger().handlers:
        handler.flush()

    assert log_path is not None
    text = open(log_path, encoding="utf-8").read()
    assert "Query: ev batteries" in text
    assert "hello from the run" in text


def test_setup_run_logging_console_only(restore_root_logger):
    _, log_path = setup_run_logging("q", debug=True)
    assert log_path is None
    assert len(logging.getLogger().handlers) == 1
    assert logging.getLogger().handlers[0].level == logging.DEBUG


def test_log_exception_includes_context(caplog):
    logger = logging.getLogger("tests.logging")
    with caplog.at_level(logging.ERROR, logger="tests.logging"):
        log_exception(logger, ValueError("bad"), context="perplexity_fetch", query="ev")
    assert "perplexity_fetch - Exception occurred: ValueError: bad" in caplog.text
    assert "Query: ev" in caplog.text


def test_get_error_info():
    try:
        raise KeyError("missing")
    except KeyError as exc:
        info = get_error_info(exc, {"query": "ev"})
    assert info["error_type"] == "KeyError"
    assert info["context"] == {"query": "ev"}
    assert "Traceback" in info["traceback"]
