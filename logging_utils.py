"""
Logging Utilities for the Research Assistant

Centralized logging configuration for CLI runs plus helpers that record
exceptions with enough context to debug provider and LLM failures.
"""

import logging
import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Tuple


def setup_run_logging(
    query: str, log_dir: Optional[str] = None, debug: bool = False
) -> Tuple[logging.Logger, Optional[str]]:
    """
    Configure the ROOT logger for a research run so every module logger inherits it.

    Args:
        query: Research query, recorded in the run header
        log_dir: Optional directory for a timestamped DEBUG log file
        debug: Show DEBUG records on the console

    Returns:
        Tuple of (run_logger instance, log_file_path or None)
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Clear existing handlers to avoid duplicates on repeated runs
    root_logger.handlers.clear()

    # Console output goes to stderr so --json stdout stays machine readable
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.DEBUG if debug else logging.INFO)
    console_handler.setFormatter(logging.Formatter('%(levelname)s %(name)s: %(message)s'))
    root_logger.addHandler(console_handler)

    log_file_path = None
    if log_dir:
        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        log_file_path = str(Path(log_dir) / f"research_run_{timestamp}.log")
        file_handler = logging.FileHandler(log_file_path, mode='w', encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
        )
        root_logger.addHandler(file_handler)

    # Third-party HTTP chatter is only useful when debugging
    for noisy in ("urllib3", "httpx", "openai", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.DEBUG if debug else logging.WARNING)

    run_logger = logging.getLogger('research_run')
    run_logger.debug("=" * 60)
    run_logger.debug(f"Research run started: {datetime.now().isoformat()}")
    run_logger.debug(f"Query: {query}")
    if log_file_path:
        run_logger.debug(f"Log File: {log_file_path}")
    run_logger.debug("=" * 60)

    return run_logger, log_file_path


def log_exception(logger: logging.Logger, exc: Exception, context: str = "",
                  query: Optional[str] = None, **kwargs) -> None:
    """
    Log a full exception with traceback and context information.

    Args:
        logger: Logger instance to use
        exc: Exception that was raised
        context: Stage that failed (e.g. "perplexity_fetch")
        query: Query string for context
        **kwargs: Additional context key-value pairs
    """
    error_msg = f"Exception occurred: {type(exc).__name__}: {exc}"
    if context:
        error_msg = f"{context} - {error_msg}"

    logger.error(error_msg)
    tb = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    logger.debug(f"Traceback:\n{tb}")

    if query:
        logger.error(f"Query: {query}")
    if kwargs:
        logger.error(f"Context: {kwargs}")


def get_error_info(exc: Exception, context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Extract structured error information from an exception."""
    return {
        "error_type": type(exc).__name__,
        "error_message": str(exc),
        "traceback": "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
        "timestamp": datetime.now().isoformat(),
        "context": context or {},
    }
