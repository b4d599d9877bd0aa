"""Logging setup and timing helpers for the fantasy golf engine."""

import logging
import os
import sys
import time
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional

LOGGER_NAME = 'fantasygolf'


def _level_from_env(default: int) -> int:
    name = os.environ.get('FANTASYGOLF_LOG_LEVEL', '').upper()
    if not name:
        return default
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else default


def setup_logging(
    log_dir: Optional[Path] = None,
    level: int = logging.INFO,
    log_to_file: bool = False,
    log_to_console: bool = True,
) -> logging.Logger:
    """
    Configure the ``fantasygolf`` logger hierarchy.

    Every module logs through ``logging.getLogger('fantasygolf.<module>')``,
    so handlers attached here receive score writes, recalculations, upload
    summaries and cache diagnostics. ``FANTASYGOLF_LOG_LEVEL`` overrides
    ``level`` when set (e.g. ``DEBUG`` to see cache hits and timings).

    Args:
        log_dir: Directory for log files (default: ./logs)
        level: Logging level (default: INFO)
        log_to_file: Whether to also write a timestamped log file
        log_to_console: Whether to log to stdout

    Returns:
        Configured root logger for the package

    Example:
        from fantasygolf.logging_config import setup_logging
        logger = setup_logging(log_to_file=True)
        logger.info('Recalculating season 2026')
    """
    level = _level_from_env(level)
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.handlers = []

    detailed_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S',
    )
    simple_formatter = logging.Formatter('%(levelname)s [%(name)s]: %(message)s')

    if log_to_file:
        log_dir = log_dir or Path('logs')
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / f'fantasygolf_{datetime.now().strftime("%Y%m%d_%H%M%S")}.log'
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(detailed_formatter)
        logger.addHandler(file_handler)

    if log_to_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(simple_formatter)
        logger.addHandler(console_handler)

    return logger


@contextmanager
def timed(logger: logging.Logger, operation: str, **meta) -> Iterator[None]:
    """
    Log how long a block took, at DEBUG level.

    Example:
        with timed(logger, 'full-leaderboard', season=2026):
            board = build()
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        duration_ms = (time.perf_counter() - start) * 1000
        if meta:
            details = ', '.join(f'{k}={v}' for k, v in meta.items())
            logger.debug(f'[perf] {operation}: {duration_ms:.1f}ms ({details})')
        else:
            logger.debug(f'[perf] {operation}: {duration_ms:.1f}ms')
