"""Operational logging setup for the application layer."""

from __future__ import annotations

import logging
import os

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(message)s"


def parse_log_level(value: str | int, path: str = "logging.level") -> int:
    if isinstance(value, bool):
        raise ValueError(f"Invalid log level for {path}: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        level = logging.getLevelName(value.strip().upper())
        if isinstance(level, int):
            return level
    raise ValueError(f"Invalid log level for {path}: {value!r}")


def setup_operational_logger(
    name: str = "image_jobs",
    *,
    level: str | int = "INFO",
    log_dir: str | None = None,
) -> tuple[logging.Logger, str | None]:
    """
    Configure a logger for job traceability.

    Always logs to the console; when `log_dir` is given, DEBUG and above also go
    to `<log_dir>/<name>.log` (UTF-8). Returns (logger, log_file_or_None).
    """

    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT)

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(parse_log_level(level))
    stream_handler.setFormatter(formatter)
    logger.addHandler(stream_handler)

    log_file: str | None = None
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        log_file = os.path.join(log_dir, f"{name}.log")
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.propagate = False

    logger.debug("Operational logging initialized (log_file=%s)", log_file or "<none>")
    return logger, log_file
