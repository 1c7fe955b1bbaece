#!/usr/bin/env python3
# -*-coding: utf-8-*-
"""
Logging System for ROM Audit

Features:
- Level-specific console/file formats
- Optional structured JSON output (ROM_AUDIT_LOG_JSON=1)
- Rotating main and error log files
- Lightweight phase timing (catalog load, inventory build, reconcile)
"""

import atexit
import json
import logging
import logging.handlers
import os
import sys
import threading
import time
from collections import defaultdict
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

# =====================================================================================================
# Formatters
# =====================================================================================================


class FastFormatter(logging.Formatter):
    """Formatter with one pre-built format per level."""

    def __init__(self, enable_colors: bool = False):
        super().__init__()
        self.enable_colors = enable_colors

        formats = {
            logging.ERROR: "[{asctime}] ERROR   [{name}] {message}",
            logging.WARNING: "[{asctime}] WARNING [{name}] {message}",
            logging.INFO: "[{asctime}] INFO    {message}",
            logging.DEBUG: "[{asctime}] DEBUG   {name}:{lineno} - {message}"
        }
        self._formatters = {
            level: logging.Formatter(fmt, style='{', datefmt='%H:%M:%S')
            for level, fmt in formats.items()
        }

        self.colors = {
            'ERROR': '\033[91m',
            'WARNING': '\033[93m',
            'INFO': '\033[92m',
            'DEBUG': '\033[94m',
            'RESET': '\033[0m'
        } if enable_colors else {}

    def format(self, record):
        formatter = self._formatters.get(record.levelno, self._formatters[logging.INFO])
        text = formatter.format(record)
        color = self.colors.get(record.levelname)
        if color:
            return f"{color}{text}{self.colors['RESET']}"
        return text


class JsonFormatter(logging.Formatter):
    """Structured JSON formatter (optional)."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "pathname": record.pathname,
            "lineno": record.lineno,
            "thread": record.threadName,
            "process": record.process,
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)

# =====================================================================================================
# Performance logger
# =====================================================================================================


class SimplePerformanceLogger:
    """Accumulates per-operation timings."""

    SLOW_THRESHOLD_SECONDS = 5.0

    def __init__(self, name: str = "romaudit.performance"):
        self.logger = logging.getLogger(name)
        self.metrics = defaultdict(float)
        self.counts = defaultdict(int)
        self._lock = threading.Lock()

    def log_timing(self, operation: str, duration: float):
        with self._lock:
            self.metrics[operation] += duration
            self.counts[operation] += 1

        if duration > self.SLOW_THRESHOLD_SECONDS:
            self.logger.warning("SLOW: %s took %.2fs", operation, duration)
        else:
            self.logger.debug("%s took %.3fs", operation, duration)

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            stats = {}
            for operation in self.metrics:
                count = self.counts[operation]
                total = self.metrics[operation]
                stats[operation] = {
                    'count': count,
                    'total_time': total,
                    'avg_time': total / count if count > 0 else 0
                }
            return stats

    def reset(self):
        with self._lock:
            self.metrics.clear()
            self.counts.clear()

# =====================================================================================================
# Setup
# =====================================================================================================


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def setup_logging(
    log_level: str = "INFO",
    log_dir: Optional[str] = None,
    enable_file_logging: bool = True,
    enable_console_logging: bool = True,
    max_log_size: str = "10MB",
    backup_count: int = 3,
    structured_json: Optional[bool] = None,
) -> Dict[str, Any]:
    """Configure the root logger for a ROM Audit run.

    Console output goes to stderr so that diagnostic lines printed on stdout
    stay machine-readable.
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    log_dir_path = Path(log_dir) if log_dir else Path("logs")
    if enable_file_logging:
        log_dir_path.mkdir(parents=True, exist_ok=True)

    size_bytes = _parse_size_string(max_log_size)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    handlers = {}
    use_json = structured_json if structured_json is not None else _env_bool("ROM_AUDIT_LOG_JSON")

    if enable_console_logging:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(numeric_level)

        enable_colors = (hasattr(sys.stderr, 'isatty') and
                         sys.stderr.isatty() and
                         os.environ.get('TERM') != 'dumb')

        console_handler.setFormatter(JsonFormatter() if use_json else FastFormatter(enable_colors=enable_colors))
        root_logger.addHandler(console_handler)
        handlers['console'] = console_handler

    if enable_file_logging:
        main_handler = logging.handlers.RotatingFileHandler(
            str(log_dir_path / "romaudit.log"),
            maxBytes=size_bytes,
            backupCount=backup_count,
            encoding='utf-8'
        )
        main_handler.setLevel(numeric_level)
        main_handler.setFormatter(JsonFormatter() if use_json else FastFormatter())
        root_logger.addHandler(main_handler)
        handlers['main_file'] = main_handler

        error_handler = logging.handlers.RotatingFileHandler(
            str(log_dir_path / "errors.log"),
            maxBytes=size_bytes // 2,
            backupCount=backup_count,
            encoding='utf-8'
        )
        error_handler.setLevel(logging.WARNING)
        error_handler.setFormatter(JsonFormatter() if use_json else FastFormatter())
        root_logger.addHandler(error_handler)
        handlers['error_file'] = error_handler

    main_logger = logging.getLogger('romaudit')
    main_logger.debug("Logging initialized: level=%s file=%s json=%s",
                      log_level, enable_file_logging, use_json)

    return {
        'handlers': handlers,
        'log_dir': log_dir_path,
        'performance': _performance_logger,
    }

# =====================================================================================================
# Utility functions
# =====================================================================================================


def _parse_size_string(size_str: str) -> int:
    """Parse size string into bytes."""
    size_str = size_str.upper().strip()

    multipliers = {
        'KB': 1024,
        'MB': 1024 ** 2,
        'GB': 1024 ** 3,
        'B': 1,
    }

    for suffix, multiplier in multipliers.items():
        if size_str.endswith(suffix):
            try:
                number = float(size_str[:-len(suffix)].strip())
                return int(number * multiplier)
            except ValueError:
                continue

    try:
        return int(float(size_str))
    except ValueError:
        pass

    return 10 * 1024 * 1024


@lru_cache(maxsize=32)
def get_logger(name: str) -> logging.Logger:
    """Get cached logger instance."""
    return logging.getLogger(f"romaudit.{name}")


def cleanup_logging():
    """Close and detach all root handlers."""
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    get_logger.cache_clear()


_performance_logger = SimplePerformanceLogger()

atexit.register(cleanup_logging)

# =====================================================================================================
# Performance monitoring
# =====================================================================================================


def log_performance(operation: str, duration: float):
    _performance_logger.log_timing(operation, duration)


def get_performance_stats() -> Dict[str, Any]:
    return _performance_logger.get_stats()


class LoggingTimer:
    """Timing context manager feeding the performance logger."""

    def __init__(self, operation_name: str):
        self.operation_name = operation_name
        self.start_time = None
        self.duration = 0.0

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.start_time:
            self.duration = time.perf_counter() - self.start_time
            log_performance(self.operation_name, self.duration)
