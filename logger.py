"""
Structured Logging System for PanelKit.

Provides console and rotating file logging with categories for the
keypad, data logger and storage subsystems, plus a mixin for classes
that want a prefixed logger.
"""

import logging
import logging.handlers
import os
import time
import json
import traceback
from pathlib import Path
from typing import Optional, Dict, Any, Union
from enum import Enum, auto
from contextlib import contextmanager
from datetime import datetime
import uuid


LOG_DIR_ENV = "PANELKIT_LOG_DIR"


class LogLevel(Enum):
    """Log levels including a TRACE level below DEBUG."""
    TRACE = 5
    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40
    CRITICAL = 50


class LogCategory(Enum):
    """Categories for panel subsystems."""
    SYSTEM = auto()
    KEYPAD = auto()
    DATALOGGER = auto()
    STORAGE = auto()
    CONFIG = auto()
    USER_ACTION = auto()
    HARDWARE = auto()


CategoryLike = Union[LogCategory, str, None]


class StructuredFormatter(logging.Formatter):
    """Formatter that appends structured fields as JSON."""

    def __init__(self, include_json=True):
        super().__init__()
        self.include_json = include_json

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).isoformat()
        level = record.levelname
        logger_name = record.name
        message = record.getMessage()

        basic_line = f"[{timestamp}] {level:8} {logger_name}: {message}"

        structured_data = {}
        for key, value in record.__dict__.items():
            if key.startswith('field_') or key in ['category', 'session_id']:
                structured_data[key] = value

        if record.exc_info:
            structured_data['exception'] = {
                'type': record.exc_info[0].__name__,
                'message': str(record.exc_info[1]),
                'traceback': traceback.format_exception(*record.exc_info)
            }

        structured_data['location'] = {
            'filename': record.filename,
            'line': record.lineno,
            'function': record.funcName
        }

        if structured_data and self.include_json:
            json_data = json.dumps(structured_data, default=str, ensure_ascii=False)
            return f"{basic_line} | {json_data}"

        return basic_line


def _category_name(category: CategoryLike) -> str:
    if category is None:
        return 'GENERAL'
    if isinstance(category, LogCategory):
        return category.name
    return str(category).upper()


def default_log_dir() -> Path:
    """Log directory from the environment, or ``~/PanelKit/logs``."""
    configured = os.environ.get(LOG_DIR_ENV)
    if configured:
        return Path(configured)
    return Path.home() / "PanelKit" / "logs"


class PanelLogger:
    """Logger for PanelKit with structured fields and categories."""

    def __init__(self, name: str = "panelkit", log_dir: Optional[Path] = None):
        self.name = name
        self.session_id = str(uuid.uuid4())[:8]

        if log_dir is None:
            log_dir = default_log_dir()
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)

        self._setup_loggers()

        self.info("PanelKit logging system initialized",
                  category=LogCategory.SYSTEM,
                  session_id=self.session_id,
                  log_dir=str(self.log_dir))

    def _setup_loggers(self):
        """Setup main logger and handlers."""
        self.logger = logging.getLogger(self.name)
        self.logger.setLevel(logging.DEBUG)
        self.logger.propagate = False

        for handler in list(self.logger.handlers):
            handler.close()
        self.logger.handlers.clear()

        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.INFO)
        console_handler.setFormatter(StructuredFormatter(include_json=False))
        self.logger.addHandler(console_handler)

        log_file = self.log_dir / f"{self.name}.log"
        file_handler = logging.handlers.RotatingFileHandler(
            log_file, maxBytes=10*1024*1024, backupCount=5, encoding="utf-8"
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(StructuredFormatter(include_json=True))
        self.logger.addHandler(file_handler)

        # Errors and critical issues also go to their own file
        error_log_file = self.log_dir / f"{self.name}_errors.log"
        error_handler = logging.handlers.RotatingFileHandler(
            error_log_file, maxBytes=5*1024*1024, backupCount=5, encoding="utf-8"
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(StructuredFormatter(include_json=True))
        self.logger.addHandler(error_handler)

    def _log(self, level: int, message: str, category: CategoryLike = None,
             exception: Optional[Exception] = None, **kwargs):
        """Internal logging method."""
        extra = {
            'session_id': self.session_id,
            'category': _category_name(category)
        }

        for key, value in kwargs.items():
            if not key.startswith('_'):
                extra[f'field_{key}'] = value

        if exception:
            self.logger.log(level, message,
                            exc_info=(type(exception), exception, exception.__traceback__),
                            extra=extra)
        else:
            self.logger.log(level, message, extra=extra)

    def trace(self, message: str, category: CategoryLike = None, **kwargs):
        """Log trace message (most detailed debugging info)."""
        self._log(LogLevel.TRACE.value, message, category, **kwargs)

    def debug(self, message: str, category: CategoryLike = None, **kwargs):
        """Log debug message."""
        self._log(LogLevel.DEBUG.value, message, category, **kwargs)

    def info(self, message: str, category: CategoryLike = None, **kwargs):
        """Log info message."""
        self._log(LogLevel.INFO.value, message, category, **kwargs)

    def warning(self, message: str, category: CategoryLike = None, **kwargs):
        """Log warning message."""
        self._log(LogLevel.WARNING.value, message, category, **kwargs)

    def error(self, message: str, exception: Optional[Exception] = None,
              category: CategoryLike = None, **kwargs):
        """Log error message."""
        self._log(LogLevel.ERROR.value, message, category, exception, **kwargs)

    def critical(self, message: str, exception: Optional[Exception] = None,
                 category: CategoryLike = None, **kwargs):
        """Log critical message."""
        self._log(LogLevel.CRITICAL.value, message, category, exception, **kwargs)

    def log_user_action(self, action: str, details: Optional[Dict[str, Any]] = None):
        """Log operator actions on the panel."""
        log_data = {
            'action': action,
            'timestamp': time.time()
        }
        if details:
            log_data.update(details)

        self._log(LogLevel.INFO.value, f"USER ACTION: {action}",
                  LogCategory.USER_ACTION, **log_data)

    @contextmanager
    def timer(self, operation: str, log_result: bool = True):
        """Context manager for timing operations."""
        start_time = time.time()
        operation_id = str(uuid.uuid4())[:8]

        self.debug(f"Starting operation: {operation}",
                   category=LogCategory.SYSTEM, operation_id=operation_id)

        try:
            yield operation_id
        finally:
            duration = time.time() - start_time
            if log_result:
                self.info(f"Completed operation: {operation} in {duration:.3f}s",
                          category=LogCategory.SYSTEM, operation_id=operation_id,
                          duration=duration)

    def get_session_id(self) -> str:
        """Get the current session ID."""
        return self.session_id

    def set_log_level(self, level: Union[str, int, LogLevel]):
        """Set the logging level."""
        if isinstance(level, LogLevel):
            level = level.value
        elif isinstance(level, str):
            level = getattr(logging, level.upper())

        self.logger.setLevel(level)
        self.info(f"Log level set to: {logging.getLevelName(level)}")

    def cleanup_old_logs(self, days_to_keep: int = 30) -> int:
        """Remove log files older than ``days_to_keep`` days."""
        cutoff_time = time.time() - (days_to_keep * 24 * 3600)
        removed_count = 0
        try:
            for log_file in self.log_dir.glob("*.log.*"):
                if log_file.stat().st_mtime < cutoff_time:
                    log_file.unlink()
                    removed_count += 1
        except OSError as e:
            self.error("Failed to cleanup old logs", exception=e,
                       category=LogCategory.SYSTEM)
            return removed_count

        self.info(f"Cleaned up {removed_count} old log files",
                  category=LogCategory.SYSTEM,
                  removed_count=removed_count,
                  days_to_keep=days_to_keep)
        return removed_count

    def close(self):
        """Flush and detach all handlers."""
        for handler in list(self.logger.handlers):
            handler.flush()
            handler.close()
        self.logger.handlers.clear()


# Global logger instance
_global_logger: Optional[PanelLogger] = None


def get_logger() -> PanelLogger:
    """Get the global logger instance."""
    global _global_logger
    if _global_logger is None:
        _global_logger = PanelLogger()
    return _global_logger


def setup_logger(name: str = "panelkit", log_dir: Optional[Path] = None) -> PanelLogger:
    """Set up and return the global logger."""
    global _global_logger
    if _global_logger is not None:
        _global_logger.close()
    _global_logger = PanelLogger(name, log_dir)
    return _global_logger


def trace(message: str, **kwargs):
    get_logger().trace(message, **kwargs)


def debug(message: str, **kwargs):
    get_logger().debug(message, **kwargs)


def info(message: str, **kwargs):
    get_logger().info(message, **kwargs)


def warning(message: str, **kwargs):
    get_logger().warning(message, **kwargs)


def error(message: str, exception: Optional[Exception] = None, **kwargs):
    get_logger().error(message, exception=exception, **kwargs)


def critical(message: str, exception: Optional[Exception] = None, **kwargs):
    get_logger().critical(message, exception=exception, **kwargs)


def log_user_action(action: str, details: Optional[Dict[str, Any]] = None):
    get_logger().log_user_action(action, details)


def timer(operation: str, log_result: bool = True):
    """Timer context manager using global logger."""
    return get_logger().timer(operation, log_result)


class LoggableMixin:
    """Mixin class to add logging capabilities to other classes."""

    log_category: CategoryLike = None

    def __init__(self):
        self._module_name = self.__class__.__name__

    @property
    def _logger(self) -> PanelLogger:
        # Resolved on each call so setup_logger() takes effect for live objects
        return get_logger()

    def _category(self, kwargs):
        return kwargs.pop('category', self.log_category)

    def log_trace(self, message: str, **kwargs):
        category = self._category(kwargs)
        self._logger.trace(f"[{self._module_name}] {message}", category, **kwargs)

    def log_debug(self, message: str, **kwargs):
        """Log debug message."""
        category = self._category(kwargs)
        self._logger.debug(f"[{self._module_name}] {message}", category, **kwargs)

    def log_info(self, message: str, **kwargs):
        """Log info message."""
        category = self._category(kwargs)
        self._logger.info(f"[{self._module_name}] {message}", category, **kwargs)

    def log_warning(self, message: str, **kwargs):
        """Log warning message."""
        category = self._category(kwargs)
        self._logger.warning(f"[{self._module_name}] {message}", category, **kwargs)

    def log_error(self, message: str, exception: Optional[Exception] = None, **kwargs):
        """Log error message."""
        category = self._category(kwargs)
        self._logger.error(f"[{self._module_name}] {message}", exception=exception,
                           category=category, **kwargs)

    def log_critical(self, message: str, exception: Optional[Exception] = None, **kwargs):
        category = self._category(kwargs)
        self._logger.critical(f"[{self._module_name}] {message}", exception=exception,
                              category=category, **kwargs)

    def log_user_action(self, action: str, details: Optional[Dict[str, Any]] = None):
        """Log user action."""
        action_details = {'module': self._module_name}
        if details:
            action_details.update(details)
        self._logger.log_user_action(action, action_details)
