"""
Unified Logging Configuration for the Grade Annotator.

This module provides a standardized logging interface with a console handler
and a rotating file handler, plus a process-wide ``Logger`` that keeps simple
annotation counters.
"""

import logging
import os
import sys
import threading
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def setup_logger(name: str, log_file: Optional[str] = None) -> logging.Logger:
    """
    Set up a logger with proper configuration.

    Args:
        name: Name of the logger (usually __name__)
        log_file: Optional log file path. If not provided, logs to
            ``$LOG_DIR/annotator.log``

    Returns:
        logging.Logger: Configured logger instance
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        if log_level not in VALID_LOG_LEVELS:
            log_level = "INFO"

        logger.setLevel(getattr(logging, log_level, logging.INFO))

        file_formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
        console_formatter = logging.Formatter("%(levelname)s - %(message)s")

        console_handler = logging.StreamHandler()
        console_handler.setFormatter(console_formatter)
        console_handler.setLevel(getattr(logging, log_level, logging.DEBUG))
        logger.addHandler(console_handler)

        if os.getenv("LOG_TO_FILE", "true").lower() != "false":
            if log_file is None:
                log_dir = Path(os.getenv("LOG_DIR", "logs"))
                log_dir.mkdir(parents=True, exist_ok=True)
                log_file = log_dir / "annotator.log"

            if sys.platform.startswith("win"):
                from logging.handlers import TimedRotatingFileHandler

                file_handler = TimedRotatingFileHandler(
                    str(log_file),
                    when="midnight",
                    interval=1,
                    backupCount=7,
                    delay=True,
                    encoding="utf-8",
                )
            else:
                file_handler = RotatingFileHandler(
                    str(log_file),
                    maxBytes=10 * 1024 * 1024,  # 10MB
                    backupCount=5,
                    delay=True,
                    encoding="utf-8",
                )
            file_handler.setFormatter(file_formatter)
            file_handler.setLevel(getattr(logging, log_level, logging.DEBUG))
            logger.addHandler(file_handler)

        # Don't propagate to root logger
        logger.propagate = False

    return logger


class Logger:
    """Enhanced logger with annotation counters."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        """Initialize the logger with configuration."""
        if getattr(self, "_initialized", False):
            return

        self.logger = setup_logger("grade_annotator", None)

        self.metrics = {
            "start_time": datetime.now(),
            "documents_annotated": 0,
            "placeholders_located": 0,
            "fallbacks": 0,
            "rasterizations": 0,
            "skipped_regions": 0,
            "errors": 0,
            "warnings": 0,
        }
        self._metrics_lock = threading.Lock()

        self._initialized = True

    def debug(self, message: str, *args, **kwargs) -> None:
        """Log a debug message."""
        self.logger.debug(message, *args, **kwargs)

    def info(self, message: str, *args, **kwargs) -> None:
        """Log an info message."""
        self.logger.info(message, *args, **kwargs)

    def warning(self, message: str, *args, **kwargs) -> None:
        """Log a warning message."""
        self.log_metric("warnings")
        self.logger.warning(message, *args, **kwargs)

    def error(self, message: str, *args, **kwargs) -> None:
        """Log an error message."""
        self.log_metric("errors")
        self.logger.error(message, *args, **kwargs)

    def log_error_with_context(self, error: Exception, context: Dict[str, Any]) -> None:
        """Log an error with additional context information.

        Args:
            error: The exception that occurred
            context: Additional context information
        """
        self.log_metric("errors")

        error_info = {
            "error_type": type(error).__name__,
            "error_message": str(error),
            "context": context,
            "timestamp": datetime.now().isoformat(),
        }

        self.logger.error(
            f"Error occurred: {error_info['error_type']} - {error_info['error_message']}",
            extra={"error_context": error_info},
            exc_info=True,
        )

    def log_metric(self, metric_name: str, value: Any = 1) -> None:
        """Log a metric value. Safe to call from batch worker threads."""
        with self._metrics_lock:
            if metric_name in self.metrics:
                if isinstance(self.metrics[metric_name], (int, float)):
                    self.metrics[metric_name] += value
                else:
                    self.metrics[metric_name] = value

    def log_annotation(
        self,
        filename: str,
        output_format: str,
        modifications: int,
        used_fallback: bool,
    ) -> None:
        """Log the outcome of one annotation call.

        Args:
            filename: Name of the annotated document
            output_format: Extension of the produced artifact
            modifications: Number of placeholders written
            used_fallback: Whether a fallback report was produced
        """
        self.log_metric("documents_annotated")
        if used_fallback:
            self.log_metric("fallbacks")
        self.logger.info(
            f"Annotated {filename} -> {output_format} "
            f"({modifications} placeholder(s), fallback={used_fallback})"
        )

    def log_performance(self) -> None:
        """Log counters collected since start-up."""
        duration = (datetime.now() - self.metrics["start_time"]).total_seconds()
        self.info("Annotation Metrics:")
        self.info(f"  Duration: {duration:.2f} seconds")
        self.info(f"  Documents Annotated: {self.metrics['documents_annotated']}")
        self.info(f"  Placeholders Located: {self.metrics['placeholders_located']}")
        self.info(f"  Fallback Reports: {self.metrics['fallbacks']}")
        self.info(f"  Rasterizations: {self.metrics['rasterizations']}")
        self.info(f"  Skipped Regions: {self.metrics['skipped_regions']}")
        self.info(f"  Errors: {self.metrics['errors']}")
        self.info(f"  Warnings: {self.metrics['warnings']}")

    def log_warning(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        """Log warning with context."""
        self.log_metric("warnings")
        warning_msg = message
        if context:
            warning_msg += f" - Context: {context}"
        self.logger.warning(warning_msg)


# Create default logger instance
logger = Logger()
