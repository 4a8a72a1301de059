"""
Utils package for common utilities.
"""

from grade_annotator.utils.logger import Logger, logger, setup_logger

__all__ = ["Logger", "logger", "setup_logger"]
