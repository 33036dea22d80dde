"""
Utility package for the OASIS cognition regression analysis.

This package provides logging, error-handling decorators and file helpers
shared by the data, model and configuration packages.
"""

from utils.logging_utils import logger, get_logger, LoggingManager, log_step
from utils.file_utils import ensure_dir_exists, save_json, load_json
from utils.decorators import timed, log_errors

__all__ = [
    'logger', 'get_logger', 'LoggingManager', 'ensure_dir_exists',
    'save_json', 'load_json', 'log_step', 'timed', 'log_errors'
]
