#!/usr/bin/env python3
"""
File utility functions for the analysis package.

This module provides file and directory management utility functions.
"""

import os
import json
from pathlib import Path
from typing import Dict, Any, Union

from utils.logging_utils import logger
from utils.serialization import to_serializable


def ensure_dir_exists(directory: Union[str, Path]) -> None:
    """
    Ensure a directory exists, creating it if necessary.

    Args:
        directory: Path to directory
    """
    if directory:
        os.makedirs(directory, exist_ok=True)
        logger.debug(f"Ensuring directory exists: {directory}")


def save_json(data: Dict[str, Any], filepath: Union[str, Path]) -> None:
    """
    Save dictionary to JSON file, converting numpy/pandas values first.

    Args:
        data: Dictionary to save
        filepath: Path to save JSON file
    """
    ensure_dir_exists(os.path.dirname(str(filepath)))

    with open(filepath, 'w') as f:
        json.dump(to_serializable(data), f, indent=2, allow_nan=False)

    logger.debug(f"Saved JSON data to {filepath}")


def load_json(filepath: Union[str, Path]) -> Dict[str, Any]:
    """
    Load dictionary from JSON file.

    Args:
        filepath: Path to JSON file

    Returns:
        Dictionary loaded from JSON file, empty if the file does not exist
    """
    if not os.path.exists(filepath):
        logger.warning(f"JSON file not found: {filepath}")
        return {}

    with open(filepath, 'r') as f:
        data = json.load(f)

    logger.debug(f"Loaded JSON data from {filepath}")
    return data
