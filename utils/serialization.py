#!/usr/bin/env python3
"""
Serialization utilities for the analysis package.

This module converts numpy and pandas objects into JSON-friendly values.
"""

import math
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

from utils.logging_utils import logger


def to_serializable(obj: Any) -> Any:
    """
    Convert object to JSON-serializable format.

    Args:
        obj: Object to convert

    Returns:
        JSON-serializable representation of object; NaN and infinite
        floats become None so the output is strict JSON
    """
    if isinstance(obj, (bool, np.bool_)):
        return bool(obj)
    elif isinstance(obj, np.integer):
        return int(obj)
    elif isinstance(obj, (float, np.floating)):
        value = float(obj)
        return value if math.isfinite(value) else None
    elif isinstance(obj, (np.ndarray, list, tuple)):
        return [to_serializable(x) for x in obj]
    elif isinstance(obj, dict):
        return {str(k): to_serializable(v) for k, v in obj.items()}
    elif isinstance(obj, pd.DataFrame):
        return {
            'columns': [str(c) for c in obj.columns],
            'index': [to_serializable(i) for i in obj.index],
            'data': to_serializable(obj.values.tolist())
        }
    elif isinstance(obj, pd.Series):
        return {str(k): to_serializable(v) for k, v in obj.items()}
    elif obj is None or isinstance(obj, (str, int)):
        return obj
    elif isinstance(obj, Path):
        return str(obj)
    else:
        logger.warning(f"Serializing object of type {type(obj).__name__} as string")
        return str(obj)
