"""
Data package for the OASIS cognition regression analysis.

This package provides loading, cleaning and exploratory visualization of
the clinical visit table.
"""

from data.data_loader import DataLoader, DataLoaderError
from data.data_preprocessor import DataPreprocessor
from data.data_visualizer import DataVisualizer

__all__ = ['DataLoader', 'DataLoaderError', 'DataPreprocessor', 'DataVisualizer']
