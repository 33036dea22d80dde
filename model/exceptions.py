#!/usr/bin/env python3
"""
Custom exceptions for the OASIS cognition regression analysis.

This module provides a hierarchy of exception classes tailored to the
error scenarios that may occur while loading data, fitting models and
reporting results.
"""


class AnalysisError(Exception):
    """Base exception class for all analysis errors."""
    def __init__(self, message, details=None):
        self.message = message
        self.details = details
        super().__init__(message)

    def __str__(self):
        if self.details:
            return f"{self.message} - Details: {self.details}"
        return self.message


# Data-related errors
class DataError(AnalysisError):
    """Error related to data loading, validation, or preparation."""
    pass


class DataValidationError(DataError):
    """Error related to data validation."""
    pass


class DataPreparationError(DataError):
    """Error related to data preparation for modeling."""
    pass


# Model-related errors
class ModelError(AnalysisError):
    """Base class for model-related errors."""
    pass


class ModelBuildError(ModelError):
    """Error related to building a model."""
    pass


class SamplingError(ModelError):
    """Error related to MCMC sampling."""
    pass


class ModelEvaluationError(ModelError):
    """Error related to prediction, residuals or diagnostics."""
    pass


class VisualizationError(ModelError):
    """Error related to plotting."""
    pass


# Configuration-related errors
class ConfigurationError(AnalysisError):
    """Error related to configuration."""
    pass


# Execution-related errors
class ExecutionError(AnalysisError):
    """Error related to execution of the analysis."""
    pass


class RunnerError(ExecutionError):
    """Error related to the model runner."""
    pass


# Results-related errors
class ResultsError(AnalysisError):
    """Error related to results handling."""
    pass
