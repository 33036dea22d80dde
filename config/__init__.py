"""
Configuration package for the OASIS cognition regression analysis.

This package provides configuration management functionality: a typed
AppConfig with JSON and environment-variable overrides.
"""

from config.config_manager import ConfigManager, AppConfig

__all__ = ['ConfigManager', 'AppConfig']
