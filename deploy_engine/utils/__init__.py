"""Utility modules for the deploy engine."""

from .config_manager import ConfigManager

__all__ = ['ConfigManager']
