"""
CLI Interface - Command-line tools for Astrografe.

Provides commands for:
- Text normalization
- Quote extraction
- Provider inspection
"""

from .main import app, main

__all__ = ["app", "main"]
