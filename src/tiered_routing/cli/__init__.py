"""
Command-line interface for the tiered routing engine.
"""

from .main import main

__all__ = ["main"]
