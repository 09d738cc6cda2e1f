"""
darwincross CLI module.

This module provides the command-line interface for darwincross.
"""

from .parser import CLI, main

__all__ = ["CLI", "main"]
