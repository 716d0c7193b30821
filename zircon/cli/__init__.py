"""
Zircon CLI module.

This module provides the command-line interface for Zircon.
"""

from .parser import CLI, main
from . import utils

__all__ = ["CLI", "main", "utils"]
