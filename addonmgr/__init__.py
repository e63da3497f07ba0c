"""Addon catalog and runtime registry"""

__version__ = "1.0.0"
