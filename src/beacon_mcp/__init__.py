"""Beacon MCP: live progress tracking for concurrent workers."""

__version__ = "0.1.0"

__all__ = ["__version__"]
