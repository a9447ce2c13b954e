"""
H-45 Command-Line Interface
===========================

- **h45c**: the H-45 compiler driver

The tool is a Click-based CLI application.
"""

__all__ = ["h45c"]
