# roprojection/__init__.py
"""Steady-state RO train projection (hydraulics, ion passage, scaling)."""

__version__ = "0.1.0"
