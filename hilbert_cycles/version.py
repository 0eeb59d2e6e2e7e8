"""Hilbert Cycles version information - Single Source of Truth."""

__version__ = "0.3.0"
