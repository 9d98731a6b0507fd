"""Foresight: consequence cascade analysis and multiverse scenario simulation."""

__version__ = "0.1.0"
