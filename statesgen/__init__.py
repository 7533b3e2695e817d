"""Describe shared UI state and generate server, wrapper and stub sources from it."""

__version__ = "0.8.1"

__all__ = ["__version__"]