"""Assertions, fixtures, hooks, mocks and parameter sets for writing tests."""

__version__ = "0.1.0"