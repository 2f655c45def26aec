"""Staticfier - turn private instance methods that never touch instance state into static methods."""

__version__ = "0.1.0"
