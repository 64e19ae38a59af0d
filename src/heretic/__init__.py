"""Heretic: purge build-artifact folders from project trees."""

__version__ = "1.0.0"
