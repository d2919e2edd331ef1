"""Normalize personal data exports and compute message statistics."""

__version__ = "0.1.0"
