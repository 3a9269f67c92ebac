"""Shared logic for the die-cast collection tracker pages."""

__version__ = "0.1.0"
