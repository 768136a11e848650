"""Searchable catalog of architectural PDF plans."""

__version__ = "0.1.0"
