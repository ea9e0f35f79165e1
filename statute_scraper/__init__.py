"""Respectful collection of criminal statutes from official state sources."""

__version__ = "0.1.0"
