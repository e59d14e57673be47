"""Markdown documentation for cargo crates and their dependency closures."""

__version__ = "0.1.0"
