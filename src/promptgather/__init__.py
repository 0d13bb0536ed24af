"""Gather AI-assistant instruction files from sibling repositories."""

__version__ = "0.1.0"
