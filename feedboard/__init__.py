"""Feedboard: categorized feedback submission and review service."""

__version__ = "1.0.0"
