"""Splenex Quote Router: multi-provider swap quote aggregation service."""

__version__ = "1.0.0"
