"""Resumable news-to-video pipeline."""

__version__ = "1.0.0"
