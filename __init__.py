"""Videocatalog: a video metadata catalogue with YouTube import."""

__version__ = "1.0.0"
