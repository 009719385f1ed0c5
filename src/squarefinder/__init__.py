"""Capture square?id= requests fired by a map site's address search."""

__version__ = "0.1.0"
