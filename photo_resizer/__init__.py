"""Batch photo resizer: resize/recompress API and batch upload client."""

__version__ = "0.1.0"
