"""
Moodboard - a minimal feed backend for short notes and images.

This package provides a small webserver that accepts text entries with an
optional image, keeps them in memory and serves them back as a feed.
"""

__version__ = "0.1.0"
