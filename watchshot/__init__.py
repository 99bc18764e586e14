"""WatchShot: composite smartwatch screenshots onto watch-face mockups."""

__version__ = "1.2.0"
