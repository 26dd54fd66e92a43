"""Split large SVG maps into printable, overlapping tiles."""

__version__ = "0.1.0"
