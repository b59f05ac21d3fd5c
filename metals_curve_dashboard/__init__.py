"""Gold and silver futures term-structure dashboard."""

__version__ = "0.1.0"
