"""FX League tournament backend."""

__version__ = "1.0.0"
