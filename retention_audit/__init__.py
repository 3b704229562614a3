"""Customer revenue and retention quality audit."""

__version__ = "0.1.0"
