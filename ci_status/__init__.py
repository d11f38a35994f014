"""Report the outcome of a wrapped command as a forge commit status."""

__version__ = "0.1.0"
