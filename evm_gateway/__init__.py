"""EVM transaction execution gateway."""

__version__ = "0.1.0"
