"""Phase-sequenced security and compliance workflows."""

__version__ = "0.1.0"
