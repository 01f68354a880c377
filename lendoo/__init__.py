"""Lendoo - rental lifecycle engine for a peer-to-peer rental marketplace."""

__version__ = "1.0.0"
