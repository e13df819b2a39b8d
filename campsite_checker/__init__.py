"""Campsite availability checker for the Barrett Cove booking widget."""

__version__ = "1.0.0"
