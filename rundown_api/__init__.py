"""Strava OAuth token broker and webhook receiver."""

__version__ = "0.1.0"
