"""Polymarket vs sportsbook expected-value scanner."""

__version__ = "0.1.0"
