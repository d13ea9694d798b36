"""Serve a single file, or whatever is piped in, to the local network."""

__version__ = "0.1.0"
