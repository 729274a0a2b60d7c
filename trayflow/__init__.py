"""Routing, tray batching and station locking for serialized production lines."""

__version__ = "0.1.0"
