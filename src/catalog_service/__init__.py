"""Product catalog synchronization and query service."""

__version__ = "1.0.0"
