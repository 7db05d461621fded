"""cachecleaner - find and remove stale developer caches."""

__version__ = "0.1.0"
