"""Data layer of a plugin-based ERP: field values, ids, record cache, in-memory database, configuration."""

__version__ = "0.1.0"
__all__ = ["cache", "cache_models", "config", "database", "dbvalues", "fields", "models", "table"]