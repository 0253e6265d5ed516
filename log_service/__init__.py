"""In-memory log service used by the log store in development and tests."""
