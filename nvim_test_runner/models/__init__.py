"""Data models for configuration, dependencies and results."""
