"""Core configuration, dependencies and errors."""
