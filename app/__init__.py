"""Registry File Proxy."""
