"""Bundled framework resources (default configuration)."""
