"""Packaged resources (configuration defaults)."""
