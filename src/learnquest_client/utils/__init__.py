"""Logging setup and secret redaction helpers."""
