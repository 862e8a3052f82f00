"""Logging and input validation utilities."""
