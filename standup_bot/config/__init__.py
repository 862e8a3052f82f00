"""
Configuration module for the Standup Order Bot.

This package provides environment-based configuration management using Pydantic Settings.
"""

from .settings import AppSettings, get_settings

__all__ = ["AppSettings", "get_settings"]
