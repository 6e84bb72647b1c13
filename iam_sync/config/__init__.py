"""Configuration module for the identity sync core."""
from .settings import AppConfig, get_settings, load_settings

__all__ = ["AppConfig", "get_settings", "load_settings"]
