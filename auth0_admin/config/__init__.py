"""Configuration module for the Auth0 admin facade."""
from .settings import AppConfig, load_settings

__all__ = ["AppConfig", "load_settings"]
