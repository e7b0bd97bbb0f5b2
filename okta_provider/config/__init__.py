"""Configuration module for the Okta provider."""
from .settings import ProviderConfig, load_settings

__all__ = ["ProviderConfig", "load_settings"]
