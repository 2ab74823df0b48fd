"""Migrate Kong Konnect services to Tyk Dashboard API definitions."""

__version__ = "0.1.0"
