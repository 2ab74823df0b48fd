"""Kong (source gateway) interaction package."""

from .exporter import KongExporter, load_dump

__all__ = ["KongExporter", "load_dump"]
