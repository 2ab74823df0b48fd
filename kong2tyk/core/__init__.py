"""
Core package: orchestration of a migration run.
Exposes the Coordinator, which ties the exporter, transformer, splitter and
Tyk importer together.
"""

from .coordinator import Coordinator

__all__ = [
    "Coordinator",
]
