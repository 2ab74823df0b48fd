"""Tyk Dashboard (target gateway) interaction package."""

from .client import CreateOutcome, TykDashboardClient
from .importer import ImportCoordinator

__all__ = ["CreateOutcome", "TykDashboardClient", "ImportCoordinator"]
