"""Remote tree interface and its implementations."""

from __future__ import annotations

from .cursor import CrawlCursor
from .drive_controller import GoogleDriveController
from .memory import InMemoryDriveTree
from .protocol import ConflictBehavior, RemoteTree

__all__ = [
    "RemoteTree",
    "ConflictBehavior",
    "CrawlCursor",
    "GoogleDriveController",
    "InMemoryDriveTree",
]
