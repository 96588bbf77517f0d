"""Sync engine exports."""

from __future__ import annotations

from gdrivetidy.models import SyncProgress, SyncResult, SyncState

from .engine import SyncEngine

__all__ = ["SyncEngine", "SyncState", "SyncProgress", "SyncResult"]
