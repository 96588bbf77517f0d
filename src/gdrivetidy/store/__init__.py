"""Local mirror store."""

from __future__ import annotations

from .mirror_store import CURSOR_KEY, MirrorStore

__all__ = ["MirrorStore", "CURSOR_KEY"]
