"""Duplicate analysis exports."""

from __future__ import annotations

from .duplicate_analyzer import DuplicateAnalyzer

__all__ = ["DuplicateAnalyzer"]
