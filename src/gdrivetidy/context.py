"""Shared handles passed to the engines."""

from __future__ import annotations

from dataclasses import dataclass

from gdrivetidy.controller import RemoteTree
from gdrivetidy.store import MirrorStore


@dataclass(frozen=True)
class TidyContext:
    """
    Remote tree and mirror store used by one set of engines.

    Engines hold non-owning references; whoever built the context closes
    the store (see DriveTidyManager).
    """

    remote: RemoteTree
    store: MirrorStore
