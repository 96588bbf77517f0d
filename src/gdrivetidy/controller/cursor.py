"""Opaque crawl cursor codec for the Drive controller."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Literal, Optional

from gdrivetidy.errors import CursorInvalidError

CursorKind = Literal["files", "changes"]

_KINDS: tuple[str, ...] = ("files", "changes")


@dataclass(frozen=True)
class CrawlCursor:
    """
    Continuation state of a crawl.

    kind="files": a fresh pass paging through files.list; token is the next
        files page token and start_page_token is the change-feed position
        captured before the pass began.
    kind="changes": an incremental pass; token is a changes page token.
    """

    kind: CursorKind
    token: Optional[str]
    start_page_token: Optional[str] = None

    def encode(self) -> str:
        payload: dict[str, str] = {"k": self.kind}
        if self.token is not None:
            payload["t"] = self.token
        if self.start_page_token is not None:
            payload["s"] = self.start_page_token
        return json.dumps(payload, separators=(",", ":"), sort_keys=True)

    @classmethod
    def decode(cls, value: str) -> CrawlCursor:
        """Parse an encoded cursor. Raises CursorInvalidError if malformed."""
        try:
            payload = json.loads(value)
        except (TypeError, ValueError) as exc:
            raise CursorInvalidError("Malformed crawl cursor", cause=exc) from exc

        if not isinstance(payload, dict) or payload.get("k") not in _KINDS:
            raise CursorInvalidError("Unknown crawl cursor kind", details={"cursor": value})

        token = payload.get("t")
        start = payload.get("s")
        if token is not None and not isinstance(token, str):
            raise CursorInvalidError("Crawl cursor token must be a string")
        if start is not None and not isinstance(start, str):
            raise CursorInvalidError("Crawl cursor start token must be a string")

        if payload["k"] == "changes" and not token:
            raise CursorInvalidError("Change cursor is missing its page token")
        if payload["k"] == "files" and (not token or not start):
            raise CursorInvalidError("Files cursor is missing its page or start token")

        return cls(kind=payload["k"], token=token, start_page_token=start)
