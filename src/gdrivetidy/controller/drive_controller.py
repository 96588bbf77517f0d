"""Google Drive API controller implementing the RemoteTree interface."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Optional, Sequence, TypeVar

from googleapiclient.errors import HttpError

from gdrivetidy.auth import AuthInfo, OAuthClient
from gdrivetidy.errors import (
    ApiError,
    ConflictError,
    CursorInvalidError,
    HttpErrorInfo,
    InvalidArgumentError,
    NetworkError,
    NotFoundError,
    is_transient,
    map_http_error,
)
from gdrivetidy.models import CrawlEntry, CrawlPage, FileInfo
from gdrivetidy.util.mime import FOLDER_MIME
from gdrivetidy.util.time import parse_exif_datetime, parse_rfc3339

from .cursor import CrawlCursor
from .fields import CHANGE_FIELDS, FILE_FIELDS, LIST_FIELDS, list_fields
from .protocol import ConflictBehavior

T = TypeVar("T")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _RetryPolicy:
    max_retries: int = 3
    initial_delay_sec: float = 1.0


class GoogleDriveController:
    """
    Drive API controller.

    Notes:
        - The Drive `service` object is NOT exposed.
        - `supports_all_drives` is applied to all requests consistently.
        - `drive_id` scopes crawls to one shared drive; None means My Drive.
        - Transient transport errors (429, 5xx, network) are retried here
          with exponential backoff; callers see only the final failure.
    """

    DEFAULT_SCOPES: tuple[str, ...] = ("https://www.googleapis.com/auth/drive",)

    def __init__(
        self,
        auth_info: AuthInfo,
        *,
        scopes: Optional[Sequence[str]] = None,
        supports_all_drives: bool = True,
        drive_id: Optional[str] = None,
        crawl_page_size: int = 1000,
        max_retries: int = 3,
    ) -> None:
        use_scopes = list(scopes) if scopes is not None else list(self.DEFAULT_SCOPES)
        client = OAuthClient(auth_info)
        service = client.build_drive_service(use_scopes, ensure_valid=True)
        self._init_state(service, supports_all_drives, drive_id, crawl_page_size, max_retries)

    @classmethod
    def from_service(
        cls,
        service: Any,
        *,
        supports_all_drives: bool = True,
        drive_id: Optional[str] = None,
        crawl_page_size: int = 1000,
        max_retries: int = 3,
    ) -> "GoogleDriveController":
        """Create controller from a pre-built Drive service (useful for tests)."""
        obj = cls.__new__(cls)
        obj._init_state(service, supports_all_drives, drive_id, crawl_page_size, max_retries)
        return obj

    def _init_state(
        self,
        service: Any,
        supports_all_drives: bool,
        drive_id: Optional[str],
        crawl_page_size: int,
        max_retries: int,
    ) -> None:
        self._service = service
        self._supports_all_drives = supports_all_drives
        self._drive_id = drive_id
        self._crawl_page_size = crawl_page_size
        self._retry_policy = _RetryPolicy(max_retries=max_retries)

    # ----------------------------
    # RemoteTree API
    # ----------------------------
    def get(self, file_id: str) -> FileInfo:
        req = self._service.files().get(
            fileId=file_id,
            fields=FILE_FIELDS,
            **self._item_kwargs(),
        )
        data = self._execute(req.execute)
        return _file_dict_to_file_info(data)

    def get_root(self, drive_id: Optional[str] = None) -> FileInfo:
        """Return the root folder of My Drive, or of the given shared drive."""
        root = self.get(drive_id or self._drive_id or "root")
        root.parents = []
        return root

    def crawl(self, cursor: Optional[str]) -> CrawlPage:
        """
        Fetch one crawl page.

        cursor=None starts a fresh pass over every non-trashed item. Any
        other value must be a link returned by a previous page; a malformed
        or rejected link raises CursorInvalidError.
        """
        if cursor is None:
            start = self._get_start_page_token()
            logger.debug("Fresh crawl anchored at change token %s", start)
            return self._crawl_files(None, start)

        parsed = CrawlCursor.decode(cursor)
        try:
            if parsed.kind == "files":
                return self._crawl_files(parsed.token, parsed.start_page_token)  # type: ignore[arg-type]
            return self._crawl_changes(parsed.token)  # type: ignore[arg-type]
        except (InvalidArgumentError, NotFoundError) as exc:
            raise CursorInvalidError(
                "Drive rejected the crawl cursor",
                details={"kind": parsed.kind, **exc.details},
                cause=exc,
            ) from exc

    def list_children(
        self,
        folder_id: str,
        *,
        name: Optional[str] = None,
        folders_only: bool = False,
        fields: Optional[Sequence[str]] = None,
        page_size: int = 1000,
    ) -> list[FileInfo]:
        q = _build_children_query(folder_id, name=name, folders_only=folders_only)
        file_fields = ",".join(fields) if fields else FILE_FIELDS
        return self._find_by_query(q, fields=list_fields(file_fields), page_size=page_size)

    def find_child(
        self,
        folder_id: str,
        name: str,
        *,
        folders_only: bool = False,
    ) -> Optional[FileInfo]:
        """Return the first non-trashed child named `name`, or None."""
        matches = self.list_children(folder_id, name=name, folders_only=folders_only)
        return matches[0] if matches else None

    def move(
        self,
        item_id: str,
        new_parent_id: str,
        new_name: Optional[str] = None,
    ) -> FileInfo:
        """
        Replace parents with new_parent_id, optionally renaming.

        Raises:
            ConflictError: if another item with the target name already
                exists in new_parent_id (Drive itself allows duplicates).
        """
        current = self.get(item_id)
        target_name = new_name if new_name is not None else current.name

        existing = self.find_child(new_parent_id, target_name)
        if existing is not None and existing.file_id != item_id:
            raise ConflictError(
                "Destination already contains an item with this name",
                details={
                    "item_id": item_id,
                    "parent_id": new_parent_id,
                    "name": target_name,
                    "existing_id": existing.file_id,
                },
            )

        if current.parents == [new_parent_id] and target_name == current.name:
            return current

        body: dict[str, Any] = {}
        if target_name != current.name:
            body["name"] = target_name
        remove_parents = ",".join(p for p in current.parents if p != new_parent_id)

        req = self._service.files().update(
            fileId=item_id,
            body=body,
            addParents=new_parent_id,
            removeParents=remove_parents or None,
            fields=FILE_FIELDS,
            **self._item_kwargs(),
        )
        data = self._execute(req.execute)
        return _file_dict_to_file_info(data)

    def delete(self, item_id: str, *, permanent: bool = False) -> None:
        """Move an item to the trash (or delete it permanently)."""
        if permanent:
            req = self._service.files().delete(
                fileId=item_id,
                **self._item_kwargs(),
            )
        else:
            req = self._service.files().update(
                fileId=item_id,
                body={"trashed": True},
                fields="id",
                **self._item_kwargs(),
            )
        self._execute(req.execute)

    def create_folder(
        self,
        parent_id: str,
        name: str,
        *,
        on_conflict: ConflictBehavior = "fail",
    ) -> FileInfo:
        if on_conflict not in ("fail", "rename"):
            raise InvalidArgumentError(
                "on_conflict must be 'fail' or 'rename'",
                details={"on_conflict": on_conflict},
            )

        existing = self.find_child(parent_id, name)
        if existing is not None:
            if on_conflict == "fail":
                raise ConflictError(
                    "An item with this name already exists",
                    details={"parent_id": parent_id, "name": name, "existing_id": existing.file_id},
                )
            name = self._free_name(parent_id, name)

        body = {"name": name, "mimeType": FOLDER_MIME, "parents": [parent_id]}
        req = self._service.files().create(
            body=body,
            fields=FILE_FIELDS,
            **self._item_kwargs(),
        )
        data = self._execute(req.execute)
        return _file_dict_to_file_info(data)

    # ----------------------------
    # Internals
    # ----------------------------
    def _item_kwargs(self) -> dict[str, Any]:
        """Flags for single-item requests (get, update, create, delete)."""
        return {"supportsAllDrives": True} if self._supports_all_drives else {}

    def _listing_kwargs(self, *, scoped: bool = False) -> dict[str, Any]:
        """Flags for files.list and changes.list; scoped=True restricts to drive_id."""
        kwargs = self._item_kwargs()
        shared = scoped and bool(self._drive_id)
        if self._supports_all_drives or shared:
            kwargs.update(supportsAllDrives=True, includeItemsFromAllDrives=True)
        if shared:
            kwargs["driveId"] = self._drive_id
        return kwargs

    def _get_start_page_token(self) -> str:
        kwargs = self._item_kwargs()
        if self._drive_id:
            kwargs.update(driveId=self._drive_id, supportsAllDrives=True)
        req = self._service.changes().getStartPageToken(**kwargs)
        data = self._execute(req.execute)
        token = data.get("startPageToken")
        if not isinstance(token, str) or not token:
            raise ApiError("Drive did not return a start page token")
        return token

    def _crawl_files(self, page_token: Optional[str], start_page_token: str) -> CrawlPage:
        kwargs = self._listing_kwargs(scoped=True)
        if self._drive_id:
            kwargs["corpora"] = "drive"
        req = self._service.files().list(
            q="trashed=false",
            fields=LIST_FIELDS,
            pageSize=self._crawl_page_size,
            pageToken=page_token,
            **kwargs,
        )
        data = self._execute(req.execute)

        entries = []
        for f in data.get("files", []) or []:
            info = _file_dict_to_file_info(f)
            entries.append(CrawlEntry(item_id=info.file_id, file=info))

        next_token = data.get("nextPageToken")
        if next_token:
            link = CrawlCursor("files", next_token, start_page_token).encode()
            return CrawlPage(entries=entries, next_page_link=link)

        completion = CrawlCursor("changes", start_page_token).encode()
        return CrawlPage(entries=entries, completion_link=completion)

    def _crawl_changes(self, page_token: str) -> CrawlPage:
        req = self._service.changes().list(
            pageToken=page_token,
            fields=CHANGE_FIELDS,
            pageSize=self._crawl_page_size,
            includeRemoved=True,
            **self._listing_kwargs(scoped=True),
        )
        data = self._execute(req.execute)

        entries = []
        for change in data.get("changes", []) or []:
            entry = _change_dict_to_entry(change)
            if entry is not None:
                entries.append(entry)

        next_token = data.get("nextPageToken")
        if next_token:
            return CrawlPage(
                entries=entries,
                next_page_link=CrawlCursor("changes", next_token).encode(),
            )

        new_start = data.get("newStartPageToken")
        completion = CrawlCursor("changes", new_start).encode() if new_start else None
        return CrawlPage(entries=entries, completion_link=completion)

    def _find_by_query(
        self,
        q: str,
        *,
        fields: str = LIST_FIELDS,
        page_size: int = 1000,
    ) -> list[FileInfo]:
        all_files: list[FileInfo] = []
        page_token: Optional[str] = None

        while True:
            req = self._service.files().list(
                q=q,
                fields=fields,
                pageSize=page_size,
                pageToken=page_token,
                **self._listing_kwargs(),
            )
            data = self._execute(req.execute)
            for f in data.get("files", []) or []:
                all_files.append(_file_dict_to_file_info(f))

            page_token = data.get("nextPageToken")
            if not page_token:
                break

        return all_files

    def _free_name(self, parent_id: str, name: str) -> str:
        n = 1
        while True:
            candidate = f"{name} {n}"
            if self.find_child(parent_id, candidate) is None:
                return candidate
            n += 1

    def _execute(self, func: Callable[[], T]) -> T:
        delay = self._retry_policy.initial_delay_sec
        for attempt in range(self._retry_policy.max_retries + 1):
            try:
                return func()
            except Exception as exc:
                mapped = self._map_exception(exc)
                if is_transient(mapped) and attempt < self._retry_policy.max_retries:
                    logger.warning(
                        "Transient Drive error (%s), retry %d/%d in %.1fs",
                        mapped.__class__.__name__,
                        attempt + 1,
                        self._retry_policy.max_retries,
                        delay,
                    )
                    time.sleep(delay)
                    delay *= 2
                    continue
                raise mapped from exc

        raise ApiError("Unexpected retry loop termination")

    def _map_exception(self, exc: Exception) -> Exception:
        if isinstance(exc, HttpError):
            info = _http_error_to_info(exc)
            return map_http_error(info, cause=exc)

        if isinstance(exc, (OSError, TimeoutError)):
            return NetworkError("Network error", cause=exc)

        return ApiError("Drive API error", cause=exc)


def _escape_query_value(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'")


def _build_children_query(
    folder_id: str,
    *,
    name: Optional[str] = None,
    folders_only: bool = False,
) -> str:
    q = f"'{_escape_query_value(folder_id)}' in parents and trashed=false"
    if name is not None:
        q += f" and name='{_escape_query_value(name)}'"
    if folders_only:
        q += f" and mimeType='{FOLDER_MIME}'"
    return q


def _change_dict_to_entry(change: dict[str, Any]) -> Optional[CrawlEntry]:
    if change.get("changeType", "file") != "file":
        return None

    file_id = change.get("fileId")
    if not isinstance(file_id, str) or not file_id:
        return None

    if change.get("removed"):
        return CrawlEntry(item_id=file_id, removed=True)

    data = change.get("file")
    if not isinstance(data, dict):
        return CrawlEntry(item_id=file_id)

    info = _file_dict_to_file_info(data)
    if not info.file_id:
        info.file_id = file_id
    return CrawlEntry(item_id=file_id, file=info)


def _opt_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


def _parse_time(value: Any) -> Optional[datetime]:
    text = _opt_str(value)
    if text is None:
        return None
    try:
        return parse_rfc3339(text)
    except ValueError:
        return None


def _parse_size(value: Any) -> Optional[int]:
    # Drive sends int64 fields as decimal strings.
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return None


def _file_dict_to_file_info(data: dict[str, Any]) -> FileInfo:
    media = data.get("imageMediaMetadata")
    if not isinstance(media, dict):
        media = {}
    taken = _opt_str(media.get("time"))
    parents = data.get("parents")

    return FileInfo(
        file_id=_opt_str(data.get("id")) or "",
        name=_opt_str(data.get("name")) or "",
        mime_type=_opt_str(data.get("mimeType")) or "",
        parents=[p for p in parents if isinstance(p, str)] if isinstance(parents, list) else [],
        trashed=bool(data.get("trashed", False)),
        modified_time=_parse_time(data.get("modifiedTime")),
        created_time=_parse_time(data.get("createdTime")),
        size=_parse_size(data.get("size")),
        md5_checksum=_opt_str(data.get("md5Checksum")),
        web_view_link=_opt_str(data.get("webViewLink")),
        photo_taken_time=parse_exif_datetime(taken) if taken else None,
        camera_model=_opt_str(media.get("cameraModel")),
    )


def _http_error_to_info(exc: HttpError) -> HttpErrorInfo:
    """Pull status, reason and message out of an HttpError and its JSON body."""
    resp = getattr(exc, "resp", None)
    status = getattr(resp, "status", None)
    reason = _opt_str(getattr(resp, "reason", None))
    message: Optional[str] = None
    details: dict[str, Any] = {}

    try:
        payload = json.loads(exc.content.decode("utf-8"))
    except (AttributeError, UnicodeDecodeError, ValueError):
        payload = None

    error = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, dict):
        message = _opt_str(error.get("message"))
        errors = error.get("errors")
        first = errors[0] if isinstance(errors, list) and errors else None
        if isinstance(first, dict):
            details["domain"] = first.get("domain")
            reason = _opt_str(first.get("reason")) or reason

    return HttpErrorInfo(
        status_code=status if isinstance(status, int) else 0,
        reason=reason,
        message=message,
        details=details or None,
    )
