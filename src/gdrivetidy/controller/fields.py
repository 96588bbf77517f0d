"""Field definitions for Google Drive API responses."""

from __future__ import annotations

FILE_FIELDS: str = (
    "id,"
    "name,"
    "mimeType,"
    "parents,"
    "trashed,"
    "modifiedTime,"
    "createdTime,"
    "size,"
    "md5Checksum,"
    "webViewLink,"
    "imageMediaMetadata(time,cameraModel)"
)

LIST_FIELDS: str = f"nextPageToken,files({FILE_FIELDS})"

CHANGE_FIELDS: str = (
    "nextPageToken,"
    "newStartPageToken,"
    f"changes(changeType,removed,fileId,file({FILE_FIELDS}))"
)


def list_fields(file_fields: str = FILE_FIELDS) -> str:
    return f"nextPageToken,files({file_fields})"
