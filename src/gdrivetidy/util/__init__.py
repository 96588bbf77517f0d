from .mime import FOLDER_MIME, GOOGLE_APP_PREFIX, is_folder, is_google_app
from .time import now_utc, normalize_dt, parse_exif_datetime, parse_rfc3339, to_rfc3339

__all__ = [
    "FOLDER_MIME",
    "GOOGLE_APP_PREFIX",
    "is_folder",
    "is_google_app",
    "now_utc",
    "parse_rfc3339",
    "parse_exif_datetime",
    "to_rfc3339",
    "normalize_dt",
]
