"""Pure helpers for Drive queries, file types, sizes and export formats."""

from __future__ import annotations

import os

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"

_SEPARATORS = {"/", os.sep}

_MIME_BY_EXT = {
    ".pdf": "application/pdf",
    ".doc": "application/msword",
    ".docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ".xls": "application/vnd.ms-excel",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ".ppt": "application/vnd.ms-powerpoint",
    ".pptx": "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".gif": "image/gif",
    ".txt": "text/plain",
    ".html": "text/html",
    ".css": "text/css",
    ".js": "application/javascript",
    ".json": "application/json",
    ".zip": "application/zip",
    ".csv": "text/csv",
    ".md": "text/markdown",
}

_EXPORT_MIME = {
    "application/vnd.google-apps.document": "application/pdf",
    "application/vnd.google-apps.spreadsheet": "text/csv",
    "application/vnd.google-apps.presentation": "application/pdf",
    "application/vnd.google-apps.drawing": "image/png",
}

_EXPORT_EXT = {
    "application/pdf": ".pdf",
    "text/csv": ".csv",
    "image/png": ".png",
    "text/plain": ".txt",
}

_SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")


def _ext(path: str) -> str:
    """Return the suffix from the last dot of the final path element, dot included."""
    for i in range(len(path) - 1, -1, -1):
        ch = path[i]
        if ch in _SEPARATORS:
            break
        if ch == ".":
            return path[i:]
    return ""


def build_drive_list_query(folder_id: str, user_query: str = "") -> str:
    """Combine a user filter with the parent folder and, unless given, a trashed filter."""
    parent = f"'{folder_id}' in parents"
    q = (user_query or "").strip()
    q = f"{q} and {parent}" if q else parent
    if "trashed" not in q:
        q += " and trashed = false"
    return q


def escape_drive_query_string(s: str) -> str:
    return s.replace("'", "\\'")


def build_drive_search_query(text: str) -> str:
    return f"fullText contains '{escape_drive_query_string(text)}' and trashed = false"


def drive_type(mime_type: str) -> str:
    """Classify a Drive MIME type as ``folder`` or ``file``."""
    if mime_type == FOLDER_MIME_TYPE:
        return "folder"
    return "file"


def format_date_time(iso: str) -> str:
    """Shorten an ISO timestamp to ``YYYY-MM-DD HH:MM``; empty becomes ``-``."""
    if not iso:
        return "-"
    if len(iso) >= 16:
        return iso[:16].replace("T", " ")
    return iso


def format_drive_size(size: int) -> str:
    """Render a byte count with binary units; non-positive sizes become ``-``."""
    if size <= 0:
        return "-"
    value = float(size)
    unit = 0
    while value >= 1024.0 and unit < len(_SIZE_UNITS) - 1:
        value /= 1024.0
        unit += 1
    if unit == 0:
        return f"{size} B"
    return f"{value:.1f} {_SIZE_UNITS[unit]}"


def guess_mime_type(path: str) -> str:
    return _MIME_BY_EXT.get(_ext(path).lower(), "application/octet-stream")


def replace_ext(path: str, ext: str) -> str:
    """Replace the file extension of ``path`` (or append one if it has none)."""
    current = _ext(path)
    base = path[: len(path) - len(current)] if current else path
    return base + ext


def drive_export_mime_type(google_mime_type: str) -> str:
    return _EXPORT_MIME.get(google_mime_type, "application/pdf")


def drive_export_extension(mime_type: str) -> str:
    return _EXPORT_EXT.get(mime_type, ".pdf")