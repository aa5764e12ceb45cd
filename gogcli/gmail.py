"""Gmail thread search and attachment download."""

from __future__ import annotations

import base64
import os
from email.utils import parsedate_to_datetime
from pathlib import Path
from typing import Any, Mapping
from urllib.parse import quote

from .runtime import Runtime, ServiceClient

_METADATA_HEADERS = ["From", "Subject", "Date"]


def first_message(thread: Mapping[str, Any] | None) -> Mapping[str, Any] | None:
    """Return the first message of a thread, or None."""
    if not thread:
        return None
    messages = thread.get("messages") or []
    return messages[0] if messages else None


def header_value(part: Mapping[str, Any] | None, name: str) -> str:
    """Return the value of the first header named ``name`` (case-insensitive)."""
    if not part:
        return ""
    wanted = name.casefold()
    for header in part.get("headers") or []:
        if (header.get("name") or "").casefold() == wanted:
            return header.get("value") or ""
    return ""


def format_gmail_date(raw: str) -> str:
    """Format an RFC 5322 date as ``YYYY-MM-DD HH:MM``; unparsable input is returned as-is."""
    raw = raw.strip()
    if not raw:
        return ""
    try:
        parsed = parsedate_to_datetime(raw)
    except (TypeError, ValueError, IndexError):
        return raw
    return parsed.strftime("%Y-%m-%d %H:%M")


def sanitize_tab(s: str) -> str:
    return s.replace("\t", " ")


def _label_names(service: ServiceClient) -> dict[str, str]:
    resp = service.get("users/me/labels")
    names: dict[str, str] = {}
    for label in resp.get("labels") or []:
        label_id = label.get("id") or ""
        if label_id:
            names[label_id] = label.get("name") or label_id
    return names


def gmail_search(
    rt: Runtime,
    query: str,
    max_results: int = 10,
    page: str | None = None,
) -> list[dict[str, Any]]:
    """Search threads with Gmail query syntax, print them and return the items."""
    service = rt.service("gmail")
    resp = service.get(
        "users/me/threads",
        {"q": query, "maxResults": max_results, "pageToken": page},
    )
    names = _label_names(service)

    items: list[dict[str, Any]] = []
    for ref in resp.get("threads") or []:
        thread_id = ref.get("id") or ""
        if not thread_id:
            continue
        thread = service.get(
            f"users/me/threads/{quote(thread_id, safe='')}",
            {"format": "metadata", "metadataHeaders": _METADATA_HEADERS},
        )
        item: dict[str, Any] = {"id": thread_id}
        msg = first_message(thread)
        if msg is not None:
            payload = msg.get("payload")
            fields = {
                "date": format_gmail_date(header_value(payload, "Date")),
                "from": sanitize_tab(header_value(payload, "From")),
                "subject": sanitize_tab(header_value(payload, "Subject")),
                "labels": [names.get(i, i) for i in msg.get("labelIds") or []],
            }
            item.update({key: value for key, value in fields.items() if value})
        items.append(item)

    next_token = resp.get("nextPageToken") or ""
    if rt.json_output:
        rt.emit_json({"threads": items, "nextPageToken": next_token})
        return items

    if not items:
        rt.err("No results")
        return items

    rows = [["ID", "DATE", "FROM", "SUBJECT", "LABELS"]]
    rows.extend(
        [
            it["id"],
            it.get("date", ""),
            it.get("from", ""),
            it.get("subject", ""),
            ",".join(it.get("labels", [])),
        ]
        for it in items
    )
    rt.table(rows)
    if next_token:
        rt.err(f"# Next page: --page {next_token}")
    return items


def _decode_raw_url(data: str) -> bytes:
    return base64.urlsafe_b64decode(data + "=" * (-len(data) % 4))


def download_attachment_to_path(
    service: ServiceClient,
    message_id: str,
    attachment_id: str,
    out_path: str,
    expected_size: int = -1,
) -> tuple[str, bool, int]:
    """Download an attachment to ``out_path``.

    Returns ``(path, cached, size)``; an existing file of the expected size is reused.
    """
    if not out_path.strip():
        raise ValueError("missing outPath")

    target = Path(out_path)
    if expected_size > 0 and target.is_file():
        size = target.stat().st_size
        if size == expected_size:
            return out_path, True, size

    body = service.get(
        f"users/me/messages/{quote(message_id, safe='')}"
        f"/attachments/{quote(attachment_id, safe='')}"
    )
    encoded = (body or {}).get("data") or ""
    if not encoded:
        raise ValueError("empty attachment data")
    data = _decode_raw_url(encoded)

    target.parent.mkdir(parents=True, exist_ok=True)
    fd = os.open(target, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "wb") as fh:
        fh.write(data)
    return out_path, False, len(data)