"""Google Drive commands: listing, search, transfers, folders and sharing."""

from __future__ import annotations

import json
import uuid
from pathlib import Path
from typing import Any, Mapping
from urllib.parse import quote

import requests

from .drive_query import (
    FOLDER_MIME_TYPE,
    build_drive_list_query,
    build_drive_search_query,
    drive_export_extension,
    drive_export_mime_type,
    drive_type,
    format_date_time,
    format_drive_size,
    guess_mime_type,
    replace_ext,
)
from .runtime import DEFAULT_TIMEOUT, ApiError, Runtime, ServiceClient, require_account

_SERVICE = "drive"
_GOOGLE_APPS_PREFIX = "application/vnd.google-apps."
_LIST_FIELDS = "nextPageToken, files(id, name, mimeType, size, modifiedTime, parents, webViewLink)"
_GET_FIELDS = (
    "id, name, mimeType, size, modifiedTime, createdTime, parents, webViewLink, description, starred"
)
_SHARE_ROLES = ("reader", "writer")
_CHUNK_SIZE = 64 * 1024


def _seg(value: str) -> str:
    return quote(value, safe="")


def _auth_headers(service: ServiceClient) -> dict[str, str]:
    return {"Authorization": f"Bearer {service.token}"} if service.token else {}


def _check(resp: requests.Response) -> None:
    if not 200 <= resp.status_code < 300:
        raise ApiError(resp.status_code, resp.text.strip() or resp.reason or "request failed")


def _size(file: Mapping[str, Any]) -> int:
    return int(file.get("size") or 0)


def drive_web_link(service: ServiceClient, file_id: str) -> str:
    """Return the file's web view link, or a constructed fallback URL."""
    file = service.get(
        f"files/{_seg(file_id)}", {"supportsAllDrives": True, "fields": "webViewLink"}
    )
    return (file or {}).get("webViewLink") or f"https://drive.google.com/file/d/{file_id}/view"


def _show_files(rt: Runtime, resp: Mapping[str, Any], empty_message: str) -> list[dict[str, Any]]:
    files = resp.get("files") or []
    next_token = resp.get("nextPageToken") or ""
    if rt.json_output:
        rt.emit_json({"files": files, "nextPageToken": next_token})
        return files
    if not files:
        rt.err(empty_message)
        return files
    rows = [["ID", "NAME", "TYPE", "SIZE", "MODIFIED"]]
    rows.extend(
        [
            f.get("id", ""),
            f.get("name", ""),
            drive_type(f.get("mimeType", "")),
            format_drive_size(_size(f)),
            format_date_time(f.get("modifiedTime", "")),
        ]
        for f in files
    )
    rt.table(rows)
    if next_token:
        rt.err(f"# Next page: --page {next_token}")
    return files


def _list(rt: Runtime, q: str, max_results: int, page: str | None) -> Mapping[str, Any]:
    return rt.service(_SERVICE).get(
        "files",
        {
            "q": q,
            "pageSize": max_results,
            "pageToken": page,
            "orderBy": "modifiedTime desc",
            "supportsAllDrives": True,
            "includeItemsFromAllDrives": True,
            "fields": _LIST_FIELDS,
        },
    )


def list_files(
    rt: Runtime,
    folder_id: str = "root",
    max_results: int = 20,
    page: str | None = None,
    query: str = "",
) -> list[dict[str, Any]]:
    """List files in a folder (default: root), newest first."""
    resp = _list(rt, build_drive_list_query(folder_id or "root", query), max_results, page)
    return _show_files(rt, resp, "No files")


def search_files(
    rt: Runtime, text: str, max_results: int = 20, page: str | None = None
) -> list[dict[str, Any]]:
    """Full-text search across Drive."""
    resp = _list(rt, build_drive_search_query(text), max_results, page)
    return _show_files(rt, resp, "No results")


def get_file(rt: Runtime, file_id: str) -> dict[str, Any]:
    """Fetch and print file metadata."""
    file = rt.service(_SERVICE).get(
        f"files/{_seg(file_id)}", {"supportsAllDrives": True, "fields": _GET_FIELDS}
    )
    if rt.json_output:
        rt.emit_json({"file": file})
        return file
    rt.out(f"id\t{file.get('id', '')}")
    rt.out(f"name\t{file.get('name', '')}")
    rt.out(f"type\t{file.get('mimeType', '')}")
    rt.out(f"size\t{format_drive_size(_size(file))}")
    rt.out(f"created\t{file.get('createdTime', '')}")
    rt.out(f"modified\t{file.get('modifiedTime', '')}")
    if file.get("description"):
        rt.out(f"description\t{file['description']}")
    rt.out(f"starred\t{'true' if file.get('starred') else 'false'}")
    if file.get("webViewLink"):
        rt.out(f"link\t{file['webViewLink']}")
    return file


def _download(
    service: ServiceClient, file_id: str, mime_type: str, dest_path: str
) -> tuple[str, int]:
    if mime_type.startswith(_GOOGLE_APPS_PREFIX):
        export_mime = drive_export_mime_type(mime_type)
        out_path = replace_ext(dest_path, drive_export_extension(export_mime))
        url = f"{service.base_url}/files/{_seg(file_id)}/export"
        params = {"mimeType": export_mime}
    else:
        out_path = dest_path
        url = f"{service.base_url}/files/{_seg(file_id)}"
        params = {"alt": "media", "supportsAllDrives": "true"}

    with service.session.get(
        url, params=params, headers=_auth_headers(service), stream=True, timeout=DEFAULT_TIMEOUT
    ) as resp:
        if not 200 <= resp.status_code < 300:
            raise ApiError(
                resp.status_code,
                f"download failed: {resp.status_code} {resp.reason}: {resp.text.strip()}",
            )
        size = 0
        with open(out_path, "wb") as fh:
            for chunk in resp.iter_content(_CHUNK_SIZE):
                fh.write(chunk)
                size += len(chunk)
    return out_path, size


def download_file(
    rt: Runtime,
    file_id: str,
    dest_path: str | None = None,
    downloads_dir: str | None = None,
) -> tuple[str, int]:
    """Download a file; Google Docs formats are exported. Returns ``(path, size)``.

    Without ``dest_path`` the file lands in ``downloads_dir`` (default: the
    current directory) as ``<fileId>_<name>``.
    """
    service = rt.service(_SERVICE)
    meta = service.get(
        f"files/{_seg(file_id)}", {"supportsAllDrives": True, "fields": "id, name, mimeType"}
    )
    name = meta.get("name") or ""
    if not name:
        raise ValueError("file has no name")

    if not dest_path:
        directory = Path(downloads_dir) if downloads_dir else Path.cwd()
        directory.mkdir(parents=True, exist_ok=True)
        dest_path = str(directory / f"{file_id}_{name}")

    out_path, size = _download(
        service, meta.get("id") or file_id, meta.get("mimeType") or "", dest_path
    )
    if rt.json_output:
        rt.emit_json({"path": out_path, "size": size})
    else:
        rt.out(f"path\t{out_path}")
        rt.out(f"size\t{format_drive_size(size)}")
    return out_path, size


def _upload_url(service: ServiceClient) -> str:
    prefix, sep, rest = service.base_url.rpartition("/drive/v3")
    if sep:
        return f"{prefix}/upload/drive/v3{rest}/files"
    return f"{service.base_url}/upload/files"


def upload_file(
    rt: Runtime, local_path: str, name: str = "", folder_id: str = ""
) -> dict[str, Any]:
    """Upload a local file, optionally renamed and into a folder."""
    require_account(rt.account)
    path = Path(local_path)
    data = path.read_bytes()
    file_name = name or path.name
    service = rt.service(_SERVICE)

    meta: dict[str, Any] = {"name": file_name}
    if folder_id:
        meta["parents"] = [folder_id]

    boundary = uuid.uuid4().hex
    body = b"".join(
        [
            f"--{boundary}\r\nContent-Type: application/json; charset=UTF-8\r\n\r\n".encode(),
            json.dumps(meta).encode(),
            f"\r\n--{boundary}\r\nContent-Type: {guess_mime_type(local_path)}\r\n\r\n".encode(),
            data,
            f"\r\n--{boundary}--\r\n".encode(),
        ]
    )
    headers = {
        **_auth_headers(service),
        "Content-Type": f"multipart/related; boundary={boundary}",
    }
    resp = service.session.post(
        _upload_url(service),
        params={
            "uploadType": "multipart",
            "supportsAllDrives": "true",
            "fields": "id, name, mimeType, size, webViewLink",
        },
        data=body,
        headers=headers,
        timeout=DEFAULT_TIMEOUT,
    )
    _check(resp)
    created = resp.json() if resp.content else {}

    if rt.json_output:
        rt.emit_json({"file": created})
        return created
    rt.out(f"id\t{created.get('id', '')}")
    rt.out(f"name\t{created.get('name', '')}")
    if created.get("webViewLink"):
        rt.out(f"link\t{created['webViewLink']}")
    return created


def make_folder(rt: Runtime, name: str, parent: str = "") -> dict[str, Any]:
    """Create a folder, optionally inside ``parent``."""
    folder: dict[str, Any] = {"name": name, "mimeType": FOLDER_MIME_TYPE}
    if parent:
        folder["parents"] = [parent]
    created = rt.service(_SERVICE).post(
        "files", folder, {"supportsAllDrives": True, "fields": "id, name, webViewLink"}
    )
    if rt.json_output:
        rt.emit_json({"folder": created})
        return created
    rt.out(f"id\t{created.get('id', '')}")
    rt.out(f"name\t{created.get('name', '')}")
    if created.get("webViewLink"):
        rt.out(f"link\t{created['webViewLink']}")
    return created


def delete_file(rt: Runtime, file_id: str) -> None:
    """Delete a file (moves it to the trash)."""
    rt.service(_SERVICE).delete(f"files/{_seg(file_id)}", {"supportsAllDrives": True})
    if rt.json_output:
        rt.emit_json({"deleted": True, "id": file_id})
        return
    rt.out("deleted\ttrue")
    rt.out(f"id\t{file_id}")


def _print_id_name(rt: Runtime, file: Mapping[str, Any]) -> None:
    rt.out(f"id\t{file.get('id', '')}")
    rt.out(f"name\t{file.get('name', '')}")


def move_file(rt: Runtime, file_id: str, new_parent_id: str) -> dict[str, Any]:
    """Move a file to a different folder, removing it from its current ones."""
    service = rt.service(_SERVICE)
    path = f"files/{_seg(file_id)}"
    meta = service.get(path, {"supportsAllDrives": True, "fields": "id, name, parents"})
    params: dict[str, Any] = {
        "supportsAllDrives": True,
        "addParents": new_parent_id,
        "fields": "id, name, parents, webViewLink",
    }
    parents = meta.get("parents") or []
    if parents:
        params["removeParents"] = ",".join(parents)
    updated = service.patch(path, {}, params)
    if rt.json_output:
        rt.emit_json({"file": updated})
    else:
        _print_id_name(rt, updated)
    return updated


def rename_file(rt: Runtime, file_id: str, new_name: str) -> dict[str, Any]:
    """Rename a file or folder."""
    updated = rt.service(_SERVICE).patch(
        f"files/{_seg(file_id)}",
        {"name": new_name},
        {"supportsAllDrives": True, "fields": "id, name"},
    )
    if rt.json_output:
        rt.emit_json({"file": updated})
    else:
        _print_id_name(rt, updated)
    return updated


def share_file(
    rt: Runtime,
    file_id: str,
    anyone: bool = False,
    email: str = "",
    role: str = "reader",
    discoverable: bool = False,
) -> dict[str, Any]:
    """Share a file with anyone or with one user; returns the created permission."""
    require_account(rt.account)
    if not anyone and not email:
        raise ValueError("must specify --anyone or --email")
    role = role or "reader"
    if role not in _SHARE_ROLES:
        raise ValueError("invalid --role (expected reader|writer)")
    service = rt.service(_SERVICE)

    permission: dict[str, Any] = {"role": role}
    if anyone:
        permission["type"] = "anyone"
        if discoverable:
            permission["allowFileDiscovery"] = True
    else:
        permission["type"] = "user"
        permission["emailAddress"] = email

    created = service.post(
        f"files/{_seg(file_id)}/permissions",
        permission,
        {
            "supportsAllDrives": True,
            "sendNotificationEmail": False,
            "fields": "id, type, role, emailAddress",
        },
    )
    link = drive_web_link(service, file_id)
    if rt.json_output:
        rt.emit_json({"link": link, "permissionId": created.get("id", ""), "permission": created})
        return created
    rt.out(f"link\t{link}")
    rt.out(f"permission_id\t{created.get('id', '')}")
    return created


def unshare_file(rt: Runtime, file_id: str, permission_id: str) -> None:
    """Remove a permission from a file."""
    rt.service(_SERVICE).delete(
        f"files/{_seg(file_id)}/permissions/{_seg(permission_id)}", {"supportsAllDrives": True}
    )
    if rt.json_output:
        rt.emit_json({"removed": True, "fileId": file_id, "permissionId": permission_id})
        return
    rt.out("removed\ttrue")
    rt.out(f"file_id\t{file_id}")
    rt.out(f"permission_id\t{permission_id}")


def list_permissions(rt: Runtime, file_id: str) -> list[dict[str, Any]]:
    """List the permissions on a file."""
    resp = rt.service(_SERVICE).get(
        f"files/{_seg(file_id)}/permissions",
        {"supportsAllDrives": True, "fields": "permissions(id, type, role, emailAddress)"},
    )
    permissions = resp.get("permissions") or []
    if rt.json_output:
        rt.emit_json({"permissions": permissions})
        return permissions
    if not permissions:
        rt.err("No permissions")
        return permissions
    rows = [["ID", "TYPE", "ROLE", "EMAIL"]]
    rows.extend(
        [p.get("id", ""), p.get("type", ""), p.get("role", ""), p.get("emailAddress") or "-"]
        for p in permissions
    )
    rt.table(rows)
    return permissions


def file_urls(rt: Runtime, file_ids: list[str]) -> list[dict[str, str]]:
    """Return (and print) the web URLs of files."""
    service = rt.service(_SERVICE)
    urls = [{"id": fid, "url": drive_web_link(service, fid)} for fid in file_ids]
    if rt.json_output:
        rt.emit_json({"urls": urls})
        return urls
    for entry in urls:
        rt.out(f"{entry['id']}\t{entry['url']}")
    return urls