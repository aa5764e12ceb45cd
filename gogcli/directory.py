"""Workspace directory and "other contacts" commands backed by the People API."""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from .contacts import CONTACTS_READ_MASK, primary_email, primary_name, primary_phone
from .gmail import sanitize_tab
from .runtime import Runtime

_DIRECTORY_SERVICE = "people_directory"
_OTHER_SERVICE = "people_other_contacts"
DIRECTORY_READ_MASK = "names,emailAddresses"
DIRECTORY_SOURCE = "DIRECTORY_SOURCE_TYPE_DOMAIN_PROFILE"


def _item(person: Mapping[str, Any], with_phone: bool) -> dict[str, str]:
    item = {"resource": person.get("resourceName") or ""}
    fields = {"name": primary_name(person), "email": primary_email(person)}
    if with_phone:
        fields["phone"] = primary_phone(person)
    item.update({key: value for key, value in fields.items() if value})
    return item


def _print(rt: Runtime, persons: Iterable[Mapping[str, Any]], with_phone: bool) -> None:
    header = ["RESOURCE", "NAME", "EMAIL"] + (["PHONE"] if with_phone else [])
    rows = [header]
    for p in persons:
        row = [
            p.get("resourceName") or "",
            sanitize_tab(primary_name(p)),
            sanitize_tab(primary_email(p)),
        ]
        if with_phone:
            row.append(sanitize_tab(primary_phone(p)))
        rows.append(row)
    rt.table(rows)


def _show(
    rt: Runtime,
    persons: list[Mapping[str, Any]],
    key: str,
    with_phone: bool,
    next_token: str | None,
) -> list[dict[str, str]]:
    """Print persons as JSON or a table; ``next_token`` None means no paging."""
    items = [_item(p, with_phone) for p in persons]
    if rt.json_output:
        payload: dict[str, Any] = {key: items}
        if next_token is not None:
            payload["nextPageToken"] = next_token
        rt.emit_json(payload)
        return items
    if not persons:
        rt.err("No results")
        return items
    _print(rt, persons, with_phone)
    if next_token:
        rt.err(f"# Next page: --page {next_token}")
    return items


def _directory(rt: Runtime, path: str, params: dict[str, Any]) -> list[dict[str, str]]:
    params.update({"sources": DIRECTORY_SOURCE, "readMask": DIRECTORY_READ_MASK})
    resp = rt.service(_DIRECTORY_SERVICE).get(path, params)
    persons = [p for p in resp.get("people") or [] if p]
    return _show(rt, persons, "people", False, resp.get("nextPageToken") or "")


def list_directory(
    rt: Runtime, max_results: int = 50, page: str | None = None
) -> list[dict[str, str]]:
    """List people from the Workspace directory."""
    return _directory(
        rt, "people:listDirectoryPeople", {"pageSize": max_results, "pageToken": page}
    )


def search_directory(
    rt: Runtime, query: str, max_results: int = 50, page: str | None = None
) -> list[dict[str, str]]:
    """Search people in the Workspace directory."""
    return _directory(
        rt,
        "people:searchDirectoryPeople",
        {"query": query, "pageSize": max_results, "pageToken": page},
    )


def list_other_contacts(
    rt: Runtime, max_results: int = 100, page: str | None = None
) -> list[dict[str, str]]:
    """List other contacts (people the account has interacted with)."""
    resp = rt.service(_OTHER_SERVICE).get(
        "otherContacts",
        {"readMask": CONTACTS_READ_MASK, "pageSize": max_results, "pageToken": page},
    )
    persons = [p for p in resp.get("otherContacts") or [] if p]
    return _show(rt, persons, "contacts", True, resp.get("nextPageToken") or "")


def search_other_contacts(
    rt: Runtime, query: str, max_results: int = 50
) -> list[dict[str, str]]:
    """Search other contacts."""
    resp = rt.service(_OTHER_SERVICE).get(
        "otherContacts:search",
        {"query": query, "readMask": CONTACTS_READ_MASK, "pageSize": max_results},
    )
    persons = [r["person"] for r in resp.get("results") or [] if r and r.get("person")]
    return _show(rt, persons, "contacts", True, None)