"""Google Contacts commands backed by the People API."""

from __future__ import annotations

from typing import Any, Mapping

from .gmail import sanitize_tab
from .runtime import Runtime, require_account

_SERVICE = "people_contacts"
CONTACTS_READ_MASK = "names,emailAddresses,phoneNumbers"
_RESOURCE_PREFIX = "people/"


def _first(person: Mapping[str, Any] | None, key: str) -> Mapping[str, Any] | None:
    if not person:
        return None
    values = person.get(key) or []
    if not values or not values[0]:
        return None
    return values[0]


def primary_name(person: Mapping[str, Any] | None) -> str:
    """Return the display name, else the given and family names joined."""
    name = _first(person, "names")
    if name is None:
        return ""
    if name.get("displayName"):
        return name["displayName"]
    return f"{name.get('givenName') or ''} {name.get('familyName') or ''}".strip()


def primary_email(person: Mapping[str, Any] | None) -> str:
    entry = _first(person, "emailAddresses")
    return (entry or {}).get("value") or ""


def primary_phone(person: Mapping[str, Any] | None) -> str:
    entry = _first(person, "phoneNumbers")
    return (entry or {}).get("value") or ""


def _summary(person: Mapping[str, Any]) -> dict[str, str]:
    item = {"resource": person.get("resourceName") or ""}
    fields = {
        "name": primary_name(person),
        "email": primary_email(person),
        "phone": primary_phone(person),
    }
    item.update({key: value for key, value in fields.items() if value})
    return item


def _print_people(rt: Runtime, persons: list[Mapping[str, Any]]) -> None:
    rows = [["RESOURCE", "NAME", "EMAIL", "PHONE"]]
    rows.extend(
        [
            p.get("resourceName") or "",
            sanitize_tab(primary_name(p)),
            sanitize_tab(primary_email(p)),
            sanitize_tab(primary_phone(p)),
        ]
        for p in persons
    )
    rt.table(rows)


def _check_resource_name(resource_name: str) -> str:
    resource_name = resource_name.strip()
    if not resource_name.startswith(_RESOURCE_PREFIX):
        raise ValueError("resourceName must start with people/")
    return resource_name


def _search(rt: Runtime, query: str, page_size: int) -> list[Mapping[str, Any]]:
    resp = rt.service(_SERVICE).get(
        "people:searchContacts",
        {"query": query, "pageSize": page_size, "readMask": CONTACTS_READ_MASK},
    )
    return [r["person"] for r in resp.get("results") or [] if r and r.get("person")]


def search_contacts(rt: Runtime, query: str, max_results: int = 50) -> list[dict[str, str]]:
    """Search contacts by name, email or phone."""
    persons = _search(rt, query, max_results)
    items = [_summary(p) for p in persons]
    if rt.json_output:
        rt.emit_json({"contacts": items})
        return items
    if not persons:
        rt.err("No results")
        return items
    _print_people(rt, persons)
    return items


def list_contacts(
    rt: Runtime, max_results: int = 100, page: str | None = None
) -> list[dict[str, str]]:
    """List the account's contacts, one page at a time."""
    resp = rt.service(_SERVICE).get(
        "people/me/connections",
        {"personFields": CONTACTS_READ_MASK, "pageSize": max_results, "pageToken": page},
    )
    persons = [p for p in resp.get("connections") or [] if p]
    items = [_summary(p) for p in persons]
    next_token = resp.get("nextPageToken") or ""
    if rt.json_output:
        rt.emit_json({"contacts": items, "nextPageToken": next_token})
        return items
    if not persons:
        rt.err("No contacts")
        return items
    _print_people(rt, persons)
    if next_token:
        rt.err(f"# Next page: --page {next_token}")
    return items


def get_contact(rt: Runtime, identifier: str) -> dict[str, Any] | None:
    """Fetch a contact by resource name, or by email via search; None when not found."""
    require_account(rt.account)
    identifier = identifier.strip()
    if not identifier:
        raise ValueError("empty identifier")
    service = rt.service(_SERVICE)

    person: dict[str, Any] | None
    if identifier.startswith(_RESOURCE_PREFIX):
        person = service.get(identifier, {"personFields": CONTACTS_READ_MASK})
    else:
        candidates = _search(rt, identifier, 10)
        wanted = identifier.casefold()
        person = next(
            (p for p in candidates if primary_email(p).casefold() == wanted),
            candidates[0] if candidates else None,
        )
        if person is None:
            if rt.json_output:
                rt.emit_json({"found": False})
            else:
                rt.err("Not found")
            return None

    if rt.json_output:
        rt.emit_json({"contact": person})
        return person
    rt.out(f"resource\t{person.get('resourceName') or ''}")
    rt.out(f"name\t{primary_name(person)}")
    email = primary_email(person)
    if email:
        rt.out(f"email\t{email}")
    phone = primary_phone(person)
    if phone:
        rt.out(f"phone\t{phone}")
    return person


def _name(given: str, family: str) -> dict[str, str]:
    return {
        key: value
        for key, value in (("givenName", given), ("familyName", family))
        if value
    }


def create_contact(
    rt: Runtime, given: str, family: str = "", email: str = "", phone: str = ""
) -> dict[str, Any]:
    """Create a contact; the given name is required."""
    require_account(rt.account)
    if not (given or "").strip():
        raise ValueError("required: --given")
    service = rt.service(_SERVICE)

    person: dict[str, Any] = {"names": [_name(given.strip(), (family or "").strip())]}
    if (email or "").strip():
        person["emailAddresses"] = [{"value": email.strip()}]
    if (phone or "").strip():
        person["phoneNumbers"] = [{"value": phone.strip()}]

    created = service.post("people:createContact", person)
    if rt.json_output:
        rt.emit_json({"contact": created})
    else:
        rt.out(f"resource\t{created.get('resourceName') or ''}")
    return created


def update_contact(
    rt: Runtime,
    resource_name: str,
    given: str | None = None,
    family: str | None = None,
    email: str | None = None,
    phone: str | None = None,
) -> dict[str, Any]:
    """Update the given fields of a contact; None leaves a field, an empty email or phone clears it."""
    require_account(rt.account)
    resource_name = _check_resource_name(resource_name)
    service = rt.service(_SERVICE)

    existing = dict(service.get(resource_name, {"personFields": CONTACTS_READ_MASK}))
    update_fields: list[str] = []

    if given is not None or family is not None:
        current = _first(existing, "names") or {}
        cur_given = current.get("givenName") or ""
        cur_family = current.get("familyName") or ""
        if given is not None:
            cur_given = given.strip()
        if family is not None:
            cur_family = family.strip()
        existing["names"] = [_name(cur_given, cur_family)]
        update_fields.append("names")

    for key, value in (("emailAddresses", email), ("phoneNumbers", phone)):
        if value is None:
            continue
        if value.strip():
            existing[key] = [{"value": value.strip()}]
        else:
            existing.pop(key, None)
        update_fields.append(key)

    if not update_fields:
        raise ValueError("no updates provided")

    updated = service.patch(
        f"{resource_name}:updateContact",
        existing,
        {"updatePersonFields": ",".join(update_fields)},
    )
    if rt.json_output:
        rt.emit_json({"contact": updated})
    else:
        rt.out(f"resource\t{updated.get('resourceName') or ''}")
    return updated


def delete_contact(rt: Runtime, resource_name: str) -> None:
    """Delete a contact by resource name."""
    require_account(rt.account)
    resource_name = _check_resource_name(resource_name)
    rt.service(_SERVICE).delete(f"{resource_name}:deleteContact")
    if rt.json_output:
        rt.emit_json({"deleted": True, "resource": resource_name})
        return
    rt.out("deleted\ttrue")
    rt.out(f"resource\t{resource_name}")