"""Google Calendar commands: calendars, ACLs, events, free/busy and invitation replies."""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping
from urllib.parse import quote

from .runtime import Runtime, require_account

_SERVICE = "calendar"
_RESPONSE_STATUSES = ("accepted", "declined", "tentative")
_SEND_UPDATES = ("all", "none", "externalOnly")


def _seg(value: str) -> str:
    return quote(value, safe="")


def _rfc3339(moment: datetime) -> str:
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def split_csv(s: str | None) -> list[str]:
    """Split a comma-separated string, trimming items and dropping empty ones."""
    return [part.strip() for part in (s or "").split(",") if part.strip()]


def build_event_datetime(value: str, all_day: bool) -> dict[str, str]:
    """Build an event start/end object: a date for all-day events, else a date-time."""
    value = value.strip()
    return {"date": value} if all_day else {"dateTime": value}


def build_attendees(csv: str | None) -> list[dict[str, str]]:
    """Build attendee objects from a comma-separated list of addresses."""
    return [{"email": addr} for addr in split_csv(csv)]


def _when(event: Mapping[str, Any] | None, key: str) -> str:
    if not event:
        return ""
    moment = event.get(key)
    if not moment:
        return ""
    return moment.get("dateTime") or moment.get("date") or ""


def event_start(event: Mapping[str, Any] | None) -> str:
    return _when(event, "start")


def event_end(event: Mapping[str, Any] | None) -> str:
    return _when(event, "end")


def is_all_day_event(event: Mapping[str, Any] | None) -> bool:
    return bool(event and event.get("start") and event["start"].get("date"))


def or_empty(s: str | None, fallback: str) -> str:
    """Return ``s`` unless it is blank, else ``fallback``."""
    if not (s or "").strip():
        return fallback
    return s or ""


def _print_link_result(rt: Runtime, event: Mapping[str, Any]) -> None:
    rt.out(f"id\t{event.get('id', '')}")
    if event.get("htmlLink"):
        rt.out(f"link\t{event['htmlLink']}")


def list_calendars(rt: Runtime) -> list[dict[str, Any]]:
    """List the calendars of the account."""
    resp = rt.service(_SERVICE).get("users/me/calendarList")
    items = resp.get("items") or []
    if rt.json_output:
        rt.emit_json({"calendars": items})
        return items
    if not items:
        rt.err("No calendars")
        return items
    rows = [["ID", "NAME", "ROLE"]]
    rows.extend([c.get("id", ""), c.get("summary", ""), c.get("accessRole", "")] for c in items)
    rt.table(rows)
    return items


def list_acl(rt: Runtime, calendar_id: str) -> list[dict[str, Any]]:
    """List the access control rules of a calendar."""
    resp = rt.service(_SERVICE).get(f"calendars/{_seg(calendar_id)}/acl")
    items = resp.get("items") or []
    if rt.json_output:
        rt.emit_json({"rules": items})
        return items
    if not items:
        rt.err("No ACL rules")
        return items
    rows = [["SCOPE_TYPE", "SCOPE_VALUE", "ROLE"]]
    for rule in items:
        scope = rule.get("scope") or {}
        rows.append([scope.get("type", ""), scope.get("value", ""), rule.get("role", "")])
    rt.table(rows)
    return items


def list_events(
    rt: Runtime,
    calendar_id: str,
    time_from: str | None = None,
    time_to: str | None = None,
    max_results: int = 10,
    page: str | None = None,
    query: str | None = None,
) -> list[dict[str, Any]]:
    """List events between two times (default: now to one week later)."""
    service = rt.service(_SERVICE)
    now = datetime.now(timezone.utc)
    if not (time_from or "").strip():
        time_from = _rfc3339(now)
    if not (time_to or "").strip():
        time_to = _rfc3339(now + timedelta(days=7))

    params: dict[str, Any] = {
        "timeMin": time_from,
        "timeMax": time_to,
        "maxResults": max_results,
        "pageToken": page,
        "singleEvents": True,
        "orderBy": "startTime",
    }
    if (query or "").strip():
        params["q"] = query
    resp = service.get(f"calendars/{_seg(calendar_id)}/events", params)
    items = resp.get("items") or []
    next_token = resp.get("nextPageToken") or ""

    if rt.json_output:
        rt.emit_json({"events": items, "nextPageToken": next_token})
        return items
    if not items:
        rt.err("No events")
        return items
    rows = [["ID", "START", "END", "SUMMARY"]]
    rows.extend([e.get("id", ""), event_start(e), event_end(e), e.get("summary", "")] for e in items)
    rt.table(rows)
    if next_token:
        rt.err(f"# Next page: --page {next_token}")
    return items


def get_event(rt: Runtime, calendar_id: str, event_id: str) -> dict[str, Any]:
    """Fetch and print one event."""
    event = rt.service(_SERVICE).get(f"calendars/{_seg(calendar_id)}/events/{_seg(event_id)}")
    if rt.json_output:
        rt.emit_json({"event": event})
        return event

    rt.out(f"id\t{event.get('id', '')}")
    rt.out(f"summary\t{or_empty(event.get('summary'), '(no title)')}")
    rt.out(f"start\t{event_start(event)}")
    rt.out(f"end\t{event_end(event)}")
    for key in ("location", "description"):
        if event.get(key):
            rt.out(f"{key}\t{event[key]}")
    addrs = [a["email"] for a in event.get("attendees") or [] if a and a.get("email")]
    if addrs:
        rt.out(f"attendees\t{', '.join(addrs)}")
    if event.get("status"):
        rt.out(f"status\t{event['status']}")
    if event.get("htmlLink"):
        rt.out(f"link\t{event['htmlLink']}")
    return event


def create_event(
    rt: Runtime,
    calendar_id: str,
    summary: str,
    start: str,
    end: str,
    description: str = "",
    location: str = "",
    attendees: str = "",
    all_day: bool = False,
) -> dict[str, Any]:
    """Create an event and return it as the API answered."""
    require_account(rt.account)
    if not summary.strip() or not start.strip() or not end.strip():
        raise ValueError("required: --summary, --start, --end")
    service = rt.service(_SERVICE)

    event: dict[str, Any] = {
        "summary": summary,
        "start": build_event_datetime(start, all_day),
        "end": build_event_datetime(end, all_day),
    }
    if description:
        event["description"] = description
    if location:
        event["location"] = location
    guests = build_attendees(attendees)
    if guests:
        event["attendees"] = guests

    created = service.post(f"calendars/{_seg(calendar_id)}/events", event)
    if rt.json_output:
        rt.emit_json({"event": created})
    else:
        _print_link_result(rt, created)
    return created


def update_event(
    rt: Runtime,
    calendar_id: str,
    event_id: str,
    summary: str | None = None,
    start: str | None = None,
    end: str | None = None,
    description: str | None = None,
    location: str | None = None,
    attendees: str | None = None,
    all_day: bool | None = None,
) -> dict[str, Any]:
    """Update the given fields of an event; None leaves a field unchanged."""
    service = rt.service(_SERVICE)
    path = f"calendars/{_seg(calendar_id)}/events/{_seg(event_id)}"
    existing = dict(service.get(path))

    target_all_day = is_all_day_event(existing)
    if all_day is not None:
        target_all_day = all_day
        # Converting between all-day and timed needs explicit start/end.
        if start is None or end is None:
            raise ValueError("when changing --all-day, also provide --start and --end")

    changed = False
    for key, value in (("summary", summary), ("description", description), ("location", location)):
        if value is not None:
            existing[key] = value
            changed = True
    if start is not None:
        existing["start"] = build_event_datetime(start, target_all_day)
        changed = True
    if end is not None:
        existing["end"] = build_event_datetime(end, target_all_day)
        changed = True
    if attendees is not None:
        guests = build_attendees(attendees)
        if guests:
            existing["attendees"] = guests
        else:
            existing.pop("attendees", None)
        changed = True

    if not changed:
        raise ValueError("no updates provided")

    updated = service.put(path, existing)
    if rt.json_output:
        rt.emit_json({"event": updated})
    else:
        _print_link_result(rt, updated)
    return updated


def delete_event(rt: Runtime, calendar_id: str, event_id: str) -> None:
    """Delete an event."""
    rt.service(_SERVICE).delete(f"calendars/{_seg(calendar_id)}/events/{_seg(event_id)}")
    if rt.json_output:
        rt.emit_json({"deleted": True, "calendarId": calendar_id, "eventId": event_id})
        return
    rt.out("deleted\ttrue")
    rt.out(f"calendar_id\t{calendar_id}")
    rt.out(f"event_id\t{event_id}")


def freebusy(rt: Runtime, calendar_ids: str, time_from: str, time_to: str) -> dict[str, Any]:
    """Query busy intervals for comma-separated calendar IDs."""
    require_account(rt.account)
    ids = split_csv(calendar_ids)
    if not ids:
        raise ValueError("no calendar IDs provided")
    if not (time_from or "").strip() or not (time_to or "").strip():
        raise ValueError("required: --from and --to")
    service = rt.service(_SERVICE)

    resp = service.post(
        "freeBusy",
        {"timeMin": time_from, "timeMax": time_to, "items": [{"id": i} for i in ids]},
    )
    calendars = resp.get("calendars") or {}
    if rt.json_output:
        rt.emit_json({"calendars": calendars})
        return calendars
    if not calendars:
        rt.err("No data")
        return calendars
    rows = [["CALENDAR", "START", "END"]]
    for cal_id, data in calendars.items():
        rows.extend(
            [cal_id, busy.get("start", ""), busy.get("end", "")]
            for busy in (data or {}).get("busy") or []
        )
    rt.table(rows)
    return calendars


def respond(
    rt: Runtime,
    calendar_id: str,
    event_id: str,
    status: str,
    send_updates: str = "none",
) -> dict[str, Any]:
    """Set the authenticated user's response status on an event invitation."""
    account = require_account(rt.account)
    status = (status or "").strip()
    if status not in _RESPONSE_STATUSES:
        raise ValueError(
            f"invalid --status: {json.dumps(status)} (expected accepted|declined|tentative)"
        )
    send_updates = (send_updates or "").strip()
    if send_updates not in _SEND_UPDATES:
        raise ValueError(
            f"invalid --send-updates: {json.dumps(send_updates)} (expected all|none|externalOnly)"
        )

    service = rt.service(_SERVICE)
    path = f"calendars/{_seg(calendar_id)}/events/{_seg(event_id)}"
    event = service.get(path)
    attendees = (event or {}).get("attendees") or []
    if not attendees:
        raise ValueError("event has no attendees")

    wanted = account.casefold()
    updated_any = False
    for attendee in attendees:
        if not attendee:
            continue
        if attendee.get("self") or (attendee.get("email") or "").casefold() == wanted:
            attendee["responseStatus"] = status
            updated_any = True
    if not updated_any:
        raise ValueError("no attendee matches the authenticated user")

    params = {"sendUpdates": send_updates} if send_updates != "none" else None
    updated = service.put(path, event, params)

    if rt.json_output:
        rt.emit_json({"event": updated})
        return updated
    rt.out(f"id\t{updated.get('id', '')}")
    rt.out(f"status\t{status}")
    rt.out(f"send_updates\t{send_updates}")
    if updated.get("htmlLink"):
        rt.out(f"link\t{updated['htmlLink']}")
    return updated