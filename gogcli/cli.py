"""The ``gog`` command line: argument parsing and dispatch to the commands."""

from __future__ import annotations

import argparse
import os
import sys
from typing import Any, Callable, Sequence

import requests

from . import calendar_cmds, contacts, directory, drive, gmail
from .runtime import ApiError, Runtime

TOKEN_ENV = "GOG_ACCESS_TOKEN"

Runner = Callable[[Runtime, argparse.Namespace], Any]


def _token_from_env(service: str, account: str) -> str:
    value = os.environ.get(TOKEN_ENV, "").strip()
    if not value:
        raise LookupError(f"no access token for {account}: set {TOKEN_ENV}")
    return value


def _group(sub: Any, name: str, text: str) -> Any:
    parser = sub.add_parser(name, help=text, description=text)
    parser.set_defaults(run=None, group=parser)
    return parser.add_subparsers(metavar="<command>")


def _leaf(sub: Any, name: str, text: str, run: Runner) -> argparse.ArgumentParser:
    parser = sub.add_parser(name, help=text, description=text)
    parser.set_defaults(run=run)
    return parser


def _paging(parser: argparse.ArgumentParser, default_max: int, page: bool = True) -> None:
    parser.add_argument("--max", dest="max_results", type=int, default=default_max, help="Max results")
    if page:
        parser.add_argument("--page", default="", help="Page token")


def _add_gmail(top: Any) -> None:
    sub = _group(top, "gmail", "Gmail")
    p = _leaf(
        sub,
        "search",
        "Search threads using Gmail query syntax",
        lambda rt, a: gmail.gmail_search(rt, " ".join(a.query), a.max_results, a.page),
    )
    p.add_argument("query", nargs="+")
    _paging(p, 10)


def _event_fields(parser: argparse.ArgumentParser, default: Any) -> None:
    for flag in ("summary", "start", "end", "description", "location", "attendees"):
        parser.add_argument(f"--{flag}", default=default)


def _add_calendar(top: Any) -> None:
    sub = _group(top, "calendar", "Google Calendar")
    _leaf(sub, "calendars", "List calendars", lambda rt, a: calendar_cmds.list_calendars(rt))

    p = _leaf(
        sub,
        "acl",
        "List access control rules for a calendar",
        lambda rt, a: calendar_cmds.list_acl(rt, a.calendar_id),
    )
    p.add_argument("calendar_id")

    p = _leaf(
        sub,
        "events",
        "List events from a calendar",
        lambda rt, a: calendar_cmds.list_events(
            rt, a.calendar_id, a.time_from, a.time_to, a.max_results, a.page, a.query
        ),
    )
    p.add_argument("calendar_id")
    p.add_argument("--from", dest="time_from", default="", help="Start time (RFC3339; default: now)")
    p.add_argument("--to", dest="time_to", default="", help="End time (RFC3339; default: +7d)")
    _paging(p, 10)
    p.add_argument("--query", default="", help="Free text search")

    p = _leaf(
        sub,
        "event",
        "Get event details",
        lambda rt, a: calendar_cmds.get_event(rt, a.calendar_id, a.event_id),
    )
    p.add_argument("calendar_id")
    p.add_argument("event_id")

    p = _leaf(
        sub,
        "create",
        "Create a new event",
        lambda rt, a: calendar_cmds.create_event(
            rt,
            a.calendar_id,
            a.summary,
            a.start,
            a.end,
            a.description,
            a.location,
            a.attendees,
            a.all_day,
        ),
    )
    p.add_argument("calendar_id")
    _event_fields(p, "")
    p.add_argument("--all-day", dest="all_day", action="store_true")

    p = _leaf(
        sub,
        "update",
        "Update an existing event",
        lambda rt, a: calendar_cmds.update_event(
            rt,
            a.calendar_id,
            a.event_id,
            a.summary,
            a.start,
            a.end,
            a.description,
            a.location,
            a.attendees,
            a.all_day,
        ),
    )
    p.add_argument("calendar_id")
    p.add_argument("event_id")
    _event_fields(p, None)
    p.add_argument("--all-day", dest="all_day", action=argparse.BooleanOptionalAction, default=None)

    p = _leaf(
        sub,
        "delete",
        "Delete an event",
        lambda rt, a: calendar_cmds.delete_event(rt, a.calendar_id, a.event_id),
    )
    p.add_argument("calendar_id")
    p.add_argument("event_id")

    p = _leaf(
        sub,
        "freebusy",
        "Check free/busy status for calendars (comma-separated IDs)",
        lambda rt, a: calendar_cmds.freebusy(rt, a.calendar_ids, a.time_from, a.time_to),
    )
    p.add_argument("calendar_ids")
    p.add_argument("--from", dest="time_from", default="")
    p.add_argument("--to", dest="time_to", default="")

    p = _leaf(
        sub,
        "respond",
        "Respond to a meeting invitation (accept/decline/tentative)",
        lambda rt, a: calendar_cmds.respond(
            rt, a.calendar_id, a.event_id, a.status, a.send_updates
        ),
    )
    p.add_argument("calendar_id")
    p.add_argument("event_id")
    p.add_argument("--status", required=True, help="accepted|declined|tentative")
    p.add_argument("--send-updates", dest="send_updates", default="none", help="all|none|externalOnly")


def _person_fields(parser: argparse.ArgumentParser, default: Any) -> None:
    for flag in ("given", "family", "email", "phone"):
        parser.add_argument(f"--{flag}", default=default)


def _add_contacts(top: Any) -> None:
    sub = _group(top, "contacts", "Google Contacts (People API)")

    p = _leaf(
        sub,
        "search",
        "Search contacts by name/email/phone",
        lambda rt, a: contacts.search_contacts(rt, " ".join(a.query), a.max_results),
    )
    p.add_argument("query", nargs="+")
    _paging(p, 50, page=False)

    p = _leaf(
        sub,
        "list",
        "List contacts",
        lambda rt, a: contacts.list_contacts(rt, a.max_results, a.page),
    )
    _paging(p, 100)

    p = _leaf(
        sub,
        "get",
        "Get a contact by resource name (people/...) or email",
        lambda rt, a: contacts.get_contact(rt, a.identifier),
    )
    p.add_argument("identifier")

    p = _leaf(
        sub,
        "create",
        "Create a new contact",
        lambda rt, a: contacts.create_contact(rt, a.given, a.family, a.email, a.phone),
    )
    _person_fields(p, "")

    p = _leaf(
        sub,
        "update",
        "Update an existing contact",
        lambda rt, a: contacts.update_contact(
            rt, a.resource_name, a.given, a.family, a.email, a.phone
        ),
    )
    p.add_argument("resource_name")
    _person_fields(p, None)

    p = _leaf(
        sub,
        "delete",
        "Delete a contact",
        lambda rt, a: contacts.delete_contact(rt, a.resource_name),
    )
    p.add_argument("resource_name")

    dir_sub = _group(sub, "directory", "Google Workspace directory")
    p = _leaf(
        dir_sub,
        "list",
        "List people from the Workspace directory",
        lambda rt, a: directory.list_directory(rt, a.max_results, a.page),
    )
    _paging(p, 50)
    p = _leaf(
        dir_sub,
        "search",
        "Search people in the Workspace directory",
        lambda rt, a: directory.search_directory(rt, " ".join(a.query), a.max_results, a.page),
    )
    p.add_argument("query", nargs="+")
    _paging(p, 50)

    other_sub = _group(sub, "other", "Other contacts (people you've interacted with)")
    p = _leaf(
        other_sub,
        "list",
        "List other contacts",
        lambda rt, a: directory.list_other_contacts(rt, a.max_results, a.page),
    )
    _paging(p, 100)
    p = _leaf(
        other_sub,
        "search",
        "Search other contacts",
        lambda rt, a: directory.search_other_contacts(rt, " ".join(a.query), a.max_results),
    )
    p.add_argument("query", nargs="+")
    _paging(p, 50, page=False)


def _add_drive(top: Any) -> None:
    sub = _group(top, "drive", "Google Drive")

    p = _leaf(
        sub,
        "ls",
        "List files in a folder (default: root)",
        lambda rt, a: drive.list_files(rt, a.folder_id, a.max_results, a.page, a.query),
    )
    p.add_argument("folder_id", nargs="?", default="root")
    _paging(p, 20)
    p.add_argument("--query", default="", help="Drive query filter")

    p = _leaf(
        sub,
        "search",
        "Full-text search across Drive",
        lambda rt, a: drive.search_files(rt, " ".join(a.text), a.max_results, a.page),
    )
    p.add_argument("text", nargs="+")
    _paging(p, 20)

    p = _leaf(sub, "get", "Get file metadata", lambda rt, a: drive.get_file(rt, a.file_id))
    p.add_argument("file_id")

    p = _leaf(
        sub,
        "download",
        "Download a file (Google Docs exported)",
        lambda rt, a: drive.download_file(rt, a.file_id, a.dest_path),
    )
    p.add_argument("file_id")
    p.add_argument("dest_path", nargs="?", default="")

    p = _leaf(
        sub,
        "upload",
        "Upload a file",
        lambda rt, a: drive.upload_file(rt, a.local_path, a.name, a.folder),
    )
    p.add_argument("local_path")
    p.add_argument("--name", default="", help="Override filename")
    p.add_argument("--folder", default="", help="Destination folder ID")

    p = _leaf(sub, "mkdir", "Create a folder", lambda rt, a: drive.make_folder(rt, a.name, a.parent))
    p.add_argument("name")
    p.add_argument("--parent", default="", help="Parent folder ID")

    p = _leaf(
        sub, "delete", "Delete a file (moves to trash)", lambda rt, a: drive.delete_file(rt, a.file_id)
    )
    p.add_argument("file_id")

    p = _leaf(
        sub,
        "move",
        "Move a file to a different folder",
        lambda rt, a: drive.move_file(rt, a.file_id, a.new_parent_id),
    )
    p.add_argument("file_id")
    p.add_argument("new_parent_id")

    p = _leaf(
        sub,
        "rename",
        "Rename a file or folder",
        lambda rt, a: drive.rename_file(rt, a.file_id, a.new_name),
    )
    p.add_argument("file_id")
    p.add_argument("new_name")

    p = _leaf(
        sub,
        "share",
        "Share a file or folder",
        lambda rt, a: drive.share_file(rt, a.file_id, a.anyone, a.email, a.role, a.discoverable),
    )
    p.add_argument("file_id")
    p.add_argument("--anyone", action="store_true", help="Make publicly accessible")
    p.add_argument("--email", default="", help="Share with specific user")
    p.add_argument("--role", default="reader", help="Permission: reader|writer")
    p.add_argument("--discoverable", action="store_true", help="Allow file discovery in search")

    p = _leaf(
        sub,
        "unshare",
        "Remove a permission from a file",
        lambda rt, a: drive.unshare_file(rt, a.file_id, a.permission_id),
    )
    p.add_argument("file_id")
    p.add_argument("permission_id")

    p = _leaf(
        sub,
        "permissions",
        "List permissions on a file",
        lambda rt, a: drive.list_permissions(rt, a.file_id),
    )
    p.add_argument("file_id")

    p = _leaf(sub, "url", "Print web URLs for files", lambda rt, a: drive.file_urls(rt, a.file_ids))
    p.add_argument("file_ids", nargs="+")


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for all commands."""
    parser = argparse.ArgumentParser(prog="gog", description="Google services from the command line")
    parser.add_argument("--account", default=None, help="Account email (or set GOG_ACCOUNT)")
    parser.add_argument("--output", choices=("text", "json"), default="text", help="Output format")
    parser.set_defaults(run=None, group=parser)
    top = parser.add_subparsers(metavar="<command>")
    _add_gmail(top)
    _add_calendar(top)
    _add_contacts(top)
    _add_drive(top)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command line; returns the process exit code."""
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as exc:
        return 0 if exc.code in (0, None) else 1

    if args.run is None:
        args.group.print_help()
        return 0

    rt = Runtime(
        account=args.account,
        json_output=args.output == "json",
        token_provider=_token_from_env,
    )
    try:
        args.run(rt, args)
    except (ValueError, LookupError, OSError, ApiError, requests.RequestException) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())