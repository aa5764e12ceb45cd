import json

import pytest
import responses

from gogcli.cli import build_parser, main


@pytest.fixture
def mock():
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        yield rsps


@pytest.fixture(autouse=True)
def _env(monkeypatch):
    monkeypatch.delenv("GOG_ACCOUNT", raising=False)
    monkeypatch.setenv("GOG_ACCESS_TOKEN", "token")


def test_help_does_not_exit(capsys):
    assert main(["--help"]) == 0
    assert "usage: gog" in capsys.readouterr().out


def test_unknown_command_exit_code():
    assert main(["nope-nope-nope"]) == 1


def test_no_command_prints_help(capsys):
    assert main([]) == 0
    assert "drive" in capsys.readouterr().out


def test_parser_defaults():
    args = build_parser().parse_args(["--output", "json", "drive", "ls", "--max", "5"])
    assert args.output == "json"
    assert args.max_results == 5
    assert args.folder_id == "root"


def test_update_flags_default_to_unset():
    args = build_parser().parse_args(["calendar", "update", "c1", "e1", "--summary", "S2"])
    assert args.summary == "S2"
    assert args.start is None
    assert args.all_day is None


def test_missing_account(capsys):
    assert main(["drive", "get", "id1"]) == 1
    assert "missing --account" in capsys.readouterr().err


def test_missing_token(monkeypatch, capsys):
    monkeypatch.delenv("GOG_ACCESS_TOKEN")
    assert main(["--account", "me@example.com", "drive", "get", "id1"]) == 1
    assert "GOG_ACCESS_TOKEN" in capsys.readouterr().err


def test_drive_get_text(mock, capsys):
    mock.add(
        responses.GET,
        "https://www.googleapis.com/drive/v3/files/id1",
        json={"id": "id1", "name": "Doc", "starred": True, "webViewLink": "https://example.com/id1"},
    )
    code = main(["--output", "text", "--account", "me@example.com", "drive", "get", "id1"])
    out = capsys.readouterr().out
    assert code == 0
    assert "id\tid1" in out and "name\tDoc" in out and "starred\ttrue" in out
    assert mock.calls[0].request.headers["Authorization"] == "Bearer token"


def test_api_error_exit_code(mock, capsys):
    mock.add(
        responses.GET,
        "https://www.googleapis.com/drive/v3/files/id1",
        json={"error": {"code": 404, "message": "File not found"}},
        status=404,
    )
    assert main(["--account", "me@example.com", "drive", "get", "id1"]) == 1
    assert "File not found" in capsys.readouterr().err


def test_gmail_search_json(mock, capsys):
    base = "https://gmail.googleapis.com/gmail/v1/users/me"
    mock.add(
        responses.GET,
        f"{base}/threads",
        json={"threads": [{"id": "t1"}], "nextPageToken": "npt"},
    )
    mock.add(
        responses.GET,
        f"{base}/threads/t1",
        json={
            "id": "t1",
            "messages": [
                {
                    "id": "m1",
                    "labelIds": ["INBOX"],
                    "payload": {
                        "headers": [
                            {"name": "From", "value": "Me <me@example.com>"},
                            {"name": "Subject", "value": "Hello"},
                            {"name": "Date", "value": "Mon, 02 Jan 2006 15:04:05 -0700"},
                        ]
                    },
                }
            ],
        },
    )
    mock.add(
        responses.GET,
        f"{base}/labels",
        json={"labels": [{"id": "INBOX", "name": "INBOX", "type": "system"}]},
    )
    code = main(
        ["--output", "json", "--account", "me@example.com", "gmail", "search", "newer_than:7d", "--max", "1"]
    )
    parsed = json.loads(capsys.readouterr().out)
    assert code == 0
    assert parsed["nextPageToken"] == "npt"
    assert len(parsed["threads"]) == 1
    thread = parsed["threads"][0]
    assert thread["id"] == "t1"
    assert thread["subject"] == "Hello"
    assert thread["date"] == "2006-01-02 15:04"
    assert thread["labels"] == ["INBOX"]


def test_calendar_freebusy_text(mock, capsys):
    mock.add(
        responses.POST,
        "https://www.googleapis.com/calendar/v3/freeBusy",
        json={
            "calendars": {
                "c1": {"busy": [{"start": "2025-12-17T10:00:00Z", "end": "2025-12-17T11:00:00Z"}]}
            }
        },
    )
    code = main(
        [
            "--output",
            "text",
            "--account",
            "me@example.com",
            "calendar",
            "freebusy",
            "c1",
            "--from",
            "2025-12-17T00:00:00Z",
            "--to",
            "2025-12-18T00:00:00Z",
        ]
    )
    out = capsys.readouterr().out
    assert code == 0
    assert "CALENDAR" in out and "c1" in out and "2025-12-17T10:00:00Z" in out


def test_drive_share_validation_exit_code(capsys):
    assert main(["--account", "me@example.com", "drive", "share", "f1"]) == 1
    assert "must specify --anyone or --email" in capsys.readouterr().err