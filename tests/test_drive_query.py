import pytest

from gogcli.drive_query import (
    build_drive_list_query,
    build_drive_search_query,
    drive_export_extension,
    drive_export_mime_type,
    drive_type,
    escape_drive_query_string,
    format_date_time,
    format_drive_size,
    guess_mime_type,
    replace_ext,
)


def test_list_query_adds_parent_and_trashed():
    assert build_drive_list_query("root", "") == "'root' in parents and trashed = false"


def test_list_query_combines_with_user_query():
    assert (
        build_drive_list_query("abc", "mimeType='image/png'")
        == "mimeType='image/png' and 'abc' in parents and trashed = false"
    )


def test_list_query_keeps_user_trashed():
    assert build_drive_list_query("abc", "trashed = true") == "trashed = true and 'abc' in parents"


def test_search_query():
    assert build_drive_search_query("hello world") == "fullText contains 'hello world' and trashed = false"


def test_search_query_escapes_quotes():
    assert build_drive_search_query("a'b") == "fullText contains 'a\\'b' and trashed = false"


def test_escape_drive_query_string():
    assert escape_drive_query_string("a'b") == "a\\'b"


def test_format_drive_size():
    assert format_drive_size(0) == "-"
    assert format_drive_size(-5) == "-"
    assert format_drive_size(1) == "1 B"
    assert format_drive_size(1024) == "1.0 KB"
    assert format_drive_size(1536) == "1.5 KB"
    assert format_drive_size(1024 ** 2) == "1.0 MB"
    assert format_drive_size(1024 ** 5) == "1024.0 TB"


def test_drive_type():
    assert drive_type("application/vnd.google-apps.folder") == "folder"
    assert drive_type("application/pdf") == "file"


def test_format_date_time():
    assert format_date_time("") == "-"
    assert format_date_time("2025-12-12T14:37:47Z") == "2025-12-12 14:37"
    assert format_date_time("short") == "short"


@pytest.mark.parametrize(
    "name, expected",
    [
        ("a.PDF", "application/pdf"),
        ("a.docx", "application/vnd.openxmlformats-officedocument.wordprocessingml.document"),
        ("a.xlsx", "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"),
        ("a.ppt", "application/vnd.ms-powerpoint"),
        ("a.jpeg", "image/jpeg"),
        ("a.json", "application/json"),
        ("a.csv", "text/csv"),
        ("a.unknown", "application/octet-stream"),
        ("dir.d/noext", "application/octet-stream"),
    ],
)
def test_guess_mime_type(name, expected):
    assert guess_mime_type(name) == expected


def test_replace_ext():
    assert replace_ext("/tmp/a.txt", ".pdf") == "/tmp/a.pdf"
    assert replace_ext("a", ".pdf") == "a.pdf"
    assert replace_ext("dir.d/a", ".csv") == "dir.d/a.csv"


@pytest.mark.parametrize(
    "google, expected",
    [
        ("application/vnd.google-apps.document", "application/pdf"),
        ("application/vnd.google-apps.spreadsheet", "text/csv"),
        ("application/vnd.google-apps.presentation", "application/pdf"),
        ("application/vnd.google-apps.drawing", "image/png"),
        ("application/vnd.google-apps.unknown", "application/pdf"),
    ],
)
def test_drive_export_mime_type(google, expected):
    assert drive_export_mime_type(google) == expected


@pytest.mark.parametrize(
    "mime, expected",
    [
        ("application/pdf", ".pdf"),
        ("text/csv", ".csv"),
        ("image/png", ".png"),
        ("text/plain", ".txt"),
        ("nope", ".pdf"),
    ],
)
def test_drive_export_extension(mime, expected):
    assert drive_export_extension(mime) == expected