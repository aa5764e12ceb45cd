"""Account resolution, output helpers and the HTTP client shared by all commands."""

from __future__ import annotations

import json
import os
import sys
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping, Sequence, TextIO

import requests

ACCOUNT_ENV = "GOG_ACCOUNT"
DEFAULT_TIMEOUT = 60.0
_CELL_PADDING = 2

_PEOPLE_BASE_URL = "https://people.googleapis.com/v1/"

SERVICE_BASE_URLS: Mapping[str, str] = {
    "gmail": "https://gmail.googleapis.com/gmail/v1/",
    "calendar": "https://www.googleapis.com/calendar/v3/",
    "drive": "https://www.googleapis.com/drive/v3/",
    "people_contacts": _PEOPLE_BASE_URL,
    "people_other_contacts": _PEOPLE_BASE_URL,
    "people_directory": _PEOPLE_BASE_URL,
}


class ApiError(Exception):
    """An API call answered with a non-success HTTP status."""

    def __init__(self, status: int, message: str) -> None:
        super().__init__(f"api error {status}: {message}")
        self.status = status
        self.message = message


def require_account(account: str | None) -> str:
    """Return the account from the flag, else from GOG_ACCOUNT."""
    for candidate in (account, os.environ.get(ACCOUNT_ENV)):
        value = (candidate or "").strip()
        if value:
            return value
    raise ValueError("missing --account (or set GOG_ACCOUNT)")


def write_json(stream: TextIO, value: Any) -> None:
    """Write ``value`` as indented JSON followed by a newline."""
    stream.write(json.dumps(value, indent=2, ensure_ascii=False))
    stream.write("\n")


def format_table(rows: Iterable[Sequence[Any]]) -> str:
    """Align rows into columns separated by at least two spaces.

    The last cell of each row is never padded.
    """
    table = [[str(cell) for cell in row] for row in rows]
    if not table:
        return ""
    column_count = max(len(row) for row in table)
    widths = [
        max((len(row[i]) for row in table if i < len(row) - 1), default=0) + _CELL_PADDING
        for i in range(max(column_count - 1, 0))
    ]
    lines = []
    for row in table:
        if not row:
            lines.append("")
            continue
        padded = "".join(cell.ljust(widths[i]) for i, cell in enumerate(row[:-1]))
        lines.append(padded + row[-1])
    return "".join(line + "\n" for line in lines)


def _encode_value(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return [_encode_value(v) for v in value]
    return value


def _encode_params(params: Mapping[str, Any] | None) -> dict[str, Any]:
    if not params:
        return {}
    return {
        key: _encode_value(value)
        for key, value in params.items()
        if value is not None and value != ""
    }


def _error_message(resp: requests.Response) -> str:
    try:
        payload = resp.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error
    return resp.text.strip() or resp.reason or "request failed"


class ServiceClient:
    """A small JSON client for one REST API."""

    def __init__(
        self,
        base_url: str,
        session: requests.Session | None = None,
        token: str | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.session = session if session is not None else requests.Session()
        self.token = token

    def request(
        self,
        method: str,
        path: str,
        params: Mapping[str, Any] | None = None,
        body: Any = None,
    ) -> Any:
        """Send a request and return the decoded JSON body ({} when empty)."""
        url = f"{self.base_url}/{path.lstrip('/')}"
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        resp = self.session.request(
            method,
            url,
            params=_encode_params(params),
            json=body,
            headers=headers,
            timeout=DEFAULT_TIMEOUT,
        )
        if not 200 <= resp.status_code < 300:
            raise ApiError(resp.status_code, _error_message(resp))
        if not resp.content:
            return {}
        return resp.json()

    def get(self, path: str, params: Mapping[str, Any] | None = None) -> Any:
        return self.request("GET", path, params=params)

    def post(self, path: str, body: Any = None, params: Mapping[str, Any] | None = None) -> Any:
        return self.request("POST", path, params=params, body=body)

    def put(self, path: str, body: Any = None, params: Mapping[str, Any] | None = None) -> Any:
        return self.request("PUT", path, params=params, body=body)

    def patch(self, path: str, body: Any = None, params: Mapping[str, Any] | None = None) -> Any:
        return self.request("PATCH", path, params=params, body=body)

    def delete(self, path: str, params: Mapping[str, Any] | None = None) -> Any:
        return self.request("DELETE", path, params=params)


TokenProvider = Callable[[str, str], str]


@dataclass
class Runtime:
    """Everything a command needs: account, output mode, streams and API clients."""

    account: str | None = None
    json_output: bool = False
    stdout: TextIO = field(default_factory=lambda: sys.stdout)
    stderr: TextIO = field(default_factory=lambda: sys.stderr)
    clients: dict[str, ServiceClient] = field(default_factory=dict)
    token_provider: TokenProvider | None = None

    def out(self, line: str) -> None:
        print(line, file=self.stdout)

    def err(self, line: str) -> None:
        print(line, file=self.stderr)

    def emit_json(self, value: Any) -> None:
        write_json(self.stdout, value)

    def table(self, rows: Iterable[Sequence[Any]]) -> None:
        self.stdout.write(format_table(rows))

    def service(self, name: str) -> ServiceClient:
        """Return the client for ``name``, creating it for the account if needed."""
        account = require_account(self.account)
        client = self.clients.get(name)
        if client is not None:
            return client
        if self.token_provider is None:
            raise LookupError(f"no client configured for service {name!r}")
        try:
            base_url = SERVICE_BASE_URLS[name]
        except KeyError:
            raise LookupError(f"unknown service {name!r}") from None
        client = ServiceClient(base_url, token=self.token_provider(name, account))
        self.clients[name] = client
        return client