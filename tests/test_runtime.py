import io
import json

import pytest
import requests
import responses

from gogcli.runtime import (
    SERVICE_BASE_URLS,
    ApiError,
    Runtime,
    ServiceClient,
    format_table,
    require_account,
    write_json,
)

BASE = "https://api.example.com/v1"


@pytest.fixture
def api():
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        yield rsps


def test_require_account_prefers_flag(monkeypatch):
    monkeypatch.setenv("GOG_ACCOUNT", "env@example.com")
    assert require_account("flag@example.com") == "flag@example.com"


def test_require_account_uses_env(monkeypatch):
    monkeypatch.setenv("GOG_ACCOUNT", "env@example.com")
    assert require_account(None) == "env@example.com"
    assert require_account("   ") == "env@example.com"


def test_require_account_missing(monkeypatch):
    monkeypatch.setenv("GOG_ACCOUNT", "")
    with pytest.raises(ValueError, match="missing --account"):
        require_account(None)


def test_write_json_indents_and_ends_with_newline():
    buf = io.StringIO()
    write_json(buf, {"saved": True, "path": "/tmp/x"})
    text = buf.getvalue()
    assert text.endswith("\n")
    assert json.loads(text) == {"saved": True, "path": "/tmp/x"}
    assert '\n  "saved": true' in text


def test_format_table_aligns_columns():
    out = format_table([["ID", "NAME"], ["a", "longname"]])
    assert out == "ID  NAME\na   longname\n"


def test_format_table_last_cell_not_counted():
    out = format_table([["A", "B", "C"], ["xxxx", "y", "a-very-long-last-cell"]])
    assert out.splitlines() == ["A     B  C", "xxxx  y  a-very-long-last-cell"]


def test_format_table_empty():
    assert format_table([]) == ""


def test_client_get_sends_params_and_token(api):
    api.add(responses.GET, f"{BASE}/things", json={"items": [1]})
    client = ServiceClient(BASE + "/", requests.Session(), "token")
    got = client.get("things", {"q": "x", "flag": True, "page": None, "tags": ["A", "B"]})
    assert got == {"items": [1]}
    req = api.calls[0].request
    assert req.headers["Authorization"] == "Bearer token"
    assert "q=x" in req.url
    assert "flag=true" in req.url
    assert "tags=A" in req.url and "tags=B" in req.url
    assert "page=" not in req.url


def test_client_post_sends_json_body(api):
    api.add(responses.POST, f"{BASE}/things", json={"id": "1"})
    client = ServiceClient(BASE)
    assert client.post("things", {"name": "n"}) == {"id": "1"}
    assert json.loads(api.calls[0].request.body) == {"name": "n"}


def test_client_empty_response_is_empty_dict(api):
    api.add(responses.DELETE, f"{BASE}/things/1", status=204)
    assert ServiceClient(BASE).delete("things/1") == {}


def test_client_error_raises_api_error(api):
    api.add(
        responses.PUT,
        f"{BASE}/things/1",
        status=500,
        json={"error": {"code": 500, "message": "boom"}},
    )
    with pytest.raises(ApiError) as info:
        ServiceClient(BASE).put("things/1", {})
    assert info.value.status == 500
    assert info.value.message == "boom"


def test_client_patch_error_plain_text(api):
    api.add(responses.PATCH, f"{BASE}/x", status=404, body="not here")
    with pytest.raises(ApiError) as info:
        ServiceClient(BASE).patch("x", {})
    assert info.value.message == "not here"


def test_runtime_output_helpers():
    out, err = io.StringIO(), io.StringIO()
    rt = Runtime(stdout=out, stderr=err)
    rt.out("id\tx")
    rt.err("warning")
    rt.table([["A", "B"], ["1", "2"]])
    rt.emit_json({"k": 1})
    assert err.getvalue() == "warning\n"
    text = out.getvalue()
    assert text.startswith("id\tx\nA  B\n1  2\n")
    assert json.loads(text.split("1  2\n", 1)[1]) == {"k": 1}


def test_runtime_service_requires_account(monkeypatch):
    monkeypatch.delenv("GOG_ACCOUNT", raising=False)
    rt = Runtime(clients={"gmail": ServiceClient(BASE)})
    with pytest.raises(ValueError):
        rt.service("gmail")


def test_runtime_service_uses_configured_client():
    client = ServiceClient(BASE)
    rt = Runtime(account="user@example.com", clients={"gmail": client})
    assert rt.service("gmail") is client


def test_runtime_service_builds_from_token_provider():
    calls = []

    def provider(name, account):
        calls.append((name, account))
        return "token"

    rt = Runtime(account="user@example.com", token_provider=provider)
    client = rt.service("gmail")
    assert client.token == "token"
    assert client.base_url == SERVICE_BASE_URLS["gmail"].rstrip("/")
    assert rt.service("gmail") is client
    assert calls == [("gmail", "user@example.com")]


def test_runtime_people_services_share_base_url():
    rt = Runtime(account="user@example.com", token_provider=lambda n, a: "token")
    urls = {rt.service(n).base_url for n in ("people_contacts", "people_other_contacts", "people_directory")}
    assert urls == {"https://people.googleapis.com/v1"}


def test_runtime_service_unknown_or_unconfigured():
    with pytest.raises(LookupError):
        Runtime(account="user@example.com").service("gmail")
    rt = Runtime(account="user@example.com", token_provider=lambda n, a: "token")
    with pytest.raises(LookupError):
        rt.service("nope")