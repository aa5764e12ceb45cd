import io
import json

import pytest
import responses
from responses import matchers

from gogcli.directory import (
    list_directory,
    list_other_contacts,
    search_directory,
    search_other_contacts,
)
from gogcli.runtime import Runtime, ServiceClient

BASE = "https://people.test/v1/"


def _runtime(json_output=True, account="me@example.com"):
    client = ServiceClient(BASE)
    return Runtime(
        account=account,
        json_output=json_output,
        stdout=io.StringIO(),
        stderr=io.StringIO(),
        clients={"people_directory": client, "people_other_contacts": client},
    )


def test_list_directory_json():
    rt = _runtime()
    with responses.RequestsMock() as rsps:
        rsps.add(
            responses.GET,
            BASE + "people:listDirectoryPeople",
            json={
                "people": [{"resourceName": "people/d1", "names": [{"displayName": "Dir"}]}],
                "nextPageToken": "npt",
            },
            match=[
                matchers.query_param_matcher(
                    {
                        "sources": "DIRECTORY_SOURCE_TYPE_DOMAIN_PROFILE",
                        "readMask": "names,emailAddresses",
                        "pageSize": "1",
                    }
                )
            ],
        )
        items = list_directory(rt, max_results=1)
    assert items == [{"resource": "people/d1", "name": "Dir"}]
    parsed = json.loads(rt.stdout.getvalue())
    assert parsed == {"people": [{"resource": "people/d1", "name": "Dir"}], "nextPageToken": "npt"}


def test_list_directory_text_shows_next_page():
    rt = _runtime(json_output=False)
    with responses.RequestsMock() as rsps:
        rsps.add(
            responses.GET,
            BASE + "people:listDirectoryPeople",
            json={
                "people": [
                    {
                        "resourceName": "people/d1",
                        "names": [{"displayName": "Dir"}],
                        "emailAddresses": [{"value": "dir@example.com"}],
                    }
                ],
                "nextPageToken": "npt",
            },
        )
        list_directory(rt)
    out = rt.stdout.getvalue()
    assert "RESOURCE" in out and "people/d1" in out and "dir@example.com" in out
    assert "PHONE" not in out
    assert "# Next page: --page npt" in rt.stderr.getvalue()


def test_search_directory_json():
    rt = _runtime()
    with responses.RequestsMock() as rsps:
        rsps.add(
            responses.GET,
            BASE + "people:searchDirectoryPeople",
            json={"people": [{"resourceName": "people/d2", "names": [{"displayName": "Dir2"}]}]},
            match=[
                matchers.query_param_matcher(
                    {
                        "query": "Dir",
                        "sources": "DIRECTORY_SOURCE_TYPE_DOMAIN_PROFILE",
                        "readMask": "names,emailAddresses",
                        "pageSize": "1",
                    }
                )
            ],
        )
        items = search_directory(rt, "Dir", max_results=1)
    assert items == [{"resource": "people/d2", "name": "Dir2"}]
    parsed = json.loads(rt.stdout.getvalue())
    assert parsed["nextPageToken"] == ""
    assert parsed["people"][0]["resource"] == "people/d2"


def test_search_directory_text_no_results():
    rt = _runtime(json_output=False)
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, BASE + "people:searchDirectoryPeople", json={})
        items = search_directory(rt, "nobody")
    assert items == []
    assert "No results" in rt.stderr.getvalue()
    assert rt.stdout.getvalue() == ""


def test_list_other_contacts_json():
    rt = _runtime()
    with responses.RequestsMock() as rsps:
        rsps.add(
            responses.GET,
            BASE + "otherContacts",
            json={
                "otherContacts": [
                    {"resourceName": "people/o1", "names": [{"displayName": "Other"}]}
                ],
                "nextPageToken": "npt",
            },
            match=[
                matchers.query_param_matcher(
                    {"readMask": "names,emailAddresses,phoneNumbers", "pageSize": "1"}
                )
            ],
        )
        items = list_other_contacts(rt, max_results=1)
    assert items == [{"resource": "people/o1", "name": "Other"}]
    parsed = json.loads(rt.stdout.getvalue())
    assert parsed == {"contacts": [{"resource": "people/o1", "name": "Other"}], "nextPageToken": "npt"}


def test_list_other_contacts_text_has_phone_column():
    rt = _runtime(json_output=False)
    with responses.RequestsMock() as rsps:
        rsps.add(
            responses.GET,
            BASE + "otherContacts",
            json={
                "otherContacts": [
                    {
                        "resourceName": "people/o1",
                        "names": [{"displayName": "Other\tPerson"}],
                        "phoneNumbers": [{"value": "+1"}],
                    }
                ]
            },
        )
        list_other_contacts(rt)
    out = rt.stdout.getvalue()
    assert "PHONE" in out
    assert "Other Person" in out
    assert "+1" in out
    assert "Next page" not in rt.stderr.getvalue()


def test_search_other_contacts_json():
    rt = _runtime()
    with responses.RequestsMock() as rsps:
        rsps.add(
            responses.GET,
            BASE + "otherContacts:search",
            json={
                "results": [
                    {"person": {"resourceName": "people/o1", "names": [{"displayName": "Other"}]}},
                    {},
                ]
            },
        )
        items = search_other_contacts(rt, "Other")
    assert items == [{"resource": "people/o1", "name": "Other"}]
    parsed = json.loads(rt.stdout.getvalue())
    assert parsed == {"contacts": [{"resource": "people/o1", "name": "Other"}]}


def test_missing_account_raises(monkeypatch):
    monkeypatch.delenv("GOG_ACCOUNT", raising=False)
    rt = _runtime(account=None)
    with pytest.raises(ValueError, match="missing --account"):
        list_directory(rt)