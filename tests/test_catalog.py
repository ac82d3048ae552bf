import json

import httpx
import pytest

from rtupdate.catalog import RecordTypeCatalog, build_index, build_record_type_query
from rtupdate.errors import EmptyCatalogError, RemoteQueryError
from rtupdate.models import CatalogEntry
from rtupdate.settings import Settings


def _entries(*pairs):
    return [CatalogEntry(name=n, identifier=i) for n, i in pairs]


def test_build_index_exact_match():
    index = build_index(_entries(("Gold", "RT001"), ("Silver", "RT002")))
    assert index["Gold"] == "RT001"
    assert index["Silver"] == "RT002"
    assert "gold" not in index


def test_build_index_duplicate_names_last_write_wins():
    index = build_index(_entries(("Gold", "A"), ("Gold", "B")))
    assert index["Gold"] == "B"
    assert len(index) == 1


def test_build_index_is_read_only():
    index = build_index(_entries(("Gold", "RT001")))
    with pytest.raises(TypeError):
        index["Gold"] = "other"


def test_build_index_empty_raises():
    with pytest.raises(EmptyCatalogError) as excinfo:
        build_index([], object_type="Account")
    assert excinfo.value.details["object_type"] == "Account"
    assert "Account" in str(excinfo.value)


def test_query_escapes_object_type():
    assert build_record_type_query("Account") == (
        "SELECT DeveloperName, Id FROM RecordType WHERE SobjectType = 'Account'"
    )
    assert "'O\\'Brien__c'" in build_record_type_query("O'Brien__c")


def _catalog(handler):
    return RecordTypeCatalog(
        "https://example.my.salesforce.com/",
        "token-123",
        api_version="59.0",
        transport=httpx.MockTransport(handler),
    )


def test_fetch_parses_records_and_sends_token():
    seen = {}

    def handler(request):
        seen["auth"] = request.headers["Authorization"]
        seen["path"] = request.url.path
        seen["q"] = request.url.params["q"]
        return httpx.Response(
            200,
            json={
                "totalSize": 2,
                "done": True,
                "records": [
                    {"attributes": {"type": "RecordType"}, "DeveloperName": "Gold", "Id": "012A"},
                    {"attributes": {"type": "RecordType"}, "DeveloperName": "Silver", "Id": "012B"},
                ],
            },
        )

    with _catalog(handler) as catalog:
        entries = catalog.fetch("Account")

    assert entries == _entries(("Gold", "012A"), ("Silver", "012B"))
    assert seen["auth"] == "Bearer token-123"
    assert seen["path"] == "/services/data/v59.0/query"
    assert seen["q"].endswith("SobjectType = 'Account'")


def test_fetch_follows_next_records_url():
    pages = {
        "/services/data/v59.0/query": {
            "done": False,
            "nextRecordsUrl": "/services/data/v59.0/query/01gNEXT-2000",
            "records": [{"DeveloperName": "Gold", "Id": "012A"}],
        },
        "/services/data/v59.0/query/01gNEXT-2000": {
            "done": True,
            "records": [{"DeveloperName": "Silver", "Id": "012B"}],
        },
    }

    def handler(request):
        return httpx.Response(200, json=pages[request.url.path])

    with _catalog(handler) as catalog:
        entries = catalog.fetch("Account")

    assert [e.name for e in entries] == ["Gold", "Silver"]


def test_fetch_empty_result_returns_empty_list():
    def handler(request):
        return httpx.Response(200, json={"totalSize": 0, "done": True, "records": []})

    with _catalog(handler) as catalog:
        assert catalog.fetch("Nothing__c") == []


def test_fetch_http_error_raises_remote_query_error():
    def handler(request):
        return httpx.Response(401, json=[{"errorCode": "INVALID_SESSION_ID"}])

    with _catalog(handler) as catalog:
        with pytest.raises(RemoteQueryError) as excinfo:
            catalog.fetch("Account")

    assert excinfo.value.status_code == 401
    assert excinfo.value.details["object_type"] == "Account"
    assert "INVALID_SESSION_ID" in str(excinfo.value)


def test_fetch_transport_error_raises_remote_query_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with _catalog(handler) as catalog:
        with pytest.raises(RemoteQueryError) as excinfo:
            catalog.fetch("Account")

    assert excinfo.value.status_code is None
    assert isinstance(excinfo.value.__cause__, httpx.ConnectError)


def test_fetch_invalid_json_raises_remote_query_error():
    def handler(request):
        return httpx.Response(200, content=b"<html>login</html>")

    with _catalog(handler) as catalog:
        with pytest.raises(RemoteQueryError, match="not valid JSON"):
            catalog.fetch("Account")


def test_fetch_row_without_id_raises_remote_query_error():
    def handler(request):
        return httpx.Response(200, content=json.dumps({"done": True, "records": [{"DeveloperName": "Gold"}]}))

    with _catalog(handler) as catalog:
        with pytest.raises(RemoteQueryError, match="missing DeveloperName or Id"):
            catalog.fetch("Account")


def test_from_settings_uses_api_version():
    settings = Settings(instance_url="https://example.my.salesforce.com", access_token="t", api_version="60.0")
    catalog = RecordTypeCatalog.from_settings(settings, transport=httpx.MockTransport(lambda r: httpx.Response(200)))
    try:
        assert catalog.query_path == "/services/data/v60.0/query"
    finally:
        catalog.close()
