from pathlib import Path
import sys

import pytest
import requests

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from productive_sync.core.errors import FetchFailed, InvalidResponseFormat, ProductiveAPIError
from productive_sync.core.fetcher import ResourceFetcher, next_fallback
from productive_sync.core.productive_client import ProductiveClient
from productive_sync.core.resources import ResourceSpec, get_resource


def _page_body(count, start=0, resource_type="tasks"):
    return {
        "data": [
            {"id": str(start + i), "type": resource_type, "attributes": {}, "relationships": {}}
            for i in range(count)
        ]
    }


class FakeProductiveClient:
    """Serves pages of the given sizes and rejects includes on demand."""

    def __init__(self, sizes, reject=None, body=None):
        self.sizes = list(sizes)
        self.reject = reject or (lambda include: False)
        self.body = body
        self.calls = []

    def get(self, path, params=None):
        params = dict(params or {})
        self.calls.append((path, params))
        include = params.get("include", "")
        if self.reject(include):
            raise ProductiveAPIError(
                400, {"errors": [{"detail": f"Invalid include parameter: {include}"}]}
            )
        if self.body is not None:
            return self.body
        page = params["page[number]"]
        count = self.sizes[page - 1] if page <= len(self.sizes) else 0
        return _page_body(count, start=(page - 1) * params["page[size]"])

    def includes_sent(self):
        return [params.get("include", "") for _, params in self.calls]

    def pages_sent(self):
        return [params["page[number]"] for _, params in self.calls]


TASKS = ResourceSpec(name="tasks", path="tasks", includes=("creator", "assignee"))


def test_fetch_stops_after_short_page():
    client = FakeProductiveClient([100, 100, 47])
    result = ResourceFetcher(client).fetch(TASKS, page_size=100)

    assert result.success
    assert result.count == 247
    assert client.pages_sent() == [1, 2, 3]
    assert [r["id"] for r in result.data[:2]] == ["0", "1"]
    assert result.data[-1]["id"] == "246"


def test_full_last_page_triggers_one_empty_request():
    client = FakeProductiveClient([100, 100])
    result = ResourceFetcher(client).fetch(TASKS, page_size=100)

    assert result.success
    assert result.count == 200
    assert client.pages_sent() == [1, 2, 3]


def test_request_params_carry_include_sort_and_page_size():
    client = FakeProductiveClient([3])
    ResourceFetcher(client).fetch(get_resource("projects"), page_size=50)

    path, params = client.calls[0]
    assert path == "projects"
    assert params == {
        "page[number]": 1,
        "page[size]": 50,
        "include": "company,project_manager,last_actor,workflow",
        "sort": "name",
    }


def test_include_key_omitted_when_resource_has_no_includes():
    client = FakeProductiveClient([1])
    result = ResourceFetcher(client).fetch(get_resource("companies"))

    assert result.success
    assert "include" not in client.calls[0][1]
    assert client.calls[0][1]["sort"] == "name"


def test_rejected_include_retries_same_page_with_next_candidate():
    client = FakeProductiveClient([100, 5], reject=lambda include: include == "creator,assignee")
    result = ResourceFetcher(client).fetch(TASKS, page_size=100)

    assert result.success
    assert result.count == 105
    assert client.includes_sent() == ["creator,assignee", "creator", "creator"]
    assert client.pages_sent() == [1, 1, 2]
    assert result.include == "creator"


def test_exhausted_ladder_returns_fetch_failed():
    client = FakeProductiveClient([10], reject=lambda include: True)
    result = ResourceFetcher(client).fetch(TASKS)

    assert not result.success
    assert isinstance(result.error, FetchFailed)
    assert result.error.page == 1
    assert "include" in result.error.message
    assert client.includes_sent() == ["creator,assignee", "creator", "assignee", ""]


def test_fallback_skips_candidates_equal_to_current_include():
    spec = ResourceSpec(name="time_entry_versions", path="time_entry_versions", includes=("creator",))
    client = FakeProductiveClient([2], reject=lambda include: include == "creator")
    result = ResourceFetcher(client).fetch(spec)

    assert result.success
    assert client.includes_sent() == ["creator", ""]


def test_time_entries_use_their_own_ladder():
    client = FakeProductiveClient([1], reject=lambda include: "person" in include or "service" in include)
    result = ResourceFetcher(client).fetch(get_resource("time_entries"))

    assert result.success
    assert client.includes_sent() == ["task,service,person", "task,service", "task"]


def test_error_without_include_is_terminal():
    class FailingClient(FakeProductiveClient):
        def get(self, path, params=None):
            self.calls.append((path, dict(params or {})))
            raise ProductiveAPIError(500, "Internal Server Error")

    client = FailingClient([])
    result = ResourceFetcher(client).fetch(TASKS)

    assert not result.success
    assert isinstance(result.error, FetchFailed)
    assert len(client.calls) == 1


def test_transport_failure_is_terminal():
    class BrokenClient(FakeProductiveClient):
        def get(self, path, params=None):
            self.calls.append((path, dict(params or {})))
            raise requests.ConnectionError("connection reset")

    client = BrokenClient([])
    result = ResourceFetcher(client).fetch(TASKS)

    assert not result.success
    assert isinstance(result.error, FetchFailed)
    assert len(client.calls) == 1


@pytest.mark.parametrize("body", [{}, {"data": None}, {"data": {"id": "1"}}, []])
def test_missing_data_list_is_invalid_response(body):
    client = FakeProductiveClient([], body=body)
    result = ResourceFetcher(client).fetch(TASKS)

    assert not result.success
    assert isinstance(result.error, InvalidResponseFormat)
    assert len(client.calls) == 1


def test_included_entities_are_merged_into_each_page():
    body = {
        "data": [
            {
                "id": "1",
                "type": "tasks",
                "attributes": {"title": "Fix"},
                "relationships": {"creator": {"data": {"type": "people", "id": "9"}}},
            }
        ],
        "included": [{"id": "9", "type": "people", "attributes": {"first_name": "Ana"}}],
    }
    client = FakeProductiveClient([], body=body)
    result = ResourceFetcher(client).fetch(TASKS)

    creator = result.data[0]["relationships"]["creator"]
    assert creator["included"]["attributes"]["first_name"] == "Ana"
    assert result.relationship_stats == {"creator": 1, "assignee": 0}


def test_next_fallback_is_monotonic():
    ladder = [("creator",), ("assignee",), ()]

    assert next_fallback(ladder, -1, "creator,assignee") == 0
    assert next_fallback(ladder, 0, "creator") == 1
    assert next_fallback(ladder, 1, "assignee") == 2
    assert next_fallback(ladder, 2, "") is None


def test_non_json_success_body_is_invalid_response(monkeypatch):
    client = ProductiveClient(api_token="token", organization_id="1", base_url="https://example.test/api/v2")
    maintenance = requests.Response()
    maintenance.status_code = 200
    maintenance._content = b"<html>maintenance</html>"
    monkeypatch.setattr(client.session, "get", lambda *args, **kwargs: maintenance)

    result = ResourceFetcher(client).fetch(ResourceSpec(name="tasks", path="tasks"))

    assert not result.success
    assert isinstance(result.error, InvalidResponseFormat)
    assert result.error.page == 1
