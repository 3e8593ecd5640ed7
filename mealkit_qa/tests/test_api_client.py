"""Unit tests for the GoRest request wrapper, using an in-memory transport."""
import json

import httpx
import pytest

from mealkit_qa.api_client import ApiTransportError, GoRestClient, find_first_active_user
from mealkit_qa.models import User


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served."""

    def __init__(self, status_code=200, payload=None):
        self.requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return httpx.Response(status_code, json=payload if payload is not None else {"meta": None, "data": {}})

        super().__init__(handler)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def client(transport):
    with GoRestClient("https://api.example.test/public/v1", "secret-token", transport=transport) as client:
        yield client


def test_url_is_base_url_plus_endpoint(client, transport):
    client.request("GET", "/users/42")
    assert str(transport.last.url) == "https://api.example.test/public/v1/users/42"


def test_trailing_slash_on_base_url_is_ignored(transport):
    with GoRestClient("https://api.example.test/public/v1/", "t", transport=transport) as client:
        client.list_users()
    assert str(transport.last.url) == "https://api.example.test/public/v1/users"


def test_default_headers_are_sent(client, transport):
    client.request("GET", "/users")
    assert transport.last.headers["Authorization"] == "Bearer secret-token"
    assert transport.last.headers["Content-Type"] == "application/json"


@pytest.mark.parametrize(
    "extra",
    [
        {"Authorization": "Bearer invalid_token"},
        {"authorization": "Bearer invalid_token"},
        {"AUTHORIZATION": "Bearer invalid_token"},
    ],
)
def test_caller_headers_override_defaults(client, transport, extra):
    client.request("PATCH", "/users/1", {"name": "x"}, headers=extra)
    assert transport.last.headers.get_list("Authorization") == ["Bearer invalid_token"]


def test_caller_headers_are_added_alongside_defaults(client, transport):
    client.request("GET", "/users", headers={"X-Trace-Id": "abc"})
    assert transport.last.headers["X-Trace-Id"] == "abc"
    assert transport.last.headers["Authorization"] == "Bearer secret-token"


@pytest.mark.parametrize("method", ["GET", "DELETE", "HEAD"])
def test_body_is_dropped_for_non_payload_methods(client, transport, method):
    client.request(method, "/users/1", {"name": "ignored"})
    assert transport.last.content == b""


@pytest.mark.parametrize("method", ["POST", "PATCH", "PUT", "patch"])
def test_body_is_sent_as_json_for_payload_methods(client, transport, method):
    client.request(method, "/users/1", {"name": "Jane"})
    assert json.loads(transport.last.content) == {"name": "Jane"}


@pytest.mark.parametrize("body", [None, "", 0, False])
def test_empty_bodies_are_not_sent(client, transport, body):
    client.request("PATCH", "/users/1", body)
    assert transport.last.content == b""


@pytest.mark.parametrize("body", [{}, [], {"name": "Jane"}, "raw"])
def test_non_empty_and_container_bodies_are_sent(client, transport, body):
    client.request("POST", "/users", body)
    assert json.loads(transport.last.content) == body


def test_non_2xx_status_is_returned_not_raised():
    transport = RecordingTransport(404, {"meta": None, "data": {"message": "Resource not found"}})
    with GoRestClient("https://api.example.test", "t", transport=transport) as client:
        response = client.get_user(999999999)
    assert response.status == 404
    assert response.data == {"message": "Resource not found"}
    assert response.meta is None


def test_non_json_body_is_returned_as_text():
    transport = httpx.MockTransport(lambda request: httpx.Response(502, text="Bad Gateway"))
    with GoRestClient("https://api.example.test", "t", transport=transport) as client:
        response = client.list_users()
    assert response.status == 502
    assert response.body == "Bad Gateway"
    assert response.data is None


def test_transport_failure_raises_with_operation_and_timeout():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with GoRestClient("https://api.example.test", "t", timeout=3.5, transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(ApiTransportError) as excinfo:
            client.list_users()

    err = excinfo.value
    assert err.method == "GET"
    assert err.url == "https://api.example.test/users"
    assert err.timeout == 3.5
    assert "GET https://api.example.test/users" in str(err)
    assert "timeout=3.5s" in str(err)


def test_update_user_sends_patch_with_payload(client, transport):
    client.update_user(7, {"name": "QA Test Updated Name"})
    assert transport.last.method == "PATCH"
    assert transport.last.url.path == "/public/v1/users/7"
    assert json.loads(transport.last.content) == {"name": "QA Test Updated Name"}


def test_find_first_active_user_keeps_input_order():
    users = [
        {"id": 1, "status": "inactive"},
        {"id": 2, "status": "active"},
        {"id": 3, "status": "active"},
    ]
    assert find_first_active_user(users) == {"id": 2, "status": "active"}


def test_find_first_active_user_returns_none_when_all_inactive():
    assert find_first_active_user([{"id": 1, "status": "inactive"}]) is None
    assert find_first_active_user([]) is None


def test_find_first_active_user_accepts_user_records():
    users = [
        User(id=1, name="A", email="a@example.test", gender="male", status="inactive"),
        User(id=2, name="B", email="b@example.test", gender="female", status="active"),
    ]
    assert find_first_active_user(users).id == 2
