"""Integration tests for paramcheck with Starlette.

Tests cover:
- End-to-end validation of path, query, body and header fields
- ValidationFailed rendered as a 400 JSON response
- Mapped error responses
- One session per request
"""

import pytest
from starlette.applications import Starlette
from starlette.responses import JSONResponse
from starlette.routing import Route
from starlette.testclient import TestClient

from paramcheck import RequestValidator
from paramcheck.asgi import get_session, install, request_data
from paramcheck.errors import error_to_dict


async def create_user(request):
    session = await get_session(request)
    session.check_params("org_id", "org_id must be an int").is_int(min=1)
    session.check_body({
        "email": {"is_email": {}, "errorMessage": "invalid email"},
        "age": {"optional": {}, "is_int": {"options": {"min": 18}, "errorMessage": "must be an adult"}},
        "role": {"in": "bogus", "not_empty": {}},
    })
    session.check_headers("x-api-key", "api key required").not_empty()
    return JSONResponse(session.valid())


async def search(request):
    session = await get_session(request)
    session.check("q", "q is required").not_empty()
    session.check("page").optional().is_int()
    result = session.valid(mapped=True)
    if session.errors:
        return JSONResponse({name: error_to_dict(error) for name, error in result.items()}, status_code=422)
    return JSONResponse(result)


async def same_session(request):
    first = await get_session(request)
    second = await get_session(request)
    return JSONResponse({"same": first is second})


async def echo(request):
    data = await request_data(request)
    return JSONResponse({"params": data.params, "query": data.query, "body": data.body})


def is_even(value, request):
    return int(value) % 2 == 0


@pytest.fixture
def client():
    app = Starlette(routes=[
        Route("/orgs/{org_id}/users", create_user, methods=["POST"]),
        Route("/search", search),
        Route("/same", same_session),
        Route("/echo/{item}", echo, methods=["POST"]),
    ])
    install(app, RequestValidator(custom_validators={"is_even": is_even}))
    return TestClient(app)


class TestHappyPath:
    """Test requests that pass validation."""

    def test_valid_request_returns_merged_params(self, client):
        response = client.post(
            "/orgs/42/users?source=web",
            json={"email": "ada@example.com", "age": 36},
            headers={"x-api-key": "secret"},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["org_id"] == "42"
        assert body["source"] == "web"
        assert body["email"] == "ada@example.com"
        assert body["age"] == 36
        assert body["x-api-key"] == "secret"
        assert "host" not in body
        assert "content-type" not in body
        assert "user-agent" not in body

    def test_unknown_location_field_is_ignored(self, client):
        response = client.post(
            "/orgs/1/users",
            json={"email": "ada@example.com", "role": ""},
            headers={"x-api-key": "secret"},
        )
        assert response.status_code == 200
        assert response.json()["role"] == ""


class TestFailurePath:
    """Test requests that fail validation."""

    def test_validation_failed_becomes_400(self, client):
        response = client.post("/orgs/0/users", json={"email": "nope", "age": 12})
        assert response.status_code == 400
        assert response.json() == {
            "errors": [
                {"param": "org_id", "msg": "org_id must be an int", "value": "0"},
                {"param": "email", "msg": "invalid email", "value": "nope"},
                {"param": "age", "msg": "must be an adult", "value": 12},
                {"param": "x-api-key", "msg": "api key required", "value": None},
            ],
        }

    def test_mapped_errors(self, client):
        response = client.get("/search?page=two")
        assert response.status_code == 422
        assert response.json() == {
            "q": {"param": "q", "msg": "q is required", "value": None},
            "page": {"param": "page", "msg": "Invalid value", "value": "two"},
        }

    def test_mapped_success(self, client):
        response = client.get("/search?q=python")
        assert response.status_code == 200
        assert response.json()["q"] == "python"


class TestSessions:
    """Test session lifecycle."""

    def test_one_session_per_request(self, client):
        assert client.get("/same").json() == {"same": True}

    def test_requests_do_not_share_errors(self, client):
        assert client.get("/search").status_code == 422
        assert client.get("/search?q=x").status_code == 200

    def test_missing_install_raises(self):
        app = Starlette(routes=[Route("/same", same_session)])
        with TestClient(app, raise_server_exceptions=True) as test_client:
            with pytest.raises(RuntimeError):
                test_client.get("/same")


class TestRequestData:
    """Test collection of request sources."""

    def test_json_body(self, client):
        response = client.post("/echo/abc?x=1", json={"a": [1, 2]})
        assert response.json() == {"params": {"item": "abc"}, "query": {"x": "1"}, "body": {"a": [1, 2]}}

    def test_form_body(self, client):
        response = client.post("/echo/abc", data={"name": "Ada"})
        assert response.json()["body"] == {"name": "Ada"}

    def test_empty_and_unknown_bodies(self, client):
        assert client.post("/echo/abc").json()["body"] == {}
        response = client.post("/echo/abc", content=b"raw", headers={"content-type": "text/plain"})
        assert response.json()["body"] == {}
