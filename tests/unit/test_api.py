"""
Tests for the HTTP API: routing, status mapping and authentication.
"""

import time

import pytest
from fastapi.testclient import TestClient

from gravity_bff.api import StreamAuthenticator, StreamServer
from gravity_bff.cache.memory import MemoryCache
from gravity_bff.config.settings import AppConfig, AuthConfig
from gravity_bff.exceptions import StorageError
from gravity_bff.models.stream import (
    CalendarEvent,
    EventPayload,
    Message,
    SenderType,
    StreamFilter,
)
from gravity_bff.services.stream import StreamService

from tests.helpers import T0, FailingCache, FakeStreamRepository

SECRET = "test-secret-0123456789abcdef"


def build_client(repository, cache=None, auth_config=None):
    config = AppConfig(auth=auth_config or AuthConfig())
    service = StreamService(repository, cache or MemoryCache(), config.cache)
    server = StreamServer(config, service, StreamAuthenticator(config.auth))
    return TestClient(server.get_app())


@pytest.fixture
def repository(three_items):
    return FakeStreamRepository(three_items)


@pytest.fixture
def client(repository):
    return build_client(repository)


class TestHealth:
    """Tests for /health."""

    def test_ok(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["services"]["cache"] is True

    def test_degraded_cache_still_200(self, repository):
        client = build_client(repository, cache=FailingCache())
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "degraded"


class TestStreamEndpoint:
    """Tests for GET /v2/stream."""

    def test_first_page(self, client):
        response = client.get("/v2/stream")
        assert response.status_code == 200
        body = response.json()
        assert [i["id"] for i in body["data"]] == ["item-1", "item-2", "item-3"]
        assert body["nextCursor"] is None
        assert body["data"][0]["isUnread"] is True
        assert body["data"][0]["participants"][0]["name"] == "Alice"

    def test_pagination(self, client):
        first = client.get("/v2/stream", params={"limit": 2}).json()
        assert [i["id"] for i in first["data"]] == ["item-1", "item-2"]

        second = client.get(
            "/v2/stream", params={"limit": 2, "cursor": first["nextCursor"]}
        ).json()
        assert [i["id"] for i in second["data"]] == ["item-3"]
        assert second["nextCursor"] is None

    def test_filter(self, client):
        body = client.get("/v2/stream", params={"filter": "high"}).json()
        assert [i["id"] for i in body["data"]] == ["item-1", "item-3"]

    def test_empty_filter_means_all(self, client, repository):
        response = client.get("/v2/stream", params={"filter": ""})
        assert response.status_code == 200
        assert len(response.json()["data"]) == 3
        assert repository.page_calls[0][1] == StreamFilter.ALL

    @pytest.mark.parametrize("params", [
        {"filter": "urgent"},
        {"cursor": "!!!not-a-cursor"},
        {"limit": "ten"},
    ])
    def test_bad_request(self, client, repository, params):
        response = client.get("/v2/stream", params=params)
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "validation_failed"
        assert repository.page_calls == []

    def test_storage_failure(self, client, repository):
        repository.error = StorageError("disk I/O error")
        response = client.get("/v2/stream")
        assert response.status_code == 500
        assert response.json() == {
            "error": {"code": "internal_error", "message": "Failed to load stream data"}
        }

    def test_request_id_is_echoed(self, client):
        response = client.get("/v2/stream", headers={"X-Request-ID": "req-123"})
        assert response.headers["X-Request-ID"] == "req-123"


class TestStreamItemEndpoint:
    """Tests for GET /v2/stream/{item_id}."""

    def test_found(self, client):
        response = client.get("/v2/stream/item-2")
        assert response.status_code == 200
        body = response.json()
        assert body["id"] == "item-2"
        assert body["messages"] == []

    def test_not_found(self, client):
        response = client.get("/v2/stream/missing")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "resource_not_found"

    def test_messages_use_flat_content_fields(self, repository):
        repository.items[0].messages = [
            Message(
                id="m-1", sender_type=SenderType.OTHER, timestamp=T0,
                payload=EventPayload(event_details=CalendarEvent(
                    id="evt-1", title="Standup", start_time=T0, end_time=T0,
                )),
            ),
            Message(id="m-2", sender_type=SenderType.USER, timestamp=T0, content="ok"),
        ]
        client = build_client(repository)

        event, text = client.get("/v2/stream/item-1").json()["messages"]

        assert "payload" not in event
        assert event["contentType"] == "event"
        assert event["eventDetails"]["title"] == "Standup"
        assert event["socialContent"] is None
        assert text["contentType"] == "text"
        assert text["eventDetails"] is None


class TestAuthentication:
    """Tests for bearer token authentication."""

    @pytest.fixture
    def auth_config(self):
        return AuthConfig(jwt_secret=SECRET)

    @pytest.fixture
    def secured(self, repository, auth_config):
        return build_client(repository, auth_config=auth_config)

    def test_development_mode_uses_dev_user(self, client, repository):
        assert client.get("/v2/stream").status_code == 200
        assert repository.page_calls[0][0] == "dev-user"

    def test_missing_token(self, secured):
        response = secured.get("/v2/stream")
        assert response.status_code == 401
        assert response.json()["error"]["code"] == "unauthorized"

    def test_invalid_token(self, secured):
        response = secured.get("/v2/stream", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401

    def test_valid_token(self, secured, repository, auth_config):
        token = StreamAuthenticator(auth_config).create_token("user-42")
        response = secured.get("/v2/stream", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 200
        assert repository.page_calls[0][0] == "user-42"

    def test_token_signed_with_other_secret(self, secured):
        other = StreamAuthenticator(AuthConfig(jwt_secret="another-secret-0123456789"))
        token = other.create_token("user-42")
        response = secured.get("/v2/stream", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401

    def test_expired_token(self, secured, auth_config):
        token = StreamAuthenticator(auth_config).create_token(
            "user-42", exp=int(time.time()) - 60
        )
        response = secured.get("/v2/stream/item-1", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Token has expired"

    def test_token_without_subject(self, secured, auth_config):
        token = StreamAuthenticator(auth_config).create_token("")
        response = secured.get("/v2/stream", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.json()["error"]["message"] == "Token missing user identifier"
