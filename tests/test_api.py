"""Tests for the HTTP API."""

from fastapi.testclient import TestClient

from user_directory.api.app import (
    CONNECTION_ERROR_MESSAGE,
    SHOWING_SAVED_USERS_MESSAGE,
    create_app,
)
from user_directory.domain.errors import (
    DecodeError,
    NetworkUnreachable,
    UnknownStorageError,
)
from tests.conftest import make_users


def test_health_endpoint(container) -> None:
    with TestClient(create_app(container)) as client:
        response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_get_users_fetches_on_cold_start(container, remote_client) -> None:
    with TestClient(create_app(container)) as client:
        response = client.get("/users", params={"count": 3})

    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 3
    assert [user["order"] for user in body["users"]] == [0, 1, 2]
    assert remote_client.requested_counts == [3]


def test_get_users_uses_default_page_size(container, remote_client) -> None:
    with TestClient(create_app(container)) as client:
        response = client.get("/users")

    assert response.status_code == 200
    assert remote_client.requested_counts == [20]


def test_get_users_rejects_invalid_count(container) -> None:
    with TestClient(create_app(container)) as client:
        response = client.get("/users", params={"count": 0})

    assert response.status_code == 422


def test_load_more_continues_orders(container) -> None:
    with TestClient(create_app(container)) as client:
        client.get("/users", params={"count": 2})
        response = client.post("/users/load-more", params={"count": 2})

    assert response.status_code == 200
    assert [user["order"] for user in response.json()["users"]] == [2, 3]


def test_saved_and_search_endpoints(container, user_store) -> None:
    for user in make_users(3):
        user_store.users[user.id] = user

    with TestClient(create_app(container)) as client:
        saved = client.get("/users/saved")
        found = client.get("/users/search", params={"q": "user1"})

    assert [user["id"] for user in saved.json()["users"]] == ["id-0", "id-1", "id-2"]
    assert [user["id"] for user in found.json()["users"]] == ["id-1"]


def test_should_load_more_endpoint(container) -> None:
    with TestClient(create_app(container)) as client:
        near = client.get(
            "/users/should-load-more", params={"current_index": 12, "total_count": 20}
        )
        far = client.get(
            "/users/should-load-more", params={"current_index": 3, "total_count": 20}
        )

    assert near.json() == {"should_load_more": True}
    assert far.json() == {"should_load_more": False}


def test_delete_user(container, user_store) -> None:
    for user in make_users(2):
        user_store.users[user.id] = user

    with TestClient(create_app(container)) as client:
        deleted = client.delete("/users/id-0")
        missing = client.delete("/users/id-0")

    assert deleted.status_code == 204
    assert missing.status_code == 404
    assert missing.json()["error"] == "user_not_found"
    assert list(user_store.users) == ["id-1"]


def test_network_failure_serves_saved_users(container, remote_client, user_store) -> None:
    for user in make_users(2):
        user_store.users[user.id] = user
    remote_client.outcomes = [NetworkUnreachable() for _ in range(4)]

    with TestClient(create_app(container)) as client:
        response = client.get("/users", params={"count": 20})

    assert response.status_code == 503
    body = response.json()
    assert body["network_error"] is True
    assert body["dismissible"] is True
    assert body["message"] == SHOWING_SAVED_USERS_MESSAGE
    assert [user["id"] for user in body["users"]] == ["id-0", "id-1"]
    assert remote_client.calls == 4


def test_network_failure_without_saved_users(container, remote_client) -> None:
    remote_client.outcomes = [NetworkUnreachable() for _ in range(4)]

    with TestClient(create_app(container)) as client:
        response = client.get("/users", params={"count": 5})

    assert response.status_code == 503
    assert response.json()["message"] == CONNECTION_ERROR_MESSAGE
    assert response.json()["users"] is None


def test_decode_failure_is_bad_gateway(container, remote_client) -> None:
    remote_client.outcomes = [DecodeError()]

    with TestClient(create_app(container)) as client:
        response = client.post("/users/load-more", params={"count": 5})

    assert response.status_code == 502
    assert response.json()["error"] == "decode_error"
    assert response.json()["network_error"] is False


def test_storage_failure_is_server_error(container, user_store) -> None:
    user_store.fetch_error = UnknownStorageError("disk on fire")

    with TestClient(create_app(container)) as client:
        response = client.get("/users/saved")

    assert response.status_code == 500
    assert response.json()["error"] == "storage_unknown"
