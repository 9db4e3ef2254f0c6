from __future__ import annotations

import uuid

from conftest import DEV_EUI, PASSWORD, auth_headers


def test_list_and_get_users(client, register) -> None:
    first = register(client, email="a@example.com", full_name="Alpha")
    register(client, email="b@example.com", full_name="Beta")
    headers = auth_headers(first["token"])

    listing = client.get("/api/v1/users", params={"page_size": 1}, headers=headers)
    assert listing.status_code == 200
    body = listing.json()
    assert body["total"] == 2
    assert body["total_pages"] == 2
    assert len(body["users"]) == 1
    assert all("password_hash" not in user for user in body["users"])

    fetched = client.get(f"/api/v1/users/{first['user']['id']}", headers=headers)
    assert fetched.status_code == 200
    assert fetched.json()["full_name"] == "Alpha"

    assert client.get(f"/api/v1/users/{uuid.uuid4()}", headers=headers).status_code == 404
    assert client.get("/api/v1/users/123", headers=headers).status_code == 400
    assert client.get("/api/v1/users").status_code == 401


def test_search_is_case_insensitive_on_email_and_name(client, register) -> None:
    token = register(client, email="alice@example.com", full_name="Alice Liddell")["token"]
    register(client, email="bob@sample.org", full_name="Bob ALICEson")
    register(client, email="carol@sample.org", full_name="Carol")
    headers = auth_headers(token)

    hits = client.get("/api/v1/users/search", params={"q": "ALICE"}, headers=headers).json()
    assert hits["total"] == 2
    assert {user["email"] for user in hits["users"]} == {"alice@example.com", "bob@sample.org"}

    by_domain = client.get("/api/v1/users/search", params={"q": "sample.org"}, headers=headers).json()
    assert by_domain["total"] == 2

    wildcard = client.get("/api/v1/users/search", params={"q": "%"}, headers=headers).json()
    assert wildcard["total"] == 0

    blank = client.get("/api/v1/users/search", params={"q": ""}, headers=headers).json()
    assert blank["total"] == 3


def test_update_user_fields_and_password(client, register) -> None:
    registered = register(client, email="a@example.com", full_name="Alpha")
    user_id = registered["user"]["id"]
    headers = auth_headers(registered["token"])

    renamed = client.put(f"/api/v1/users/{user_id}", json={"full_name": "Alpha Prime"}, headers=headers)
    assert renamed.status_code == 200
    assert renamed.json()["full_name"] == "Alpha Prime"

    client.put(f"/api/v1/users/{user_id}", json={"password": "new-password-1"}, headers=headers)
    old = client.post("/api/v1/auth/login", json={"email": "a@example.com", "password": PASSWORD})
    assert old.status_code == 401
    new = client.post("/api/v1/auth/login", json={"email": "a@example.com", "password": "new-password-1"})
    assert new.status_code == 200


def test_update_user_with_no_changes_returns_existing_row(client, register) -> None:
    registered = register(client, email="a@example.com", full_name="Alpha")
    user_id = registered["user"]["id"]
    headers = auth_headers(registered["token"])

    unchanged = client.put(f"/api/v1/users/{user_id}", json={}, headers=headers)
    assert unchanged.status_code == 200
    assert unchanged.json() == registered["user"]

    same_values = client.put(
        f"/api/v1/users/{user_id}",
        json={"email": "A@example.com", "full_name": "Alpha"},
        headers=headers,
    )
    assert same_values.status_code == 200
    assert same_values.json()["updated_at"] == registered["user"]["updated_at"]


def test_update_user_email_conflict(client, register) -> None:
    first = register(client, email="a@example.com", full_name="Alpha")
    register(client, email="b@example.com", full_name="Beta")

    response = client.put(
        f"/api/v1/users/{first['user']['id']}",
        json={"email": "B@example.com"},
        headers=auth_headers(first["token"]),
    )
    assert response.status_code == 409
    assert response.json() == {"error": "email already exists"}


def test_delete_user_does_not_cascade_to_devices(client, onboarded) -> None:
    headers = onboarded["headers"]
    device = client.post(
        "/api/v1/devices",
        json={"name": "lamp", "version_id": onboarded["version_id"], "dev_eui": DEV_EUI},
        headers=headers,
    ).json()

    deleted = client.delete(f"/api/v1/users/{onboarded['user_id']}", headers=headers)
    assert deleted.status_code == 200
    assert deleted.json() == {"message": "User deleted successfully"}
    assert client.get(f"/api/v1/users/{onboarded['user_id']}", headers=headers).status_code == 404
    assert client.delete(f"/api/v1/users/{onboarded['user_id']}", headers=headers).status_code == 404

    orphan = client.get(f"/api/v1/devices/{device['id']}", headers=headers)
    assert orphan.status_code == 200
    assert orphan.json()["user_id"] == onboarded["user_id"]
