from __future__ import annotations

import random
import string

from conftest import auth_headers


def _rand_text(n: int) -> str:
    alphabet = string.ascii_letters + string.digits + "{}[],:\"'\\%_@"
    return "".join(random.choice(alphabet) for _ in range(n))


def test_auth_fuzz_inputs_do_not_500(client) -> None:
    for _ in range(20):
        payload = {
            "email": _rand_text(random.randint(0, 20)),
            "password": _rand_text(random.randint(0, 40)),
        }
        response = client.post("/api/v1/auth/login", json=payload)
        assert response.status_code in {400, 401}

        raw = client.post(
            "/api/v1/auth/register",
            content=_rand_text(random.randint(1, 512)).encode("utf-8"),
            headers={"Content-Type": "application/json"},
        )
        assert raw.status_code == 400


def test_device_fuzz_inputs_do_not_500(client, onboarded) -> None:
    headers = onboarded["headers"]
    for _ in range(20):
        payload = {
            "name": _rand_text(random.randint(0, 30)),
            "version_id": _rand_text(random.randint(0, 36)),
            "dev_eui": _rand_text(random.randint(0, 20)),
        }
        response = client.post("/api/v1/devices", json=payload, headers=headers)
        assert response.status_code in {400, 404}

        search = client.get("/api/v1/users/search", params={"q": _rand_text(random.randint(0, 40))}, headers=headers)
        assert search.status_code == 200


def test_garbage_bearer_tokens_are_rejected(client) -> None:
    for _ in range(10):
        response = client.get("/api/v1/user/profile", headers=auth_headers(_rand_text(random.randint(1, 200))))
        assert response.status_code == 401
