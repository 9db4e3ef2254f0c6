from __future__ import annotations

import uuid
from pathlib import Path
from typing import Any, Callable

import pytest
from fastapi.testclient import TestClient

from lnode_server.app import create_app
from lnode_server.config import PlatformConfig, ServerConfig
from lnode_server.errors import ExternalServiceError
from lnode_server.schemas import AllowedDeviceRecord

DEV_EUI = "C5EABC521E8304EE"
NWK_KEY = "C518B15AB390B01762E4A3730E8C5F1C"
APP_KEY = "97784F3B7F2A57EECF19F10E625081E0"
ADDR_KEY = "2F972E56"
PASSWORD = "testpassword123"


class FakeGateway:
    """In-memory stand-in for the ChirpStack gateway that records every call."""

    def __init__(self, enabled: bool = True, fail_on: tuple[str, ...] = ()) -> None:
        self._enabled = enabled
        self.fail_on = set(fail_on)
        self.calls: list[tuple[Any, ...]] = []

    @property
    def enabled(self) -> bool:
        return self._enabled

    def _call(self, name: str, *args: Any) -> None:
        self.calls.append((name, *args))
        if name in self.fail_on:
            raise ExternalServiceError(f"{name} rejected", status_code=500, body='{"error":"boom"}')

    def names(self) -> list[str]:
        return [call[0] for call in self.calls]

    def create_tenant(self, name: str) -> str:
        self._call("create_tenant", name)
        return "tenant-1"

    def create_application(self, tenant_id: str, name: str) -> str:
        self._call("create_application", tenant_id, name)
        return "application-1"

    def create_device_profile(self, tenant_id: str) -> str:
        self._call("create_device_profile", tenant_id)
        return "profile-1"

    def create_device(
        self,
        application_id: str,
        device_profile_id: str,
        dev_eui: str,
        name: str,
        description: str,
    ) -> None:
        self._call("create_device", application_id, device_profile_id, dev_eui, name, description)

    def activate_device(self, dev_eui: str, keys: AllowedDeviceRecord) -> None:
        self._call("activate_device", dev_eui, keys.nwk_key, keys.app_key, keys.addr_key)

    def delete_device(self, dev_eui: str) -> None:
        self._call("delete_device", dev_eui)


def _config(tmp_path: Path, platform_enabled: bool) -> ServerConfig:
    return ServerConfig(
        environment="test",
        database_url=f"sqlite:///{str(tmp_path / 'server.db')}",
        host="127.0.0.1",
        port=8080,
        api_prefix="/api/v1",
        dev_enable_docs=False,
        jwt_secret="test-jwt-secret",
        jwt_issuer="test-issuer",
        jwt_audience="test-audience",
        access_token_ttl_seconds=900,
        metrics_token=None,
        platform=PlatformConfig(
            enabled=platform_enabled,
            scheme="http",
            host="chirpstack.test",
            port="8090",
            token="platform-token" if platform_enabled else "",
            timeout_seconds=5.0,
            application_name="Lnode",
        ),
    )


@pytest.fixture()
def server_config(tmp_path: Path) -> ServerConfig:
    return _config(tmp_path, platform_enabled=False)


@pytest.fixture()
def client(server_config: ServerConfig):
    app = create_app(server_config, gateway=FakeGateway(enabled=False))
    with TestClient(app) as tc:
        yield tc


@pytest.fixture()
def gateway() -> FakeGateway:
    return FakeGateway(enabled=True)


@pytest.fixture()
def platform_client(tmp_path: Path, gateway: FakeGateway):
    app = create_app(_config(tmp_path, platform_enabled=True), gateway=gateway)
    with TestClient(app) as tc:
        yield tc


def auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def register() -> Callable[..., dict[str, Any]]:
    def _register(tc: TestClient, email: str = "user1@example.com", full_name: str = "User One") -> dict[str, Any]:
        response = tc.post(
            "/api/v1/auth/register",
            json={"email": email, "password": PASSWORD, "full_name": full_name},
        )
        assert response.status_code == 201, response.text
        return response.json()

    return _register


@pytest.fixture()
def onboarded(client: TestClient, register) -> dict[str, Any]:
    """A registered user whose platform identity is already set, with a version and an allow-listed DevEUI."""
    body = register(client)
    user_id = body["user"]["id"]
    client.app.state.db.set_user_platform_identity(uuid.UUID(user_id), "tenant-1", "application-1", "profile-1")
    headers = auth_headers(body["token"])

    version = client.post(
        "/api/v1/devices/versions",
        json={"name": "RAK7200", "version": "v1.0", "description": "tracker"},
        headers=headers,
    )
    assert version.status_code == 201, version.text
    allowed = client.post(
        "/api/v1/devices/allowed",
        json={"dev_eui": DEV_EUI, "nwk_key": NWK_KEY, "app_key": APP_KEY, "addr_key": ADDR_KEY},
        headers=headers,
    )
    assert allowed.status_code == 201, allowed.text

    return {
        "user_id": user_id,
        "token": body["token"],
        "headers": headers,
        "version_id": version.json()["id"],
    }
