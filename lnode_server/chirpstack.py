from __future__ import annotations

import logging
from typing import Any

import httpx

from lnode_server.config import PlatformConfig
from lnode_server.errors import ExternalServiceError
from lnode_server.profiles import device_profile_payload
from lnode_server.schemas import AllowedDeviceRecord

logger = logging.getLogger("lnode_server.chirpstack")

JOIN_EUI = "0000000000000000"


class ChirpStackGateway:
    """Thin client for the ChirpStack REST API.

    One attempt per call: any transport error, non-2xx status, or unreadable
    body surfaces as ``ExternalServiceError``. Retrying is the caller's call.
    """

    def __init__(self, config: PlatformConfig, transport: httpx.BaseTransport | None = None) -> None:
        self.config = config
        self.base_url = config.base_url
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return self.config.is_enabled

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Authorization": f"Bearer {self.config.token}",
        }

    def _request(self, method: str, endpoint: str, payload: dict[str, Any] | None = None) -> Any:
        url = self.base_url + endpoint
        try:
            with httpx.Client(timeout=self.config.timeout_seconds, transport=self._transport) as client:
                response = client.request(method, url, json=payload, headers=self._headers())
        except httpx.HTTPError as exc:
            raise ExternalServiceError(f"ChirpStack request {method} {endpoint} failed: {exc}") from exc

        if not 200 <= response.status_code < 300:
            raise ExternalServiceError(
                f"ChirpStack API error on {method} {endpoint}",
                status_code=response.status_code,
                body=response.text,
            )

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise ExternalServiceError(
                f"ChirpStack returned an unreadable body on {method} {endpoint}",
                status_code=response.status_code,
                body=response.text,
            ) from exc

    def _create(self, endpoint: str, payload: dict[str, Any]) -> str:
        body = self._request("POST", endpoint, payload)
        identifier = body.get("id") if isinstance(body, dict) else None
        if not isinstance(identifier, str) or not identifier:
            raise ExternalServiceError(f"ChirpStack response on POST {endpoint} has no id", status_code=200, body=str(body))
        return identifier

    def create_tenant(self, name: str) -> str:
        payload = {
            "tenant": {
                "canHaveGateways": True,
                "description": name,
                "maxDeviceCount": 10000,
                "maxGatewayCount": 10000,
                "name": name,
                "privateGatewaysDown": True,
                "privateGatewaysUp": True,
                "tags": {},
            }
        }
        return self._create("/tenants", payload)

    def create_application(self, tenant_id: str, name: str) -> str:
        payload = {
            "application": {
                "tenantId": tenant_id,
                "name": name,
                "description": f"Application for {name}",
                "tags": {},
            }
        }
        return self._create("/applications", payload)

    def create_device_profile(self, tenant_id: str) -> str:
        return self._create("/device-profiles", device_profile_payload(tenant_id))

    def create_device(
        self,
        application_id: str,
        device_profile_id: str,
        dev_eui: str,
        name: str,
        description: str,
    ) -> None:
        payload = {
            "device": {
                "applicationId": application_id,
                "description": description,
                "devEui": dev_eui,
                "deviceProfileId": device_profile_id,
                "isDisabled": False,
                "joinEui": JOIN_EUI,
                "name": name,
                "skipFcntCheck": True,
                "tags": {},
                "variables": {},
            }
        }
        self._request("POST", "/devices", payload)
        logger.info("chirpstack device created", extra={"dev_eui": dev_eui})

    def activate_device(self, dev_eui: str, keys: AllowedDeviceRecord) -> None:
        # ABP: the allow-listed network key serves all three network session key roles.
        payload = {
            "deviceActivation": {
                "aFCntDown": 0,
                "appSKey": keys.app_key,
                "devAddr": keys.addr_key,
                "fCntUp": 0,
                "fNwkSIntKey": keys.nwk_key,
                "nFCntDown": 0,
                "nwkSEncKey": keys.nwk_key,
                "sNwkSIntKey": keys.nwk_key,
            }
        }
        self._request("POST", f"/devices/{dev_eui}/activate", payload)
        logger.info("chirpstack device activated", extra={"dev_eui": dev_eui})

    def delete_device(self, dev_eui: str) -> None:
        self._request("DELETE", f"/devices/{dev_eui}")
        logger.info("chirpstack device deleted", extra={"dev_eui": dev_eui})
