"""Capability protocols for the stores and the platform gateway.

The orchestrator depends on these rather than on concrete classes so tests can
hand it doubles at construction time.
"""

from __future__ import annotations

import uuid
from typing import Protocol, runtime_checkable

from lnode_server.pagination import PageRequest
from lnode_server.schemas import (
    AllowedDeviceRecord,
    CreateAllowedDeviceRequest,
    CreateDeviceVersionRequest,
    DeviceRecord,
    DeviceVersionRecord,
    UpdateAllowedDeviceRequest,
    UpdateDeviceRequest,
    UpdateDeviceVersionRequest,
    UserCredentials,
    UserRecord,
)


@runtime_checkable
class UserStore(Protocol):
    def create_user(self, email: str, password_hash: str, full_name: str) -> UserRecord: ...

    def get_user(self, user_id: uuid.UUID) -> UserRecord: ...

    def get_user_by_email(self, email: str) -> UserRecord | None: ...

    def get_user_credentials_by_email(self, email: str) -> UserCredentials | None: ...

    def update_user(self, user_id: uuid.UUID, changes: dict[str, str]) -> UserRecord: ...

    def set_user_platform_identity(
        self, user_id: uuid.UUID, tenant_id: str, application_id: str, device_profile_id: str
    ) -> None: ...

    def delete_user(self, user_id: uuid.UUID) -> None: ...

    def list_users(self, page: PageRequest) -> tuple[list[UserRecord], int]: ...

    def search_users(self, query: str, page: PageRequest) -> tuple[list[UserRecord], int]: ...


@runtime_checkable
class DeviceStore(Protocol):
    def create_device_version(self, request: CreateDeviceVersionRequest) -> DeviceVersionRecord: ...

    def get_device_version(self, version_id: uuid.UUID) -> DeviceVersionRecord: ...

    def list_device_versions(self, page: PageRequest) -> tuple[list[DeviceVersionRecord], int]: ...

    def update_device_version(
        self, version_id: uuid.UUID, request: UpdateDeviceVersionRequest
    ) -> DeviceVersionRecord: ...

    def delete_device_version(self, version_id: uuid.UUID) -> None: ...

    def create_allowed_device(self, request: CreateAllowedDeviceRequest) -> AllowedDeviceRecord: ...

    def get_allowed_device(self, dev_eui: str) -> AllowedDeviceRecord: ...

    def list_allowed_devices(self, page: PageRequest) -> tuple[list[AllowedDeviceRecord], int]: ...

    def update_allowed_device(self, dev_eui: str, request: UpdateAllowedDeviceRequest) -> AllowedDeviceRecord: ...

    def delete_allowed_device(self, dev_eui: str) -> None: ...

    def create_device(
        self,
        user_id: uuid.UUID,
        version_id: uuid.UUID,
        name: str,
        dev_eui: str,
        description: str | None,
    ) -> DeviceRecord: ...

    def get_device(self, device_id: uuid.UUID) -> DeviceRecord: ...

    def list_devices(self, page: PageRequest, user_id: uuid.UUID | None = None) -> tuple[list[DeviceRecord], int]: ...

    def update_device(self, device_id: uuid.UUID, request: UpdateDeviceRequest) -> DeviceRecord: ...

    def set_device_platform_status(self, device_id: uuid.UUID, created: bool, activated: bool) -> None: ...

    def count_devices_with_dev_eui(self, dev_eui: str) -> int: ...

    def delete_device(self, device_id: uuid.UUID) -> None: ...


@runtime_checkable
class PlatformGateway(Protocol):
    @property
    def enabled(self) -> bool: ...

    def create_tenant(self, name: str) -> str: ...

    def create_application(self, tenant_id: str, name: str) -> str: ...

    def create_device_profile(self, tenant_id: str) -> str: ...

    def create_device(
        self,
        application_id: str,
        device_profile_id: str,
        dev_eui: str,
        name: str,
        description: str,
    ) -> None: ...

    def activate_device(self, dev_eui: str, keys: AllowedDeviceRecord) -> None: ...

    def delete_device(self, dev_eui: str) -> None: ...
