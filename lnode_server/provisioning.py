"""Registration and device workflows that mirror local records onto ChirpStack.

Local writes are the source of truth and fail the request when they fail.
Platform calls are mirror steps: each runs synchronously, and its outcome is
reported as a ``MirrorResult`` instead of an exception.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from lnode_server.auth import AuthManager
from lnode_server.errors import (
    ConflictError,
    ExternalServiceError,
    FailedPreconditionError,
    InternalError,
    NotFoundError,
)
from lnode_server.interfaces import DeviceStore, PlatformGateway, UserStore
from lnode_server.schemas import (
    AllowedDeviceRecord,
    CreateDeviceRequest,
    DeviceRecord,
    UpdateDeviceRequest,
    UserRecord,
)
from lnode_server.telemetry import PLATFORM_MIRROR

logger = logging.getLogger("lnode_server.provisioning")

PLATFORM_DISABLED = "platform integration disabled"
_MIRROR_ERRORS = (ExternalServiceError, SQLAlchemyError, NotFoundError)


class MirrorStatus(str, Enum):
    SUCCESS = "success"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class MirrorResult:
    status: MirrorStatus
    reason: str | None = None
    data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def success(cls, **data: Any) -> MirrorResult:
        return cls(MirrorStatus.SUCCESS, None, data)

    @classmethod
    def skipped(cls, reason: str) -> MirrorResult:
        return cls(MirrorStatus.SKIPPED, reason)

    @classmethod
    def failed(cls, reason: str) -> MirrorResult:
        return cls(MirrorStatus.FAILED, reason)

    @property
    def ok(self) -> bool:
        return self.status is MirrorStatus.SUCCESS


@dataclass(frozen=True, slots=True)
class RegistrationResult:
    token: str
    user: UserRecord
    platform: MirrorResult


def _record(operation: str, result: MirrorResult) -> MirrorResult:
    PLATFORM_MIRROR.labels(operation=operation, outcome=result.status.value).inc()
    return result


class ProvisioningOrchestrator:
    def __init__(
        self,
        users: UserStore,
        devices: DeviceStore,
        auth: AuthManager,
        gateway: PlatformGateway | None,
        application_name: str = "Lnode",
    ) -> None:
        self.users = users
        self.devices = devices
        self.auth = auth
        self.gateway = gateway
        self.application_name = application_name

    @property
    def platform_enabled(self) -> bool:
        return self.gateway is not None and bool(self.gateway.enabled)

    # registration

    def register_user(self, email: str, password: str, full_name: str) -> RegistrationResult:
        if self.users.get_user_by_email(email) is not None:
            raise ConflictError(f"user with email {email} already exists")

        try:
            user = self.users.create_user(email, self.auth.hash_password(password), full_name)
        except SQLAlchemyError as exc:
            raise InternalError("failed to create user") from exc

        token = self.auth.create_access_token(user.id, user.email)
        logger.info("user registered", extra={"user_id": str(user.id)})

        platform = self.provision_tenant(user)
        if platform.ok:
            user = self.users.get_user(user.id)
        return RegistrationResult(token=token, user=user, platform=platform)

    def provision_tenant(self, user: UserRecord) -> MirrorResult:
        """Create tenant, application and device profile for ``user`` and store their ids."""
        if not self.platform_enabled:
            return _record("provision_tenant", MirrorResult.skipped(PLATFORM_DISABLED))
        assert self.gateway is not None

        try:
            tenant_id = self.gateway.create_tenant(user.email)
            application_id = self.gateway.create_application(tenant_id, self.application_name)
            device_profile_id = self.gateway.create_device_profile(tenant_id)
            self.users.set_user_platform_identity(user.id, tenant_id, application_id, device_profile_id)
        except _MIRROR_ERRORS as exc:
            logger.warning(
                "platform tenant provisioning failed",
                extra={"user_id": str(user.id), "error": str(exc)},
            )
            return _record("provision_tenant", MirrorResult.failed(str(exc)))

        logger.info("platform tenant provisioned", extra={"user_id": str(user.id), "tenant_id": tenant_id})
        return _record(
            "provision_tenant",
            MirrorResult.success(
                tenant_id=tenant_id,
                application_id=application_id,
                device_profile_id=device_profile_id,
            ),
        )

    # devices

    def create_device(self, user_id: uuid.UUID, request: CreateDeviceRequest) -> DeviceRecord:
        user = self.users.get_user(user_id)
        if not user.has_platform_identity:
            raise FailedPreconditionError("device cannot be created without platform identity")

        try:
            allowed = self.devices.get_allowed_device(request.dev_eui)
        except NotFoundError as exc:
            raise NotFoundError(f"device {request.dev_eui} is not in the allow-list") from exc

        self.devices.get_device_version(request.version_id)

        claimed = self.devices.count_devices_with_dev_eui(request.dev_eui)
        if claimed:
            logger.warning(
                "dev_eui already claimed by another device",
                extra={"dev_eui": request.dev_eui, "existing_devices": claimed},
            )

        device = self.devices.create_device(
            user_id=user.id,
            version_id=request.version_id,
            name=request.name,
            dev_eui=request.dev_eui,
            description=request.description,
        )
        logger.info("device created", extra={"device_id": str(device.id), "dev_eui": device.dev_eui})

        self.mirror_device(device, user, allowed)
        return self.devices.get_device(device.id)

    def mirror_device(self, device: DeviceRecord, user: UserRecord, allowed: AllowedDeviceRecord) -> MirrorResult:
        """Create and activate ``device`` remotely; progress flags flip only when both succeed."""
        if not self.platform_enabled:
            return _record("mirror_device", MirrorResult.skipped(PLATFORM_DISABLED))
        assert self.gateway is not None

        try:
            self.gateway.create_device(
                application_id=user.application_id or "",
                device_profile_id=user.device_profile_id or "",
                dev_eui=device.dev_eui,
                name=device.name,
                description=device.description or "",
            )
            self.gateway.activate_device(device.dev_eui, allowed)
            self.devices.set_device_platform_status(device.id, created=True, activated=True)
        except _MIRROR_ERRORS as exc:
            logger.warning(
                "platform device mirroring failed",
                extra={"device_id": str(device.id), "dev_eui": device.dev_eui, "error": str(exc)},
            )
            return _record("mirror_device", MirrorResult.failed(str(exc)))

        return _record("mirror_device", MirrorResult.success(dev_eui=device.dev_eui))

    def update_device(self, device_id: uuid.UUID, request: UpdateDeviceRequest) -> DeviceRecord:
        self.devices.get_device(device_id)
        if request.version_id is not None:
            self.devices.get_device_version(request.version_id)
        return self.devices.update_device(device_id, request)

    def delete_device(self, device_id: uuid.UUID) -> None:
        device = self.devices.get_device(device_id)
        self.unmirror_device(device)
        self.devices.delete_device(device_id)
        logger.info("device deleted", extra={"device_id": str(device_id)})

    def unmirror_device(self, device: DeviceRecord) -> MirrorResult:
        if not self.platform_enabled:
            return _record("unmirror_device", MirrorResult.skipped(PLATFORM_DISABLED))
        if not device.chirpstack_device_created:
            return _record("unmirror_device", MirrorResult.skipped("device was never created on the platform"))
        assert self.gateway is not None

        try:
            self.gateway.delete_device(device.dev_eui)
        except _MIRROR_ERRORS as exc:
            logger.warning(
                "platform device deletion failed",
                extra={"device_id": str(device.id), "dev_eui": device.dev_eui, "error": str(exc)},
            )
            return _record("unmirror_device", MirrorResult.failed(str(exc)))

        return _record("unmirror_device", MirrorResult.success(dev_eui=device.dev_eui))
