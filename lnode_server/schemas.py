from __future__ import annotations

import re
import uuid
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationInfo, field_validator

_HEX_PATTERNS: dict[int, re.Pattern[str]] = {
    length: re.compile(rf"^[0-9A-Fa-f]{{{length}}}$") for length in (8, 16, 32)
}


def _hex(value: str, length: int, field: str) -> str:
    pattern = _HEX_PATTERNS[length]
    cleaned = value.strip()
    if not pattern.match(cleaned):
        raise ValueError(f"{field} must be {length} hexadecimal characters")
    return cleaned.upper()


def normalize_email(value: str) -> str:
    return value.strip().lower()


def normalize_dev_eui(value: str) -> str:
    return _hex(value, 16, "dev_eui")


def _non_blank(value: str) -> str:
    cleaned = value.strip()
    if not cleaned:
        raise ValueError("empty value")
    return cleaned


class RegisterRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    email: EmailStr
    password: str = Field(min_length=6, max_length=256)
    full_name: str = Field(min_length=1, max_length=256)

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: str) -> str:
        return normalize_email(value)

    @field_validator("full_name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        return _non_blank(value)


class LoginRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    email: EmailStr
    password: str = Field(min_length=1, max_length=256)

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: str) -> str:
        return normalize_email(value)


class UpdateUserRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    email: EmailStr | None = None
    full_name: str | None = Field(default=None, max_length=256)
    password: str | None = Field(default=None, min_length=6, max_length=256)

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: str | None) -> str | None:
        return normalize_email(value) if value is not None else None


class _StoredRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    # SQLite drops the offset on timezone-aware columns; stored values are always UTC.
    @field_validator("created_at", "updated_at", check_fields=False)
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        return value.replace(tzinfo=UTC) if value.tzinfo is None else value


class Principal(BaseModel):
    model_config = ConfigDict(extra="forbid", strict=True)

    user_id: uuid.UUID
    email: str


class UserRecord(_StoredRecord):
    id: uuid.UUID
    email: str
    full_name: str
    tenant_id: str | None = None
    application_id: str | None = None
    device_profile_id: str | None = None
    created_at: datetime
    updated_at: datetime

    @property
    def has_platform_identity(self) -> bool:
        return bool(self.application_id) and bool(self.device_profile_id)


class UserCredentials(UserRecord):
    password_hash: str


class CreateDeviceVersionRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1, max_length=256)
    version: str = Field(min_length=1, max_length=64)
    description: str | None = None

    @field_validator("name", "version")
    @classmethod
    def strip(cls, value: str) -> str:
        return _non_blank(value)


class UpdateDeviceVersionRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, min_length=1, max_length=256)
    version: str | None = Field(default=None, min_length=1, max_length=64)
    description: str | None = None


class DeviceVersionRecord(_StoredRecord):
    id: uuid.UUID
    name: str
    version: str
    description: str | None = None
    created_at: datetime
    updated_at: datetime


class CreateAllowedDeviceRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    dev_eui: str
    nwk_key: str
    app_key: str
    addr_key: str
    description: str | None = None

    @field_validator("dev_eui")
    @classmethod
    def check_dev_eui(cls, value: str) -> str:
        return normalize_dev_eui(value)

    @field_validator("nwk_key", "app_key")
    @classmethod
    def check_session_key(cls, value: str, info: ValidationInfo) -> str:
        return _hex(value, 32, info.field_name)

    @field_validator("addr_key")
    @classmethod
    def check_addr_key(cls, value: str) -> str:
        return _hex(value, 8, "addr_key")


class UpdateAllowedDeviceRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    nwk_key: str | None = None
    app_key: str | None = None
    addr_key: str | None = None
    description: str | None = None

    @field_validator("nwk_key", "app_key")
    @classmethod
    def check_session_key(cls, value: str | None, info: ValidationInfo) -> str | None:
        return _hex(value, 32, info.field_name) if value is not None else None

    @field_validator("addr_key")
    @classmethod
    def check_addr_key(cls, value: str | None) -> str | None:
        return _hex(value, 8, "addr_key") if value is not None else None


class AllowedDeviceRecord(_StoredRecord):
    id: uuid.UUID
    dev_eui: str
    nwk_key: str
    app_key: str
    addr_key: str
    description: str | None = None
    created_at: datetime
    updated_at: datetime


class CreateDeviceRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1, max_length=256)
    version_id: uuid.UUID
    dev_eui: str
    description: str | None = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        return _non_blank(value)

    @field_validator("dev_eui")
    @classmethod
    def check_dev_eui(cls, value: str) -> str:
        return normalize_dev_eui(value)


class UpdateDeviceRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, min_length=1, max_length=256)
    version_id: uuid.UUID | None = None
    description: str | None = None
    is_active: bool | None = None


class DeviceRecord(_StoredRecord):
    id: uuid.UUID
    user_id: uuid.UUID
    version_id: uuid.UUID
    name: str
    dev_eui: str
    description: str | None = None
    chirpstack_device_created: bool
    chirpstack_device_activated: bool
    is_active: bool
    created_at: datetime
    updated_at: datetime
    version: DeviceVersionRecord | None = None


class MirrorReport(BaseModel):
    status: str
    reason: str | None = None


class AuthResponse(BaseModel):
    token: str
    user: UserRecord
    platform_provisioning: MirrorReport | None = None


class ListPage(BaseModel):
    total: int
    page: int
    page_size: int
    total_pages: int


class UserListResponse(ListPage):
    users: list[UserRecord]


class DeviceVersionListResponse(ListPage):
    versions: list[DeviceVersionRecord]


class AllowedDeviceListResponse(ListPage):
    devices: list[AllowedDeviceRecord]


class DeviceListResponse(ListPage):
    devices: list[DeviceRecord]
