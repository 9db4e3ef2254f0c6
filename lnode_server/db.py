from __future__ import annotations

import uuid
from contextlib import contextmanager
from typing import Any, Iterator

from sqlalchemy import Engine, create_engine, delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from lnode_server.errors import ConflictError, InvalidArgumentError, NotFoundError
from lnode_server.models import AllowedDevice, Base, Device, DeviceVersion, UserAccount, utc_now
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


def _like_pattern(query: str) -> str:
    escaped = query.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _device_record(device: Device, version: DeviceVersion | None) -> DeviceRecord:
    record = DeviceRecord.model_validate(device)
    if version is not None:
        record.version = DeviceVersionRecord.model_validate(version)
    return record


class ServerDatabase:
    """SQLAlchemy-backed user directory, device catalog, allow-list and device registry.

    Every public method runs in its own short transaction and hands back
    pydantic records, never ORM instances.
    """

    def __init__(self, database_url: str) -> None:
        self.engine: Engine = create_engine(database_url, future=True, pool_pre_ping=True)
        self._session_factory = sessionmaker(
            bind=self.engine, autoflush=False, autocommit=False, expire_on_commit=False, future=True
        )

    def init_for_tests(self) -> None:
        Base.metadata.create_all(self.engine)

    def ping(self) -> None:
        with self.session() as db:
            db.execute(select(1))

    @contextmanager
    def session(self) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def _apply_update(self, db: Session, model: type[Base], where: Any, changes: dict[str, Any], label: str) -> None:
        if not changes:
            raise InvalidArgumentError("no fields to update")
        result = db.execute(
            update(model)
            .where(where)
            .values(**changes, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NotFoundError(f"{label} not found")

    # users

    def create_user(self, email: str, password_hash: str, full_name: str) -> UserRecord:
        try:
            with self.session() as db:
                user = UserAccount(email=email, password_hash=password_hash, full_name=full_name)
                db.add(user)
                db.flush()
                return UserRecord.model_validate(user)
        except IntegrityError as exc:
            raise ConflictError(f"user with email {email} already exists") from exc

    def get_user(self, user_id: uuid.UUID) -> UserRecord:
        with self.session() as db:
            user = db.get(UserAccount, user_id)
            if user is None:
                raise NotFoundError("user not found")
            return UserRecord.model_validate(user)

    def get_user_by_email(self, email: str) -> UserRecord | None:
        with self.session() as db:
            user = db.execute(select(UserAccount).where(UserAccount.email == email)).scalar_one_or_none()
            return UserRecord.model_validate(user) if user is not None else None

    def get_user_credentials_by_email(self, email: str) -> UserCredentials | None:
        with self.session() as db:
            user = db.execute(select(UserAccount).where(UserAccount.email == email)).scalar_one_or_none()
            return UserCredentials.model_validate(user) if user is not None else None

    def update_user(self, user_id: uuid.UUID, changes: dict[str, str]) -> UserRecord:
        try:
            with self.session() as db:
                self._apply_update(db, UserAccount, UserAccount.id == user_id, changes, "user")
        except IntegrityError as exc:
            raise ConflictError("email already exists") from exc
        return self.get_user(user_id)

    def set_user_platform_identity(
        self, user_id: uuid.UUID, tenant_id: str, application_id: str, device_profile_id: str
    ) -> None:
        with self.session() as db:
            self._apply_update(
                db,
                UserAccount,
                UserAccount.id == user_id,
                {"tenant_id": tenant_id, "application_id": application_id, "device_profile_id": device_profile_id},
                "user",
            )

    def delete_user(self, user_id: uuid.UUID) -> None:
        with self.session() as db:
            result = db.execute(delete(UserAccount).where(UserAccount.id == user_id))
            if result.rowcount == 0:
                raise NotFoundError("user not found")

    def list_users(self, page: PageRequest) -> tuple[list[UserRecord], int]:
        with self.session() as db:
            total = int(db.execute(select(func.count(UserAccount.id))).scalar_one())
            rows = db.execute(
                select(UserAccount).order_by(UserAccount.created_at.desc()).offset(page.offset).limit(page.page_size)
            ).scalars()
            return [UserRecord.model_validate(row) for row in rows], total

    def search_users(self, query: str, page: PageRequest) -> tuple[list[UserRecord], int]:
        pattern = _like_pattern(query)
        condition = or_(
            func.lower(UserAccount.email).like(pattern, escape="\\"),
            func.lower(UserAccount.full_name).like(pattern, escape="\\"),
        )
        with self.session() as db:
            total = int(db.execute(select(func.count(UserAccount.id)).where(condition)).scalar_one())
            rows = db.execute(
                select(UserAccount)
                .where(condition)
                .order_by(UserAccount.created_at.desc())
                .offset(page.offset)
                .limit(page.page_size)
            ).scalars()
            return [UserRecord.model_validate(row) for row in rows], total

    # device versions

    def create_device_version(self, request: CreateDeviceVersionRequest) -> DeviceVersionRecord:
        with self.session() as db:
            version = DeviceVersion(name=request.name, version=request.version, description=request.description)
            db.add(version)
            db.flush()
            return DeviceVersionRecord.model_validate(version)

    def get_device_version(self, version_id: uuid.UUID) -> DeviceVersionRecord:
        with self.session() as db:
            version = db.get(DeviceVersion, version_id)
            if version is None:
                raise NotFoundError("device version not found")
            return DeviceVersionRecord.model_validate(version)

    def list_device_versions(self, page: PageRequest) -> tuple[list[DeviceVersionRecord], int]:
        with self.session() as db:
            total = int(db.execute(select(func.count(DeviceVersion.id))).scalar_one())
            rows = db.execute(
                select(DeviceVersion)
                .order_by(DeviceVersion.created_at.desc())
                .offset(page.offset)
                .limit(page.page_size)
            ).scalars()
            return [DeviceVersionRecord.model_validate(row) for row in rows], total

    def update_device_version(
        self, version_id: uuid.UUID, request: UpdateDeviceVersionRequest
    ) -> DeviceVersionRecord:
        with self.session() as db:
            self._apply_update(
                db,
                DeviceVersion,
                DeviceVersion.id == version_id,
                request.model_dump(exclude_none=True),
                "device version",
            )
        return self.get_device_version(version_id)

    def delete_device_version(self, version_id: uuid.UUID) -> None:
        with self.session() as db:
            result = db.execute(delete(DeviceVersion).where(DeviceVersion.id == version_id))
            if result.rowcount == 0:
                raise NotFoundError("device version not found")

    # allow-list

    def create_allowed_device(self, request: CreateAllowedDeviceRequest) -> AllowedDeviceRecord:
        try:
            with self.session() as db:
                allowed = AllowedDevice(
                    dev_eui=request.dev_eui,
                    nwk_key=request.nwk_key,
                    app_key=request.app_key,
                    addr_key=request.addr_key,
                    description=request.description,
                )
                db.add(allowed)
                db.flush()
                return AllowedDeviceRecord.model_validate(allowed)
        except IntegrityError as exc:
            raise ConflictError(f"device {request.dev_eui} is already in the allow-list") from exc

    def get_allowed_device(self, dev_eui: str) -> AllowedDeviceRecord:
        with self.session() as db:
            allowed = db.execute(select(AllowedDevice).where(AllowedDevice.dev_eui == dev_eui)).scalar_one_or_none()
            if allowed is None:
                raise NotFoundError("allowed device not found")
            return AllowedDeviceRecord.model_validate(allowed)

    def list_allowed_devices(self, page: PageRequest) -> tuple[list[AllowedDeviceRecord], int]:
        with self.session() as db:
            total = int(db.execute(select(func.count(AllowedDevice.id))).scalar_one())
            rows = db.execute(
                select(AllowedDevice)
                .order_by(AllowedDevice.created_at.desc())
                .offset(page.offset)
                .limit(page.page_size)
            ).scalars()
            return [AllowedDeviceRecord.model_validate(row) for row in rows], total

    def update_allowed_device(self, dev_eui: str, request: UpdateAllowedDeviceRequest) -> AllowedDeviceRecord:
        with self.session() as db:
            self._apply_update(
                db,
                AllowedDevice,
                AllowedDevice.dev_eui == dev_eui,
                request.model_dump(exclude_none=True),
                "allowed device",
            )
        return self.get_allowed_device(dev_eui)

    def delete_allowed_device(self, dev_eui: str) -> None:
        with self.session() as db:
            result = db.execute(delete(AllowedDevice).where(AllowedDevice.dev_eui == dev_eui))
            if result.rowcount == 0:
                raise NotFoundError("allowed device not found")

    # devices

    def create_device(
        self,
        user_id: uuid.UUID,
        version_id: uuid.UUID,
        name: str,
        dev_eui: str,
        description: str | None,
    ) -> DeviceRecord:
        with self.session() as db:
            device = Device(
                user_id=user_id,
                version_id=version_id,
                name=name,
                dev_eui=dev_eui,
                description=description,
                chirpstack_device_created=False,
                chirpstack_device_activated=False,
                is_active=True,
            )
            db.add(device)
            db.flush()
            return _device_record(device, db.get(DeviceVersion, version_id))

    def get_device(self, device_id: uuid.UUID) -> DeviceRecord:
        with self.session() as db:
            row = db.execute(
                select(Device, DeviceVersion)
                .outerjoin(DeviceVersion, DeviceVersion.id == Device.version_id)
                .where(Device.id == device_id)
            ).first()
            if row is None:
                raise NotFoundError("device not found")
            device, version = row
            return _device_record(device, version)

    def list_devices(self, page: PageRequest, user_id: uuid.UUID | None = None) -> tuple[list[DeviceRecord], int]:
        with self.session() as db:
            stmt = select(Device, DeviceVersion).outerjoin(DeviceVersion, DeviceVersion.id == Device.version_id)
            count_stmt = select(func.count(Device.id))
            if user_id is not None:
                stmt = stmt.where(Device.user_id == user_id)
                count_stmt = count_stmt.where(Device.user_id == user_id)

            total = int(db.execute(count_stmt).scalar_one())
            rows = db.execute(stmt.order_by(Device.created_at.desc()).offset(page.offset).limit(page.page_size)).all()
            return [_device_record(device, version) for device, version in rows], total

    def update_device(self, device_id: uuid.UUID, request: UpdateDeviceRequest) -> DeviceRecord:
        with self.session() as db:
            self._apply_update(db, Device, Device.id == device_id, request.model_dump(exclude_none=True), "device")
        return self.get_device(device_id)

    def set_device_platform_status(self, device_id: uuid.UUID, created: bool, activated: bool) -> None:
        with self.session() as db:
            self._apply_update(
                db,
                Device,
                Device.id == device_id,
                {"chirpstack_device_created": created, "chirpstack_device_activated": activated},
                "device",
            )

    def count_devices_with_dev_eui(self, dev_eui: str) -> int:
        with self.session() as db:
            return int(db.execute(select(func.count(Device.id)).where(Device.dev_eui == dev_eui)).scalar_one())

    def delete_device(self, device_id: uuid.UUID) -> None:
        with self.session() as db:
            result = db.execute(delete(Device).where(Device.id == device_id))
            if result.rowcount == 0:
                raise NotFoundError("device not found")
