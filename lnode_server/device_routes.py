"""Device catalog, allow-list and device registry routes.

Fixed paths (``/versions``, ``/allowed``, ``/my``, ``/all``) are registered
before ``/{device_id}`` so they are never captured as ids.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from lnode_server.auth import principal_from_request
from lnode_server.db import ServerDatabase
from lnode_server.errors import ValidationError
from lnode_server.pagination import PageRequest, page_query
from lnode_server.provisioning import ProvisioningOrchestrator
from lnode_server.schemas import (
    AllowedDeviceListResponse,
    CreateAllowedDeviceRequest,
    CreateDeviceRequest,
    CreateDeviceVersionRequest,
    DeviceListResponse,
    DeviceVersionListResponse,
    Principal,
    UpdateAllowedDeviceRequest,
    UpdateDeviceRequest,
    UpdateDeviceVersionRequest,
    normalize_dev_eui,
)

router = APIRouter(prefix="/devices", tags=["devices"])


def _db(request: Request) -> ServerDatabase:
    return request.app.state.db


def _orchestrator(request: Request) -> ProvisioningOrchestrator:
    return request.app.state.orchestrator


def _dev_eui_path(dev_eui: str) -> str:
    try:
        return normalize_dev_eui(dev_eui)
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc


# device versions


@router.post("/versions", status_code=201)
def create_version(
    payload: CreateDeviceVersionRequest,
    request: Request,
    _: Principal = Depends(principal_from_request),
) -> JSONResponse:
    version = _db(request).create_device_version(payload)
    return JSONResponse(status_code=201, content=version.model_dump(mode="json"))


@router.get("/versions")
def list_versions(
    request: Request,
    page: PageRequest = Depends(page_query),
    _: Principal = Depends(principal_from_request),
) -> JSONResponse:
    versions, total = _db(request).list_device_versions(page)
    body = DeviceVersionListResponse(versions=versions, **page.envelope(total))
    return JSONResponse(content=body.model_dump(mode="json"))


@router.get("/versions/{version_id}")
def get_version(
    version_id: uuid.UUID,
    request: Request,
    _: Principal = Depends(principal_from_request),
) -> JSONResponse:
    return JSONResponse(content=_db(request).get_device_version(version_id).model_dump(mode="json"))


@router.put("/versions/{version_id}")
def update_version(
    version_id: uuid.UUID,
    payload: UpdateDeviceVersionRequest,
    request: Request,
    _: Principal = Depends(principal_from_request),
) -> JSONResponse:
    version = _db(request).update_device_version(version_id, payload)
    return JSONResponse(content=version.model_dump(mode="json"))


@router.delete("/versions/{version_id}")
def delete_version(
    version_id: uuid.UUID,
    request: Request,
    _: Principal = Depends(principal_from_request),
) -> JSONResponse:
    _db(request).delete_device_version(version_id)
    return JSONResponse(content={"message": "Device version deleted successfully"})


# allow-list


@router.post("/allowed", status_code=201)
def create_allowed(
    payload: CreateAllowedDeviceRequest,
    request: Request,
    _: Principal = Depends(principal_from_request),
) -> JSONResponse:
    allowed = _db(request).create_allowed_device(payload)
    return JSONResponse(status_code=201, content=allowed.model_dump(mode="json"))


@router.get("/allowed")
def list_allowed(
    request: Request,
    page: PageRequest = Depends(page_query),
    _: Principal = Depends(principal_from_request),
) -> JSONResponse:
    devices, total = _db(request).list_allowed_devices(page)
    body = AllowedDeviceListResponse(devices=devices, **page.envelope(total))
    return JSONResponse(content=body.model_dump(mode="json"))


@router.get("/allowed/{dev_eui}")
def get_allowed(dev_eui: str, request: Request, _: Principal = Depends(principal_from_request)) -> JSONResponse:
    allowed = _db(request).get_allowed_device(_dev_eui_path(dev_eui))
    return JSONResponse(content=allowed.model_dump(mode="json"))


@router.put("/allowed/{dev_eui}")
def update_allowed(
    dev_eui: str,
    payload: UpdateAllowedDeviceRequest,
    request: Request,
    _: Principal = Depends(principal_from_request),
) -> JSONResponse:
    allowed = _db(request).update_allowed_device(_dev_eui_path(dev_eui), payload)
    return JSONResponse(content=allowed.model_dump(mode="json"))


@router.delete("/allowed/{dev_eui}")
def delete_allowed(dev_eui: str, request: Request, _: Principal = Depends(principal_from_request)) -> JSONResponse:
    _db(request).delete_allowed_device(_dev_eui_path(dev_eui))
    return JSONResponse(content={"message": "Allowed device deleted successfully"})


# devices


@router.post("", status_code=201)
def create_device(
    payload: CreateDeviceRequest,
    request: Request,
    principal: Principal = Depends(principal_from_request),
) -> JSONResponse:
    device = _orchestrator(request).create_device(principal.user_id, payload)
    return JSONResponse(status_code=201, content=device.model_dump(mode="json"))


@router.get("/my")
def list_my_devices(
    request: Request,
    page: PageRequest = Depends(page_query),
    principal: Principal = Depends(principal_from_request),
) -> JSONResponse:
    devices, total = _db(request).list_devices(page, user_id=principal.user_id)
    body = DeviceListResponse(devices=devices, **page.envelope(total))
    return JSONResponse(content=body.model_dump(mode="json"))


@router.get("/all")
def list_all_devices(
    request: Request,
    page: PageRequest = Depends(page_query),
    _: Principal = Depends(principal_from_request),
) -> JSONResponse:
    devices, total = _db(request).list_devices(page)
    body = DeviceListResponse(devices=devices, **page.envelope(total))
    return JSONResponse(content=body.model_dump(mode="json"))


@router.get("/{device_id}")
def get_device(device_id: uuid.UUID, request: Request, _: Principal = Depends(principal_from_request)) -> JSONResponse:
    return JSONResponse(content=_db(request).get_device(device_id).model_dump(mode="json"))


@router.put("/{device_id}")
def update_device(
    device_id: uuid.UUID,
    payload: UpdateDeviceRequest,
    request: Request,
    _: Principal = Depends(principal_from_request),
) -> JSONResponse:
    device = _orchestrator(request).update_device(device_id, payload)
    return JSONResponse(content=device.model_dump(mode="json"))


@router.delete("/{device_id}")
def delete_device(
    device_id: uuid.UUID,
    request: Request,
    _: Principal = Depends(principal_from_request),
) -> JSONResponse:
    _orchestrator(request).delete_device(device_id)
    return JSONResponse(content={"message": "Device deleted successfully"})
