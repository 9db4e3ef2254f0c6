from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from lnode_server.accounts import AccountService
from lnode_server.auth import principal_from_request
from lnode_server.provisioning import ProvisioningOrchestrator
from lnode_server.schemas import AuthResponse, LoginRequest, MirrorReport, Principal, RegisterRequest

router = APIRouter(tags=["auth"])


@router.post("/auth/register", status_code=201, response_model=AuthResponse)
def register(payload: RegisterRequest, request: Request) -> JSONResponse:
    orchestrator: ProvisioningOrchestrator = request.app.state.orchestrator
    result = orchestrator.register_user(payload.email, payload.password, payload.full_name)
    body = AuthResponse(
        token=result.token,
        user=result.user,
        platform_provisioning=MirrorReport(status=result.platform.status.value, reason=result.platform.reason),
    )
    return JSONResponse(status_code=201, content=body.model_dump(mode="json"))


@router.post("/auth/login", response_model=AuthResponse)
def login(payload: LoginRequest, request: Request) -> JSONResponse:
    accounts: AccountService = request.app.state.accounts
    token, user = accounts.login(payload.email, payload.password)
    body = AuthResponse(token=token, user=user)
    return JSONResponse(content=body.model_dump(mode="json", exclude={"platform_provisioning"}))


@router.get("/user/profile")
def profile(principal: Principal = Depends(principal_from_request)) -> JSONResponse:
    return JSONResponse(
        content={
            "user_id": str(principal.user_id),
            "email": principal.email,
            "message": "This is a protected route",
        }
    )
