from __future__ import annotations

import logging

from fastapi import APIRouter, FastAPI
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from lnode_server.accounts import AccountService
from lnode_server.auth import AuthManager
from lnode_server.auth_routes import router as auth_router
from lnode_server.chirpstack import ChirpStackGateway
from lnode_server.config import ServerConfig, load_config
from lnode_server.db import ServerDatabase
from lnode_server.device_routes import router as device_router
from lnode_server.errors import install_error_handlers
from lnode_server.interfaces import PlatformGateway
from lnode_server.provisioning import ProvisioningOrchestrator
from lnode_server.security import SecurityHeadersMiddleware
from lnode_server.telemetry import MetricsMiddleware
from lnode_server.telemetry import router as telemetry_router
from lnode_server.user_routes import router as user_router

logger = logging.getLogger("lnode_server.app")


def create_app(config: ServerConfig | None = None, gateway: PlatformGateway | None = None) -> FastAPI:
    cfg = config or load_config()

    app = FastAPI(
        title="Lnode Device Provisioning API",
        docs_url="/docs" if cfg.dev_enable_docs else None,
        redoc_url="/redoc" if cfg.dev_enable_docs else None,
        openapi_url="/openapi.json" if cfg.dev_enable_docs else None,
    )

    db = ServerDatabase(cfg.database_url)
    if cfg.database_url.lower().startswith("sqlite://"):
        db.init_for_tests()
    auth = AuthManager(cfg)
    platform = gateway if gateway is not None else ChirpStackGateway(cfg.platform)

    app.state.config = cfg
    app.state.db = db
    app.state.auth = auth
    app.state.gateway = platform
    app.state.orchestrator = ProvisioningOrchestrator(
        users=db,
        devices=db,
        auth=auth,
        gateway=platform,
        application_name=cfg.platform.application_name,
    )
    app.state.accounts = AccountService(users=db, auth=auth)

    install_error_handlers(app)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(MetricsMiddleware)

    api = APIRouter(prefix=cfg.api_prefix)
    api.include_router(auth_router)
    api.include_router(user_router)
    api.include_router(device_router)
    app.include_router(api)
    app.include_router(telemetry_router)

    @app.get("/health")
    def health() -> JSONResponse:
        try:
            db.ping()
        except SQLAlchemyError as exc:
            logger.warning("health check failed: %s", exc.__class__.__name__)
            return JSONResponse(status_code=500, content={"status": "error"})
        return JSONResponse(content={"status": "ok"})

    @app.on_event("startup")
    async def _startup() -> None:
        if platform.enabled:
            logger.info("platform integration enabled", extra={"platform_url": getattr(platform, "base_url", "")})
        else:
            logger.info("platform integration disabled; devices will be stored locally only")

    return app


try:
    app = create_app()
except Exception:
    logger.exception("failed to create default app; configure environment variables before startup")
    app = FastAPI()
