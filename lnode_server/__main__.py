from __future__ import annotations

import argparse
import json

import uvicorn
from alembic import command
from alembic.config import Config

from lnode_server.app import create_app
from lnode_server.config import load_config
from lnode_server.db import ServerDatabase
from lnode_server.logging import configure_logging
from lnode_server.schemas import CreateAllowedDeviceRequest, CreateDeviceVersionRequest


def cmd_run(args: argparse.Namespace) -> int:
    cfg = load_config()
    app = create_app(cfg)
    uvicorn.run(app, host=cfg.host, port=cfg.port, log_level="debug" if args.verbose else "info")
    return 0


def cmd_migrate(args: argparse.Namespace) -> int:
    cfg = load_config()
    alembic_cfg = Config("alembic.ini")
    alembic_cfg.set_main_option("sqlalchemy.url", cfg.database_url.replace("%", "%%"))
    command.upgrade(alembic_cfg, args.revision)
    return 0


def cmd_allow_device(args: argparse.Namespace) -> int:
    cfg = load_config()
    db = ServerDatabase(cfg.database_url)
    request = CreateAllowedDeviceRequest(
        dev_eui=args.dev_eui,
        nwk_key=args.nwk_key,
        app_key=args.app_key,
        addr_key=args.addr_key,
        description=args.description,
    )
    allowed = db.create_allowed_device(request)
    print(json.dumps({"id": str(allowed.id), "dev_eui": allowed.dev_eui}, ensure_ascii=True))
    return 0


def cmd_create_version(args: argparse.Namespace) -> int:
    cfg = load_config()
    db = ServerDatabase(cfg.database_url)
    request = CreateDeviceVersionRequest(name=args.name, version=args.version, description=args.description)
    version = db.create_device_version(request)
    print(json.dumps({"id": str(version.id), "name": version.name, "version": version.version}, ensure_ascii=True))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="lnode_server")
    parser.add_argument("--verbose", action="store_true")
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run", help="run the FastAPI server")
    run_parser.set_defaults(func=cmd_run)

    migrate_parser = subparsers.add_parser("migrate", help="run Alembic migration")
    migrate_parser.add_argument("--revision", default="head")
    migrate_parser.set_defaults(func=cmd_migrate)

    allow_parser = subparsers.add_parser("allow-device", help="add a DevEUI and its keys to the allow-list")
    allow_parser.add_argument("--dev-eui", required=True)
    allow_parser.add_argument("--nwk-key", required=True)
    allow_parser.add_argument("--app-key", required=True)
    allow_parser.add_argument("--addr-key", required=True)
    allow_parser.add_argument("--description", default=None)
    allow_parser.set_defaults(func=cmd_allow_device)

    version_parser = subparsers.add_parser("create-version", help="add a device catalog entry")
    version_parser.add_argument("--name", required=True)
    version_parser.add_argument("--version", required=True)
    version_parser.add_argument("--description", default=None)
    version_parser.set_defaults(func=cmd_create_version)

    parser.set_defaults(func=cmd_run)
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(verbose=bool(args.verbose))
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
