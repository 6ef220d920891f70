from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from edp import db, engine as engine_mod
from edp.engine import EngineClient, EngineError
from edp.events import configure_logging
from edp.health import HealthStatus
from edp.models import ConnectionParams
from edp.reconciler import Reconciler
from edp.session import DataSession, DataSessionError
from edp.settings import Settings, settings as default_settings

logger = logging.getLogger("edp.cli")

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_TIMEOUT = 3


def _settings_from_args(args: argparse.Namespace, base: Settings) -> Settings:
    overrides = {
        "engine_url": args.engine_url,
        "image": args.image,
        "container_name": args.name,
        "poll_interval_s": args.poll_interval,
        "health_timeout_s": args.timeout,
        "log_level": args.log_level,
    }
    return replace(base, **{k: v for k, v in overrides.items() if v is not None})


def connection_params(s: Settings) -> ConnectionParams:
    return ConnectionParams(
        host=s.db_host,
        port=s.db_port,
        service_name=s.db_service,
        username=s.db_user,
        password=s.db_password,
    )


def build_reconciler(client: EngineClient, s: Settings) -> Reconciler:
    # Same password for the container bootstrap env and the later connection.
    return Reconciler(
        client,
        image=s.image,
        container_name=s.container_name,
        password=s.db_password,
        data_path=s.data_path,
        port=s.db_port,
        password_env=s.password_env,
        poll_interval_s=s.poll_interval_s,
        health_timeout_s=s.health_timeout_s,
    )


def cmd_up(client: EngineClient, s: Settings) -> int:
    result = build_reconciler(client, s).reconcile()
    if not result.healthy:
        logger.error("Container %s did not become healthy", s.container_name)
        return EXIT_TIMEOUT
    return EXIT_OK


def cmd_run(client: EngineClient, s: Settings, make_engine=None) -> int:
    rc = cmd_up(client, s)
    if rc != EXIT_OK:
        return rc
    sql_engine: Engine = (make_engine or db.engine_for)(connection_params(s))
    try:
        DataSession(sql_engine).run()
    finally:
        sql_engine.dispose()
    return EXIT_OK


def cmd_status(client: EngineClient, s: Settings) -> int:
    if not client.container_exists(s.container_name):
        print(f"{s.container_name}: absent")
        return EXIT_OK
    status = HealthStatus.parse(client.health_status(s.container_name))
    print(f"{s.container_name}: {status.value}")
    return EXIT_OK


def cmd_down(client: EngineClient, s: Settings) -> int:
    client.remove_container(s.container_name, force=True)
    print(f"{s.container_name}: removed")
    return EXIT_OK


COMMANDS = {
    "run": cmd_run,
    "up": cmd_up,
    "status": cmd_status,
    "down": cmd_down,
}


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Ephemeral Database Provisioner")
    p.add_argument("--engine-url", help="Container engine socket URL (default: podman socket under $XDG_RUNTIME_DIR)")
    p.add_argument("--image", help="Database image reference")
    p.add_argument("--name", help="Container name")
    p.add_argument("--poll-interval", type=int, help="Seconds between health checks")
    p.add_argument("--timeout", type=int, help="Max seconds to wait for healthy (0 waits forever)")
    p.add_argument("--log-level", help="DEBUG, INFO, WARNING, ...")
    sub = p.add_subparsers(dest="cmd")

    sub.add_parser("run", help="Provision the database, then run the demo session (default)")
    sub.add_parser("up", help="Provision the database and wait until healthy")
    sub.add_parser("status", help="Show container health")
    sub.add_parser("down", help="Force-remove the container")
    return p


def main(argv: list[str] | None = None, base: Settings = default_settings, connect=engine_mod.connect) -> int:
    args = build_parser().parse_args(argv)
    s = _settings_from_args(args, base)

    handler = COMMANDS[args.cmd or "run"]
    try:
        configure_logging(s.log_level)
        client = connect(s.engine_url)
        return handler(client, s)
    # ImportError covers a missing database driver.
    except (EngineError, DataSessionError, SQLAlchemyError, ImportError, ValueError) as e:
        logger.error("%s", e)
        return EXIT_FATAL


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
