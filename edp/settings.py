from __future__ import annotations

import os
from dataclasses import dataclass


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _default_engine_url() -> str:
    runtime_dir = os.getenv("XDG_RUNTIME_DIR", f"/run/user/{os.getuid()}")
    return f"unix://{runtime_dir}/podman/podman.sock"


@dataclass(frozen=True)
class Settings:
    # Container engine
    engine_url: str = os.getenv("EDP_ENGINE_URL") or _default_engine_url()
    image: str = os.getenv("EDP_IMAGE", "container-registry.oracle.com/database/free:latest")
    container_name: str = os.getenv("EDP_CONTAINER_NAME", "oracle-container")
    data_path: str = os.getenv("EDP_DATA_PATH", "/opt/oracle/oradata")
    password_env: str = os.getenv("EDP_PASSWORD_ENV", "ORACLE_PWD")

    # Health polling
    poll_interval_s: int = _env_int("EDP_POLL_INTERVAL_S", 10)
    # 0 disables the cap and waits forever.
    health_timeout_s: int = _env_int("EDP_HEALTH_TIMEOUT_S", 1800)

    # Database endpoint. The password is also injected into the container.
    db_host: str = os.getenv("EDP_DB_HOST", "localhost")
    db_port: int = _env_int("EDP_DB_PORT", 1521)
    db_service: str = os.getenv("EDP_DB_SERVICE", "FREEPDB1")
    db_user: str = os.getenv("EDP_DB_USER", "SYSTEM")
    db_password: str = os.getenv("EDP_DB_PASSWORD", "oracle123")

    log_level: str = os.getenv("EDP_LOG_LEVEL", "INFO")


settings = Settings()
