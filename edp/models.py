from __future__ import annotations

from pydantic import BaseModel, Field
from sqlalchemy.engine import URL


class Mount(BaseModel):
    source: str = Field(..., description="Host directory")
    target: str = Field(..., description="Path inside the container")
    read_only: bool = False


class PortMapping(BaseModel):
    container_port: int = Field(..., ge=1, le=65535)
    host_port: int = Field(..., ge=1, le=65535)
    protocol: str = Field("tcp", pattern="^(tcp|udp|sctp)$")
    host_ip: str = Field("0.0.0.0", description="Host bind address")


class ContainerSpec(BaseModel):
    """Everything needed to create the container in one call.

    A ContainerSpec is built fresh for each create; changing configuration means
    removing the old container and creating a new one from a new spec.
    """

    model_config = {"frozen": True}

    name: str = Field(..., description="Unique container name")
    image: str = Field(..., description="Image reference (registry/repo:tag)")
    hostname: str | None = None
    mounts: list[Mount] = Field(default_factory=list)
    ports: list[PortMapping] = Field(default_factory=list)
    env: dict[str, str] = Field(default_factory=dict)

    def port_bindings(self) -> dict[str, tuple[str, int]]:
        """Port map in the shape the Docker SDK expects: {'1521/tcp': ('0.0.0.0', 1521)}."""
        return {f"{p.container_port}/{p.protocol}": (p.host_ip, p.host_port) for p in self.ports}


class ConnectionParams(BaseModel):
    host: str = "localhost"
    port: int = Field(1521, ge=1, le=65535)
    service_name: str = Field(..., description="Pluggable database / service identifier")
    username: str
    password: str

    def url(self, drivername: str = "oracle+oracledb") -> URL:
        return URL.create(
            drivername,
            username=self.username,
            password=self.password,
            host=self.host,
            port=self.port,
            query={"service_name": self.service_name},
        )
