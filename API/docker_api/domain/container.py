from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass(frozen=True)
class PortEntry:
    private_port: int
    protocol: str = "tcp"
    public_port: Optional[int] = None


@dataclass(frozen=True)
class MountEntry:
    source: str
    destination: str

    def as_bind(self) -> str:
        return f"{self.source}:{self.destination}"


@dataclass
class ContainerDescriptor:
    """A container as the engine lists it. Read-only, never persisted."""

    id: str
    names: List[str]
    image: str
    status: str = ""
    ports: List[PortEntry] = field(default_factory=list)
    mounts: List[MountEntry] = field(default_factory=list)
    labels: Dict[str, str] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.names[0].lstrip("/") if self.names else self.id[:12]

    def has_name(self, name: str) -> bool:
        # engine names carry a leading "/"
        return f"/{name}" in self.names


@dataclass
class ContainerSpec:
    """Everything needed to create the replacement container."""

    name: str
    image: str
    environment: List[str] = field(default_factory=list)
    exposed_ports: List[str] = field(default_factory=list)
    port_bindings: Dict[str, List[str]] = field(default_factory=dict)
    binds: List[str] = field(default_factory=list)
    labels: Dict[str, str] = field(default_factory=dict)
