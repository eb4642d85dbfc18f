from typing import Any, Dict, List, Optional, Protocol, Tuple

from docker_api.domain.container import ContainerDescriptor, ContainerSpec
from docker_api.domain.image import ImageReference
from docker_api.domain.registry import RegistryCredentials
from docker_api.domain.resources import ResourceQuota


class DockerRuntime(Protocol):
    # -------------------------------
    # Containers
    # -------------------------------
    async def list_containers(self) -> List[ContainerDescriptor]:
        """List every container, running or stopped."""
        ...

    async def inspect_environment(self, docker_id: str) -> List[str]:
        """Return the container's ``KEY=value`` environment."""
        ...

    async def create(self, spec: ContainerSpec) -> Tuple[str, List[str]]:
        """Create a container. Returns the new docker id and any engine warnings."""
        ...

    async def start(self, docker_id: str) -> None:
        ...

    async def stop(self, docker_id: str, timeout: int) -> None:
        """Stop gracefully, killing after `timeout` seconds."""
        ...

    async def remove(self, docker_id: str) -> None:
        """Force-remove a container."""
        ...

    async def restart(self, docker_id: str) -> None:
        ...

    async def update_resources(self, docker_id: str, quota: ResourceQuota) -> List[str]:
        """Apply a CPU limit. Returns any engine warnings."""
        ...

    async def stats(self, docker_id: str) -> Dict[str, Any]:
        """One raw stats sample (current and previous counters)."""
        ...

    # -------------------------------
    # Images / host
    # -------------------------------
    async def pull(
        self,
        reference: ImageReference,
        credentials: Optional[RegistryCredentials] = None,
    ) -> None:
        ...

    async def cpu_count(self) -> int:
        """Number of CPUs on the engine host."""
        ...
