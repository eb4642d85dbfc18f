import asyncio
import sys
from functools import cached_property
from typing import Any, Dict, List, Optional, Tuple

import docker
from docker.errors import APIError, DockerException

from docker_api.core.errors import EngineError
from docker_api.domain.container import (
    ContainerDescriptor,
    ContainerSpec,
    MountEntry,
    PortEntry,
)
from docker_api.domain.image import ImageReference
from docker_api.domain.ports import DockerRuntime
from docker_api.domain.registry import RegistryCredentials
from docker_api.domain.resources import ResourceQuota


def default_base_url(platform: str = sys.platform) -> str:
    """Docker engine endpoint for the host platform."""
    if platform.startswith("win"):
        return "npipe:////./pipe/docker_engine"
    if platform.startswith(("linux", "darwin")):
        return "unix:///var/run/docker.sock"
    raise RuntimeError(f"Unsupported operating system: {platform}")


def descriptor_from_list_entry(raw: Dict[str, Any]) -> ContainerDescriptor:
    """Map one entry of the engine's container list to a descriptor."""
    return ContainerDescriptor(
        id=raw["Id"],
        names=list(raw.get("Names") or []),
        image=raw.get("Image", ""),
        status=raw.get("Status", ""),
        ports=[
            PortEntry(
                private_port=p["PrivatePort"],
                protocol=p.get("Type") or "tcp",
                public_port=p.get("PublicPort"),
            )
            for p in raw.get("Ports") or []
        ],
        mounts=[
            MountEntry(source=m.get("Source", ""), destination=m["Destination"])
            for m in raw.get("Mounts") or []
        ],
        labels=dict(raw.get("Labels") or {}),
    )


def _exposed_port(key: str) -> tuple:
    port, _, protocol = key.partition("/")
    return int(port), protocol or "tcp"


class DockerSDKRuntime(DockerRuntime):
    def __init__(self, base_url: Optional[str] = None):
        self.base_url = base_url or default_base_url()

    @cached_property
    def client(self) -> docker.DockerClient:
        # the SDK negotiates the API version on construction, so connect lazily
        try:
            return docker.DockerClient(base_url=self.base_url)
        except DockerException as e:
            raise EngineError(f"Cannot connect to Docker at {self.base_url}: {e}") from e

    @property
    def api(self) -> docker.APIClient:
        return self.client.api

    async def _call(self, fn, *args, **kwargs):
        try:
            return await asyncio.to_thread(fn, *args, **kwargs)
        except APIError as e:
            raise EngineError(str(e.explanation or e)) from e
        except DockerException as e:
            raise EngineError(str(e)) from e

    # -------------------------------
    # Container lifecycle
    # -------------------------------
    async def list_containers(self) -> List[ContainerDescriptor]:
        raw = await self._call(lambda: self.api.containers(all=True))
        return [descriptor_from_list_entry(entry) for entry in raw]

    async def inspect_environment(self, docker_id: str) -> List[str]:
        info = await self._call(lambda: self.api.inspect_container(docker_id))
        return list((info.get("Config") or {}).get("Env") or [])

    async def create(self, spec: ContainerSpec) -> Tuple[str, List[str]]:
        def _create():
            host_config = self.api.create_host_config(
                binds=spec.binds or None,
                port_bindings=spec.port_bindings or None,
            )
            return self.api.create_container(
                image=spec.image,
                name=spec.name,
                environment=spec.environment or None,
                ports=[_exposed_port(key) for key in spec.exposed_ports] or None,
                labels=spec.labels or None,
                host_config=host_config,
            )

        created = await self._call(_create)
        return created["Id"], list(created.get("Warnings") or [])

    async def start(self, docker_id: str) -> None:
        await self._call(lambda: self.api.start(docker_id))

    async def stop(self, docker_id: str, timeout: int) -> None:
        await self._call(lambda: self.api.stop(docker_id, timeout=timeout))

    async def remove(self, docker_id: str) -> None:
        await self._call(lambda: self.api.remove_container(docker_id, force=True))

    async def restart(self, docker_id: str) -> None:
        await self._call(lambda: self.api.restart(docker_id))

    async def update_resources(self, docker_id: str, quota: ResourceQuota) -> List[str]:
        # APIClient.update_container has no NanoCpus argument; post the body directly
        def _update():
            url = self.api._url("/containers/{0}/update", docker_id)
            response = self.api._post_json(url, data=quota.to_update_body())
            return self.api._result(response, True)

        result = await self._call(_update)
        return list((result or {}).get("Warnings") or [])

    async def stats(self, docker_id: str) -> Dict[str, Any]:
        return await self._call(lambda: self.api.stats(docker_id, stream=False))

    # -------------------------------
    # Images / host
    # -------------------------------
    async def pull(
        self,
        reference: ImageReference,
        credentials: Optional[RegistryCredentials] = None,
    ) -> None:
        def _pull():
            auth_config = credentials.to_auth_config() if credentials else None
            progress = self.api.pull(
                reference.repository,
                tag=reference.tag,
                auth_config=auth_config,
                stream=True,
                decode=True,
            )
            # pull failures can arrive as an error line in an HTTP 200 stream
            for line in progress:
                if "error" in line:
                    raise EngineError(f"Pull of {reference} failed: {line['error']}")

        await self._call(_pull)

    async def cpu_count(self) -> int:
        info = await self._call(lambda: self.client.info())
        return int(info.get("NCPU") or 0)
