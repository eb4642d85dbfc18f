# docker_api/services/container_service.py
import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Set

from docker_api.core.errors import (
    EngineError,
    NotFoundError,
    OperationCancelledError,
    PartialFailure,
    ValidationError,
)
from docker_api.core.log import request_logger
from docker_api.domain.container import ContainerDescriptor, ContainerSpec
from docker_api.domain.image import ImageReference, replacement_image
from docker_api.domain.networking import project_ports
from docker_api.domain.ports import DockerRuntime
from docker_api.domain.resources import (
    CpuLimitEncoding,
    NanoCpuEncoding,
    ResourceQuota,
    validate_cpu_percent,
)
from docker_api.domain.stats import ContainerStats, StatsSnapshot
from docker_api.services.name_locks import NameLocks
from docker_api.services.registry_auth import RegistryAuthResolver

logger = logging.getLogger(__name__)

DEFAULT_STOP_TIMEOUT = 10


class RecreateStep(str, Enum):
    LOCATED = "located"
    INSPECTED = "inspected"
    IMAGE_PULLED = "image_pulled"
    STOPPED = "stopped"
    REMOVED = "removed"
    CREATED = "created"
    STARTED = "started"


RECREATE_STEPS = list(RecreateStep)


@dataclass
class RecreateResult:
    name: str
    image: str
    old_id: str
    new_id: str


def build_replacement_spec(
    name: str,
    existing: ContainerDescriptor,
    image: ImageReference,
    environment: List[str],
) -> ContainerSpec:
    """Carry ports, mounts, labels and env over to the replacement container."""
    projection = project_ports(existing.ports)
    return ContainerSpec(
        name=name,
        image=str(image),
        environment=list(environment),
        exposed_ports=projection.exposed_ports,
        port_bindings=projection.port_bindings,
        binds=[mount.as_bind() for mount in existing.mounts],
        labels=dict(existing.labels),
    )


def _require_name(name: str, log) -> None:
    if not name or not name.strip():
        log.warning("BadRequest: ContainerName is required")
        raise ValidationError("ContainerName is required.")


class ContainerService:
    def __init__(
        self,
        docker_runtime: DockerRuntime,
        auth_resolver: Optional[RegistryAuthResolver] = None,
        cpu_encoding: Optional[CpuLimitEncoding] = None,
        *,
        stop_timeout: int = DEFAULT_STOP_TIMEOUT,
        locks: Optional[NameLocks] = None,
    ):
        self.docker_runtime = docker_runtime
        self.auth_resolver = auth_resolver or RegistryAuthResolver()
        self.cpu_encoding = cpu_encoding or NanoCpuEncoding()
        self.stop_timeout = stop_timeout
        self._locks = locks or NameLocks()
        # shielded operations whose caller was cancelled
        self._detached: Set[asyncio.Task] = set()

    # -------------------------------
    # Lookup
    # -------------------------------
    async def find_container(self, name: str, log=None) -> ContainerDescriptor:
        """Exact-name lookup over running and stopped containers."""
        log = log or request_logger(logger, name)
        _require_name(name, log)

        for container in await self.docker_runtime.list_containers():
            if container.has_name(name):
                return container

        log.error(f"Container {name} not found")
        raise NotFoundError(f"Container {name} not found.", container=name)

    async def _exclusive(self, name: str, operation, log):
        """
        Run `operation` holding the lock for `name`.

        Shielded: a cancelled request does not abort the engine calls
        half-way. The operation finishes and releases the lock, and its
        outcome is logged once nobody is awaiting it any more.
        """
        async def _run():
            async with self._locks.hold(name):
                return await operation()

        task = asyncio.ensure_future(_run())
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            log.warning("Caller went away, operation continues in the background")
            self._detached.add(task)
            task.add_done_callback(lambda t: self._report_detached(t, log))
            raise

    def _report_detached(self, task: asyncio.Task, log) -> None:
        self._detached.discard(task)
        if task.cancelled():
            log.warning("Background operation was cancelled before it finished")
            return
        error = task.exception()
        if error is None:
            log.info("Background operation finished after the caller left")
        else:
            reason = getattr(error, "message", None) or str(error)
            log.error(f"Background operation failed after the caller left: {reason}")

    # -------------------------------
    # Recreate
    # -------------------------------
    async def recreate(self, name: str, log=None) -> RecreateResult:
        log = log or request_logger(logger, name)
        _require_name(name, log)
        return await self._exclusive(name, lambda: self._recreate(name, log), log)

    async def _recreate(self, name: str, log) -> RecreateResult:
        existing = await self.find_container(name, log)
        log.info(f"Recreating container {existing.id[:12]} from image {existing.image}")

        try:
            environment = await self.docker_runtime.inspect_environment(existing.id)
        except EngineError as e:
            log.error(f"Inspect failed, nothing changed: {e.message}")
            raise

        image = replacement_image(existing.image)
        credentials = self.auth_resolver.resolve(image, log)
        log.info(
            f"Pulling image: {image}"
            + (f" as {credentials.username}@{credentials.server_address}" if credentials else "")
        )
        try:
            await self.docker_runtime.pull(image, credentials)
        except EngineError as e:
            log.error(f"Pull of {image} failed, nothing changed: {e.message}")
            raise

        spec = build_replacement_spec(name, existing, image, environment)
        completed = RecreateStep.IMAGE_PULLED
        new_id = ""
        try:
            await self.docker_runtime.stop(existing.id, self.stop_timeout)
            completed = RecreateStep.STOPPED
            await self.docker_runtime.remove(existing.id)
            completed = RecreateStep.REMOVED
            new_id, warnings = await self.docker_runtime.create(spec)
            completed = RecreateStep.CREATED
            for warning in warnings:
                log.warning(f"Engine warning creating {name}: {warning}")
            await self.docker_runtime.start(new_id)
            completed = RecreateStep.STARTED
        except Exception as e:
            raise self._partial_failure(name, str(image), completed, new_id, e, log) from e

        log.info(f"Container recreated as {new_id[:12]} from {image}")
        return RecreateResult(name=name, image=str(image), old_id=existing.id, new_id=new_id)

    @staticmethod
    def _partial_failure(
        name: str,
        image: str,
        completed: RecreateStep,
        new_id: str,
        error: Exception,
        log,
    ) -> PartialFailure:
        failed = RECREATE_STEPS[RECREATE_STEPS.index(completed) + 1]
        removed = RECREATE_STEPS.index(completed) >= RECREATE_STEPS.index(RecreateStep.REMOVED)
        reason = getattr(error, "message", None) or str(error)

        if completed is RecreateStep.IMAGE_PULLED:
            message = f"Stopping container {name} failed; no container was removed: {reason}"
        elif completed is RecreateStep.STOPPED:
            message = f"Container {name} was stopped but could not be removed; it is still present: {reason}"
        elif completed is RecreateStep.REMOVED:
            message = (
                f"Container {name} was removed but could not be recreated from {image}: {reason}. "
                "Recreate it manually."
            )
        else:
            message = f"Container {name} was recreated as {new_id[:12]} but failed to start: {reason}"

        log.error(f"{message} (failed step: {failed.value}, last completed: {completed.value})")
        return PartialFailure(
            message,
            container=name,
            failed_step=failed.value,
            last_completed_step=completed.value,
            container_removed=removed,
        )

    # -------------------------------
    # Restart / edit
    # -------------------------------
    async def restart(self, name: str, log=None) -> ContainerDescriptor:
        log = log or request_logger(logger, name)
        _require_name(name, log)

        async def _restart():
            existing = await self.find_container(name, log)
            await self.docker_runtime.restart(existing.id)
            log.info(f"Container {existing.id[:12]} restarted")
            return existing

        return await self._exclusive(name, _restart, log)

    async def update_resources(
        self,
        name: str,
        cpu_limit_percent: Optional[float],
        log=None,
    ) -> Optional[ResourceQuota]:
        """Apply a CPU limit given as a fraction of all host CPUs."""
        log = log or request_logger(logger, name)
        if cpu_limit_percent is not None:
            try:
                validate_cpu_percent(cpu_limit_percent)
            except ValidationError:
                log.warning(f"BadRequest: invalid CpuLimitPercent {cpu_limit_percent}")
                raise
        _require_name(name, log)

        async def _update():
            existing = await self.find_container(name, log)
            if cpu_limit_percent is None:
                log.info("No resource changes requested")
                return None

            total_cores = await self.docker_runtime.cpu_count()
            quota = self.cpu_encoding.translate(total_cores, cpu_limit_percent)
            log.info(
                f"Calculating CPU limit: {total_cores} (host cores) * {cpu_limit_percent:.2%} "
                f"= {total_cores * cpu_limit_percent:.2f} cores. Setting {quota.to_update_body()}"
            )
            warnings = await self.docker_runtime.update_resources(existing.id, quota)
            for warning in warnings or []:
                log.warning(f"Engine warning updating {existing.id[:12]}: {warning}")
            log.info(f"Successfully updated container {existing.id[:12]} with new resource limits")
            return quota

        return await self._exclusive(name, _update, log)

    # -------------------------------
    # Stats
    # -------------------------------
    async def get_stats(
        self,
        name: str,
        log=None,
        cancel: Optional[asyncio.Event] = None,
    ) -> ContainerStats:
        log = log or request_logger(logger, name)
        existing = await self.find_container(name, log)

        try:
            raw = await self._read_stats(name, existing.id, cancel)
        except OperationCancelledError:
            log.warning("Stats read cancelled by caller")
            raise
        except EngineError as e:
            log.error(f"Stats read failed: {e.message}")
            raise

        if not raw:
            log.warning("Container stats were not captured")
            raise EngineError(f"Failed to retrieve stats for container {name}.", container=name)

        return ContainerStats.from_snapshot(StatsSnapshot.from_engine(raw), existing.status)

    async def _read_stats(
        self,
        name: str,
        docker_id: str,
        cancel: Optional[asyncio.Event],
    ) -> Dict[str, Any]:
        """One stats sample, abandoned as soon as `cancel` is set."""
        if cancel is None:
            return await self.docker_runtime.stats(docker_id)

        read = asyncio.ensure_future(self.docker_runtime.stats(docker_id))
        waiter = asyncio.ensure_future(cancel.wait())
        try:
            done, _ = await asyncio.wait({read, waiter}, return_when=asyncio.FIRST_COMPLETED)
            if read in done:
                return read.result()
            raise OperationCancelledError(f"Stats read for container {name} was cancelled.", container=name)
        finally:
            waiter.cancel()
            if not read.done():
                read.cancel()
