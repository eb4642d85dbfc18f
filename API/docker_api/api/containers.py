import asyncio
import logging
from functools import lru_cache
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request

from docker_api.core.config import Settings, get_settings
from docker_api.core.log import RequestLogger, request_logger
from docker_api.domain.resources import get_cpu_encoding
from docker_api.schemas.container import (
    EditContainerRequest,
    ErrorResponse,
    MessageResponse,
    StatsResponse,
)
from docker_api.services.container_service import ContainerService
from docker_api.services.docker_runtime import DockerSDKRuntime
from docker_api.services.registry_auth import RegistryAuthResolver

logger = logging.getLogger(__name__)

DISCONNECT_POLL_INTERVAL = 0.25


@lru_cache
def get_container_service() -> ContainerService:
    settings = get_settings()
    return ContainerService(
        DockerSDKRuntime(settings.DOCKER_BASE_URL),
        RegistryAuthResolver(Settings),
        get_cpu_encoding(settings.CPU_LIMIT_ENCODING),
        stop_timeout=settings.STOP_TIMEOUT_SECONDS,
    )


def get_request_log(
    name: str,
    x_request_id: Optional[str] = Header(None),
) -> RequestLogger:
    return request_logger(logger, name, x_request_id)


async def _watch_disconnect(request: Request, cancel: asyncio.Event) -> None:
    while not await request.is_disconnected():
        await asyncio.sleep(DISCONNECT_POLL_INTERVAL)
    cancel.set()


router = APIRouter(
    prefix="/docker",
    tags=["docker"],
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)


@router.get("/recreate/{name}", response_model=MessageResponse, summary="Recreate a container from its latest image")
async def recreate_container(
    name: str,
    container_service: ContainerService = Depends(get_container_service),
    log: RequestLogger = Depends(get_request_log),
):
    await container_service.recreate(name, log)
    return MessageResponse(message=f"Container {name} recreated successfully.")


@router.get("/restart/{name}", response_model=MessageResponse)
async def restart_container(
    name: str,
    container_service: ContainerService = Depends(get_container_service),
    log: RequestLogger = Depends(get_request_log),
):
    await container_service.restart(name, log)
    return MessageResponse(message=f"Container {name} restarted successfully.")


@router.put("/edit/{name}", response_model=MessageResponse, summary="Change a container's CPU limit")
async def edit_container(
    name: str,
    payload: Optional[EditContainerRequest] = None,
    container_service: ContainerService = Depends(get_container_service),
    log: RequestLogger = Depends(get_request_log),
):
    cpu_limit_percent = payload.cpu_limit_percent if payload else None
    quota = await container_service.update_resources(name, cpu_limit_percent, log)
    if quota is None:
        return MessageResponse(message=f"No changes requested for container {name}.")
    return MessageResponse(message=f"Container {name} updated successfully.")


@router.get("/stats/{name}", response_model=StatsResponse, responses={499: {"model": ErrorResponse}})
async def container_stats(
    name: str,
    request: Request,
    container_service: ContainerService = Depends(get_container_service),
    log: RequestLogger = Depends(get_request_log),
):
    cancel = asyncio.Event()
    watcher = asyncio.create_task(_watch_disconnect(request, cancel))
    try:
        stats = await container_service.get_stats(name, log, cancel=cancel)
    finally:
        watcher.cancel()
    return StatsResponse.from_stats(stats)
