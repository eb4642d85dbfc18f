import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from docker_api.api import containers
from docker_api.core.config import get_settings
from docker_api.core.errors import ContainerApiError, ValidationError
from docker_api.core.log import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(get_settings().LOG_LEVEL)
    logger.info("[STARTUP] Docker control plane ready")
    yield
    logger.info("[SHUTDOWN] Docker control plane stopped")


app = FastAPI(title="Docker API – Container Control Plane", lifespan=lifespan)

app.include_router(containers.router)


# ---------- Error mapping ----------

@app.exception_handler(ContainerApiError)
async def container_api_error_handler(request: Request, exc: ContainerApiError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


def _describe_validation_errors(exc: RequestValidationError) -> str:
    problems = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        problems.append(f"{field or 'body'}: {error.get('msg')}")
    return "; ".join(problems)


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    # malformed bodies get the same 400 shape as service-level validation
    error = ValidationError(f"Invalid request: {_describe_validation_errors(exc)}")
    logger.warning(f"BadRequest on {request.method} {request.url.path}: {error.message}")
    return JSONResponse(status_code=error.status_code, content=error.to_body())


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"error": "Internal Server Error", "detail": str(exc)},
    )


@app.get("/health", tags=["health"])
async def health():
    return {"status": "ok", "service": "docker-api"}
