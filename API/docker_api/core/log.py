# docker_api/core/log.py
import logging
from typing import Optional
from uuid import uuid4

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level.upper(),
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler()],
    )


class RequestLogger(logging.LoggerAdapter):
    """Prefixes every record with the request id and the target container."""

    def process(self, msg, kwargs):
        return f"[req={self.extra['request_id']} container={self.extra['container']}] {msg}", kwargs


def request_logger(
    logger: logging.Logger,
    container: str,
    request_id: Optional[str] = None,
) -> RequestLogger:
    return RequestLogger(
        logger,
        {"request_id": request_id or uuid4().hex[:12], "container": container},
    )
