import logging
from typing import Callable, Dict, Optional

from docker_api.core.config import RegistryLogin, Settings
from docker_api.domain.image import ImageReference
from docker_api.domain.registry import RegistryCredentials

logger = logging.getLogger(__name__)


class RegistryAuthResolver:
    """
    Picks pull credentials by registry host.

    The host -> login table is read from settings on every call. The
    default provider builds a fresh `Settings`, so credentials rotated in
    the environment or `.env` are picked up on the next pull.
    """

    def __init__(self, settings_provider: Callable[[], Settings] = Settings):
        self._settings_provider = settings_provider

    def _logins(self) -> Dict[str, RegistryLogin]:
        return self._settings_provider().registry_logins()

    def resolve(self, reference: ImageReference, log=None) -> Optional[RegistryCredentials]:
        log = log or logger
        host = reference.registry_host
        login = self._logins().get(host)
        if login is None:
            return None

        if not login.username:
            log.warning(f"No username configured for registry {host}, pulling anonymously")
            return None

        return RegistryCredentials(
            server_address=host,
            username=login.username,
            password=login.password or "",
        )
