from functools import lru_cache
from typing import Dict, Literal, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RegistryLogin(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


class Settings(BaseSettings):
    DOCKER_BASE_URL: Optional[str] = Field(
        default=None,
        description="Docker engine endpoint; picked from the host platform when unset",
    )

    # GitHub Container Registry credentials
    GHCR_SERVER: str = "ghcr.io"
    GHCR_USERNAME: Optional[str] = None
    GHCR_PASSWORD: Optional[str] = None

    REGISTRY_AUTH: Dict[str, RegistryLogin] = Field(
        default_factory=dict,
        description='Extra private registries as JSON, e.g. {"registry.example.com": {"username": "u", "password": "p"}}',
    )

    STOP_TIMEOUT_SECONDS: int = Field(
        default=10,
        ge=0,
        description="Grace period before the engine kills a container being stopped",
    )

    CPU_LIMIT_ENCODING: Literal["nanocpus", "quota"] = "nanocpus"

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    def registry_logins(self) -> Dict[str, RegistryLogin]:
        """Host -> login table used for pulls; GHCR entry first, overridable by REGISTRY_AUTH."""
        logins = {
            self.GHCR_SERVER: RegistryLogin(
                username=self.GHCR_USERNAME,
                password=self.GHCR_PASSWORD,
            )
        }
        logins.update(self.REGISTRY_AUTH)
        return logins


@lru_cache
def get_settings() -> Settings:
    return Settings()
