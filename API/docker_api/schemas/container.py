from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from docker_api.domain.stats import ContainerStats


class EditContainerRequest(BaseModel):
    cpu_limit_percent: Optional[float] = Field(
        None,
        alias="CpuLimitPercent",
        description="CPU limit as a fraction of all host CPUs, e.g. 0.5 for 50%",
    )

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={"example": {"CpuLimitPercent": 0.5}},
    )


class MessageResponse(BaseModel):
    message: str


class StatsResponse(BaseModel):
    cpu: str
    memory: str
    uptime: str

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"cpu": "12.5%", "memory": "48.234mb", "uptime": "Up 3 hours"}
        }
    )

    @classmethod
    def from_stats(cls, stats: ContainerStats) -> "StatsResponse":
        return cls(
            cpu=f"{stats.cpu_percent}%",
            memory=f"{stats.memory_mb}mb",
            uptime=stats.status,
        )


class ErrorResponse(BaseModel):
    error: str
    detail: str
    container: Optional[str] = None
    partial_failure: bool = False
    container_removed: Optional[bool] = None
    failed_step: Optional[str] = None
    last_completed_step: Optional[str] = None
