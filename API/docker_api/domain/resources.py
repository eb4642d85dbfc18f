import math
from dataclasses import dataclass
from typing import Dict, Optional, Protocol

from docker_api.core.errors import EngineError, ValidationError

CPU_PERIOD_US = 100_000
NANO_CPUS_PER_CORE = 1_000_000_000


@dataclass(frozen=True)
class ResourceQuota:
    """Engine-native CPU limit. Either quota/period or nano_cpus is set, never both."""

    cpu_quota: Optional[int] = None
    cpu_period: Optional[int] = None
    nano_cpus: Optional[int] = None

    def to_update_body(self) -> Dict[str, int]:
        """Fields for the engine's container update endpoint."""
        if self.nano_cpus is not None:
            return {"NanoCpus": self.nano_cpus}
        return {"CpuPeriod": self.cpu_period, "CpuQuota": self.cpu_quota}


def validate_cpu_percent(percent: float) -> float:
    if percent is None or math.isnan(percent) or percent <= 0 or percent > 1:
        raise ValidationError(
            "CpuLimitPercent must be a decimal value greater than 0 and less than "
            "or equal to 1 (e.g., 0.5 for 50%)."
        )
    return float(percent)


def cores_to_use(total_cores: int, percent: float) -> float:
    percent = validate_cpu_percent(percent)
    if not total_cores or total_cores <= 0:
        raise EngineError(f"Engine reported an unusable host CPU count: {total_cores!r}")
    return total_cores * percent


class CpuLimitEncoding(Protocol):
    name: str

    def translate(self, total_cores: int, percent: float) -> ResourceQuota:
        """Convert a fraction of all host CPUs into an engine quota."""
        ...


class QuotaPeriodEncoding:
    name = "quota"

    def __init__(self, period: int = CPU_PERIOD_US):
        self.period = period

    def translate(self, total_cores: int, percent: float) -> ResourceQuota:
        cores = cores_to_use(total_cores, percent)
        return ResourceQuota(cpu_quota=round(cores * self.period), cpu_period=self.period)


class NanoCpuEncoding:
    # Avoids the engine's "conflicting options" error when a container was
    # started with --cpus.
    name = "nanocpus"

    def translate(self, total_cores: int, percent: float) -> ResourceQuota:
        cores = cores_to_use(total_cores, percent)
        return ResourceQuota(nano_cpus=round(cores * NANO_CPUS_PER_CORE))


ENCODINGS = {
    QuotaPeriodEncoding.name: QuotaPeriodEncoding,
    NanoCpuEncoding.name: NanoCpuEncoding,
}


def get_cpu_encoding(name: str) -> CpuLimitEncoding:
    try:
        return ENCODINGS[name]()
    except KeyError:
        raise ValueError(f"Unknown CPU limit encoding '{name}'") from None
