from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class CpuCounters:
    total_usage: int = 0
    system_usage: int = 0
    online_cpus: int = 0
    percpu_usage: List[int] = field(default_factory=list)

    @classmethod
    def from_engine(cls, raw: Optional[Dict[str, Any]]) -> Optional["CpuCounters"]:
        if not raw or not raw.get("cpu_usage"):
            return None
        usage = raw["cpu_usage"]
        return cls(
            total_usage=usage.get("total_usage") or 0,
            system_usage=raw.get("system_cpu_usage") or 0,
            online_cpus=raw.get("online_cpus") or 0,
            percpu_usage=usage.get("percpu_usage") or [],
        )


@dataclass(frozen=True)
class StatsSnapshot:
    current: Optional[CpuCounters]
    previous: Optional[CpuCounters]
    memory_usage: int = 0

    @classmethod
    def from_engine(cls, raw: Dict[str, Any]) -> "StatsSnapshot":
        """Build from a single ``stream=False`` stats sample."""
        return cls(
            current=CpuCounters.from_engine(raw.get("cpu_stats")),
            previous=CpuCounters.from_engine(raw.get("precpu_stats")),
            memory_usage=(raw.get("memory_stats") or {}).get("usage") or 0,
        )


def calculate_cpu_percent(snapshot: StatsSnapshot) -> float:
    current, previous = snapshot.current, snapshot.previous
    if current is None or previous is None:
        return 0.0

    cpu_delta = current.total_usage - previous.total_usage
    system_delta = current.system_usage - previous.system_usage
    if cpu_delta <= 0 or system_delta <= 0:
        return 0.0

    online_cpus = current.online_cpus or len(current.percpu_usage) or 1
    return round(cpu_delta / system_delta * online_cpus * 100.0, 3)


def calculate_memory_mb(usage_bytes: int) -> float:
    return round(usage_bytes / 1_000_000, 3)


@dataclass(frozen=True)
class ContainerStats:
    cpu_percent: float
    memory_mb: float
    status: str

    @classmethod
    def from_snapshot(cls, snapshot: StatsSnapshot, status: str) -> "ContainerStats":
        return cls(
            cpu_percent=calculate_cpu_percent(snapshot),
            memory_mb=calculate_memory_mb(snapshot.memory_usage),
            status=status,
        )
