import logging
import time
from dataclasses import dataclass, field
from typing import Dict, Mapping, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

HEALTHY = "healthy"
UNHEALTHY = "unhealthy"


@runtime_checkable
class Pingable(Protocol):
    def ping(self) -> None:
        ...


@dataclass
class HealthReport:
    uptime: float
    timestamp: int
    services: Dict[str, str] = field(default_factory=dict)

    @property
    def healthy(self) -> bool:
        return all(status == HEALTHY for status in self.services.values())

    @property
    def message(self) -> str:
        return "OK" if self.healthy else "Service unavailable"

    def to_dict(self) -> dict:
        return {
            "uptime": self.uptime,
            "message": self.message,
            "timestamp": self.timestamp,
            "services": dict(self.services),
        }


def check_readiness(dependencies: Mapping[str, Pingable], started_at: float) -> HealthReport:
    report = HealthReport(
        uptime=round(time.monotonic() - started_at, 3),
        timestamp=int(time.time() * 1000),
    )
    for name, dependency in dependencies.items():
        try:
            dependency.ping()
            report.services[name] = HEALTHY
        except Exception as e:
            logger.error("Health check failed for %s: %s", name, e)
            report.services[name] = UNHEALTHY
    return report
