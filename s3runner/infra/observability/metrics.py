from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from prometheus_client import CollectorRegistry, Counter, Histogram, write_to_textfile


# 每次运行使用独立注册表，通过 textfile collector 上报
@dataclass
class RunMetrics:
    registry: CollectorRegistry = field(default_factory=CollectorRegistry)

    def __post_init__(self) -> None:
        self.operations = Counter(
            "storage_operations_total",
            "Storage operations by outcome",
            ["operation", "outcome"],
            registry=self.registry,
        )
        self.latency = Histogram(
            "storage_operation_duration_seconds",
            "Storage operation latency in seconds",
            ["operation"],
            registry=self.registry,
        )
        self.bytes_transferred = Counter(
            "storage_bytes_transferred_total",
            "Bytes moved between the local filesystem and the backend",
            ["direction"],
            registry=self.registry,
        )

    def observe(self, operation: str, *, ok: bool, elapsed: float) -> None:
        outcome = "success" if ok else "error"
        self.operations.labels(operation, outcome).inc()
        self.latency.labels(operation).observe(elapsed)

    def add_bytes(self, direction: str, amount: int) -> None:
        if amount > 0:
            self.bytes_transferred.labels(direction).inc(amount)

    def sample(self, name: str, labels: dict[str, str]) -> float | None:
        return self.registry.get_sample_value(name, labels)

    def write_textfile(self, path: str | Path) -> Path:
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        write_to_textfile(str(target), self.registry)
        return target
