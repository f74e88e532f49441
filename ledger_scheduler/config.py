from __future__ import annotations

import json
import random
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping, Optional

from .clock import SimulationClock
from .ledger import Ledger
from .metrics import MetricsTracker
from .notifications import NotificationChannel, Notifier
from .process_table import ProcessTable


@dataclass(frozen=True)
class SimulationConfig:
    max_accounts: int = 10
    max_processes: int = 100
    quantum: int = 2
    min_execution_time: int = 1
    max_execution_time: int = 5
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        for name in ("max_accounts", "max_processes", "quantum", "min_execution_time"):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be at least 1")
        if self.max_execution_time < self.min_execution_time:
            raise ValueError("max_execution_time must not be below min_execution_time")

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "SimulationConfig":
        known = {f.name for f in fields(cls)}
        unknown = set(mapping) - known
        if unknown:
            raise ValueError(f"Unknown config keys: {', '.join(sorted(unknown))}")

        values: dict[str, Any] = {}
        for key, raw in mapping.items():
            if key == "seed" and raw is None:
                values[key] = None
                continue
            try:
                values[key] = int(raw)
            except (TypeError, ValueError) as exc:
                raise ValueError(f"Config value for {key!r} must be an integer, got {raw!r}") from exc
        return cls(**values)

    def with_overrides(self, **overrides: Any) -> "SimulationConfig":
        """Return a copy with every override that is not None applied."""
        given = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **given) if given else self

    def to_dict(self) -> dict:
        return asdict(self)


def load_config(path: str | Path) -> SimulationConfig:
    """
    Load a SimulationConfig from a JSON object file.
    """
    path = Path(path)
    with path.open("r", encoding="utf-8") as f:
        raw = json.load(f)

    if not isinstance(raw, dict):
        raise ValueError("JSON config must be an object")

    return SimulationConfig.from_mapping(raw)


def build_coordinator(config: SimulationConfig, channel: Optional[NotificationChannel] = None):
    """
    Wire a ledger, process table, metrics tracker and clock into a
    TransactionCoordinator.
    """
    from .coordinator import TransactionCoordinator

    notifier = Notifier(channel)
    ledger = Ledger(capacity=config.max_accounts, notifier=notifier)
    return TransactionCoordinator(
        ledger=ledger,
        process_table=ProcessTable(capacity=config.max_processes),
        tracker=MetricsTracker(capacity=config.max_processes),
        clock=SimulationClock(lock=ledger.lock),
        notifier=notifier,
        rng=random.Random(config.seed),
        min_execution_time=config.min_execution_time,
        max_execution_time=config.max_execution_time,
        quantum=config.quantum,
    )
