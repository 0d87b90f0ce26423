"""Per-storefront health monitoring for silent extraction failures."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
import json
import time
from pathlib import Path
from typing import Any

from quickscout.extractors.schemas import Platform


class HealthState(str, Enum):
    """Overall scraper health classification."""

    HEALTHY = "healthy"
    SUSPECT = "suspect"
    BLOCKED = "blocked"


@dataclass
class HealthMonitor:
    """Tracks per-platform empty/failed streaks and logs structured health events.

    Aggregate results never say which storefront failed, so this JSON-lines log
    is where that shows up.
    """

    run_id: str
    log_path: Path
    zero_threshold: tuple[int, int] = (3, 6)
    error_threshold: tuple[int, int] = (2, 4)
    state: HealthState = field(init=False, default=HealthState.HEALTHY)

    def __post_init__(self) -> None:
        self.zero_streaks: Counter[Platform] = Counter()
        self.error_streaks: Counter[Platform] = Counter()
        self.log_path.parent.mkdir(parents=True, exist_ok=True)

    def _log(self, event_type: str, message: str, **details: Any) -> None:
        entry = {
            "ts": time.time(),
            "run_id": self.run_id,
            "state": self.state.value,
            "event": event_type,
            "message": message,
            "details": details,
        }
        with self.log_path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(entry, ensure_ascii=False) + "\n")

    def _evaluate_state(self) -> None:
        prev = self.state
        worst_zero = max(self.zero_streaks.values(), default=0)
        worst_error = max(self.error_streaks.values(), default=0)
        if worst_zero >= self.zero_threshold[1] or worst_error >= self.error_threshold[1]:
            self.state = HealthState.BLOCKED
        elif worst_zero >= self.zero_threshold[0] or worst_error >= self.error_threshold[0]:
            self.state = HealthState.SUSPECT
        else:
            self.state = HealthState.HEALTHY

        if self.state != prev:
            self._log(
                "state_change",
                f"{prev.value} -> {self.state.value}",
                zero_streaks={platform.value: count for platform, count in self.zero_streaks.items()},
                error_streaks={platform.value: count for platform, count in self.error_streaks.items()},
            )

    def record_platform(self, platform: Platform, *, count: int, error: str | None = None) -> None:
        """Record one storefront outcome from an aggregate search."""

        if error is not None:
            self.error_streaks[platform] += 1
            self._log(
                "storefront_error",
                error,
                platform=platform.value,
                error_streak=self.error_streaks[platform],
            )
        elif count == 0:
            self.error_streaks[platform] = 0
            self.zero_streaks[platform] += 1
            self._log(
                "zero_items",
                f"No items returned by {platform.label}",
                platform=platform.value,
                zero_streak=self.zero_streaks[platform],
            )
        else:
            recovered = self.zero_streaks[platform] or self.error_streaks[platform]
            self.zero_streaks[platform] = 0
            self.error_streaks[platform] = 0
            if recovered:
                self._log("recovered", f"{platform.label} recovered", platform=platform.value, items=count)
        self._evaluate_state()

    def record_location(self, platform: Platform, *, ok: bool) -> None:
        if not ok:
            self._log("location_failed", f"Location not set on {platform.label}", platform=platform.value)

    def platform_state(self, platform: Platform) -> HealthState:
        zero = self.zero_streaks[platform]
        errors = self.error_streaks[platform]
        if zero >= self.zero_threshold[1] or errors >= self.error_threshold[1]:
            return HealthState.BLOCKED
        if zero >= self.zero_threshold[0] or errors >= self.error_threshold[0]:
            return HealthState.SUSPECT
        return HealthState.HEALTHY
