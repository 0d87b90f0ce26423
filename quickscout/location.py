"""Best-effort delivery-location state machine shared by every storefront."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, MutableMapping, Sequence

from quickscout.errors import SessionClosed
from quickscout.extractors.schemas import Platform
from quickscout.logging_config import get_logger

LOGGER = get_logger(__name__)


class LocationState(str, Enum):
    """Lifecycle of a storefront's delivery location within one session."""

    UNSET = "unset"
    ATTEMPTING = "attempting"
    SET = "set"
    FAILED = "failed"


@dataclass(frozen=True)
class StepResult:
    """Outcome of one location UI step."""

    ok: bool
    detail: str = ""
    # The storefront already shows a bound location; remaining steps are skipped.
    bound: bool = False

    @classmethod
    def success(cls, detail: str = "") -> "StepResult":
        return cls(ok=True, detail=detail)

    @classmethod
    def failure(cls, detail: str) -> "StepResult":
        return cls(ok=False, detail=detail)

    @classmethod
    def already_bound(cls, detail: str = "location already bound") -> "StepResult":
        return cls(ok=True, detail=detail, bound=True)


LocationStep = Callable[[Any, str], Awaitable[StepResult]]


async def run_location_steps(
    states: MutableMapping[Platform, LocationState],
    platform: Platform,
    steps: Sequence[tuple[str, LocationStep]],
    page: Any,
    location: str,
    *,
    session_id: str | None = None,
) -> bool:
    """Drive *steps* in order and record the resulting state for *platform*.

    ``Set`` is terminal, so a second call is a no-op returning True.  ``Failed``
    is retried from ``Attempting``.  Never raises for storefront failures; only a
    torn-down session propagates.
    """

    extra = {"platform": platform.value, "session": session_id}
    if states.get(platform) is LocationState.SET:
        LOGGER.debug("Location already set; skipping", extra=extra)
        return True

    states[platform] = LocationState.ATTEMPTING
    LOGGER.info("Setting location to %r", location, extra=extra)

    for name, step in steps:
        try:
            result = await step(page, location)
        except SessionClosed:
            raise
        except Exception as exc:
            result = StepResult.failure(f"{type(exc).__name__}: {exc}")

        if not result.ok:
            states[platform] = LocationState.FAILED
            LOGGER.warning(
                "Location step %s failed: %s",
                name,
                result.detail,
                extra=extra,
            )
            return False

        LOGGER.debug("Location step %s ok %s", name, result.detail, extra=extra)
        if result.bound:
            break

    states[platform] = LocationState.SET
    LOGGER.info("Location set to %r", location, extra=extra)
    return True
