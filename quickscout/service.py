"""Caller-facing operations: init/set-location/search/close per session."""

from __future__ import annotations

import asyncio
from typing import Iterable

from quickscout.aggregator import Aggregator, SearchResult
from quickscout.browser.session import Session, SessionRegistry
from quickscout.extractors.schemas import Platform
from quickscout.health import HealthMonitor
from quickscout.location import run_location_steps
from quickscout.logging_config import get_logger
from quickscout.storefronts.base import Storefront, search_storefront
from quickscout.storefronts.catalog import resolve_storefronts

LOGGER = get_logger(__name__)


class ScoutService:
    """Binds the session registry, storefront procedures and the aggregator."""

    def __init__(
        self,
        registry: SessionRegistry | None = None,
        aggregator: Aggregator | None = None,
        storefronts: Iterable[Storefront] | None = None,
        monitor: HealthMonitor | None = None,
    ) -> None:
        self.storefronts = list(storefronts) if storefronts is not None else resolve_storefronts()
        if registry is None:
            registry = SessionRegistry(
                platforms=[storefront.platform for storefront in self.storefronts]
            )
        self.registry = registry
        self.aggregator = aggregator if aggregator is not None else Aggregator(monitor=monitor)
        self.monitor = monitor

    async def init_session(self, session_id: str) -> Session:
        return await self.registry.init_session(session_id)

    async def _bind(self, session: Session, storefront: Storefront, location: str) -> bool:
        page = await self.registry.get_page(session.id, storefront.platform)
        ok = await run_location_steps(
            session.location_state,
            storefront.platform,
            storefront.location_steps(),
            page,
            location,
            session_id=session.id,
        )
        if self.monitor is not None:
            self.monitor.record_location(storefront.platform, ok=ok)
        return ok

    async def set_location(self, session_id: str, location: str) -> dict[Platform, bool]:
        """Bind every storefront page of the session to *location*, concurrently."""

        session = await self.registry.init_session(session_id)
        location = location.strip()
        if session.location != location:
            session.reset_location(location)

        async def bind_all() -> list[bool]:
            return await asyncio.gather(
                *(self._bind(session, storefront, location) for storefront in self.storefronts)
            )

        outcomes = await session.guard(bind_all())
        return {
            storefront.platform: ok
            for storefront, ok in zip(self.storefronts, outcomes)
        }

    def _source(self, session: Session, storefront: Storefront, query: str):
        async def run() -> list:
            page = await self.registry.get_page(session.id, storefront.platform)
            return await search_storefront(page, storefront, query)

        return run

    async def search(self, session_id: str, query: str) -> SearchResult:
        """Search every storefront of the session and diff against the last run."""

        session = await self.registry.init_session(session_id)
        query = query.strip()
        key = (session.location or session.id, query.lower())
        sources = {
            storefront.platform: self._source(session, storefront, query)
            for storefront in self.storefronts
        }
        LOGGER.info("Searching %r", query, extra={"session": session_id})
        return await session.guard(self.aggregator.search(key, sources))

    async def close_session(self, session_id: str) -> None:
        await self.registry.close_session(session_id)

    async def shutdown(self) -> None:
        await self.registry.close_all()

