"""Session registry: one browser process per session, one page per storefront."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Iterable, TypeVar

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import async_playwright

from quickscout.browser.stealth import create_stealth_page
from quickscout.errors import ResourceExhausted, SessionClosed
from quickscout.extractors.schemas import Platform
from quickscout.location import LocationState
from quickscout.logging_config import get_logger
from quickscout.playwright_env import launch_kwargs

LOGGER = get_logger(__name__)

T = TypeVar("T")

BrowserLauncherFn = Callable[[], Awaitable[Any]]
PageFactory = Callable[[Any], Awaitable[Any]]


class BrowserLauncher:
    """Start Playwright lazily and launch one Chromium process per call."""

    def __init__(self) -> None:
        self._playwright: Any | None = None
        self._lock = asyncio.Lock()

    async def launch(self) -> Any:
        async with self._lock:
            if self._playwright is None:
                try:
                    self._playwright = await async_playwright().start()
                except PlaywrightError as exc:
                    raise ResourceExhausted(f"Unable to start Playwright: {exc}") from exc
        try:
            return await self._playwright.chromium.launch(**launch_kwargs())
        except PlaywrightError as exc:
            raise ResourceExhausted(f"Unable to launch browser: {exc}") from exc

    async def stop(self) -> None:
        async with self._lock:
            if self._playwright is None:
                return
            try:
                await self._playwright.stop()
            except PlaywrightError as exc:
                LOGGER.warning("Failed to stop Playwright: %s", exc)
            self._playwright = None


async def close_browser(browser: Any | None, *, session_id: str | None = None) -> None:
    """Close *browser* without raising; its pages and contexts go with it."""

    if browser is None:
        return
    try:
        await browser.close()
    except PlaywrightError as exc:
        LOGGER.warning("Failed to close browser: %s", exc, extra={"session": session_id})


@dataclass
class Session:
    """A browser process plus its per-storefront pages and location state."""

    id: str
    browser: Any
    pages: dict[Platform, Any] = field(default_factory=dict)
    location_state: dict[Platform, LocationState] = field(default_factory=dict)
    location: str | None = None
    closed: bool = False
    page_lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)
    _tasks: set[asyncio.Future] = field(default_factory=set, repr=False)

    def reset_location(self, location: str | None) -> None:
        self.location = location
        for platform in list(self.location_state):
            self.location_state[platform] = LocationState.UNSET

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Await *awaitable* as work scoped to this session.

        Closing the session cancels every guarded operation, which then fails
        with ``SessionClosed`` instead of hanging on a dead browser.
        """

        if self.closed:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise SessionClosed(session_id=self.id)

        task = asyncio.ensure_future(awaitable)
        self._tasks.add(task)
        try:
            return await task
        except asyncio.CancelledError:
            if self.closed and task.cancelled():
                raise SessionClosed(session_id=self.id) from None
            raise
        except PlaywrightError as exc:
            if self.closed:
                raise SessionClosed(session_id=self.id) from exc
            raise
        finally:
            self._tasks.discard(task)

    def cancel_pending(self) -> int:
        pending = [task for task in self._tasks if not task.done()]
        for task in pending:
            task.cancel()
        return len(pending)


class SessionRegistry:
    """Maps opaque session ids to sessions; owns browser launch and teardown.

    Inserting and removing sessions is serialised by one lock.  Page creation is
    serialised per session, so different sessions never contend.  Ids that were
    closed stay closed: any later call with them raises ``SessionClosed``.
    """

    def __init__(
        self,
        launcher: BrowserLauncherFn | None = None,
        page_factory: PageFactory = create_stealth_page,
        platforms: Iterable[Platform] = tuple(Platform),
    ) -> None:
        self._owned_launcher = BrowserLauncher() if launcher is None else None
        self._launch = launcher or self._owned_launcher.launch
        self._page_factory = page_factory
        self._platforms = tuple(platforms)
        self._sessions: dict[str, Session] = {}
        # Tombstones are kept for the process lifetime, one id string per closed session.
        self._closed_ids: set[str] = set()
        self._lock = asyncio.Lock()

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    async def init_session(self, session_id: str) -> Session:
        session = self._sessions.get(session_id)
        if session is not None:
            return session

        async with self._lock:
            if session_id in self._closed_ids:
                raise SessionClosed(session_id=session_id)
            session = self._sessions.get(session_id)
            if session is None:
                browser = await self._launch()
                session = Session(
                    id=session_id,
                    browser=browser,
                    location_state={platform: LocationState.UNSET for platform in self._platforms},
                )
                self._sessions[session_id] = session
                LOGGER.info("Initialized session", extra={"session": session_id})
        return session

    async def get_page(self, session_id: str, platform: Platform | str) -> Any:
        """Return the session's page for *platform*, creating it on first use."""

        session = await self.init_session(session_id)
        platform = Platform.parse(platform)
        async with session.page_lock:
            if session.closed:
                raise SessionClosed(session_id=session_id, platform=platform.value)
            page = session.pages.get(platform)
            if page is None:
                page = await session.guard(self._page_factory(session.browser))
                session.pages[platform] = page
                session.location_state.setdefault(platform, LocationState.UNSET)
                LOGGER.info(
                    "Opened storefront page",
                    extra={"session": session_id, "platform": platform.value},
                )
        return page

    async def close_session(self, session_id: str) -> None:
        async with self._lock:
            session = self._sessions.pop(session_id, None)
            if session is None:
                return
            self._closed_ids.add(session_id)
            session.closed = True

        cancelled = session.cancel_pending()
        await close_browser(session.browser, session_id=session_id)
        session.pages.clear()
        LOGGER.info(
            "Closed session | cancelled=%d",
            cancelled,
            extra={"session": session_id},
        )

    async def close_all(self) -> None:
        for session_id in list(self._sessions):
            await self.close_session(session_id)
        if self._owned_launcher is not None:
            await self._owned_launcher.stop()
