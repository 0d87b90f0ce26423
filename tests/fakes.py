"""Small stand-ins for Playwright browser, context, page and locator objects."""

from __future__ import annotations

import asyncio
from typing import Any

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError


class FakeLocator:
    def __init__(self, page: "FakePage", selector: str) -> None:
        self.page = page
        self.selector = selector

    @property
    def first(self) -> "FakeLocator":
        return self

    async def wait_for(self, state: str = "visible", timeout: int | None = None) -> None:
        if self.selector not in self.page.visible:
            raise PlaywrightTimeoutError(f"waiting for {self.selector} timed out")

    async def is_visible(self) -> bool:
        return self.selector in self.page.visible

    async def click(self) -> None:
        self.page.clicks.append(self.selector)
        self.page.visible.update(self.page.reveals.get(self.selector, ()))

    async def fill(self, value: str) -> None:
        self.page.typed[self.selector] = value

    async def press_sequentially(self, text: str, delay: int | None = None) -> None:
        self.page.typed[self.selector] = self.page.typed.get(self.selector, "") + text


class FakePage:
    """Page whose DOM is a set of visible selectors plus canned snapshots."""

    def __init__(
        self,
        *,
        url: str = "about:blank",
        visible: set[str] | None = None,
        reveals: dict[str, tuple[str, ...]] | None = None,
        body_text: str = "",
        snapshots: dict[str, list[dict[str, Any]]] | None = None,
        goto_error: Exception | None = None,
    ) -> None:
        self.url = url
        self.visible = set(visible or ())
        self.reveals = reveals or {}
        self.body_text = body_text
        self.snapshots = snapshots or {}
        self.goto_error = goto_error
        self.hang_goto = False
        self.clicks: list[str] = []
        self.typed: dict[str, str] = {}
        self.visited: list[str] = []
        self.evaluated: list[dict[str, Any]] = []

    def locator(self, selector: str) -> FakeLocator:
        return FakeLocator(self, selector)

    async def goto(self, url: str, wait_until: str | None = None, timeout: int | None = None) -> None:
        self.visited.append(url)
        if self.hang_goto:
            await asyncio.sleep(30)
        if self.goto_error is not None:
            raise self.goto_error
        self.url = url

    async def wait_for_load_state(self, state: str = "load", timeout: int | None = None) -> None:
        return None

    async def wait_for_selector(self, selector: str, timeout: int | None = None) -> None:
        if not any(key != "generic" for key in self.snapshots):
            raise PlaywrightTimeoutError("no cards")

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        if arg is None:
            return self.body_text
        self.evaluated.append(arg)
        key = arg.get("cardSelector") if arg.get("mode") == "cards" else "generic"
        result = self.snapshots.get(key, [])
        if isinstance(result, Exception):
            raise result
        return result


class FakeContext:
    def __init__(self, browser: "FakeBrowser", kwargs: dict[str, Any]) -> None:
        self.browser = browser
        self.kwargs = kwargs
        self.init_scripts: list[str] = []
        self.closed = False

    async def add_init_script(self, script: str) -> None:
        self.init_scripts.append(script)

    async def new_page(self) -> FakePage:
        if self.browser.fail_new_page:
            raise PlaywrightError("Target page, context or browser has been closed")
        page = FakePage()
        self.browser.pages.append(page)
        return page

    async def close(self) -> None:
        self.closed = True


class FakeBrowser:
    def __init__(self, *, fail_new_context: bool = False, fail_new_page: bool = False) -> None:
        self.fail_new_context = fail_new_context
        self.fail_new_page = fail_new_page
        self.contexts: list[FakeContext] = []
        self.pages: list[FakePage] = []
        self.close_calls = 0

    async def new_context(self, **kwargs: Any) -> FakeContext:
        if self.fail_new_context:
            raise PlaywrightError("browser has disconnected")
        context = FakeContext(self, kwargs)
        self.contexts.append(context)
        return context

    async def close(self) -> None:
        self.close_calls += 1


class CountingLauncher:
    """Async launcher that yields once so concurrent callers interleave."""

    def __init__(self) -> None:
        self.browsers: list[FakeBrowser] = []

    async def __call__(self) -> FakeBrowser:
        await asyncio.sleep(0)
        browser = FakeBrowser()
        self.browsers.append(browser)
        return browser
