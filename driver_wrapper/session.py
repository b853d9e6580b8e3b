"""
================================================================================
Driver Wrapper
================================================================================

Session-level wrapper around a Playwright Page.

Provides:
    - Navigation relative to a base URL, with a two-phase load wait
    - Element lookup that honours custom-lookup locators
    - Wrapping of every located element (see web_element.py)
    - Deferred element finders via `element(...)`, `s(...)`, `ss(...)`
    - Explicit forwarding of the page capabilities callers need

Usage:
    >>> wrapper = DriverWrapper(page, base_url="http://localhost:3000/app/")
    >>> await wrapper.get("/login")
    >>> await wrapper.element(by.id("username")).send_keys("demo_user")
    >>> assert await wrapper.element.all(by.css("li")).count() == 4

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Set, Union
from urllib.parse import urljoin

import allure
from loguru import logger
from playwright.async_api import ElementHandle, Page

from .element_finder import ElementArrayFinder, ElementFinder, ElementHelper
from .locators import AnyLocator, CustomLocator, ElementNotFoundError, by, to_selector
from .wait_helpers import Predicate, WaitConfig, wait_until
from .web_element import WebElementWrapper

if TYPE_CHECKING:
    from .browser_manager import BrowserManager, RemoteServer


# Prefixed to window.name before navigating away from the blank page
DEFER_LABEL = "APP_DEFER_BOOTSTRAP!"

BLANK_PAGE = "about:blank"

PAGE_LOAD_TIMEOUT_MESSAGE = "Timed out waiting for page to load"

_DEFER_SCRIPT = """([label, destination]) => {
    window.name = label + window.name;
    window.location.assign(destination);
}"""


class DriverWrapper:
    """
    Wraps a Playwright Page with deferred lookups and element wrapping.

    Attributes:
        driver: The raw Playwright Page
        base_url: All `get` calls resolve against this URL
        ignore_synchronization: Skip the blank-page load wait in `get`
        server: Remote server handle stopped by `quit`, if any
    """

    def __init__(
        self,
        driver: Page,
        base_url: str = "",
        server: Optional["RemoteServer"] = None,
        browser_manager: Optional["BrowserManager"] = None,
        ignore_synchronization: bool = False,
        page_load_timeout: float = 10,
        wait_config: Optional[WaitConfig] = None,
    ):
        """
        Args:
            driver: Playwright Page to wrap
            base_url: Base URL for relative navigation
            server: Remote server started for this session
            browser_manager: Owner of the browser, closed on quit
            ignore_synchronization: Navigate directly without the load wait
            page_load_timeout: Default `get` timeout in seconds
            wait_config: Polling settings for `get` and `wait`
        """
        self.driver = driver
        self.base_url = base_url or ""
        self.server = server
        self.browser_manager = browser_manager
        self.ignore_synchronization = ignore_synchronization
        self.page_load_timeout = page_load_timeout
        self.wait_config = wait_config or WaitConfig()

        # Callback tasks scheduled by ElementArrayFinder.each
        self._pending_tasks: Set[asyncio.Task] = set()

    # =========================================================================
    # Navigation
    # =========================================================================

    async def get(self, destination: str, timeout: Optional[float] = None) -> None:
        """
        Navigate to `destination`, resolved against `base_url`.

        Relative URLs resolve the way anchor hrefs do. Unless
        `ignore_synchronization` is set, the page first goes to about:blank,
        tags window.name, assigns the real location from script and then
        waits until the URL has changed.

        Args:
            destination: Absolute or relative URL
            timeout: Load wait timeout in seconds, `page_load_timeout`
                (10 unless configured) when omitted

        Raises:
            WaitTimeoutError: If the page is still blank after `timeout`
        """
        destination = urljoin(self.base_url, destination)
        if timeout is None:
            timeout = self.page_load_timeout

        with allure.step(f"Navigate to {destination}"):
            if self.ignore_synchronization:
                logger.debug(f"Navigating without synchronization: {destination}")
                await self.driver.goto(destination)
                return

            await self.driver.goto(BLANK_PAGE)
            await self.driver.evaluate(_DEFER_SCRIPT, [DEFER_LABEL, destination])

            async def left_blank_page() -> bool:
                return await self.get_current_url() != BLANK_PAGE

            await self.wait(
                left_blank_page,
                timeout * 1000,
                PAGE_LOAD_TIMEOUT_MESSAGE,
            )
            logger.debug(f"Navigated to: {destination}")

    async def wait(
        self,
        condition: Predicate,
        timeout_ms: float,
        message: str = "Timed out waiting for condition",
    ) -> Any:
        """
        Poll `condition` until truthy.

        Raises:
            WaitTimeoutError: Carrying `message` when `timeout_ms` elapses
        """
        return await wait_until(
            condition,
            timeout_ms=timeout_ms,
            message=message,
            config=self.wait_config,
        )

    # =========================================================================
    # Element Lookup
    # =========================================================================

    async def find_raw_elements(
        self,
        locator: AnyLocator,
        using: Optional[ElementHandle] = None,
    ) -> List[ElementHandle]:
        """
        Resolve `locator` to raw handles, scoped to `using` when given.

        Custom locators are resolved by their override, which receives the
        raw page and the scope (None for session-wide lookups).
        """
        if isinstance(locator, CustomLocator):
            return list(await locator.find_elements_override(self.driver, using))

        root = using if using is not None else self.driver
        return await root.query_selector_all(to_selector(locator))

    async def find_raw_element(
        self,
        locator: AnyLocator,
        using: Optional[ElementHandle] = None,
    ) -> ElementHandle:
        """
        Resolve `locator` to exactly one raw handle.

        Raises:
            ElementNotFoundError: If nothing matches
        """
        if isinstance(locator, CustomLocator):
            return await self._find_elements_override_helper(using, locator)

        root = using if using is not None else self.driver
        found = await root.query_selector(to_selector(locator))
        if found is None:
            raise ElementNotFoundError(locator.message)
        return found

    async def is_raw_element_present(
        self,
        locator: AnyLocator,
        using: Optional[ElementHandle] = None,
    ) -> bool:
        if isinstance(locator, CustomLocator):
            found = await locator.find_elements_override(self.driver, using)
            return len(found) > 0

        root = using if using is not None else self.driver
        return await root.query_selector(to_selector(locator)) is not None

    async def _find_elements_override_helper(
        self,
        using: Optional[ElementHandle],
        locator: CustomLocator,
    ) -> ElementHandle:
        """
        Pick a single element from a custom lookup.

        Raises when nothing is found; warns and takes the first element when
        more than one matches.
        """
        found = await locator.find_elements_override(self.driver, using)
        if not found:
            raise ElementNotFoundError(locator.message)
        if len(found) > 1:
            logger.warning(
                f"warning: more than one element found for locator "
                f"{locator.message} - you may need to be more specific"
            )
        return found[0]

    async def find_element(self, locator: AnyLocator) -> WebElementWrapper:
        """
        Find one element on the page.

        Raises:
            ElementNotFoundError: If nothing matches
        """
        found = await self.find_raw_element(locator)
        return self.wrap_web_element(found)

    async def find_elements(self, locator: AnyLocator) -> List[WebElementWrapper]:
        """Find all elements on the page matching `locator`."""
        found = await self.find_raw_elements(locator)
        return [self.wrap_web_element(e) for e in found]

    async def is_element_present(self, locator: AnyLocator) -> bool:
        return await self.is_raw_element_present(locator)

    async def by_id(self, id_: str) -> WebElementWrapper:
        """Find one element by id through the custom-lookup protocol."""
        locator = by.id(id_)
        logger.debug(f"Looking up {locator.message}")
        return await self.find_element(locator)

    def wrap_web_element(
        self,
        element: Union[ElementHandle, WebElementWrapper],
    ) -> WebElementWrapper:
        """
        Wrap a located element.

        Wrapping an existing wrapper re-wraps its raw handle, so lookups
        never pass through more than one wrapper layer.
        """
        if isinstance(element, WebElementWrapper):
            element = element.raw
        return WebElementWrapper(self, element)

    # =========================================================================
    # Deferred Finders
    # =========================================================================

    @property
    def element(self) -> ElementHelper:
        """
        Deferred finder factory.

        Usage:
            >>> name = wrapper.element(by.id("container")).element(by.name("name"))
            >>> items = wrapper.element.all(by.css("li"))
        """
        return ElementHelper(self)

    def s(self, selector: str) -> ElementFinder:
        """Deferred finder for a css selector."""
        return self.element(by.css(selector))

    def ss(self, selector: str) -> ElementArrayFinder:
        """Deferred collection finder for a css selector."""
        return self.element.all(by.css(selector))

    def track_task(self, task: asyncio.Task) -> None:
        """Keep a fire-and-forget task alive until it finishes."""
        self._pending_tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._pending_tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.opt(exception=error).error(f"Callback task failed: {error}")

    # =========================================================================
    # Forwarded Page Capabilities
    # =========================================================================

    async def get_current_url(self) -> str:
        return self.driver.url

    async def get_title(self) -> str:
        return await self.driver.title()

    async def get_page_source(self) -> str:
        return await self.driver.content()

    async def execute_script(self, script: str, arg: Any = None) -> Any:
        return await self.driver.evaluate(script, arg)

    async def set_window_size(self, width: int, height: int) -> None:
        await self.driver.set_viewport_size({"width": width, "height": height})

    async def get_window_size(self) -> Optional[Dict[str, int]]:
        return self.driver.viewport_size

    async def take_screenshot(self, **kwargs: Any) -> bytes:
        return await self.driver.screenshot(**kwargs)

    async def refresh(self) -> None:
        await self.driver.reload()

    async def back(self) -> None:
        await self.driver.go_back()

    async def forward(self) -> None:
        await self.driver.go_forward()

    async def close(self) -> None:
        await self.driver.close()

    async def quit(self) -> None:
        """Close the page and the browser that owns it."""
        try:
            await self.close()
        finally:
            if self.browser_manager is not None:
                await self.browser_manager.close()


__all__ = [
    "BLANK_PAGE",
    "DEFER_LABEL",
    "DriverWrapper",
    "PAGE_LOAD_TIMEOUT_MESSAGE",
]
