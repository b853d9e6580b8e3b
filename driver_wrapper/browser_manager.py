"""
================================================================================
Browser Manager
================================================================================

Browser lifecycle management.

Features:
    - Local browser launch through Playwright
    - Remote sessions through a `playwright run-server` process
    - Building a ready DriverWrapper (`get_browser`) and tearing it down (`quit`)

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional

import allure
from loguru import logger
from playwright.async_api import (
    async_playwright,
    Browser,
    BrowserContext,
    BrowserType,
    Page,
    Playwright,
)

from .config_loader import ConfigLoader
from .session import DriverWrapper
from .wait_helpers import WaitConfig, wait_until


# Browser identifier -> Playwright browser type
BROWSER_TYPES: Dict[str, str] = {
    "chrome": "chromium",
    "chromium": "chromium",
    "firefox": "firefox",
    "webkit": "webkit",
    "safari": "webkit",
}

DEFAULT_SERVER_PORT = 4444


class RemoteServer:
    """
    A `playwright run-server` child process.

    Usage:
        server = RemoteServer("playwright", port=4444)
        await server.start()
        ...connect to server.address()...
        await server.stop()
    """

    def __init__(
        self,
        path: str = "playwright",
        port: int = DEFAULT_SERVER_PORT,
        host: str = "127.0.0.1",
        start_timeout: float = 30.0,
    ):
        """
        Args:
            path: Server executable (the Playwright CLI)
            port: Port the server listens on
            host: Interface the server binds to
            start_timeout: Seconds to wait for the port to accept connections
        """
        self.path = path
        self.port = port
        self.host = host
        self.start_timeout = start_timeout
        self._process: Optional[asyncio.subprocess.Process] = None

    def address(self) -> str:
        """WebSocket endpoint to connect browsers to."""
        return f"ws://{self.host}:{self.port}/"

    @property
    def is_running(self) -> bool:
        return self._process is not None and self._process.returncode is None

    async def start(self) -> None:
        """
        Start the server and wait until it accepts connections.

        Raises:
            WaitTimeoutError: If the port does not open in time
            RuntimeError: If the process exits during startup
        """
        self._process = await asyncio.create_subprocess_exec(
            self.path,
            "run-server",
            "--port",
            str(self.port),
            "--host",
            self.host,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.DEVNULL,
        )
        logger.debug(f"Remote server process started (pid={self._process.pid})")

        await wait_until(
            self._is_listening,
            timeout_ms=self.start_timeout * 1000,
            message=f"Timed out waiting for remote server at {self.address()}",
        )
        logger.info(f"Remote server listening at {self.address()}")

    async def _is_listening(self) -> bool:
        if self._process.returncode is not None:
            raise RuntimeError(
                f"Remote server exited with code {self._process.returncode}"
            )
        try:
            _, writer = await asyncio.open_connection(self.host, self.port)
        except OSError:
            return False
        writer.close()
        await writer.wait_closed()
        return True

    async def stop(self) -> None:
        """Terminate the server process if it is still running."""
        if not self.is_running:
            return
        self._process.terminate()
        await self._process.wait()
        logger.debug("Remote server stopped")


class BrowserManager:
    """
    Owns the Playwright instance, the browser and its contexts.

    Usage:
        async with BrowserManager("chromium") as manager:
            page = await manager.new_page()

        # Or against a remote server
        manager = BrowserManager("firefox")
        await manager.connect("ws://127.0.0.1:4444/")
    """

    # Default browser launch options
    DEFAULT_LAUNCH_OPTIONS: Dict[str, Any] = {
        "headless": True,
        "args": [],
    }

    # Default context options
    DEFAULT_CONTEXT_OPTIONS: Dict[str, Any] = {
        "viewport": {"width": 1920, "height": 1080},
        "ignore_https_errors": True,
    }

    def __init__(
        self,
        browser_type: str = "chromium",
        headless: bool = True,
    ):
        """
        Args:
            browser_type: Browser identifier - see BROWSER_TYPES
            headless: Run browser in headless mode (local launches only)
        """
        if browser_type not in BROWSER_TYPES:
            raise ValueError(f"Unsupported browser: {browser_type}")

        self.browser_type = browser_type
        self.headless = headless

        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._contexts: list[BrowserContext] = []

    async def __aenter__(self) -> "BrowserManager":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def _launcher(self) -> BrowserType:
        if self._playwright is None:
            self._playwright = await async_playwright().start()
        return getattr(self._playwright, BROWSER_TYPES[self.browser_type])

    async def start(self) -> None:
        """Start Playwright and launch a local browser."""
        launcher = await self._launcher()
        launch_options = {
            **self.DEFAULT_LAUNCH_OPTIONS,
            "headless": self.headless,
        }
        self._browser = await launcher.launch(**launch_options)
        logger.debug(
            f"Browser started: {self.browser_type} "
            f"(headless={self.headless})"
        )

    async def connect(self, ws_endpoint: str) -> None:
        """Start Playwright and connect to a browser served remotely."""
        launcher = await self._launcher()
        self._browser = await launcher.connect(ws_endpoint)
        logger.debug(f"Connected to remote {self.browser_type} at {ws_endpoint}")

    async def close(self) -> None:
        """Close all contexts, the browser and Playwright."""
        for context in self._contexts:
            try:
                await context.close()
            except Exception as e:
                logger.debug(f"Context already closed: {e}")
        self._contexts.clear()

        if self._browser:
            await self._browser.close()
            self._browser = None

        if self._playwright:
            await self._playwright.stop()
            self._playwright = None

        logger.debug("Browser closed")

    async def new_context(self, **options: Any) -> BrowserContext:
        """
        Create new browser context.

        Raises:
            RuntimeError: If the browser has not been started
        """
        if not self._browser:
            raise RuntimeError("Browser not started. Call start() first.")

        context_options = {**self.DEFAULT_CONTEXT_OPTIONS, **options}
        context = await self._browser.new_context(**context_options)
        self._contexts.append(context)
        return context

    async def new_page(
        self,
        context: Optional[BrowserContext] = None,
        **context_options: Any,
    ) -> Page:
        """Create new page in a new or existing context."""
        if context is None:
            context = await self.new_context(**context_options)
        return await context.new_page()

    @property
    def browser(self) -> Optional[Browser]:
        return self._browser


# =============================================================================
# Session Lifecycle
# =============================================================================

async def get_browser(
    browser: Optional[str] = None,
    path: Optional[str] = None,
    base_url: Optional[str] = None,
    headless: Optional[bool] = None,
) -> DriverWrapper:
    """
    Build a ready DriverWrapper.

    The local browser (`browser.local`, "chrome" by default) is launched
    directly. Any other browser runs behind a remote server on port 4444
    which is attached to the wrapper and stopped by `quit`.

    Args:
        browser: Browser identifier, defaults to `browser.name`
        path: Remote server executable, defaults to `server.path`
        base_url: Base URL for relative navigation
        headless: Headless mode, defaults to `browser.headless`

    Returns:
        DriverWrapper around a fresh page
    """
    config = ConfigLoader()
    browser = browser or config.get("browser.name", "chrome")
    if headless is None:
        headless = config.get("browser.headless", True)
    if base_url is None:
        base_url = config.get("browser.base_url", "")

    manager = BrowserManager(browser_type=browser, headless=headless)
    server: Optional[RemoteServer] = None

    try:
        with allure.step(f"Start browser: {browser}"):
            if browser == config.get("browser.local", "chrome"):
                await manager.start()
            else:
                server = RemoteServer(
                    path=path or config.get("server.path", "playwright"),
                    port=int(config.get("server.port", DEFAULT_SERVER_PORT)),
                    host=config.get("server.host", "127.0.0.1"),
                    start_timeout=float(config.get("server.start_timeout", 30.0)),
                )
                await server.start()
                await manager.connect(server.address())
        page = await manager.new_page()
    except Exception:
        logger.error(f"Failed to start browser: {browser}")
        await manager.close()
        if server is not None:
            await server.stop()
        raise

    wait_config = WaitConfig(
        poll_interval=float(config.get("navigation.poll_interval", 0.1)),
    )
    return DriverWrapper(
        page,
        base_url=base_url,
        server=server,
        browser_manager=manager,
        page_load_timeout=float(config.get("navigation.timeout", 10.0)),
        wait_config=wait_config,
    )


async def quit(driver: DriverWrapper) -> None:
    """Close the session and stop its remote server, if any."""
    try:
        await driver.quit()
    finally:
        if driver.server is not None:
            await driver.server.stop()


__all__ = [
    "BROWSER_TYPES",
    "BrowserManager",
    "RemoteServer",
    "get_browser",
    "quit",
]
