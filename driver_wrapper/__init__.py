"""
================================================================================
Driver Wrapper
================================================================================

Convenience layer over Playwright's async API.

Components:
    - locators: Locator descriptors and the custom-lookup protocol
    - session: DriverWrapper, the wrapped browser session
    - web_element: WebElementWrapper, wrapped located elements
    - element_finder: Deferred element finders (`element`, `element.all`)
    - browser_manager: Session lifecycle (`get_browser`, `quit`)

Author: Automation Team
License: MIT
================================================================================
"""

from .browser_manager import BrowserManager, RemoteServer, get_browser, quit
from .config_loader import ConfigLoader, ConfigurationError
from .element_finder import ElementArrayFinder, ElementFinder, ElementHelper
from .locators import (
    CustomLocator,
    DriverWrapperBy,
    ElementNotFoundError,
    NativeLocator,
    by,
)
from .log_config import init_logger
from .session import DriverWrapper
from .wait_helpers import WaitTimeoutError
from .web_element import WebElementWrapper

__version__ = "1.0.0"

__all__ = [
    "BrowserManager",
    "ConfigLoader",
    "ConfigurationError",
    "CustomLocator",
    "DriverWrapper",
    "DriverWrapperBy",
    "ElementArrayFinder",
    "ElementFinder",
    "ElementHelper",
    "ElementNotFoundError",
    "NativeLocator",
    "RemoteServer",
    "WaitTimeoutError",
    "WebElementWrapper",
    "by",
    "get_browser",
    "init_logger",
    "quit",
]
