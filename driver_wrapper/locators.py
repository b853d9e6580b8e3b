"""
================================================================================
Locators
================================================================================

Locator descriptors used to find elements.

A locator is either:
    - NativeLocator: a strategy the browser driver resolves itself
      (css, id, xpath, ...)
    - CustomLocator: a lookup coroutine supplied by the caller which replaces
      native resolution entirely

Usage:
    >>> from driver_wrapper.locators import by
    >>> by.css("ul.menu li")
    >>> by.id("username")                 # custom lookup over the id engine
    >>> by.custom(find_rows, "rows(status=active)")

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Union

from playwright.async_api import ElementHandle, Page


# Signature of a custom lookup: (driver, scope element or None) -> elements
FindElementsOverride = Callable[
    [Page, Optional[ElementHandle]], Awaitable[List[ElementHandle]]
]


class ElementNotFoundError(Exception):
    """Raised when a lookup expecting one element found none."""

    def __init__(self, locator_message: str):
        self.locator_message = locator_message
        super().__init__(f"No element found using locator: {locator_message}")


@dataclass(frozen=True)
class Locator:
    """Base class for all locators. `message` is used in diagnostics."""
    message: str


@dataclass(frozen=True)
class NativeLocator(Locator):
    """
    Locator resolved by the driver's own selector engines.

    Attributes:
        message: Human-readable description, e.g. by.css("li")
        strategy: One of NATIVE_STRATEGIES
        value: Strategy argument (selector, id, xpath expression, ...)
    """
    strategy: str = "css"
    value: str = ""


@dataclass(frozen=True)
class CustomLocator(Locator):
    """
    Locator whose resolution is deferred to a caller-supplied coroutine.

    Attributes:
        message: Human-readable description, e.g. by.id("login")
        find_elements_override: Coroutine called with (driver, scope).
            `scope` is None for session-wide lookups.
    """
    find_elements_override: Optional[FindElementsOverride] = None


AnyLocator = Union[NativeLocator, CustomLocator]


def _xpath_literal(text: str) -> str:
    """Quote text for use inside an XPath expression."""
    if '"' not in text:
        return f'"{text}"'
    if "'" not in text:
        return f"'{text}'"
    parts = text.split('"')
    return "concat(" + ", '\"', ".join(f'"{p}"' for p in parts) + ")"


# strategy -> function building a Playwright selector string
_SELECTOR_BUILDERS: dict[str, Callable[[str], str]] = {
    "css": lambda v: f"css={v}",
    "id": lambda v: f"id={v}",
    "xpath": lambda v: f"xpath={v}",
    "name": lambda v: f"css=[name={json.dumps(v)}]",
    "class_name": lambda v: f"css=.{v}",
    "tag_name": lambda v: f"css={v}",
    "link_text": lambda v: f"xpath=//a[normalize-space(.)={_xpath_literal(v)}]",
    "partial_link_text": lambda v: f"xpath=//a[contains(., {_xpath_literal(v)})]",
}

NATIVE_STRATEGIES = tuple(_SELECTOR_BUILDERS)


def to_selector(locator: NativeLocator) -> str:
    """
    Translate a native locator into a Playwright selector string.

    Raises:
        ValueError: If the locator strategy is unknown
    """
    try:
        builder = _SELECTOR_BUILDERS[locator.strategy]
    except KeyError:
        raise ValueError(f"Unsupported locator strategy: {locator.strategy}") from None
    return builder(locator.value)


class DriverWrapperBy:
    """
    Locator factory.

    Every native strategy has a method of the same name. `id` is special:
    it goes through the custom-lookup protocol so that callers can swap it
    for application-specific lookups without the wrappers noticing.
    """

    def _native(self, strategy: str, value: str) -> NativeLocator:
        return NativeLocator(
            message=f'by.{strategy}("{value}")',
            strategy=strategy,
            value=value,
        )

    def css(self, selector: str) -> NativeLocator:
        return self._native("css", selector)

    def xpath(self, expression: str) -> NativeLocator:
        return self._native("xpath", expression)

    def name(self, name: str) -> NativeLocator:
        return self._native("name", name)

    def class_name(self, class_name: str) -> NativeLocator:
        return self._native("class_name", class_name)

    def tag_name(self, tag_name: str) -> NativeLocator:
        return self._native("tag_name", tag_name)

    def link_text(self, text: str) -> NativeLocator:
        return self._native("link_text", text)

    def partial_link_text(self, text: str) -> NativeLocator:
        return self._native("partial_link_text", text)

    def native_id(self, id_: str) -> NativeLocator:
        """Plain id lookup without the override indirection."""
        return self._native("id", id_)

    def id(self, id_: str) -> CustomLocator:
        """
        Find elements by id through the custom-lookup protocol.

        The override queries the page, or the scope element when one is
        given, with the native id selector.
        """
        selector = to_selector(self.native_id(id_))

        async def find_elements_override(
            driver: Page,
            using: Optional[ElementHandle] = None,
        ) -> List[ElementHandle]:
            root = using if using is not None else driver
            return await root.query_selector_all(selector)

        return CustomLocator(
            message=f'by.id("{id_}")',
            find_elements_override=find_elements_override,
        )

    def custom(
        self,
        find_elements_override: FindElementsOverride,
        message: str,
    ) -> CustomLocator:
        """
        Build a locator backed by arbitrary lookup logic.

        Args:
            find_elements_override: Coroutine (driver, scope) -> elements
            message: Description used in "no element found" reports
        """
        return CustomLocator(
            message=message,
            find_elements_override=find_elements_override,
        )


by = DriverWrapperBy()


__all__ = [
    "AnyLocator",
    "CustomLocator",
    "DriverWrapperBy",
    "ElementNotFoundError",
    "FindElementsOverride",
    "Locator",
    "NATIVE_STRATEGIES",
    "NativeLocator",
    "by",
    "to_selector",
]
