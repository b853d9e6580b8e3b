"""
================================================================================
Web Element Wrapper
================================================================================

Adapter around a Playwright ElementHandle.

Interaction methods delegate unchanged to the handle. Lookup methods route
through the owning DriverWrapper so that custom-lookup locators keep working
when scoped to an element, and every element found from here is wrapped too.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional

from playwright.async_api import ElementHandle

from .locators import AnyLocator, by

if TYPE_CHECKING:
    from .session import DriverWrapper


class WebElementWrapper:
    """
    A located element with the same lookup helpers as the session.

    Usage:
        >>> menu = await wrapper.find_element(by.css("ul.menu"))
        >>> items = await menu.find_elements(by.css("li"))
        >>> await (await menu.s("li.active")).click()
    """

    def __init__(self, wrapper: "DriverWrapper", element: ElementHandle):
        """
        Args:
            wrapper: Session that produced the element
            element: Raw Playwright handle (never another wrapper)
        """
        self._wrapper = wrapper
        self._element = element

    def __repr__(self) -> str:
        return f"WebElementWrapper({self._element!r})"

    @property
    def raw(self) -> ElementHandle:
        """The underlying Playwright handle."""
        return self._element

    @property
    def wrapper(self) -> "DriverWrapper":
        return self._wrapper

    # =========================================================================
    # Lookups
    # =========================================================================

    async def find_element(self, locator: AnyLocator) -> "WebElementWrapper":
        """
        Find the first element matching `locator` inside this element.

        Raises:
            ElementNotFoundError: If nothing matches
        """
        found = await self._wrapper.find_raw_element(locator, using=self._element)
        return self._wrapper.wrap_web_element(found)

    async def find_elements(self, locator: AnyLocator) -> List["WebElementWrapper"]:
        """Find all elements matching `locator` inside this element."""
        found = await self._wrapper.find_raw_elements(locator, using=self._element)
        return [self._wrapper.wrap_web_element(e) for e in found]

    async def is_element_present(self, locator: AnyLocator) -> bool:
        return await self._wrapper.is_raw_element_present(locator, using=self._element)

    async def s(self, selector: str) -> "WebElementWrapper":
        """Shortcut for find_element(by.css(selector))."""
        return await self.find_element(by.css(selector))

    async def ss(self, selector: str) -> List["WebElementWrapper"]:
        """Shortcut for find_elements(by.css(selector))."""
        return await self.find_elements(by.css(selector))

    # =========================================================================
    # Interactions
    # =========================================================================

    async def click(self, **kwargs: Any) -> None:
        await self._element.click(**kwargs)

    async def send_keys(self, *keys: str) -> None:
        """Type the given strings, in order, into the element."""
        await self._element.type("".join(keys))

    async def clear(self) -> None:
        await self._element.fill("")

    async def submit(self) -> None:
        """Submit the form this element belongs to."""
        await self._element.evaluate(
            "el => { const f = el.tagName === 'FORM' ? el : el.form; if (f) f.submit(); }"
        )

    async def get_tag_name(self) -> str:
        return await self._element.evaluate("el => el.tagName.toLowerCase()")

    async def get_css_value(self, property_name: str) -> str:
        return await self._element.evaluate(
            "(el, prop) => getComputedStyle(el).getPropertyValue(prop)",
            property_name,
        )

    async def get_attribute(self, name: str) -> Optional[str]:
        return await self._element.get_attribute(name)

    async def get_text(self) -> str:
        """Visible (rendered) text of the element."""
        return await self._element.inner_text()

    async def get_size(self) -> Optional[Dict[str, float]]:
        box = await self._element.bounding_box()
        if box is None:
            return None
        return {"width": box["width"], "height": box["height"]}

    async def get_location(self) -> Optional[Dict[str, float]]:
        box = await self._element.bounding_box()
        if box is None:
            return None
        return {"x": box["x"], "y": box["y"]}

    async def is_enabled(self) -> bool:
        return await self._element.is_enabled()

    async def is_selected(self) -> bool:
        """True for checked checkboxes/radios and selected options."""
        return await self._element.evaluate("el => !!(el.checked || el.selected)")

    async def is_displayed(self) -> bool:
        return await self._element.is_visible()

    async def get_outer_html(self) -> str:
        return await self._element.evaluate("el => el.outerHTML")

    async def get_inner_html(self) -> str:
        return await self._element.inner_html()


# Interaction methods shared with ElementFinder
WEB_ELEMENT_FUNCTIONS = (
    "click",
    "send_keys",
    "get_tag_name",
    "get_css_value",
    "get_attribute",
    "get_text",
    "get_size",
    "get_location",
    "is_enabled",
    "is_selected",
    "submit",
    "clear",
    "is_displayed",
    "get_outer_html",
    "get_inner_html",
)


__all__ = [
    "WEB_ELEMENT_FUNCTIONS",
    "WebElementWrapper",
]
