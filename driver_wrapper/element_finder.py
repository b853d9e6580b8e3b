"""
================================================================================
Element Finders
================================================================================

Deferred element lookup.

Element finders capture a locator (and the chain of parent locators) without
touching the page. Lookup happens only when a terminal operation is awaited,
and happens again on every call - nothing is cached. This means finders can
be declared in page objects before the page is loaded:

    >>> name_input = wrapper.element(by.id("name"))
    >>> await wrapper.get("/profile")
    >>> await name_input.send_keys("Jane Doe")

Chaining narrows the search scope step by step:

    >>> name = wrapper.element(by.id("container")).element(by.name("name"))

Collections:

    >>> items = wrapper.element.all(by.css(".menu li"))
    >>> await items.count()
    4
    >>> await items.map(lambda el, i: {"index": i, "text": el.get_text()})
    [{'index': 0, 'text': '1'}, ...]

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import asyncio
import inspect
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Dict,
    List,
    Optional,
    Sequence,
    Tuple,
    Union,
)

from loguru import logger

from .locators import AnyLocator, ElementNotFoundError, by

if TYPE_CHECKING:
    from .session import DriverWrapper
    from .web_element import WebElementWrapper

    Scope = Union[DriverWrapper, WebElementWrapper]


async def fully_resolved(value: Any) -> Any:
    """
    Await `value` and everything nested inside it.

    Awaitables are awaited (repeatedly, if they resolve to awaitables),
    then dicts, lists and tuples are resolved item by item.
    """
    while inspect.isawaitable(value):
        value = await value

    if isinstance(value, dict):
        return {key: await fully_resolved(item) for key, item in value.items()}
    if isinstance(value, list):
        return [await fully_resolved(item) for item in value]
    if isinstance(value, tuple):
        return tuple([await fully_resolved(item) for item in value])
    return value


class ElementHelper:
    """
    Factory for element finders sharing one scope.

    Calling the helper returns an ElementFinder; `all` returns an
    ElementArrayFinder.

    The scope is established by resolving `root` (if any), then each locator
    of `using_chain` in order, each lookup running inside the element found
    by the previous one.
    """

    def __init__(
        self,
        wrapper: "DriverWrapper",
        using_chain: Sequence[AnyLocator] = (),
        root: Optional["ElementFinder"] = None,
    ):
        self.wrapper = wrapper
        self.using_chain: Tuple[AnyLocator, ...] = tuple(using_chain)
        self.root = root

    async def using(self) -> "Scope":
        """Resolve the scope in which this helper's finders search."""
        if self.root is not None:
            base = await self.root.find()
        else:
            base = self.wrapper

        for locator in self.using_chain:
            base = await base.find_element(locator)
        return base

    def __call__(self, locator: AnyLocator) -> "ElementFinder":
        return ElementFinder(self, locator)

    def all(self, locator: AnyLocator) -> "ElementArrayFinder":
        return ElementArrayFinder(self, locator)

    def extend(self, locator: AnyLocator) -> "ElementHelper":
        """Helper scoped one level deeper, inside `locator`."""
        return ElementHelper(self.wrapper, self.using_chain + (locator,), self.root)


class ElementFinder:
    """
    Deferred handle to a single element.

    Every operation resolves the element from scratch, then performs the
    operation on the wrapped element. Lookup and interaction errors are
    raised to the caller unchanged.
    """

    def __init__(self, helper: ElementHelper, locator: AnyLocator):
        self._helper = helper
        self.locator = locator

    def __repr__(self) -> str:
        return f"ElementFinder({self.locator.message})"

    async def find(self) -> "WebElementWrapper":
        """
        Resolve the element.

        Raises:
            ElementNotFoundError: If the element or any parent is missing
        """
        scope = await self._helper.using()
        return await scope.find_element(self.locator)

    async def is_present(self) -> bool:
        """Whether at least one element matches."""
        scope = await self._helper.using()
        return await scope.is_element_present(self.locator)

    # =========================================================================
    # Chaining
    # =========================================================================

    @property
    def element(self) -> ElementHelper:
        """Finder factory scoped inside this element."""
        return self._helper.extend(self.locator)

    def s(self, selector: str) -> "ElementFinder":
        """Shortcut for element(by.css(selector))."""
        return self.element(by.css(selector))

    async def find_element(self, locator: AnyLocator) -> "WebElementWrapper":
        return await (await self.find()).find_element(locator)

    async def find_elements(self, locator: AnyLocator) -> List["WebElementWrapper"]:
        return await (await self.find()).find_elements(locator)

    async def is_element_present(self, locator: AnyLocator) -> bool:
        return await (await self.find()).is_element_present(locator)

    async def ss(self, selector: str) -> List["WebElementWrapper"]:
        return await (await self.find()).ss(selector)

    # =========================================================================
    # Interactions
    # =========================================================================

    async def click(self, **kwargs: Any) -> None:
        await (await self.find()).click(**kwargs)

    async def send_keys(self, *keys: str) -> None:
        await (await self.find()).send_keys(*keys)

    async def clear(self) -> None:
        await (await self.find()).clear()

    async def submit(self) -> None:
        await (await self.find()).submit()

    async def get_tag_name(self) -> str:
        return await (await self.find()).get_tag_name()

    async def get_css_value(self, property_name: str) -> str:
        return await (await self.find()).get_css_value(property_name)

    async def get_attribute(self, name: str) -> Optional[str]:
        return await (await self.find()).get_attribute(name)

    async def get_text(self) -> str:
        return await (await self.find()).get_text()

    async def get_size(self) -> Optional[Dict[str, float]]:
        return await (await self.find()).get_size()

    async def get_location(self) -> Optional[Dict[str, float]]:
        return await (await self.find()).get_location()

    async def is_enabled(self) -> bool:
        return await (await self.find()).is_enabled()

    async def is_selected(self) -> bool:
        return await (await self.find()).is_selected()

    async def is_displayed(self) -> bool:
        return await (await self.find()).is_displayed()

    async def get_outer_html(self) -> str:
        return await (await self.find()).get_outer_html()

    async def get_inner_html(self) -> str:
        return await (await self.find()).get_inner_html()


class _ArrayItemFinder(ElementFinder):
    """ElementFinder for one position of an ElementArrayFinder's results."""

    def __init__(
        self,
        array: "ElementArrayFinder",
        pick: Callable[[List["WebElementWrapper"]], "WebElementWrapper"],
        description: str,
    ):
        super().__init__(array._helper, array.locator)
        self._array = array
        self._pick = pick
        self._description = description

    def __repr__(self) -> str:
        return f"ElementFinder({self.locator.message}{self._description})"

    async def find(self) -> "WebElementWrapper":
        return self._pick(await self._array.all_elements())

    async def is_present(self) -> bool:
        try:
            await self.find()
        except (ElementNotFoundError, IndexError):
            return False
        return True

    @property
    def element(self) -> ElementHelper:
        return ElementHelper(self._helper.wrapper, root=self)


class ElementArrayFinder:
    """
    Deferred handle to every element matching a locator.

    Awaiting the finder itself yields the list of wrapped elements.
    """

    def __init__(self, helper: ElementHelper, locator: AnyLocator):
        self._helper = helper
        self.locator = locator

    def __repr__(self) -> str:
        return f"ElementArrayFinder({self.locator.message})"

    def __await__(self):
        return self.all_elements().__await__()

    async def all_elements(self) -> List["WebElementWrapper"]:
        """Resolve every matching element, in lookup order."""
        scope = await self._helper.using()
        return await scope.find_elements(self.locator)

    async def count(self) -> int:
        """Number of matching elements."""
        return len(await self.all_elements())

    def get(self, index: int) -> ElementFinder:
        """
        Finder for the element at `index`.

        The index is not validated; an out of range index raises
        IndexError when the returned finder is resolved.
        """
        return _ArrayItemFinder(self, lambda elements: elements[index], f"[{index}]")

    def first(self) -> ElementFinder:
        """
        Finder for the first matching element.

        Raises (on resolution):
            ElementNotFoundError: If nothing matches
        """
        def pick(elements: List["WebElementWrapper"]) -> "WebElementWrapper":
            if not elements:
                raise ElementNotFoundError(self.locator.message)
            return elements[0]

        return _ArrayItemFinder(self, pick, ".first()")

    def last(self) -> ElementFinder:
        """Finder for the last matching element; IndexError if none match."""
        return _ArrayItemFinder(self, lambda elements: elements[-1], ".last()")

    async def then(
        self,
        callback: Callable[[List["WebElementWrapper"]], Any],
        errback: Optional[Callable[[BaseException], Any]] = None,
    ) -> Any:
        """
        Pass the matched elements to `callback` and return its (awaited)
        result. Lookup failures go to `errback` when given.
        """
        try:
            elements = await self.all_elements()
        except Exception as e:
            if errback is None:
                raise
            result = errback(e)
        else:
            result = callback(elements)

        if inspect.isawaitable(result):
            result = await result
        return result

    async def each(self, callback: Callable[["WebElementWrapper"], Any]) -> None:
        """
        Call `callback` once per matched element, in lookup order.

        Coroutine results are scheduled as tasks and not awaited.
        """
        elements = await self.all_elements()
        for element in elements:
            result = callback(element)
            if inspect.isawaitable(result):
                self._helper.wrapper.track_task(asyncio.ensure_future(result))

    async def map(self, map_fn: Callable[["WebElementWrapper", int], Any]) -> List[Any]:
        """
        Apply `map_fn(element, index)` to every match.

        Each result is fully resolved (nested awaitables inside dicts, lists
        and tuples are awaited). Results keep the order of the elements.
        """
        elements = await self.all_elements()

        async def apply(element: "WebElementWrapper", index: int) -> Any:
            return await fully_resolved(map_fn(element, index))

        results = await asyncio.gather(
            *(apply(element, index) for index, element in enumerate(elements))
        )
        logger.debug(f"Mapped {len(results)} elements for {self.locator.message}")
        return list(results)


__all__ = [
    "ElementArrayFinder",
    "ElementFinder",
    "ElementHelper",
    "fully_resolved",
]
