import asyncio

import allure
import pytest

from driver_wrapper.element_finder import ElementFinder, fully_resolved
from driver_wrapper.locators import ElementNotFoundError, by
from driver_wrapper.web_element import WEB_ELEMENT_FUNCTIONS, WebElementWrapper

from tests.fakes import FakeElement


def recording_locator(name, calls):
    """Custom locator matching elements by tag, recording each scope it sees."""
    async def lookup(driver, using):
        calls.append((name, using))
        root = using if using is not None else driver
        return await root.query_selector_all(f"css={name}")

    return by.custom(lookup, f"recording({name})")


@allure.feature("Element Finder")
@allure.story("Single Element")
class TestElementFinder:

    def test_building_a_finder_does_not_look_up(self, wrapper, page):
        finder = wrapper.element(by.css("div")).element(by.css("li"))
        assert isinstance(finder, ElementFinder)
        assert page.query_calls == []

    @pytest.mark.asyncio
    async def test_find_returns_wrapped_element(self, wrapper):
        found = await wrapper.element(by.css("li.two")).find()
        assert isinstance(found, WebElementWrapper)
        assert found.raw.text == "2"

    @pytest.mark.asyncio
    async def test_every_call_resolves_again(self, wrapper, page):
        finder = wrapper.element(by.css("li"))
        assert await finder.get_text() == "1"

        menu = page.document.descendants()[2]
        menu.children.insert(0, FakeElement("li", text="0"))

        assert await finder.get_text() == "0"
        assert page.query_calls == ["css=li", "css=li"]

    @pytest.mark.P0
    @pytest.mark.asyncio
    async def test_chain_performs_one_lookup_per_locator_in_order(self, wrapper, page):
        calls = []
        finder = (
            wrapper.element(recording_locator("div", calls))
            .element(recording_locator("ul", calls))
            .element(recording_locator("li", calls))
        )

        found = await finder.find()

        container = page.document.children[0]
        menu = container.children[1]
        assert calls == [("div", None), ("ul", container), ("li", menu)]
        assert found.raw.text == "1"

    @pytest.mark.asyncio
    async def test_missing_parent_fails_the_chain(self, wrapper):
        finder = wrapper.element(by.id("missing")).element(by.css("li"))
        with pytest.raises(ElementNotFoundError, match='by.id\\("missing"\\)'):
            await finder.click()

    @pytest.mark.asyncio
    async def test_is_present(self, wrapper):
        assert await wrapper.element(by.css("ul")).is_present()
        assert not await wrapper.element(by.css("table")).is_present()

    @pytest.mark.asyncio
    async def test_interactions_resolve_first(self, wrapper, page):
        await wrapper.element(by.id("name")).send_keys("Jane")
        field = page.document.children[0].children[0]
        field.type.assert_awaited_once_with("Jane")

    @pytest.mark.asyncio
    async def test_css_shortcuts(self, wrapper):
        assert await wrapper.s("#container").s("li.two").get_text() == "2"
        assert len(await wrapper.element(by.css("ul")).ss("li")) == 4
        assert len(await wrapper.element(by.css("ul")).find_elements(by.css("li"))) == 4
        assert (await wrapper.element(by.css("ul")).find_element(by.css("li"))).raw.text == "1"
        assert await wrapper.element(by.css("ul")).is_element_present(by.css("li.one"))

    def test_exposes_element_interaction_surface(self, wrapper):
        finder = wrapper.element(by.css("li"))
        for name in WEB_ELEMENT_FUNCTIONS:
            assert callable(getattr(finder, name))


@allure.feature("Element Finder")
@allure.story("Element Collections")
class TestElementArrayFinder:

    @pytest.mark.P0
    @pytest.mark.asyncio
    async def test_count(self, wrapper):
        assert await wrapper.element.all(by.css("li")).count() == 4
        assert await wrapper.ss("li").count() == 4

    @pytest.mark.asyncio
    async def test_count_inside_chain(self, wrapper):
        assert await wrapper.element(by.css("ul")).element.all(by.css("li")).count() == 4
        assert await wrapper.element(by.css("input")).element.all(by.css("li")).count() == 0

    @pytest.mark.P0
    @pytest.mark.asyncio
    async def test_first_on_empty_raises_not_found(self, wrapper):
        items = wrapper.element.all(by.css("table"))

        assert await items.count() == 0
        with pytest.raises(ElementNotFoundError, match=r'by\.css\("table"\)'):
            await items.first().find()

    @pytest.mark.asyncio
    async def test_last_on_empty_raises_index_error(self, wrapper):
        with pytest.raises(IndexError):
            await wrapper.element.all(by.css("table")).last().find()

    @pytest.mark.asyncio
    async def test_get_first_last(self, wrapper):
        items = wrapper.element.all(by.css("li"))
        assert await items.get(1).get_text() == "2"
        assert await items.first().get_text() == "1"
        assert await items.last().get_text() == "4"

    @pytest.mark.asyncio
    async def test_get_out_of_range_fails_on_resolution(self, wrapper):
        item = wrapper.element.all(by.css("li")).get(10)
        assert not await item.is_present()
        with pytest.raises(IndexError):
            await item.click()

    @pytest.mark.asyncio
    async def test_indexed_item_scopes_sub_lookups(self, wrapper):
        container = wrapper.element.all(by.css("div")).first()
        assert await container.element.all(by.css("li")).count() == 4
        assert await container.s("li.two").get_text() == "2"

    @pytest.mark.asyncio
    async def test_then_and_await(self, wrapper):
        items = wrapper.element.all(by.css("li"))

        assert await items.then(len) == 4
        assert len(await items) == 4

        async def texts(elements):
            return [await e.get_text() for e in elements]

        assert await items.then(texts) == ["1", "2", "3", "4"]

    @pytest.mark.asyncio
    async def test_then_errback(self, wrapper):
        items = wrapper.element(by.id("missing")).element.all(by.css("li"))
        result = await items.then(len, lambda error: type(error).__name__)
        assert result == "ElementNotFoundError"

        with pytest.raises(ElementNotFoundError):
            await items.then(len)

    @pytest.mark.asyncio
    async def test_each_does_not_wait_for_callbacks(self, wrapper):
        release = asyncio.Event()
        seen = []

        async def callback(element):
            await release.wait()
            seen.append(await element.get_text())

        await wrapper.element.all(by.css("li")).each(callback)
        assert seen == []

        release.set()
        await asyncio.gather(*wrapper._pending_tasks)
        assert sorted(seen) == ["1", "2", "3", "4"]

    @pytest.mark.asyncio
    async def test_each_logs_failed_callback_tasks(self, wrapper, log_messages):
        async def callback(element):
            raise RuntimeError(f"cannot handle {element.raw.text}")

        await wrapper.element.all(by.css("li.one")).each(callback)
        tasks = list(wrapper._pending_tasks)
        await asyncio.wait(tasks)
        # Done callbacks run on the next loop iteration
        await asyncio.sleep(0)

        assert wrapper._pending_tasks == set()
        assert any("Callback task failed: cannot handle 1" in m for m in log_messages)

    @pytest.mark.asyncio
    async def test_each_calls_plain_callbacks_in_order(self, wrapper):
        seen = []
        await wrapper.element.all(by.css("li")).each(lambda e: seen.append(e.raw.text))
        assert seen == ["1", "2", "3", "4"]

    @pytest.mark.P0
    @pytest.mark.asyncio
    async def test_map_preserves_order(self, wrapper):
        async def slow_text(element, index):
            # Later elements finish first
            await asyncio.sleep(0.01 * (4 - index))
            return await element.get_text()

        assert await wrapper.element.all(by.css("li")).map(slow_text) == ["1", "2", "3", "4"]

    @pytest.mark.asyncio
    async def test_map_resolves_nested_values(self, wrapper):
        items = wrapper.element.all(by.css("li"))

        result = await items.map(
            lambda element, index: {
                "index": index,
                "text": element.get_text(),
                "class": element.get_attribute("class"),
            }
        )

        assert result[:2] == [
            {"index": 0, "text": "1", "class": "one"},
            {"index": 1, "text": "2", "class": "two"},
        ]


@pytest.mark.asyncio
async def test_fully_resolved_walks_containers():
    async def value(v):
        return v

    async def nested():
        return value([value(1), (value(2), 3)])

    assert await fully_resolved({"a": nested(), "b": "x"}) == {"a": [1, (2, 3)], "b": "x"}
