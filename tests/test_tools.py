# tests/test_tools.py
import asyncio
import pytest

from mcp_browser_fetch.responses import ErrorResponse, SuccessResponse
from mcp_browser_fetch.tools import (
    click_element,
    close_tab,
    fetch_webpage,
    get_current_html,
    get_interactive_elements,
    type_text,
    wait_for_element,
)

from _fakes import FakeBrowser, FakeConnector, make_context

## We DO NOT want to use pytest-asyncio.
## Instead, use event_loop.run_until_complete()!


URL = "https://example.com/"


@pytest.fixture(scope="function")
def event_loop():
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    yield loop
    loop.close()


@pytest.fixture
def browser():
    return FakeBrowser(click_targets={
        "#go": None,
        "a.next": "https://example.com/next",
        "Next page": "https://example.com/next",
    })


@pytest.fixture
def ctx(browser):
    return make_context(FakeConnector(browser))


def run(loop, coro):
    return loop.run_until_complete(coro)


def fetch(loop, ctx, url=URL, **kwargs):
    kwargs.setdefault("postLoadWait", 0)
    return run(loop, fetch_webpage(url=url, ctx=ctx, **kwargs))


class TestValidation:

    def test_click_without_arguments(self, event_loop, ctx):
        result = run(event_loop, click_element(ctx=ctx))
        assert isinstance(result, ErrorResponse)
        assert "url parameter is required" in result.message
        assert result.next_steps

    def test_click_without_locator(self, event_loop, ctx):
        result = run(event_loop, click_element(url=URL, ctx=ctx))
        assert isinstance(result, ErrorResponse)
        assert "Either selector or text parameter is required" in result.message

    @pytest.mark.parametrize("kwargs, message", [
        ({}, "url parameter is required"),
        ({"url": URL}, "selector parameter is required"),
        ({"url": URL, "selector": "#q"}, "text parameter is required"),
    ])
    def test_type_text_requirements(self, event_loop, ctx, kwargs, message):
        result = run(event_loop, type_text(ctx=ctx, **kwargs))
        assert isinstance(result, ErrorResponse)
        assert message in result.message

    def test_invalid_url(self, event_loop, ctx):
        result = run(event_loop, get_current_html(url="not a url", ctx=ctx))
        assert isinstance(result, ErrorResponse)
        assert result.message == "Invalid URL: not a url"

    def test_validation_happens_before_connecting(self, event_loop):
        connector = FakeConnector()
        ctx = make_context(connector)

        run(event_loop, click_element(url=URL, ctx=ctx))
        run(event_loop, fetch_webpage(ctx=ctx))

        assert connector.probe_calls == 0
        assert connector.connect_calls == 0

    def test_fetch_without_url_or_default(self, event_loop, ctx):
        result = run(event_loop, fetch_webpage(ctx=ctx))
        assert isinstance(result, ErrorResponse)
        assert "url parameter is required" in result.message

    def test_fetch_uses_default_url(self, event_loop):
        ctx = make_context(default_fetch_url="https://example.org/start")
        result = run(event_loop, fetch_webpage(postLoadWait=0, ctx=ctx))
        assert isinstance(result, SuccessResponse)
        assert result.fields["currentUrl"] == "https://example.org/start"

    def test_unsupported_browser(self, event_loop, ctx):
        result = fetch(event_loop, ctx, browser="firefox")
        assert isinstance(result, ErrorResponse)
        assert "firefox" in result.message

    def test_wrong_argument_type(self, event_loop, ctx):
        result = fetch(event_loop, ctx, postLoadWait="soon")
        assert isinstance(result, ErrorResponse)
        assert result.message == "postLoadWait must be a number"


class TestNoOpenPage:

    @pytest.mark.parametrize("tool, kwargs", [
        (close_tab, {}),
        (get_current_html, {}),
        (get_interactive_elements, {}),
        (click_element, {"selector": "#go"}),
        (type_text, {"selector": "#q", "text": "x"}),
        (wait_for_element, {"text": "Go"}),
    ])
    def test_requires_fetch_first(self, event_loop, ctx, tool, kwargs):
        result = run(event_loop, tool(url="https://example.com/page", ctx=ctx, **kwargs))

        assert isinstance(result, ErrorResponse)
        assert result.message == (
            "No open page found for example.com. Please fetch the page first using fetch_webpage."
        )
        assert result.next_steps == ["Use fetch_webpage to load the page first"]

    def test_other_domain_is_not_found(self, event_loop, ctx):
        fetch(event_loop, ctx)
        result = run(event_loop, get_current_html(url="https://example.org/", ctx=ctx))
        assert isinstance(result, ErrorResponse)
        assert "No open page found for example.org" in result.message


class TestFetchWebpage:

    def test_fetch_returns_cleaned_html(self, event_loop, ctx):
        result = fetch(event_loop, ctx)

        assert isinstance(result, SuccessResponse)
        assert result.fields["currentUrl"] == URL
        assert result.fields["isAuthFlow"] is False
        assert "<script" not in result.fields["html"]
        assert 'href="https://example.com/next"' in result.fields["html"]
        assert "Use click_element to interact with buttons/links on the page" in result.next_steps
        assert result.summary == f"Successfully fetched: {URL}"

    def test_fetch_raw_html(self, event_loop, ctx):
        result = fetch(event_loop, ctx, removeUnnecessaryHTML=False)
        assert "<script>" in result.fields["html"]

    def test_strip_flag_shortens_current_html(self, event_loop, ctx):
        assert isinstance(fetch(event_loop, ctx), SuccessResponse)

        stripped = run(event_loop, get_current_html(url=URL, removeUnnecessaryHTML=True, ctx=ctx))
        raw = run(event_loop, get_current_html(url=URL, removeUnnecessaryHTML=False, ctx=ctx))

        assert isinstance(stripped, SuccessResponse) and isinstance(raw, SuccessResponse)
        assert len(stripped.fields["html"]) < len(raw.fields["html"])

    def test_second_fetch_reuses_tab_without_navigation(self, event_loop, ctx, browser):
        fetch(event_loop, ctx)
        fetch(event_loop, ctx)
        fetch(event_loop, ctx, url="https://www.example.com/other")

        assert len(browser.tabs) == 1
        assert browser.tabs[0].navigations == [URL, "https://www.example.com/other"]

    def test_browser_unavailable(self, event_loop):
        ctx = make_context(FakeConnector(available=False))
        result = fetch(event_loop, ctx)

        assert isinstance(result, ErrorResponse)
        assert "No running chrome with remote debugging found" in result.message
        assert any("remote-debugging-port" in step for step in result.next_steps)

    def test_navigation_timeout_keeps_tab(self, event_loop, browser, ctx):
        browser.slow_urls.add("https://example.com/slow")
        result = fetch(event_loop, ctx, url="https://example.com/slow")

        assert isinstance(result, ErrorResponse)
        assert "timed out after 1000 ms" in result.message
        assert run(event_loop, ctx.registry.has_page("chrome", URL))

        retry = fetch(event_loop, ctx)
        assert isinstance(retry, SuccessResponse)
        assert len(browser.tabs) == 1

    def test_login_redirect_times_out_and_protects_tab(self, event_loop):
        browser = FakeBrowser(redirects={"https://app.example.com/": "https://login.example.net/sso"})
        ctx = make_context(FakeConnector(browser))

        result = fetch(event_loop, ctx, url="https://app.example.com/")
        assert isinstance(result, ErrorResponse)
        assert result.message.startswith("Authentication timeout")
        assert "Complete the login in the browser window" in result.next_steps

        closed = run(event_loop, close_tab(url="https://app.example.com/", ctx=ctx))
        assert isinstance(closed, SuccessResponse)
        assert closed.fields["closed"] is False
        assert not browser.tabs[0].closed

    def test_requested_login_page_is_returned(self, event_loop, ctx):
        result = fetch(event_loop, ctx, url="https://example.com/login")
        assert isinstance(result, SuccessResponse)
        assert result.fields["isAuthFlow"] is True

    def test_unexpected_page_failure_becomes_error(self, event_loop, ctx, browser):
        fetch(event_loop, ctx)

        async def broken_content():
            raise RuntimeError("renderer crashed")

        browser.tabs[0].content = broken_content
        result = run(event_loop, get_current_html(url=URL, ctx=ctx))

        assert isinstance(result, ErrorResponse)
        assert result.message == "RuntimeError: renderer crashed"
        assert result.next_steps

    def test_dropped_connection_invalidates_pages(self, event_loop, ctx, browser):
        fetch(event_loop, ctx)
        browser.connected = False

        result = run(event_loop, get_current_html(url=URL, ctx=ctx))
        assert isinstance(result, ErrorResponse)
        assert "No open page found" in result.message
        assert len(ctx.registry) == 0


class TestClickElement:

    def test_click_by_selector(self, event_loop, ctx):
        fetch(event_loop, ctx)
        result = run(event_loop, click_element(url=URL, selector="#go", postClickWait=0, ctx=ctx))

        assert isinstance(result, SuccessResponse)
        assert result.fields["clicked"] == "#go"
        assert result.fields["currentUrl"] == URL
        assert result.fields["message"] == "Clicked element: #go"
        assert "Example Domain" in result.fields["html"]

    def test_click_by_text_follows_navigation(self, event_loop, ctx):
        fetch(event_loop, ctx)
        result = run(event_loop, click_element(url=URL, text="Next page", returnHtml=False, ctx=ctx))

        assert result.fields["currentUrl"] == "https://example.com/next"
        assert result.fields["html"] is None

    def test_click_into_login_marks_auth_flow(self, event_loop, ctx, browser):
        browser.click_targets["Sign in"] = "https://example.com/signin"
        fetch(event_loop, ctx)
        run(event_loop, click_element(url=URL, text="Sign in", returnHtml=False, ctx=ctx))

        session = run(event_loop, ctx.registry.find_session("chrome", URL))
        assert session.is_auth_flow

    def test_element_not_found(self, event_loop, ctx):
        fetch(event_loop, ctx)
        result = run(event_loop, click_element(url=URL, selector="#missing", ctx=ctx))

        assert isinstance(result, ErrorResponse)
        assert result.message == "Element not found: #missing"
        assert "Retry with a different selector or text" in result.next_steps

    def test_concurrent_clicks_are_serialized(self, event_loop, ctx, browser):
        fetch(event_loop, ctx)
        browser.action_delay = 0.02
        browser.events.clear()

        async def both():
            return await asyncio.gather(
                click_element(url=URL, selector="a.next", returnHtml=False, ctx=ctx),
                click_element(url=URL, selector="#go", returnHtml=False, ctx=ctx),
            )

        first, second = run(event_loop, both())

        assert browser.events == [
            ("click-start", "a.next", URL),
            ("click-end", "a.next", "https://example.com/next"),
            ("click-start", "#go", "https://example.com/next"),
            ("click-end", "#go", "https://example.com/next"),
        ]
        assert first.fields["currentUrl"] == "https://example.com/next"
        assert second.fields["currentUrl"] == "https://example.com/next"

    def test_different_domains_run_concurrently(self, event_loop, ctx, browser):
        fetch(event_loop, ctx)
        fetch(event_loop, ctx, url="https://example.org/")
        browser.action_delay = 0.02
        browser.events.clear()

        async def both():
            return await asyncio.gather(
                click_element(url=URL, selector="#go", returnHtml=False, ctx=ctx),
                click_element(url="https://example.org/", selector="#go", returnHtml=False, ctx=ctx),
            )

        run(event_loop, both())
        kinds = [event[0] for event in browser.events]
        assert kinds == ["click-start", "click-start", "click-end", "click-end"]

    def test_redirected_tab_is_not_navigated_during_a_click(self, event_loop):
        browser = FakeBrowser(redirects={"https://a-site.com/": "https://b-site.com/"})
        ctx = make_context(FakeConnector(browser))
        fetch(event_loop, ctx, url="https://a-site.com/")
        browser.action_delay = 0.02
        browser.events.clear()

        async def both():
            return await asyncio.gather(
                click_element(url="https://b-site.com/", selector="#go", returnHtml=False, ctx=ctx),
                fetch_webpage(url="https://a-site.com/other", postLoadWait=0, ctx=ctx),
            )

        clicked, fetched = run(event_loop, both())

        assert browser.events == [
            ("click-start", "#go", "https://b-site.com/"),
            ("click-end", "#go", "https://b-site.com/"),
            ("navigate", "https://a-site.com/other"),
        ]
        assert clicked.fields["currentUrl"] == "https://b-site.com/"
        assert fetched.fields["currentUrl"] == "https://a-site.com/other"
        assert len(browser.tabs) == 1


class TestTypeText:

    def test_type_into_field(self, event_loop, ctx, browser):
        fetch(event_loop, ctx)
        result = run(event_loop, type_text(
            url=URL, selector='input[name="q"]', text="hello", postTypeWait=0, ctx=ctx,
        ))

        assert isinstance(result, SuccessResponse)
        assert result.fields["message"] == 'Typed text into: input[name="q"]'
        assert browser.tabs[0].typed['input[name="q"]'] == "hello"
        assert "Use type_text to fill additional fields" in result.next_steps

    def test_append_without_clear(self, event_loop, ctx, browser):
        fetch(event_loop, ctx)
        for chunk in ("ab", "cd"):
            run(event_loop, type_text(
                url=URL, selector='input[name="q"]', text=chunk, clear=False, returnHtml=False, ctx=ctx,
            ))
        assert browser.tabs[0].typed['input[name="q"]'] == "abcd"

    def test_empty_text_clears_field(self, event_loop, ctx, browser):
        fetch(event_loop, ctx)
        result = run(event_loop, type_text(
            url=URL, selector='input[name="q"]', text="", returnHtml=False, ctx=ctx,
        ))
        assert isinstance(result, SuccessResponse)
        assert result.fields["html"] is None

    def test_missing_field(self, event_loop, ctx):
        fetch(event_loop, ctx)
        result = run(event_loop, type_text(url=URL, selector="#nope", text="x", ctx=ctx))
        assert isinstance(result, ErrorResponse)
        assert result.message == "Element not found: #nope"


class TestReadOnlyTools:

    def test_interactive_elements(self, event_loop, ctx):
        fetch(event_loop, ctx)
        result = run(event_loop, get_interactive_elements(url=URL, ctx=ctx))

        assert isinstance(result, SuccessResponse)
        assert result.fields["count"] == 3
        assert result.fields["currentUrl"] == URL
        selectors = [e["selector"] for e in result.fields["elements"]]
        assert "#go" in selectors
        link = next(e for e in result.fields["elements"] if e["tag"] == "a")
        assert link["href"] == "https://example.com/next"

    def test_interactive_elements_limit(self, event_loop, ctx):
        fetch(event_loop, ctx)
        result = run(event_loop, get_interactive_elements(url=URL, limit=1, ctx=ctx))
        assert result.fields["count"] == 1

    def test_interactive_elements_rejects_zero_limit(self, event_loop, ctx):
        fetch(event_loop, ctx)
        result = run(event_loop, get_interactive_elements(url=URL, limit=0, ctx=ctx))
        assert isinstance(result, ErrorResponse)

    def test_wait_for_element(self, event_loop, ctx):
        fetch(event_loop, ctx)
        found = run(event_loop, wait_for_element(url=URL, selector="#go", ctx=ctx))
        missing = run(event_loop, wait_for_element(url=URL, text="Nowhere", timeout=10, ctx=ctx))

        assert found.fields["found"] is True
        assert isinstance(missing, ErrorResponse)
        assert missing.message == "Element not found: Nowhere"


class TestCloseTab:

    def test_close_tab(self, event_loop, ctx, browser):
        fetch(event_loop, ctx)
        result = run(event_loop, close_tab(url="https://www.example.com/anything", ctx=ctx))

        assert isinstance(result, SuccessResponse)
        assert result.fields == {
            "closed": True,
            "hostname": "www.example.com",
            "message": "Closed tab for example.com",
        }
        assert browser.tabs[0].closed

        again = run(event_loop, close_tab(url=URL, ctx=ctx))
        assert isinstance(again, ErrorResponse)
        assert "No open page found" in again.message

    def test_close_then_fetch_opens_new_tab(self, event_loop, ctx, browser):
        fetch(event_loop, ctx)
        run(event_loop, close_tab(url=URL, ctx=ctx))
        fetch(event_loop, ctx)

        assert len(browser.tabs) == 2
        assert not browser.tabs[1].closed
