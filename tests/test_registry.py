"""Tests for PageRegistry: domain keyed reuse, sticky auth classification, timeouts, adoption."""

import asyncio
import pytest

from mcp_browser_fetch.errors import NavigationTimeoutError, ValidationError
from mcp_browser_fetch.registry import AuthState, PageSession, page_key

from _fakes import FakeBrowser, FakeConnector, make_context

## We DO NOT want to use pytest-asyncio.
## Instead, use event_loop.run_until_complete()!


@pytest.fixture(scope="function")
def event_loop():
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    yield loop
    loop.close()


def test_page_key():
    assert page_key("chrome", "https://mail.google.com/x") == ("chrome", "google.com")
    with pytest.raises(ValidationError, match="Invalid URL"):
        page_key("chrome", "not a url")


class TestPageSessionClassification:

    def make_session(self):
        return PageSession(flavor="chrome", base_domain="example.com", page=None)

    def test_unclassified_to_normal(self):
        session = self.make_session()
        assert session.auth_state is AuthState.UNCLASSIFIED
        assert session.classify("https://example.com/") is AuthState.NORMAL

    def test_auth_flow_never_reverts(self):
        session = self.make_session()
        session.classify("https://example.com/login")
        assert session.is_auth_flow

        session.classify("https://example.com/home")
        assert session.auth_state is AuthState.AUTH_FLOW

    def test_normal_can_become_auth_flow(self):
        session = self.make_session()
        session.classify("https://example.com/")
        session.classify("https://example.com/signin")
        assert session.is_auth_flow


class TestGetOrCreatePage:

    def test_creates_and_navigates(self, event_loop):
        ctx = make_context()
        session = event_loop.run_until_complete(
            ctx.registry.get_or_create_page("chrome", "https://example.com/a")
        )

        assert session.key == ("chrome", "example.com")
        assert session.current_url == "https://example.com/a"
        assert session.auth_state is AuthState.NORMAL
        assert session.page.navigations == ["https://example.com/a"]
        assert event_loop.run_until_complete(ctx.registry.has_page("chrome", "https://example.com/zzz"))

    def test_same_url_is_not_renavigated(self, event_loop):
        ctx = make_context()
        first = event_loop.run_until_complete(ctx.registry.get_or_create_page("chrome", "https://example.com/a"))
        second = event_loop.run_until_complete(ctx.registry.get_or_create_page("chrome", "https://example.com/a"))

        assert first is second
        assert first.page.navigations == ["https://example.com/a"]

    def test_subdomains_share_one_tab(self, event_loop):
        connector = FakeConnector()
        ctx = make_context(connector)
        first = event_loop.run_until_complete(ctx.registry.get_or_create_page("chrome", "https://mail.google.com/"))
        second = event_loop.run_until_complete(ctx.registry.get_or_create_page("chrome", "https://docs.google.com/"))

        assert first is second
        assert first.page.navigations == ["https://mail.google.com/", "https://docs.google.com/"]
        assert len(connector.browser.tabs) == 1
        assert len(ctx.registry) == 1

    def test_flavors_get_separate_pages(self, event_loop):
        ctx = make_context(FakeConnector(edge_browser=FakeBrowser()))
        chrome = event_loop.run_until_complete(ctx.registry.get_or_create_page("chrome", "https://example.com/"))
        edge = event_loop.run_until_complete(ctx.registry.get_or_create_page("edge", "https://example.com/"))

        assert chrome is not edge
        assert len(ctx.registry.sessions("chrome")) == 1
        assert len(ctx.registry.sessions("edge")) == 1

    def test_redirected_session_is_found_by_landed_domain(self, event_loop):
        browser = FakeBrowser(redirects={"https://old.example.com/": "https://www.example.org/"})
        ctx = make_context(FakeConnector(browser))
        event_loop.run_until_complete(ctx.registry.get_or_create_page("chrome", "https://old.example.com/"))

        session = event_loop.run_until_complete(ctx.registry.find_session("chrome", "https://www.example.org/"))
        assert session is not None
        assert session.current_url == "https://www.example.org/"

    def test_timeout_keeps_the_session(self, event_loop):
        browser = FakeBrowser(slow_urls={"https://example.com/slow"})
        ctx = make_context(FakeConnector(browser))

        with pytest.raises(NavigationTimeoutError):
            event_loop.run_until_complete(ctx.registry.get_or_create_page("chrome", "https://example.com/slow"))

        assert event_loop.run_until_complete(ctx.registry.has_page("chrome", "https://example.com/"))
        retry = event_loop.run_until_complete(ctx.registry.get_or_create_page("chrome", "https://example.com/fast"))
        assert len(browser.tabs) == 1
        assert retry.current_url == "https://example.com/fast"

    def test_tab_closed_by_user_is_replaced(self, event_loop):
        connector = FakeConnector()
        ctx = make_context(connector)
        first = event_loop.run_until_complete(ctx.registry.get_or_create_page("chrome", "https://example.com/"))
        first.page.closed = True

        second = event_loop.run_until_complete(ctx.registry.get_or_create_page("chrome", "https://example.com/"))
        assert second is not first
        assert len(connector.browser.tabs) == 2


class TestClosePage:

    def test_close_normal_page(self, event_loop):
        ctx = make_context()
        session = event_loop.run_until_complete(ctx.registry.get_or_create_page("chrome", "https://example.com/"))

        assert event_loop.run_until_complete(ctx.registry.close_page("chrome", "https://example.com/")) is True
        assert session.page.closed
        assert not event_loop.run_until_complete(ctx.registry.has_page("chrome", "https://example.com/"))

    def test_close_without_page(self, event_loop):
        ctx = make_context()
        assert event_loop.run_until_complete(ctx.registry.close_page("chrome", "https://example.com/")) is False

    def test_auth_flow_refuses_close_until_forced(self, event_loop):
        ctx = make_context()
        session = event_loop.run_until_complete(
            ctx.registry.get_or_create_page("chrome", "https://example.com/login")
        )
        assert session.is_auth_flow

        # Still protected after navigating away from the login page
        event_loop.run_until_complete(ctx.registry.get_or_create_page("chrome", "https://example.com/home"))
        assert session.is_auth_flow

        assert event_loop.run_until_complete(ctx.registry.close_page("chrome", "https://example.com/")) is False
        assert not session.page.closed

        assert event_loop.run_until_complete(
            ctx.registry.close_page("chrome", "https://example.com/", force=True)
        ) is True
        assert session.page.closed

    def test_shutdown_force_closes_everything(self, event_loop):
        connector = FakeConnector()
        ctx = make_context(connector)
        login = event_loop.run_until_complete(ctx.registry.get_or_create_page("chrome", "https://example.com/login"))
        other = event_loop.run_until_complete(ctx.registry.get_or_create_page("chrome", "https://example.org/"))

        event_loop.run_until_complete(ctx.shutdown())

        assert login.page.closed and other.page.closed
        assert len(ctx.registry) == 0
        assert connector.browser.closed


class TestCrashAndAdoption:

    def test_crash_invalidates_pages_of_that_flavor(self, event_loop):
        connector = FakeConnector(edge_browser=FakeBrowser())
        ctx = make_context(connector)
        event_loop.run_until_complete(ctx.registry.get_or_create_page("chrome", "https://example.com/"))
        event_loop.run_until_complete(ctx.registry.get_or_create_page("edge", "https://example.com/"))

        connector.browser.connected = False
        ctx.connections.report_crash("chrome")

        assert ctx.registry.sessions("chrome") == []
        assert len(ctx.registry.sessions("edge")) == 1

    def test_dead_connection_is_detected_on_lookup(self, event_loop):
        connector = FakeConnector()
        ctx = make_context(connector)
        event_loop.run_until_complete(ctx.registry.get_or_create_page("chrome", "https://example.com/"))

        connector.browser.connected = False
        assert not event_loop.run_until_complete(ctx.registry.has_page("chrome", "https://example.com/"))

        connector.browser = FakeBrowser()
        session = event_loop.run_until_complete(ctx.registry.get_or_create_page("chrome", "https://example.com/"))
        assert session.page.browser is connector.browser

    def test_existing_tabs_are_adopted_on_connect(self, event_loop):
        browser = FakeBrowser(open_urls=[
            "https://mail.google.com/mail",
            "chrome://newtab/",
            "about:blank",
            "https://accounts.example.com/signin",
        ])
        ctx = make_context(FakeConnector(browser))

        session = event_loop.run_until_complete(
            ctx.registry.get_or_create_page("chrome", "https://mail.google.com/mail")
        )

        assert session.page is browser.tabs[0]
        assert session.page.navigations == []
        assert len(browser.tabs) == 4
        adopted = {s.base_domain: s for s in ctx.registry.sessions("chrome")}
        assert set(adopted) == {"google.com", "example.com"}
        assert adopted["example.com"].is_auth_flow


def test_per_page_lock_serializes(event_loop):
    ctx = make_context()
    order = []

    async def worker(name):
        async with ctx.registry.locked("chrome", "https://example.com/"):
            order.append(f"{name}-in")
            await asyncio.sleep(0.01)
            order.append(f"{name}-out")

    async def scenario():
        await asyncio.gather(worker("a"), worker("b"))

    event_loop.run_until_complete(scenario())
    assert order == ["a-in", "a-out", "b-in", "b-out"]


def test_redirected_domain_shares_the_lock_of_its_tab(event_loop):
    browser = FakeBrowser(redirects={"https://a-site.com/": "https://b-site.com/"})
    ctx = make_context(FakeConnector(browser))
    event_loop.run_until_complete(ctx.registry.get_or_create_page("chrome", "https://a-site.com/"))
    order = []

    assert ctx.registry.owner_key("chrome", "https://b-site.com/") == ("chrome", "a-site.com")

    async def worker(name, url):
        async with ctx.registry.locked("chrome", url) as owner:
            order.append((name, "in", owner[1]))
            await asyncio.sleep(0.01)
            order.append((name, "out", owner[1]))

    async def scenario():
        await asyncio.gather(worker("b", "https://b-site.com/"), worker("a", "https://a-site.com/other"))

    event_loop.run_until_complete(scenario())
    assert order == [
        ("b", "in", "a-site.com"),
        ("b", "out", "a-site.com"),
        ("a", "in", "a-site.com"),
        ("a", "out", "a-site.com"),
    ]


def test_locks_are_dropped_when_unused(event_loop):
    ctx = make_context()

    async def scenario():
        for i in range(20):
            async with ctx.registry.locked("chrome", f"https://site{i}.example{i}.com/"):
                pass

    event_loop.run_until_complete(scenario())
    assert ctx.registry._locks == {}
    assert ctx.registry._lock_users == {}
