"""Tests for brokenlinks.navigator module."""

from __future__ import annotations

import pytest

from brokenlinks.config import CrawlerConfig
from brokenlinks.link import OUTCOME_BROKEN, OUTCOME_ERRORED, OUTCOME_SUCCEEDED, CrawlLink
from brokenlinks.navigator import (
    NULL_RESPONSE_REASON,
    Navigator,
    RequestPolicy,
    classify_error,
    classify_response,
    host_matches,
    registrable_domain,
)

from .fakes import FakeNavigationError, FakePage, FakeResponse, FakeRoute, FakeRequest, RecordingScreenshotSink, SitePage

URL = "https://example.com/page"


def _link() -> CrawlLink:
    return CrawlLink(url=URL, parent_url="https://example.com/")


class TestClassify:
    def test_transport_error(self):
        outcome = classify_error(_link(), FakeNavigationError("Timeout 15000ms exceeded"))
        assert outcome.link.outcome == OUTCOME_ERRORED
        assert outcome.link.failure_reason == "Timeout 15000ms exceeded"
        assert outcome.link.status_code is None
        assert outcome.link.status_text is None
        assert not outcome.loaded
        assert outcome.failure_detail == f"Failed to load url: {URL}. Timeout 15000ms exceeded"

    def test_null_response(self):
        outcome = classify_response(_link(), None)
        assert outcome.link.outcome == OUTCOME_ERRORED
        assert outcome.link.failure_reason == NULL_RESPONSE_REASON
        assert outcome.link.status_code is None
        assert outcome.failure_detail == f"Failed to receive network response for url: {URL}"

    @pytest.mark.parametrize("status", [0, None])
    def test_falsy_status_is_missing_response(self, status):
        outcome = classify_response(_link(), FakeResponse(status=status))
        assert outcome.link.outcome == OUTCOME_ERRORED
        assert outcome.link.failure_reason == NULL_RESPONSE_REASON
        assert outcome.link.status_code is None

    def test_success(self):
        outcome = classify_response(_link(), FakeResponse(200, "OK"))
        assert outcome.loaded
        assert outcome.link.outcome == OUTCOME_SUCCEEDED
        assert (outcome.link.status_code, outcome.link.status_text) == (200, "OK")
        assert outcome.link.failure_reason is None
        assert outcome.failure_detail is None

    @pytest.mark.parametrize("status,text", [(404, "Not Found"), (500, "Internal Server Error")])
    def test_broken(self, status, text):
        outcome = classify_response(_link(), FakeResponse(status, text))
        assert not outcome.loaded
        assert outcome.link.outcome == OUTCOME_BROKEN
        assert outcome.link.status_code == status
        assert outcome.link.failure_reason == f"Status code: {status} {text}"
        assert outcome.failure_detail == f"Failed to load url: {URL}. Status code: {status} {text}"

    def test_broken_over_http2_has_empty_status_text(self):
        outcome = classify_response(_link(), FakeResponse(404, ""))
        assert outcome.link.status_text == ""
        assert outcome.link.failure_reason == "Status code: 404 "
        assert outcome.failure_detail == f"Failed to load url: {URL}. Status code: 404 "

    def test_boundary(self):
        assert classify_response(_link(), FakeResponse(399, "")).link.outcome == OUTCOME_SUCCEEDED
        assert classify_response(_link(), FakeResponse(400, "Bad Request")).link.outcome == OUTCOME_BROKEN


class TestDomainHelpers:
    def test_host_matches(self):
        assert host_matches("example.com", "example.com")
        assert host_matches("www.Example.com", "example.com")
        assert not host_matches("notexample.com", "example.com")
        assert not host_matches("example.com.evil.test", "example.com")
        assert not host_matches("example.com", "")

    def test_registrable_domain(self):
        assert registrable_domain("www.example.com") == "example.com"
        assert registrable_domain("") is None
        assert registrable_domain("localhost") == "localhost"


class TestRequestPolicy:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("resource_type", ["image", "script", "stylesheet", "media", "font", "xhr", "fetch"])
    async def test_non_documents_aborted(self, resource_type):
        route = FakeRoute(FakeRequest("https://example.com/x", resource_type))
        await RequestPolicy().handle(route)
        assert route.decision == "abort"

    @pytest.mark.asyncio
    async def test_documents_continue_without_enforcement(self):
        route = FakeRoute(FakeRequest("https://anywhere.test/", "document"))
        await RequestPolicy().handle(route)
        assert route.decision == "continue"

    @pytest.mark.asyncio
    async def test_off_domain_document_aborted(self):
        policy = RequestPolicy(["example.com"])
        on_domain = FakeRoute(FakeRequest("https://docs.example.com/", "document"))
        off_domain = FakeRoute(FakeRequest("https://other.test/", "document"))
        await policy.handle(on_domain)
        await policy.handle(off_domain)
        assert on_domain.decision == "continue"
        assert off_domain.decision == "abort"

    @pytest.mark.asyncio
    async def test_log_action_lets_off_domain_through(self):
        policy = RequestPolicy(["example.com"], action="log")
        route = FakeRoute(FakeRequest("https://other.test/", "document"))
        await policy.handle(route)
        assert route.decision == "continue"

    def test_from_config_disabled(self):
        config = CrawlerConfig(seed_urls=("https://www.example.com/",), domain="example.com")
        assert not RequestPolicy.from_config(config).enforcing

    def test_from_config_explicit_domain(self):
        config = CrawlerConfig(
            seed_urls=("https://www.example.com/",), must_include_domain=True, domain="Example.com"
        )
        assert RequestPolicy.from_config(config).allowed_domains == ("example.com",)

    def test_from_config_seed_domains(self):
        config = CrawlerConfig(
            seed_urls=("https://www.example.com/", "https://blog.example.com/"),
            must_include_domain=True,
        )
        assert RequestPolicy.from_config(config).allowed_domains == ("example.com",)


class TestNavigator:
    def _navigator(self, **kwargs) -> Navigator:
        return Navigator(timeout_ms=1234, wait_until="networkidle", **kwargs)

    @pytest.mark.asyncio
    async def test_visit_passes_wait_condition_and_timeout(self):
        page = FakePage({URL: SitePage()})
        outcome = await self._navigator().visit(page, _link())
        assert outcome.loaded
        assert page.goto_kwargs[-1] == {"wait_until": "networkidle", "timeout": 1234}

    @pytest.mark.asyncio
    async def test_only_documents_requested(self):
        page = FakePage(
            {URL: SitePage(subresources=[("https://example.com/app.js", "script"), ("https://example.com/logo.png", "image")])}
        )
        await self._navigator().visit(page, _link())
        assert page.route_decisions == [
            (URL, "document", "continue"),
            ("https://example.com/app.js", "script", "abort"),
            ("https://example.com/logo.png", "image", "abort"),
        ]

    @pytest.mark.asyncio
    async def test_route_handlers_do_not_accumulate(self):
        page = FakePage({URL: SitePage()})
        navigator = self._navigator()
        await navigator.visit(page, _link())
        await navigator.visit(page, _link())
        assert len(page.routes) == 1

    @pytest.mark.asyncio
    async def test_transport_error(self):
        page = FakePage({URL: SitePage(error=FakeNavigationError("net::ERR_CONNECTION_REFUSED"))})
        outcome = await self._navigator().visit(page, _link())
        assert outcome.link.outcome == OUTCOME_ERRORED
        assert "ERR_CONNECTION_REFUSED" in outcome.link.failure_reason

    @pytest.mark.asyncio
    async def test_off_domain_navigation_errors(self):
        page = FakePage({"https://other.test/": SitePage()})
        navigator = self._navigator(policy=RequestPolicy(["example.com"]))
        outcome = await navigator.visit(page, CrawlLink(url="https://other.test/"))
        assert outcome.link.outcome == OUTCOME_ERRORED
        assert "ERR_FAILED" in outcome.link.failure_reason

    @pytest.mark.asyncio
    async def test_success_screenshot(self):
        sink = RecordingScreenshotSink()
        page = FakePage({URL: SitePage()})
        navigator = self._navigator(screenshots=sink, capture_on_success=True)
        outcome = await navigator.visit(page, _link())
        assert outcome.link.screenshots == ("page-succeeded.png",)

    @pytest.mark.asyncio
    async def test_failure_screenshot(self):
        sink = RecordingScreenshotSink()
        page = FakePage({URL: SitePage(status=404, status_text="Not Found")})
        navigator = self._navigator(screenshots=sink, capture_on_failure=True, capture_on_success=False)
        outcome = await navigator.visit(page, _link())
        assert outcome.link.outcome == OUTCOME_BROKEN
        assert [call["suffix"] for call in sink.calls] == ["failed"]

    @pytest.mark.asyncio
    async def test_no_screenshot_for_errored(self):
        sink = RecordingScreenshotSink()
        page = FakePage({URL: SitePage(no_response=True)})
        navigator = self._navigator(screenshots=sink, capture_on_failure=True, capture_on_success=True)
        await navigator.visit(page, _link())
        assert sink.calls == []

    @pytest.mark.asyncio
    async def test_screenshot_failure_keeps_classification(self):
        sink = RecordingScreenshotSink(fail=True)
        page = FakePage({URL: SitePage()})
        navigator = self._navigator(screenshots=sink, capture_on_success=True)
        outcome = await navigator.visit(page, _link())
        assert outcome.loaded
        assert outcome.link.outcome == OUTCOME_SUCCEEDED
        assert outcome.link.screenshots == ()
