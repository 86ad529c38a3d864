"""Base test for browser checks.

Wraps one BrowserSession and one Authenticator with the helpers every
check needs: authentication, navigation, element and URL waits, and a
``case()`` context manager that logs start, failure and duration.

    with E2ETest(session, cfg) as t, t.case("dashboard loads"):
        t.ensure_authenticated()
        t.navigate_to(cfg.dashboard_url)
"""
from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Iterator, Pattern

import structlog
from playwright.sync_api import expect

from libs.web_agent.auth.authenticator import Authenticator
from libs.web_agent.browser import BrowserSession
from portalcheck.config import Config

log = structlog.get_logger(__name__)


class E2ETest:
    def __init__(
        self,
        session: BrowserSession,
        cfg: Config,
        authenticator: Authenticator | None = None,
    ) -> None:
        self.session = session
        self.cfg = cfg
        self.auth = authenticator or Authenticator(session, cfg)

    def __enter__(self) -> E2ETest:
        self.setup()
        return self

    def __exit__(self, *args: object) -> None:
        self.cleanup()

    def setup(self) -> None:
        self.session.set_default_timeout(self.cfg.timeouts.default)
        log.debug("base test setup completed")

    def cleanup(self) -> None:
        log.debug("base test cleanup completed")

    @contextmanager
    def case(self, name: str) -> Iterator[E2ETest]:
        """Log start, failure and duration of one test body."""
        start = time.monotonic()
        log.info("starting test", test=name)
        try:
            yield self
        except Exception as exc:
            log.error("test failed", test=name, error=str(exc))
            raise
        finally:
            duration_ms = int((time.monotonic() - start) * 1000)
            log.info("test completed", test=name, duration_ms=duration_ms)

    def ensure_authenticated(self) -> None:
        self.auth.ensure_authenticated()

    def navigate_to(self, url: str, wait_for_load: bool = True) -> None:
        try:
            self.session.goto(url, timeout=self.cfg.timeouts.navigation)
            if wait_for_load:
                self.session.wait_for_network_idle(timeout=self.cfg.timeouts.navigation)
        except Exception as exc:
            log.error("failed to navigate", url=url, error=str(exc))
            raise
        log.debug("navigated", url=url)

    def wait_for_element(self, selector: str, timeout: int | None = None) -> None:
        if timeout is None:
            timeout = self.cfg.timeouts.default
        try:
            self.session.wait_for_selector(selector, timeout=timeout)
        except Exception as exc:
            log.error("element not found", selector=selector, error=str(exc))
            raise
        log.debug("element found", selector=selector)

    def verify_page_title(self, expected: str | Pattern[str]) -> None:
        try:
            expect(self.session.page).to_have_title(expected)
        except AssertionError as exc:
            log.error("page title verification failed", expected=str(expected), error=str(exc))
            raise
        log.debug("page title verified", expected=str(expected))

    def wait_for_url(self, url: str | Pattern[str], timeout: int | None = None) -> None:
        if timeout is None:
            timeout = self.cfg.timeouts.navigation
        try:
            self.session.wait_for_url(url, timeout=timeout)
        except Exception as exc:
            log.error("URL change timeout", url=str(url), error=str(exc))
            raise
        log.debug("URL change detected", url=str(url))
