"""Playwright browser session used by the end-to-end checks.

Usage:

    from libs.web_agent import BrowserSession

    with BrowserSession(storage_state="playwright/.auth/user.json") as browser:
        browser.goto("https://app.example.com/")
        if browser.is_visible('h1:has-text("Sign in")', timeout=3000):
            browser.fill("#user_email", "user@example.com")
            browser.click(role="button", name="Sign In")

Storage state is only imported at start. Writing it back is the caller's
job (see libs.web_agent.auth.authenticator), so a failed run never
overwrites a good session.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Pattern

from playwright.sync_api import (
    Browser,
    BrowserContext,
    Page,
    Playwright,
    TimeoutError as PlaywrightTimeout,
    sync_playwright,
)

log = logging.getLogger(__name__)

_DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class BrowserSession:
    """One Chromium browsing context driven through Playwright's sync API."""

    def __init__(
        self,
        storage_state: str | Path | None = None,
        headless: bool = True,
        viewport: tuple[int, int] = (1920, 1080),
        default_timeout: int = 30_000,
        user_agent: str = _DEFAULT_USER_AGENT,
    ) -> None:
        self.storage_state_path = Path(storage_state) if storage_state else None
        self.headless = headless
        self.viewport = {"width": viewport[0], "height": viewport[1]}
        self.default_timeout = default_timeout
        self.user_agent = user_agent

        self._pw: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._page: Page | None = None

    # -- Lifecycle -------------------------------------------------------------

    def start(self) -> BrowserSession:
        """Launch browser and import storage state if available."""
        self._pw = sync_playwright().start()
        self._browser = self._pw.chromium.launch(
            headless=self.headless,
            args=["--disable-gpu", "--no-sandbox", "--disable-dev-shm-usage"],
        )

        ctx_kwargs: dict = {
            "viewport": self.viewport,
            "user_agent": self.user_agent,
        }
        state_path = self.storage_state_path
        if state_path is not None and state_path.exists():
            ctx_kwargs["storage_state"] = str(state_path)
            log.info("Imported browser state from %s", state_path)

        self._context = self._browser.new_context(**ctx_kwargs)
        self._page = self._context.new_page()
        self._page.set_default_timeout(self.default_timeout)
        return self

    def stop(self) -> None:
        """Close browser and Playwright."""
        if self._context:
            self._context.close()
        if self._browser:
            self._browser.close()
        if self._pw:
            self._pw.stop()

        self._page = None
        self._context = None
        self._browser = None
        self._pw = None

    def __enter__(self) -> BrowserSession:
        return self.start()

    def __exit__(self, *args: object) -> None:
        self.stop()

    @property
    def page(self) -> Page:
        """Direct access to the Playwright page for advanced operations."""
        if self._page is None:
            raise RuntimeError("BrowserSession not started")
        return self._page

    @property
    def context(self) -> BrowserContext:
        if self._context is None:
            raise RuntimeError("BrowserSession not started")
        return self._context

    def set_default_timeout(self, timeout: int) -> None:
        self.default_timeout = timeout
        self.page.set_default_timeout(timeout)

    # -- Navigation ------------------------------------------------------------

    def goto(self, url: str, timeout: int | None = None) -> dict:
        """Navigate to URL. Returns page_info dict; navigation errors propagate."""
        self.page.goto(url, wait_until="domcontentloaded", timeout=timeout)
        log.debug("Navigated to %s", url)
        return self.page_info()

    def wait_for_network_idle(self, timeout: int | None = None) -> None:
        self.page.wait_for_load_state("networkidle", timeout=timeout)

    def wait_for_url(self, url: str | Pattern[str], timeout: int | None = None) -> None:
        self.page.wait_for_url(url, timeout=timeout)

    # -- Queries ---------------------------------------------------------------

    def is_visible(self, selector: str, timeout: int = 3000) -> bool:
        """Wait up to ``timeout`` ms for selector to become visible.

        Returns False on timeout instead of raising.
        """
        try:
            self.page.locator(selector).first.wait_for(state="visible", timeout=timeout)
        except PlaywrightTimeout:
            return False
        return True

    def wait_for_selector(self, selector: str, timeout: int | None = None) -> None:
        self.page.wait_for_selector(selector, timeout=timeout)

    def wait_for_function(
        self, expression: str, arg: Any = None, timeout: int | None = None
    ) -> None:
        """Wait until a JS predicate returns truthy. Raises PlaywrightTimeout."""
        self.page.wait_for_function(expression, arg=arg, timeout=timeout)

    # -- Interaction -----------------------------------------------------------

    def click(
        self,
        selector: str | None = None,
        text: str | None = None,
        role: str | None = None,
        name: str | None = None,
        timeout: int | None = None,
    ) -> None:
        """Click an element by CSS selector, visible text, or ARIA role + name.

        Exactly one of selector, text, or role must be provided.
        """
        page = self.page
        if selector:
            page.click(selector, timeout=timeout)
        elif text:
            page.get_by_text(text, exact=False).first.click(timeout=timeout)
        elif role:
            page.get_by_role(role, name=name).click(timeout=timeout)
        else:
            raise ValueError("Provide one of: selector, text, or role")

    def fill(self, selector: str, value: str, timeout: int | None = None) -> None:
        """Fill a form field identified by CSS selector."""
        self.page.fill(selector, value, timeout=timeout)

    # -- Page info -------------------------------------------------------------

    def page_info(self) -> dict:
        """Return url and title of the current page."""
        page = self.page
        title = ""
        try:
            title = page.title()
        except PlaywrightTimeout:
            log.debug("Title lookup timed out for %s", page.url)
        return {"url": page.url, "title": title}

    # -- Cookies and storage state ---------------------------------------------

    def cookies(self) -> list[dict]:
        return self.context.cookies()

    def add_cookies(self, cookies: list[dict]) -> None:
        self.context.add_cookies(cookies)

    def clear_cookies(self) -> None:
        self.context.clear_cookies()

    def storage_state(self) -> dict:
        """Export cookies and localStorage of the context as a dict."""
        return self.context.storage_state()
