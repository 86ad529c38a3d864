"""Test helpers for portalcheck."""
from __future__ import annotations

from playwright.sync_api import TimeoutError as PlaywrightTimeout

LOGIN_HEADING = 'h1:has-text("Sign in to your account")'

SESSION_COOKIE = {
    "name": "_app_session",
    "value": "abc123",
    "domain": "app.example.com",
    "path": "/",
    "expires": -1,
    "httpOnly": True,
    "secure": True,
    "sameSite": "Lax",
}


class LogCollector:
    """Stand-in for a structlog logger that collects records.

    Passed to Authenticator(logger=...) so tests can assert on events
    without configuring structlog.
    """

    def __init__(self) -> None:
        self.records: list[dict] = []

    def _log(self, level: str, event: str, **kw) -> None:
        self.records.append({"event": event, "log_level": level, **kw})

    def debug(self, event, **kw):
        self._log("debug", event, **kw)

    def info(self, event, **kw):
        self._log("info", event, **kw)

    def warning(self, event, **kw):
        self._log("warning", event, **kw)

    def error(self, event, **kw):
        self._log("error", event, **kw)

    def events(self, level: str | None = None) -> list[str]:
        return [
            r["event"] for r in self.records
            if level is None or r["log_level"] == level
        ]


class FakeDriver:
    """Scripted browser driver.

    The fake app shows the login heading on every navigation until the
    context holds an accepted session cookie or a login was submitted with
    ``login_succeeds``.
    """

    def __init__(
        self,
        authenticated: bool = False,
        accept_cookies: bool = True,
        captcha_solved: bool = True,
        form_present: bool = True,
        submit_present: bool = True,
        login_succeeds: bool = True,
        probe_fails: bool = False,
        navigation_fails: bool = False,
        storage_fails: bool = False,
        captcha_error: Exception | None = None,
    ) -> None:
        self.authenticated = authenticated
        self.accept_cookies = accept_cookies
        self.captcha_solved = captcha_solved
        self.form_present = form_present
        self.submit_present = submit_present
        self.login_succeeds = login_succeeds
        self.probe_fails = probe_fails
        self.navigation_fails = navigation_fails
        self.storage_fails = storage_fails
        self.captcha_error = captcha_error

        self.on_login_page = False
        self.context_cookies: list[dict] = []
        self.filled: dict[str, str] = {}
        self.calls: list[str] = []

    def calls_to(self, name: str) -> int:
        return self.calls.count(name)

    # -- driver surface --------------------------------------------------------

    def goto(self, url: str, timeout: int | None = None) -> dict:
        self.calls.append("goto")
        if self.navigation_fails:
            raise PlaywrightTimeout(f"Timeout {timeout}ms exceeded navigating to {url}")
        self.on_login_page = not self.authenticated
        return {"url": url, "title": ""}

    def is_visible(self, selector: str, timeout: int = 3000) -> bool:
        self.calls.append("is_visible")
        if self.probe_fails:
            raise RuntimeError("Target page, context or browser has been closed")
        return selector == LOGIN_HEADING and self.on_login_page

    def fill(self, selector: str, value: str, timeout: int | None = None) -> None:
        self.calls.append("fill")
        if not self.form_present:
            raise PlaywrightTimeout(f"waiting for locator('{selector}')")
        self.filled[selector] = value

    def wait_for_function(self, expression: str, arg=None, timeout: int | None = None) -> None:
        self.calls.append("wait_for_function")
        if self.captcha_error is not None:
            raise self.captcha_error
        if not self.captcha_solved:
            raise PlaywrightTimeout(f"Timeout {timeout}ms exceeded.")

    def click(self, selector=None, text=None, role=None, name=None, timeout=None) -> None:
        self.calls.append("click")
        if not self.submit_present:
            raise PlaywrightTimeout(f"waiting for get_by_role({role!r}, name={name!r})")
        if self.login_succeeds:
            self.authenticated = True
            self.context_cookies = [dict(SESSION_COOKIE)]

    def wait_for_network_idle(self, timeout: int | None = None) -> None:
        self.calls.append("wait_for_network_idle")
        self.on_login_page = not self.authenticated

    def add_cookies(self, cookies: list[dict]) -> None:
        self.calls.append("add_cookies")
        if not self.accept_cookies:
            raise ValueError("Cookie should have a url or a domain/path pair")
        self.context_cookies.extend(cookies)
        if any(c.get("name") == SESSION_COOKIE["name"] for c in cookies):
            self.authenticated = True

    def storage_state(self) -> dict:
        self.calls.append("storage_state")
        if self.storage_fails:
            raise OSError("Target closed")
        return {"cookies": list(self.context_cookies), "origins": []}
