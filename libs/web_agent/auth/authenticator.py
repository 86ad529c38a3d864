"""Session-aware login for the end-to-end checks.

Each run either reuses the persisted Playwright storage state or walks the
interactive login form, then writes the state back for the next run.

The only "am I logged in" oracle is the absence of the login page heading.
That is a heuristic: a page that fails to render the heading for any other
reason also counts as authenticated. It is kept that weak on purpose so the
checks behave like the suite always has; do not replace it with a stronger
probe without changing the tests that depend on it.
"""

from __future__ import annotations

import json
import os
import time
from enum import Enum
from pathlib import Path
from typing import Any, Callable

import structlog
from playwright.sync_api import Error as PlaywrightError

from portalcheck.config import Config, Credentials

log = structlog.get_logger(__name__)

# Hidden field populated by the reCAPTCHA widget once a human solves it.
_CAPTCHA_SOLVED_JS = """
(selector) => {
    const field = document.querySelector(selector);
    return !!field && field.value.length > 0;
}
"""


class LoginStage(Enum):
    START = "start"
    FORM_FILLED = "form_filled"
    CAPTCHA_PENDING = "captcha_pending"
    SUBMITTED = "submitted"
    VERIFIED = "verified"
    FAILED = "failed"


class LoginError(RuntimeError):
    """Interactive login failed; ``stage`` is the last stage reached."""

    def __init__(self, message: str, stage: LoginStage) -> None:
        super().__init__(message)
        self.stage = stage


class Authenticator:
    """Decide between session reuse and interactive login, and persist the result.

    ``driver`` is anything with the BrowserSession surface used below
    (goto, is_visible, fill, click, wait_for_function, wait_for_network_idle,
    add_cookies, storage_state).
    """

    def __init__(
        self,
        driver: Any,
        cfg: Config,
        logger: Any = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.driver = driver
        self.cfg = cfg
        self.log = logger if logger is not None else log
        self._clock = clock
        self.stage: LoginStage | None = None

    @property
    def storage_file(self) -> Path:
        return self.cfg.storage_file

    # -- Session store ---------------------------------------------------------

    def is_session_fresh(self) -> bool:
        """True iff the stored session was written less than the validity window ago."""
        try:
            mtime = self.storage_file.stat().st_mtime
        except FileNotFoundError:
            self.log.debug("no saved session", path=str(self.storage_file))
            return False
        except OSError as exc:
            self.log.error("session stat failed", path=str(self.storage_file), error=str(exc))
            return False

        age = self._clock() - mtime
        if age < self.cfg.session_valid_seconds:
            self.log.debug("saved session still valid", age_hours=round(age / 3600, 1))
            return True
        self.log.warning(
            "saved session expired",
            age_hours=round(age / 3600, 1),
            valid_hours=self.cfg.session_valid_hours,
        )
        return False

    def load_session(self) -> bool:
        """Inject stored cookies into the live context. Never touches the file."""
        path = self.storage_file
        if not path.exists():
            self.log.debug("no saved session file", path=str(path))
            return False

        self.log.info("loading saved session", path=str(path))
        try:
            with open(path, encoding="utf-8") as fh:
                state = json.load(fh)
        except (OSError, ValueError) as exc:
            self.log.error("failed to read session", error=str(exc))
            return False

        cookies = state.get("cookies") if isinstance(state, dict) else None
        if not isinstance(cookies, list):
            self.log.warning("invalid session data structure", path=str(path))
            return False

        try:
            self.driver.add_cookies(cookies)
        except Exception as exc:
            self.log.error("failed to inject session cookies", error=str(exc))
            return False
        self.log.info("saved session loaded", cookies=len(cookies))
        return True

    def save_session(self) -> bool:
        """Write the live context's storage state to the store (best-effort).

        The state goes to a sibling temp file first and replaces the store in
        one rename, so a failed write leaves the previous store untouched.
        """
        path = self.storage_file
        tmp = path.with_name(path.name + ".tmp")
        try:
            state = self.driver.storage_state()
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp, "w", encoding="utf-8") as fh:
                json.dump(state, fh, indent=2)
            os.replace(tmp, path)
        except Exception as exc:
            self.log.error("failed to save session", path=str(path), error=str(exc))
            tmp.unlink(missing_ok=True)
            return False
        self.log.info("session saved for future use", path=str(path))
        return True

    def clear_session(self) -> None:
        """Delete the stored session. Missing file is a no-op."""
        try:
            self.storage_file.unlink()
        except FileNotFoundError:
            self.log.debug("no saved session to clear")
        except OSError as exc:
            self.log.error("failed to clear saved session", error=str(exc))
        else:
            self.log.info("saved session cleared")

    # -- Page state ------------------------------------------------------------

    def goto_entry(self) -> None:
        url = self.cfg.login_url
        try:
            self.driver.goto(url, timeout=self.cfg.timeouts.navigation)
        except Exception as exc:
            self.log.error("failed to navigate to login page", url=url, error=str(exc))
            raise

    def is_on_login_surface(self) -> bool:
        selector = self.cfg.selectors.login_heading
        try:
            visible = self.driver.is_visible(selector, timeout=self.cfg.timeouts.login_probe)
        except Exception as exc:
            self.log.debug("login page check failed, assuming not on login page", error=str(exc))
            return False
        self.log.debug("login page check", on_login_page=visible)
        return visible

    def is_authenticated(self) -> bool:
        return not self.is_on_login_surface()

    # -- Login -----------------------------------------------------------------

    def login(self, credentials: Credentials | None = None) -> None:
        """Navigate to the entry page and log in unless already authenticated."""
        self.goto_entry()
        if self.is_authenticated():
            self.log.info("already logged in, skipping login")
            return
        self._interactive_login(credentials)

    def ensure_authenticated(self, credentials: Credentials | None = None) -> None:
        """Reuse a fresh stored session if it still works, otherwise log in."""
        try:
            if self.is_session_fresh():
                self.log.info("attempting to use saved session")
                self.load_session()
                self.goto_entry()
                if self.is_authenticated():
                    self.log.info("saved session is still valid")
                    return
                self.log.warning("saved session rejected, need fresh login")

            self.goto_entry()
            if self.is_on_login_surface():
                self.log.info("not logged in, performing fresh login")
                self._interactive_login(credentials)
            else:
                self.log.info("already logged in")
        except Exception as exc:
            self.log.error("failed to ensure logged in", error=str(exc))
            raise

    def _interactive_login(self, credentials: Credentials | None) -> None:
        creds = credentials or self.cfg.credentials
        self.stage = LoginStage.START
        self.log.info("starting login process")
        try:
            if creds is None:
                raise LoginError("No login credentials configured", self.stage)
            self._fill_form(creds)
            self._wait_for_captcha()
            self._submit()
            self._verify()
        except Exception as exc:
            failed_at = self.stage
            self.stage = LoginStage.FAILED
            self.log.error("login failed", stage=failed_at.value, error=str(exc))
            raise

        self.log.info("login completed successfully")
        self.save_session()

    def _fill_form(self, creds: Credentials) -> None:
        sel = self.cfg.selectors
        self.log.info("filling login form")
        try:
            self.driver.fill(sel.email_input, creds.email)
            self.driver.fill(sel.password_input, creds.password)
        except Exception as exc:
            self.log.error("failed to fill login form", error=str(exc))
            raise LoginError("Login form fields not accessible", self.stage) from exc
        self.stage = LoginStage.FORM_FILLED

    def _wait_for_captcha(self) -> None:
        """Wait for a human to solve the reCAPTCHA. A timeout is not fatal."""
        self.stage = LoginStage.CAPTCHA_PENDING
        timeout = self.cfg.timeouts.recaptcha
        self.log.info("please solve the reCAPTCHA manually", timeout_s=timeout / 1000)
        try:
            self.driver.wait_for_function(
                _CAPTCHA_SOLVED_JS,
                arg=self.cfg.selectors.recaptcha_response,
                timeout=timeout,
            )
        except PlaywrightError as exc:
            # Timeouts and page navigations during the wait; submit anyway.
            self.log.warning("reCAPTCHA solving timed out, continuing anyway", error=str(exc))
        else:
            self.log.info("reCAPTCHA solved")

    def _submit(self) -> None:
        sel = self.cfg.selectors
        try:
            self.driver.click(
                role=sel.submit_role,
                name=sel.submit_name,
                timeout=self.cfg.timeouts.default,
            )
        except Exception as exc:
            self.log.error("failed to submit login form", error=str(exc))
            raise LoginError("Could not submit login form", self.stage) from exc
        self.stage = LoginStage.SUBMITTED
        self.log.debug("login form submitted")

    def _verify(self) -> None:
        self.driver.wait_for_network_idle(timeout=self.cfg.timeouts.navigation)
        if self.is_on_login_surface():
            raise LoginError(
                "Still on login page after submission - login may have failed",
                self.stage,
            )
        self.stage = LoginStage.VERIFIED
        self.log.debug("login success verified")
