"""Playwright browser driving with session-aware login.

Provides a thin browser session wrapper and the authenticator that decides
between reusing a stored session and logging in through the form.
"""

from libs.web_agent.auth.authenticator import Authenticator, LoginError, LoginStage
from libs.web_agent.browser import BrowserSession

__all__ = ["Authenticator", "BrowserSession", "LoginError", "LoginStage"]
