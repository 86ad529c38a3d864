"""Shared test fixtures for portalcheck.

Fixture tiers:
  test_config  : Config with an isolated session store and short timeouts
  fake_driver  : scripted driver standing in for BrowserSession
  collector    : log collector injected into the Authenticator
  auth         : Authenticator wired to the three above
"""
from __future__ import annotations

from pathlib import Path

import pytest

from libs.web_agent.auth.authenticator import Authenticator
from portalcheck.config import Config, Credentials, Timeouts
from tests.helpers import FakeDriver, LogCollector

REPO_ROOT = Path(__file__).parent.parent


@pytest.fixture
def test_config(tmp_path: Path) -> Config:
    """Isolated Config for a single test: tmp session store, short timeouts."""
    return Config(
        project_root=tmp_path,
        base_url="https://app.example.com/",
        login_url="https://app.example.com/",
        dashboard_url="https://app.example.com/users/dashboard",
        storage_file=tmp_path / "auth" / "user.json",
        session_valid_hours=24,
        timeouts=Timeouts(
            default=1000, login=5000, recaptcha=200, navigation=1000, login_probe=100,
        ),
        credentials=Credentials(email="user@example.com", password="pw"),
    )


@pytest.fixture
def fake_driver() -> FakeDriver:
    return FakeDriver()


@pytest.fixture
def collector() -> LogCollector:
    return LogCollector()


@pytest.fixture
def auth(fake_driver: FakeDriver, test_config: Config, collector: LogCollector) -> Authenticator:
    return Authenticator(fake_driver, test_config, logger=collector)
