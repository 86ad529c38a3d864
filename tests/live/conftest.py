"""Fixtures for checks against the real application.

Skipped unless PORTALCHECK_LIVE=1. Settings come from portalcheck.toml in
the repo root; credentials from the secrets file or the environment. With
a headed browser (``[browser] headless = false``) a human can solve the
reCAPTCHA during the first login; later runs reuse the stored session.
"""
from __future__ import annotations

import os
from pathlib import Path
from typing import Iterator

import pytest

from libs.web_agent.browser import BrowserSession
from portalcheck import config as config_module
from portalcheck.config import Config
from portalcheck.harness import E2ETest
from portalcheck.logsetup import configure_logging

REPO_ROOT = Path(__file__).resolve().parent.parent.parent


def pytest_collection_modifyitems(config, items):
    if os.environ.get("PORTALCHECK_LIVE") == "1":
        return
    skip = pytest.mark.skip(reason="live checks disabled (set PORTALCHECK_LIVE=1)")
    for item in items:
        if "live" in item.keywords:
            item.add_marker(skip)


@pytest.fixture(scope="session")
def live_config() -> Config:
    cfg = config_module.load(REPO_ROOT)
    configure_logging(cfg.logging)
    return cfg


@pytest.fixture
def live_test(live_config: Config, request) -> Iterator[E2ETest]:
    """E2ETest around a fresh browser, logging the test as one case."""
    with BrowserSession(
        headless=live_config.browser.headless,
        viewport=live_config.browser.viewport,
        default_timeout=live_config.timeouts.default,
    ) as browser, E2ETest(browser, live_config) as t, t.case(request.node.name):
        yield t
