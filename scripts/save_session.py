#!/usr/bin/env python3
"""
Bootstrap or inspect the saved login session.

Opens a headed browser, reuses the saved session if it is still fresh,
otherwise fills the login form and waits for you to solve the reCAPTCHA.
The resulting storage state is what the browser checks reuse.

    .venv/bin/python3 scripts/save_session.py
    xvfb-run .venv/bin/python3 scripts/save_session.py --headless

Flags:
    --clear      Delete the saved session first (forces a fresh login)
    --status     Only report whether the saved session is fresh
    --headless   Run without a visible window (captcha must not be required)
"""

import argparse
import sys
from pathlib import Path

import structlog

from libs.web_agent.auth.authenticator import Authenticator
from libs.web_agent.browser import BrowserSession
from portalcheck import config as config_module
from portalcheck.logsetup import configure_logging

log = structlog.get_logger("save_session")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("--project-root", type=Path, default=None)
    parser.add_argument("--clear", action="store_true")
    parser.add_argument("--status", action="store_true")
    parser.add_argument("--headless", action="store_true")
    args = parser.parse_args(argv)

    cfg = config_module.load(args.project_root)
    configure_logging(cfg.logging)

    if args.status:
        # No browser needed to check the file age.
        fresh = Authenticator(driver=None, cfg=cfg).is_session_fresh()
        print(f"{cfg.storage_file}: {'fresh' if fresh else 'missing or expired'}")
        return 0 if fresh else 1

    with BrowserSession(
        headless=args.headless,
        viewport=cfg.browser.viewport,
        default_timeout=cfg.timeouts.login,
    ) as session:
        auth = Authenticator(session, cfg)
        if args.clear:
            auth.clear_session()
        try:
            auth.ensure_authenticated()
        except Exception as exc:
            log.error("could not establish a session", error=str(exc))
            return 1

    log.info("session ready", path=str(cfg.storage_file))
    return 0


if __name__ == "__main__":
    sys.exit(main())
