"""Central path configuration for portalcheck.

Secrets live outside the repo under ~/.portalcheck/secrets/.
Override via PORTALCHECK_SECRETS_DIR if needed.
"""
from __future__ import annotations

import os
from pathlib import Path

# --- Root paths --------------------------------------------------------------

SECRETS_ROOT = Path(
    os.environ.get(
        "PORTALCHECK_SECRETS_DIR", str(Path.home() / ".portalcheck" / "secrets")
    )
)

# --- Project sub-paths -------------------------------------------------------

CONFIG_FILE_NAME = "portalcheck.toml"
DEFAULT_STORAGE_FILE = Path("playwright") / ".auth" / "user.json"

# --- Secrets sub-paths -------------------------------------------------------

CREDENTIALS_ENV = SECRETS_ROOT / "credentials.env"
