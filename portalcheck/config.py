"""Load and provide portalcheck configuration from portalcheck.toml."""
from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from portalcheck.paths import CONFIG_FILE_NAME, CREDENTIALS_ENV, DEFAULT_STORAGE_FILE

_EMAIL_KEY = "PORTALCHECK_EMAIL"
_PASSWORD_KEY = "PORTALCHECK_PASSWORD"


@dataclass(frozen=True)
class Credentials:
    email: str
    password: str = field(repr=False)

    def __post_init__(self) -> None:
        if not self.email or not self.password:
            raise ValueError("Credentials need a non-empty email and password")


@dataclass
class Timeouts:
    """All values in milliseconds, as Playwright expects them."""

    default: int = 30_000
    login: int = 120_000  # whole test budget when a human solves the captcha
    recaptcha: int = 60_000
    navigation: int = 15_000
    login_probe: int = 3_000


@dataclass
class Selectors:
    login_heading: str = 'h1:has-text("Sign in to your account")'
    email_input: str = "#user_email"
    password_input: str = "#user_password"
    submit_role: str = "button"
    submit_name: str = "Sign In"
    recaptcha_response: str = '[name="g-recaptcha-response"]'
    dashboard_user_menu: str = '[data-testid="user-menu"]'


@dataclass
class BrowserSettings:
    headless: bool = True
    viewport: tuple[int, int] = (1920, 1080)


@dataclass
class LogSettings:
    enabled: bool = True
    level: str = "info"
    json: bool = False


@dataclass
class Config:
    project_root: Path
    base_url: str = "https://app.shiftcare.com/"
    login_url: str = "https://app.shiftcare.com/"
    dashboard_url: str = "https://app.shiftcare.com/users/dashboard"
    storage_file: Path = DEFAULT_STORAGE_FILE
    session_valid_hours: float = 24
    timeouts: Timeouts = field(default_factory=Timeouts)
    selectors: Selectors = field(default_factory=Selectors)
    browser: BrowserSettings = field(default_factory=BrowserSettings)
    logging: LogSettings = field(default_factory=LogSettings)
    credentials: Credentials | None = None

    def __post_init__(self) -> None:
        if not self.storage_file.is_absolute():
            self.storage_file = self.project_root / self.storage_file

    @property
    def session_valid_seconds(self) -> float:
        return self.session_valid_hours * 3600


def read_env_file(env_path: Path) -> dict[str, str]:
    """Read key=value pairs from an .env file (no shell expansion)."""
    values: dict[str, str] = {}
    with open(env_path) as fh:
        for line in fh:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            key, _, value = line.partition("=")
            values[key.strip()] = value.strip()
    return values


def _resolve_credentials(section: dict, secrets_file: Path) -> Credentials | None:
    # Precedence: portalcheck.toml < secrets file < environment.
    email = section.get("email", "")
    password = section.get("password", "")
    if secrets_file.exists():
        secrets = read_env_file(secrets_file)
        email = secrets.get(_EMAIL_KEY, email)
        password = secrets.get(_PASSWORD_KEY, password)
    email = os.environ.get(_EMAIL_KEY, email)
    password = os.environ.get(_PASSWORD_KEY, password)
    if not email or not password:
        return None
    return Credentials(email=email, password=password)


def load(project_root: Path | None = None, secrets_file: Path | None = None) -> Config:
    """Load config from portalcheck.toml; all fields have defaults."""
    if project_root is None:
        project_root = Path.cwd()
    if secrets_file is None:
        secrets_file = CREDENTIALS_ENV

    toml_path = project_root / CONFIG_FILE_NAME
    data: dict = {}
    if toml_path.exists():
        with open(toml_path, "rb") as f:
            data = tomllib.load(f)

    urls = data.get("urls", {})
    auth = data.get("auth", {})
    browser = data.get("browser", {})
    logging_ = data.get("logging", {})

    defaults = Config(project_root=project_root)
    timeouts = Timeouts(**data.get("timeouts", {}))
    selectors = Selectors(**data.get("selectors", {}))
    viewport = browser.get("viewport", list(BrowserSettings().viewport))

    return Config(
        project_root=project_root.resolve(),
        base_url=urls.get("base_url", defaults.base_url),
        login_url=urls.get("login_url", defaults.login_url),
        dashboard_url=urls.get("dashboard_url", defaults.dashboard_url),
        storage_file=Path(auth.get("storage_file", DEFAULT_STORAGE_FILE)),
        session_valid_hours=auth.get("session_valid_hours", defaults.session_valid_hours),
        timeouts=timeouts,
        selectors=selectors,
        browser=BrowserSettings(
            headless=browser.get("headless", True),
            viewport=(viewport[0], viewport[1]),
        ),
        logging=LogSettings(
            enabled=logging_.get("enabled", True),
            level=logging_.get("level", "info"),
            json=logging_.get("json", False),
        ),
        credentials=_resolve_credentials(data.get("credentials", {}), secrets_file),
    )
