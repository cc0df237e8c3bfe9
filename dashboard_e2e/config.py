"""Configuration module for the dashboard end-to-end tests."""

import os
import json
import logging
from enum import Enum
from pathlib import Path
from typing import Dict, Any, Optional

import yaml
from dotenv import find_dotenv, load_dotenv

from dashboard_e2e.core.exceptions import MissingSettingError, UnknownBrowserTypeError

logger = logging.getLogger(__name__)

# Required settings
DASHBOARD_SITE_EXTENSION_LOCATION = "DashboardSiteExtensionLocation"
STORAGE_ACCOUNT = "StorageAccount"
SERVICE_BUS_ACCOUNT = "ServiceBusAccount"
TEST_BROWSER = "TestBrowser"

REQUIRED_SETTINGS = (
    DASHBOARD_SITE_EXTENSION_LOCATION,
    STORAGE_ACCOUNT,
    SERVICE_BUS_ACCOUNT,
    TEST_BROWSER,
)

# Optional settings
DASHBOARD_SERVER_COMMAND = "DashboardServerCommand"
DASHBOARD_SERVER_START_TIMEOUT = "DashboardServerStartTimeout"
LOG_LEVEL = "LogLevel"

SETTINGS_PATH_ENV = "DASHBOARD_E2E_SETTINGS"
DEFAULT_SETTINGS_FILE = "e2e.settings.json"

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class BrowserType(Enum):
    """Browsers the dashboard tests can drive, as (name, engine, channel) triples."""
    CHROME = ("chrome", "chromium", "chrome")
    CHROMIUM = ("chromium", "chromium", None)
    EDGE = ("edge", "chromium", "msedge")
    FIREFOX = ("firefox", "firefox", None)
    SAFARI = ("safari", "webkit", None)
    WEBKIT = ("webkit", "webkit", None)

    @property
    def engine(self) -> str:
        return self.value[1]

    @property
    def channel(self) -> Optional[str]:
        return self.value[2]

    @classmethod
    def parse(cls, name: Optional[str]) -> "BrowserType":
        """
        Parse a browser name, ignoring case.

        Args:
            name: Browser name, e.g. 'chrome' or 'Firefox'

        Returns:
            The matching BrowserType

        Raises:
            UnknownBrowserTypeError: If the name matches no supported browser
        """
        key = (name or "").strip().upper()
        member = cls.__members__.get(key)
        if member is None:
            raise UnknownBrowserTypeError(f"Unknown browser type: {name}")
        return member


class Settings:
    """
    Layered settings lookup: application settings first, then the environment.
    """

    def __init__(
        self,
        app_settings: Optional[Dict[str, Any]] = None,
        settings_path: Optional[str] = None,
        load_env_file: bool = True
    ):
        """
        Initialize settings.

        Args:
            app_settings: Explicit application settings. Takes precedence over settings_path.
            settings_path: Path to a JSON or YAML settings file. If None, uses
                $DASHBOARD_E2E_SETTINGS or ./e2e.settings.json when present.
            load_env_file: Whether to load a .env file into the environment
        """
        if load_env_file:
            # Look for .env from the working directory; never override the environment
            load_dotenv(find_dotenv(usecwd=True), override=False)

        if app_settings is not None:
            self.settings_path = None
            self.app_settings = dict(app_settings)
        else:
            self.settings_path = settings_path or self._default_settings_path()
            self.app_settings = self._load_settings(self.settings_path)

    @staticmethod
    def _default_settings_path() -> Optional[str]:
        path = os.environ.get(SETTINGS_PATH_ENV)
        if path:
            return path
        if os.path.exists(DEFAULT_SETTINGS_FILE):
            return DEFAULT_SETTINGS_FILE
        return None

    def _load_settings(self, path: Optional[str]) -> Dict[str, Any]:
        """
        Load application settings from a JSON or YAML file.

        Args:
            path: Settings file path, or None for no file

        Returns:
            Flat dictionary of settings
        """
        if not path:
            return {}

        suffix = Path(path).suffix.lower()
        with open(path, 'r', encoding='utf-8') as f:
            if suffix in ('.yaml', '.yml'):
                data = yaml.safe_load(f) or {}
            else:
                data = json.load(f)

        if not isinstance(data, dict):
            raise ValueError(f"Settings file {path} must contain a mapping")

        # Accept either {"appSettings": {...}} or a flat mapping
        section = data.get("appSettings", data)
        if not isinstance(section, dict):
            raise ValueError(f"'appSettings' in {path} must be a mapping")

        logger.info(f"Loaded {len(section)} app settings from {path}")
        return dict(section)

    def _lookup(self, name: str) -> Optional[str]:
        value = self.app_settings.get(name)
        if value is not None and str(value).strip():
            return str(value)

        value = os.environ.get(name)
        if value is not None and value.strip():
            return value

        return None

    def get_required(self, name: str) -> str:
        """
        Get a required setting from app settings, falling back to the environment.

        Args:
            name: Setting name

        Returns:
            The first non-blank value found

        Raises:
            MissingSettingError: If neither source defines the setting
        """
        value = self._lookup(name)
        if value is None:
            raise MissingSettingError(name)
        return value

    def get_optional(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Get a setting using the same lookup order, returning default if absent."""
        value = self._lookup(name)
        return default if value is None else value


def configure_logging(level: Optional[str] = None, settings: Optional[Settings] = None):
    """Configure logging for a test run.

    Args:
        level: Log level name. Falls back to the LogLevel setting, then INFO.
        settings: Settings to read LogLevel from. Without one, only the
            environment is consulted.
    """
    if level is None:
        if settings is None:
            settings = Settings(app_settings={}, load_env_file=False)
        level = settings.get_optional(LOG_LEVEL)
    log_level = getattr(logging, (level or "INFO").upper(), logging.INFO)

    logging.basicConfig(
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler()]
    )
    # basicConfig is a no-op once handlers exist, so apply the level directly
    logging.getLogger().setLevel(log_level)
