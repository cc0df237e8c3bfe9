"""Test configuration for pytest."""

import logging

import pytest

from dashboard_e2e.config import Settings, REQUIRED_SETTINGS


class FakeServer:
    """Stands in for DashboardServer without starting a process."""

    instances = []

    def __init__(self, site_path, connection_string, **options):
        self.site_path = site_path
        self.connection_string = connection_string
        self.options = options
        self.virtual_path = "http://127.0.0.1:8080/"
        self.start_calls = 0
        self.dispose_calls = 0
        FakeServer.instances.append(self)

    def start(self):
        self.start_calls += 1

    def dispose(self):
        self.dispose_calls += 1


class FakeStorage:
    """Stands in for WebJobsStorageAccount."""

    def __init__(self, connection_string):
        self.connection_string = connection_string
        self.empty_calls = 0

    def empty(self):
        self.empty_calls += 1
        return {"containers": 0, "queues": 0, "tables": 0}


class FakeDashboard:
    """Stands in for WebJobsDashboard without launching a browser."""

    def __init__(self, virtual_path, browser, headless=True):
        self.virtual_path = virtual_path
        self.browser = browser
        self.headless = headless
        self.dispose_calls = 0
        self.is_disposed = False

    def dispose(self):
        self.dispose_calls += 1
        self.is_disposed = True


@pytest.fixture(autouse=True)
def restore_root_log_level():
    """configure_logging changes the root logger, so put it back."""
    root = logging.getLogger()
    level = root.level
    yield
    root.setLevel(level)


@pytest.fixture
def clean_environment(monkeypatch):
    """Remove every dashboard setting from the environment."""
    for name in REQUIRED_SETTINGS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.delenv("DashboardServerCommand", raising=False)
    monkeypatch.delenv("DashboardServerStartTimeout", raising=False)
    monkeypatch.delenv("LogLevel", raising=False)
    monkeypatch.delenv("DASHBOARD_E2E_SETTINGS", raising=False)
    return monkeypatch


@pytest.fixture
def site_root(tmp_path):
    """Site extension root with a single version folder."""
    root = tmp_path / "site-extension"
    (root / "1.0.0").mkdir(parents=True)
    (root / "extension.xml").write_text("<extension />")
    return root


@pytest.fixture
def app_settings(site_root):
    return {
        "DashboardSiteExtensionLocation": str(site_root),
        "StorageAccount": "DefaultEndpointsProtocol=https;AccountName=test;AccountKey=a2V5",
        "ServiceBusAccount": "Endpoint=sb://test.servicebus.windows.net/",
        "TestBrowser": "chrome",
    }


@pytest.fixture
def settings(clean_environment, app_settings):
    return Settings(app_settings=app_settings, load_env_file=False)


@pytest.fixture
def server_instances():
    """Every FakeServer built during the test."""
    FakeServer.instances = []
    return FakeServer.instances


@pytest.fixture
def make_fixture(settings, server_instances):
    """Build a DashboardTestFixture (or a subclass) wired to fakes."""
    from dashboard_e2e.core.fixture import DashboardTestFixture

    def _make(fixture_class=DashboardTestFixture, **kwargs):
        kwargs.setdefault("settings", settings)
        kwargs.setdefault("server_factory", FakeServer)
        kwargs.setdefault("storage_factory", FakeStorage)
        kwargs.setdefault("dashboard_factory", FakeDashboard)
        return fixture_class(**kwargs)

    return _make
