"""Pytest plugin providing dashboard fixtures.

Registered through the ``pytest11`` entry point, so installing the package is
enough to get the ``dashboard_fixture`` and ``dashboard`` fixtures.
"""

import os
from contextlib import contextmanager

import pytest

from dashboard_e2e.config import Settings, configure_logging, LOG_LEVEL
from dashboard_e2e.core.diagnostics_manager import DiagnosticsManager
from dashboard_e2e.core.fixture import DashboardTestFixture


def pytest_addoption(parser):
    """Add dashboard command-line options to pytest."""
    group = parser.getgroup("dashboard-e2e")
    group.addoption(
        "--visible", action="store_true", default=False, help="Show browser window"
    )
    group.addoption(
        "--e2e-settings", action="store", default=None,
        help="Path to the app settings JSON/YAML file"
    )
    group.addoption(
        "--e2e-diagnostics", action="store", default=None, metavar="DIR",
        help="Write fixture lifecycle diagnostics as JSON into this directory"
    )


def pytest_configure(config):
    """Apply the LogLevel setting, if one is configured."""
    settings = Settings(settings_path=config.getoption("--e2e-settings"))
    if settings.get_optional(LOG_LEVEL):
        configure_logging(settings=settings)


@contextmanager
def owned_fixture(fixture_class, settings, headless, diagnostics_dir, name):
    """Build a fixture, dispose it on exit and save its diagnostics.

    Args:
        fixture_class: DashboardTestFixture or a subclass
        settings: Settings for the fixture
        headless: Whether browser sessions hide their window
        diagnostics_dir: Directory for diagnostics JSON, or None to disable
        name: File name (without extension) for the diagnostics
    """
    diagnostics = DiagnosticsManager() if diagnostics_dir else None
    fixture = None
    try:
        fixture = fixture_class(settings=settings, headless=headless, diagnostics=diagnostics)
        yield fixture
    finally:
        try:
            if fixture is not None:
                fixture.dispose()
        finally:
            if diagnostics is not None:
                diagnostics.save(os.path.join(diagnostics_dir, f"{name}.json"))


@pytest.fixture(scope="session")
def e2e_settings(pytestconfig):
    """Settings resolved from --e2e-settings (or the default file) and the environment."""
    return Settings(settings_path=pytestconfig.getoption("--e2e-settings"))


@pytest.fixture(scope="session")
def e2e_diagnostics_dir(pytestconfig):
    """Directory given by --e2e-diagnostics, or None."""
    return pytestconfig.getoption("--e2e-diagnostics")


@pytest.fixture(scope="session")
def dashboard_fixture(pytestconfig, e2e_settings, e2e_diagnostics_dir):
    """Dashboard server shared by the whole session, disposed at the end."""
    with owned_fixture(
        DashboardTestFixture,
        e2e_settings,
        not pytestconfig.getoption("--visible"),
        e2e_diagnostics_dir,
        "session",
    ) as fixture:
        yield fixture


@pytest.fixture
def dashboard(dashboard_fixture):
    """Browser session on the dashboard, relaunched if a test closed it."""
    return dashboard_fixture.create_dashboard()


class DashboardTestClass:
    """Base class for dashboard test classes.

    Each subclass gets its own fixture (an instance of ``fixture_class``) for
    the duration of the class, available as ``self.fixture``, and the browser
    session as ``self.dashboard``. With --e2e-diagnostics, the lifecycle is
    saved as ``<ClassName>.json``.
    """

    fixture_class = DashboardTestFixture

    @pytest.fixture(scope="class", autouse=True)
    def _dashboard_class_fixture(self, request, pytestconfig, e2e_settings, e2e_diagnostics_dir):
        with owned_fixture(
            request.cls.fixture_class,
            e2e_settings,
            not pytestconfig.getoption("--visible"),
            e2e_diagnostics_dir,
            request.cls.__name__,
        ) as fixture:
            request.cls.fixture = fixture
            yield fixture

    @pytest.fixture(autouse=True)
    def _dashboard_session(self, _dashboard_class_fixture):
        self.dashboard = _dashboard_class_fixture.create_dashboard()
