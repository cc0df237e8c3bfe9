"""Test fixture owning the dashboard server and browser session."""

import logging
from typing import Any, Callable, Optional

from dashboard_e2e.config import (
    BrowserType,
    Settings,
    DASHBOARD_SERVER_COMMAND,
    DASHBOARD_SERVER_START_TIMEOUT,
    DASHBOARD_SITE_EXTENSION_LOCATION,
    SERVICE_BUS_ACCOUNT,
    STORAGE_ACCOUNT,
    TEST_BROWSER,
)
from dashboard_e2e.core.browser_interface import DashboardSession, JobHost
from dashboard_e2e.core.dashboard import WebJobsDashboard
from dashboard_e2e.core.dashboard_server import DashboardServer
from dashboard_e2e.core.diagnostics_manager import DiagnosticsManager
from dashboard_e2e.core.exceptions import FixtureDisposedError
from dashboard_e2e.core.job_host import DoneSignal, run_test_host
from dashboard_e2e.core.site_extension import find_site_extension
from dashboard_e2e.core.storage_account import WebJobsStorageAccount

logger = logging.getLogger(__name__)


class DashboardTestFixture:
    """
    Owns the resources a dashboard test run needs.

    The server is started when the fixture is constructed. The browser session
    is created on first use and replaced if it has been torn down. Everything
    is released by dispose(), after which the accessors raise
    FixtureDisposedError.
    """

    # Subclasses running jobs set this to build their job host from a config
    job_host_factory: Optional[Callable[[Any], JobHost]] = None

    def __init__(
        self,
        clean_storage_account: bool = True,
        connection_string: Optional[str] = None,
        settings: Optional[Settings] = None,
        headless: bool = True,
        server_factory: Callable[..., DashboardServer] = DashboardServer,
        storage_factory: Callable[[str], WebJobsStorageAccount] = WebJobsStorageAccount,
        dashboard_factory: Callable[..., DashboardSession] = WebJobsDashboard,
        diagnostics: Optional[DiagnosticsManager] = None
    ):
        """
        Resolve settings, prepare storage and start the dashboard server.

        Args:
            clean_storage_account: Whether to empty the storage account first
            connection_string: Connection string for the server. Defaults to the
                storage account's.
            settings: Settings source. Defaults to app settings file + environment.
            headless: Whether browser sessions hide their window
            server_factory: Builds the dashboard server
            storage_factory: Builds the storage account from a connection string
            dashboard_factory: Builds a browser session
            diagnostics: Optional lifecycle diagnostics
        """
        self._is_disposed = False
        self._server = None
        self._dashboard: Optional[DashboardSession] = None

        self.settings = settings or Settings()
        self.headless = headless
        self.dashboard_factory = dashboard_factory
        self.diagnostics = diagnostics or DiagnosticsManager(enabled=False)

        # DashboardSiteExtensionLocation is the unzipped site extension root,
        # where "extension.xml" lives
        site_root = self.settings.get_required(DASHBOARD_SITE_EXTENSION_LOCATION)
        self.dashboard_location = find_site_extension(site_root)

        self._storage = storage_factory(self.settings.get_required(STORAGE_ACCOUNT))
        self._service_bus_account = self.settings.get_required(SERVICE_BUS_ACCOUNT)

        if clean_storage_account:
            with self.diagnostics.track_stage("storage_clean"):
                self._storage.empty()

        if connection_string is None:
            connection_string = self._storage.connection_string

        server_options = {}
        command = self.settings.get_optional(DASHBOARD_SERVER_COMMAND)
        if command:
            server_options["command"] = command
        start_timeout = self.settings.get_optional(DASHBOARD_SERVER_START_TIMEOUT)
        if start_timeout:
            server_options["start_timeout"] = float(start_timeout)

        with self.diagnostics.track_stage("server_start"):
            self._server = server_factory(self.dashboard_location, connection_string, **server_options)
            self._server.start()

    @property
    def is_disposed(self) -> bool:
        return self._is_disposed

    @property
    def server(self) -> DashboardServer:
        self._guard_not_disposed("DashboardServer")
        return self._server

    @property
    def storage_account(self) -> WebJobsStorageAccount:
        self._guard_not_disposed("WebJobsStorageAccount")
        return self._storage

    @property
    def service_bus_account(self) -> str:
        self._guard_not_disposed("ServiceBusAccount")
        return self._service_bus_account

    def create_dashboard(self) -> DashboardSession:
        """
        Get the browser session, launching a new one if needed.

        Returns:
            The live session. The same instance is returned until it is disposed.

        Raises:
            UnknownBrowserTypeError: If TestBrowser names no supported browser
        """
        self._guard_not_disposed("WebJobsDashboard")

        if self._dashboard is None or self._dashboard.is_disposed:
            browser = BrowserType.parse(self.settings.get_required(TEST_BROWSER))

            with self.diagnostics.track_stage("browser_launch"):
                self._dashboard = self.dashboard_factory(
                    self._server.virtual_path, browser, headless=self.headless
                )

        return self._dashboard

    def run_test_host(
        self,
        config: Any,
        done: DoneSignal,
        host_factory: Optional[Callable[[Any], JobHost]] = None
    ) -> None:
        """
        Run a job host until the done signal fires.

        Args:
            config: Job host configuration
            done: Signal the job under test sets when it finishes
            host_factory: Builds the host. Defaults to job_host_factory.
        """
        factory = host_factory or self.job_host_factory
        if factory is None:
            raise ValueError("No job host factory given and job_host_factory is not set")

        run_test_host(factory, config, done)

    def dispose(self) -> None:
        """Release the server and the browser session. Safe to call more than once."""
        if self._is_disposed:
            return
        self._is_disposed = True

        with self.diagnostics.track_stage("dispose"):
            try:
                if self._server is not None:
                    self._server.dispose()
            finally:
                if self._dashboard is not None:
                    self._dashboard.dispose()
                    self._dashboard = None

    def _guard_not_disposed(self, object_name: str) -> None:
        if self._is_disposed:
            raise FixtureDisposedError(object_name)

    def __enter__(self) -> "DashboardTestFixture":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.dispose()
