"""Browser session driving the WebJobs dashboard."""

import logging
from enum import Enum
from typing import Optional
from urllib.parse import urljoin

from playwright.sync_api import sync_playwright, Browser, BrowserContext, Page, Playwright

from dashboard_e2e.config import BrowserType
from dashboard_e2e.core.exceptions import FixtureDisposedError

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """Lifecycle of a dashboard browser session."""
    UNINITIALIZED = "uninitialized"
    LIVE = "live"
    DISPOSED = "disposed"


class WebJobsDashboard:
    """Browser session pointed at a running dashboard server."""

    def __init__(self, virtual_path: str, browser: BrowserType, headless: bool = True):
        """Launch a browser against the dashboard.

        Args:
            virtual_path: Base URL of the dashboard server
            browser: Which browser to launch
            headless: Whether to hide the browser window
        """
        self.virtual_path = virtual_path if virtual_path.endswith("/") else virtual_path + "/"
        self.browser_type = browser
        self.headless = headless
        self.state = SessionState.UNINITIALIZED

        self.playwright: Optional[Playwright] = None
        self.browser: Optional[Browser] = None
        self.context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None

        self._launch()

    def _launch(self) -> None:
        self.playwright = sync_playwright().start()
        try:
            launcher = getattr(self.playwright, self.browser_type.engine)
            launch_options = {"headless": self.headless}
            if self.browser_type.channel:
                launch_options["channel"] = self.browser_type.channel

            self.browser = launcher.launch(**launch_options)
            self.context = self.browser.new_context(
                base_url=self.virtual_path,
                viewport={'width': 1280, 'height': 1024}
            )
            self._page = self.context.new_page()
        except Exception:
            self._close_browser()
            raise

        self.state = SessionState.LIVE
        logger.info(f"Launched {self.browser_type.name.lower()} session for {self.virtual_path}")

    @property
    def is_disposed(self) -> bool:
        return self.state is SessionState.DISPOSED

    def _guard_not_disposed(self) -> None:
        if self.is_disposed:
            raise FixtureDisposedError(type(self).__name__)

    @property
    def page(self) -> Page:
        self._guard_not_disposed()
        return self._page

    def url_for(self, path: str = "") -> str:
        """Join a dashboard-relative path onto the virtual path."""
        return urljoin(self.virtual_path, path.lstrip("/"))

    def navigate(self, path: str = "") -> Optional[int]:
        """Navigate to a dashboard page.

        Args:
            path: Path relative to the dashboard root

        Returns:
            HTTP status of the navigation response, or None if there was none
        """
        self._guard_not_disposed()
        url = self.url_for(path)
        logger.debug(f"Navigating to {url}")
        response = self._page.goto(url, wait_until="load")
        return response.status if response else None

    def title(self) -> str:
        self._guard_not_disposed()
        return self._page.title()

    def screenshot(self, path: str) -> None:
        self._guard_not_disposed()
        self._page.screenshot(path=path)

    def _close_browser(self) -> None:
        if self._page:
            self._page.close()
        if self.context:
            self.context.close()
        if self.browser:
            self.browser.close()
        if self.playwright:
            self.playwright.stop()

        self._page = None
        self.context = None
        self.browser = None
        self.playwright = None

    def dispose(self) -> None:
        """Close the browser. Safe to call more than once."""
        if self.is_disposed:
            return
        self.state = SessionState.DISPOSED

        self._close_browser()
        logger.info("Dashboard browser session closed")
