"""Command-line preflight checks for the dashboard end-to-end tests."""

import argparse
import logging
import sys
from typing import List, Optional, Tuple

from dashboard_e2e.config import (
    BrowserType,
    Settings,
    configure_logging,
    DASHBOARD_SITE_EXTENSION_LOCATION,
    REQUIRED_SETTINGS,
    TEST_BROWSER,
)
from dashboard_e2e.core.exceptions import DashboardTestError
from dashboard_e2e.core.site_extension import find_site_extension

logger = logging.getLogger(__name__)


def run_checks(settings: Settings) -> List[Tuple[str, bool, str]]:
    """Run every preflight check.

    Args:
        settings: Settings to check

    Returns:
        List of (check name, passed, detail) tuples
    """
    results = []

    for name in REQUIRED_SETTINGS:
        try:
            settings.get_required(name)
            results.append((name, True, "set"))
        except DashboardTestError as e:
            results.append((name, False, str(e)))

    try:
        location = find_site_extension(settings.get_required(DASHBOARD_SITE_EXTENSION_LOCATION))
        results.append(("site extension", True, str(location)))
    except DashboardTestError as e:
        results.append(("site extension", False, str(e)))

    try:
        browser = BrowserType.parse(settings.get_required(TEST_BROWSER))
        results.append(("browser", True, browser.name.lower()))
    except DashboardTestError as e:
        results.append(("browser", False, str(e)))

    return results


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Dashboard end-to-end test utilities")
    parser.add_argument("--settings", help="Path to the app settings JSON/YAML file")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("check", help="Verify settings, site extension and browser type")

    args = parser.parse_args(argv)

    settings = Settings(settings_path=args.settings)
    configure_logging("DEBUG" if args.verbose else None, settings=settings)

    results = run_checks(settings)

    for name, passed, detail in results:
        status = "OK" if passed else "FAIL"
        print(f"[{status}] {name}: {detail}")

    return 0 if all(passed for _, passed, _ in results) else 1


if __name__ == "__main__":
    sys.exit(main())
