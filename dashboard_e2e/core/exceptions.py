"""Custom exceptions for the dashboard end-to-end test fixture."""


class DashboardTestError(Exception):
    """Base exception for fixture failures."""
    pass


class MissingSettingError(DashboardTestError):
    """A required setting is missing from both app settings and the environment."""

    def __init__(self, setting_name: str):
        self.setting_name = setting_name
        super().__init__(f"App setting is required: {setting_name}")


class SiteExtensionNotFoundError(DashboardTestError):
    """The dashboard site extension directory could not be resolved."""
    pass


class UnknownBrowserTypeError(DashboardTestError, ValueError):
    """The configured browser name does not match a supported browser."""
    pass


class FixtureDisposedError(DashboardTestError):
    """A resource was used after it was disposed."""

    def __init__(self, object_name: str):
        self.object_name = object_name
        super().__init__(f"Cannot access a disposed object: {object_name}")


class DashboardServerError(DashboardTestError):
    """The dashboard server failed to start or was misused."""
    pass
