"""Tests for DashboardTestFixture lifecycle and resource ownership."""

from unittest.mock import MagicMock

import pytest

from dashboard_e2e.config import BrowserType, Settings
from dashboard_e2e.core.diagnostics_manager import DiagnosticsManager
from dashboard_e2e.core.exceptions import (
    FixtureDisposedError,
    MissingSettingError,
    SiteExtensionNotFoundError,
    UnknownBrowserTypeError,
)
from dashboard_e2e.core.fixture import DashboardTestFixture
from dashboard_e2e.core.job_host import DoneSignal


def test_construction_starts_server_on_site_extension(make_fixture, site_root, server_instances):
    fixture = make_fixture()

    server = fixture.server
    assert server.start_calls == 1
    assert server.site_path == site_root / "1.0.0"
    assert server.connection_string == fixture.storage_account.connection_string
    assert server_instances == [server]


def test_storage_is_emptied_by_default(make_fixture):
    fixture = make_fixture()

    assert fixture.storage_account.empty_calls == 1


def test_storage_cleaning_can_be_skipped(make_fixture):
    fixture = make_fixture(clean_storage_account=False)

    assert fixture.storage_account.empty_calls == 0


def test_explicit_connection_string_is_used_for_server(make_fixture):
    fixture = make_fixture(connection_string="UseDevelopmentStorage=true")

    assert fixture.server.connection_string == "UseDevelopmentStorage=true"


def test_service_bus_account_is_resolved(make_fixture, app_settings):
    fixture = make_fixture()

    assert fixture.service_bus_account == app_settings["ServiceBusAccount"]


def test_optional_server_settings_are_passed_through(make_fixture, clean_environment, app_settings):
    app_settings["DashboardServerCommand"] = "serve --port {port}"
    app_settings["DashboardServerStartTimeout"] = "5"
    settings = Settings(app_settings=app_settings, load_env_file=False)

    fixture = make_fixture(settings=settings)

    assert fixture.server.options == {"command": "serve --port {port}", "start_timeout": 5.0}


@pytest.mark.parametrize("missing", ["DashboardSiteExtensionLocation", "StorageAccount", "ServiceBusAccount"])
def test_missing_required_setting_fails_construction(
    make_fixture, clean_environment, app_settings, server_instances, missing
):
    del app_settings[missing]
    settings = Settings(app_settings=app_settings, load_env_file=False)

    with pytest.raises(MissingSettingError) as excinfo:
        make_fixture(settings=settings)

    assert excinfo.value.setting_name == missing
    assert server_instances == []


def test_missing_site_extension_fails_construction(make_fixture, site_root):
    (site_root / "2.0.0").mkdir()

    with pytest.raises(SiteExtensionNotFoundError):
        make_fixture()


def test_create_dashboard_reuses_live_session(make_fixture):
    fixture = make_fixture()

    first = fixture.create_dashboard()
    second = fixture.create_dashboard()

    assert first is second
    assert first.browser is BrowserType.CHROME
    assert first.virtual_path == fixture.server.virtual_path


def test_create_dashboard_replaces_disposed_session(make_fixture):
    fixture = make_fixture()

    first = fixture.create_dashboard()
    first.dispose()
    second = fixture.create_dashboard()

    assert second is not first
    assert not second.is_disposed


def test_create_dashboard_passes_headless_flag(make_fixture):
    fixture = make_fixture(headless=False)

    assert fixture.create_dashboard().headless is False


def test_create_dashboard_uses_environment_browser(make_fixture, clean_environment, app_settings):
    del app_settings["TestBrowser"]
    clean_environment.setenv("TestBrowser", "firefox")
    settings = Settings(app_settings=app_settings, load_env_file=False)

    fixture = make_fixture(settings=settings)

    assert fixture.create_dashboard().browser is BrowserType.FIREFOX


def test_create_dashboard_rejects_unknown_browser(make_fixture, clean_environment, app_settings):
    app_settings["TestBrowser"] = "not-a-browser"
    settings = Settings(app_settings=app_settings, load_env_file=False)
    fixture = make_fixture(settings=settings)

    with pytest.raises(UnknownBrowserTypeError) as excinfo:
        fixture.create_dashboard()

    assert "not-a-browser" in str(excinfo.value)


def test_create_dashboard_without_browser_setting_fails(make_fixture, clean_environment, app_settings):
    del app_settings["TestBrowser"]
    settings = Settings(app_settings=app_settings, load_env_file=False)
    fixture = make_fixture(settings=settings)

    with pytest.raises(MissingSettingError):
        fixture.create_dashboard()


def test_dispose_releases_server_then_session(make_fixture):
    order = []
    fixture = make_fixture()
    session = fixture.create_dashboard()
    server = fixture.server
    server.dispose = lambda: order.append("server")
    session.dispose = lambda: order.append("dashboard")

    fixture.dispose()

    assert order == ["server", "dashboard"]
    assert fixture.is_disposed


def test_dispose_twice_releases_once(make_fixture):
    fixture = make_fixture()
    session = fixture.create_dashboard()
    server = fixture.server

    fixture.dispose()
    fixture.dispose()

    assert server.dispose_calls == 1
    assert session.dispose_calls == 1


def test_dispose_releases_session_when_server_dispose_fails(make_fixture):
    fixture = make_fixture(diagnostics=DiagnosticsManager())
    session = fixture.create_dashboard()
    fixture.server.dispose = MagicMock(side_effect=RuntimeError("process already gone"))

    with pytest.raises(RuntimeError):
        fixture.dispose()

    assert session.dispose_calls == 1
    assert fixture.is_disposed
    assert fixture.diagnostics.stages["dispose"].success is False


def test_dispose_without_session(make_fixture):
    fixture = make_fixture()
    server = fixture.server

    fixture.dispose()

    assert server.dispose_calls == 1


@pytest.mark.parametrize("accessor, object_name", [
    (lambda f: f.server, "DashboardServer"),
    (lambda f: f.storage_account, "WebJobsStorageAccount"),
    (lambda f: f.service_bus_account, "ServiceBusAccount"),
    (lambda f: f.create_dashboard(), "WebJobsDashboard"),
])
def test_accessors_fail_after_dispose(make_fixture, accessor, object_name):
    fixture = make_fixture()
    fixture.dispose()

    with pytest.raises(FixtureDisposedError) as excinfo:
        accessor(fixture)

    assert excinfo.value.object_name == object_name


def test_context_manager_disposes(make_fixture):
    with make_fixture() as fixture:
        server = fixture.server

    assert fixture.is_disposed
    assert server.dispose_calls == 1


def test_run_test_host_uses_given_factory(make_fixture):
    fixture = make_fixture()
    host = MagicMock()
    done = DoneSignal()
    done.set()

    fixture.run_test_host({"jobs": []}, done, host_factory=lambda config: host)

    host.start.assert_called_once()
    host.stop.assert_called_once()
    host.close.assert_called_once()


def test_run_test_host_uses_class_factory(make_fixture):
    created = []

    class RecordingHost:
        def __init__(self, config):
            self.config = config
            created.append(self)

        def start(self):
            pass

        def stop(self):
            pass

        def close(self):
            pass

    class JobsFixture(DashboardTestFixture):
        job_host_factory = RecordingHost

    fixture = make_fixture(fixture_class=JobsFixture)
    done = DoneSignal()
    done.set()

    fixture.run_test_host("host-config", done)

    assert len(created) == 1
    assert created[0].config == "host-config"


def test_run_test_host_without_factory_fails(make_fixture):
    fixture = make_fixture()

    with pytest.raises(ValueError):
        fixture.run_test_host("config", DoneSignal())


def test_lifecycle_stages_are_recorded(make_fixture):
    diagnostics = DiagnosticsManager()
    fixture = make_fixture(diagnostics=diagnostics)
    fixture.create_dashboard()
    fixture.dispose()

    stages = diagnostics.get_diagnostics()["stages"]
    assert set(stages) == {"storage_clean", "server_start", "browser_launch", "dispose"}
    assert all(stage["success"] for stage in stages.values())
