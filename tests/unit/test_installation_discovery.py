import threading

import pytest
from unittest.mock import patch

from core.installation_discovery import (
    EditorInstallation, InstallationDiscovery, discover_on_path
)


@pytest.fixture(autouse=True)
def reset_singleton():
    InstallationDiscovery.reset_for_testing()
    yield
    InstallationDiscovery.reset_for_testing()


def test_instance_is_a_singleton():
    assert InstallationDiscovery.instance() is InstallationDiscovery.instance()


def test_discovery_runs_once_and_is_memoized():
    calls = []
    found = (EditorInstallation("Visual Studio Code", "/usr/bin/code"),)

    def discover():
        calls.append(threading.current_thread().name)
        return found

    discovery = InstallationDiscovery(discover)
    first = discovery.start()
    second = discovery.start()

    assert first is second
    assert discovery.installations(timeout=2) == found
    assert discovery.installations(timeout=2) == found
    assert calls == ["editor-discovery"]


def test_failure_degrades_to_no_installations():
    def discover():
        raise PermissionError("registry locked")

    discovery = InstallationDiscovery(discover)
    with patch('builtins.print') as mock_print:
        assert discovery.installations(timeout=2) == ()
        mock_print.assert_any_call("[DISCOVERY] ❌ Error detecting editor installations: registry locked")


def test_installations_starts_discovery_lazily():
    discovery = InstallationDiscovery(lambda: ())
    assert not discovery.started
    assert discovery.installations(timeout=2) == ()
    assert discovery.started


def test_find_for_path(tmp_path):
    editor = tmp_path / "code"
    discovery = InstallationDiscovery(lambda: (EditorInstallation("Code", str(editor)),))
    assert discovery.find_for_path(str(editor)).name == "Code"
    assert discovery.find_for_path(str(tmp_path / "vim")) is None
    assert discovery.find_for_path("") is None


def test_discover_on_path_uses_which():
    with patch("core.installation_discovery.shutil.which",
               side_effect=lambda name: "/opt/bin/rider" if name == "rider" else None):
        found = discover_on_path()
    assert [i.name for i in found] == ["JetBrains Rider"]


def test_shutdown_is_a_noop():
    discovery = InstallationDiscovery(lambda: ())
    discovery.start().result(2)
    discovery.shutdown()
    assert discovery.installations(timeout=2) == ()
