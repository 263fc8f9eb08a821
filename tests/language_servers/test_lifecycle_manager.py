"""
Tests for the install/verify procedure and command resolution in
drupalext/language_servers/base.py
"""
from __future__ import annotations

import os
import stat
from pathlib import Path

import pytest
from lsprotocol.types import MessageType

from drupalext.errors import InstallInconsistencyError, RegistryUnavailableError
from drupalext.host import InstallationStatus
from drupalext.language_servers.base import ServerCommand
from drupalext.language_servers.intelephense import SERVER_PATH, IntelephenseManager
from drupalext.registry.npm import RegistryError
from drupalext.settings import BinarySettings, ServerSettings
from drupalext.worktree import Worktree


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def install_dir(tmp_path: Path) -> Path:
    path = tmp_path / "extension"
    path.mkdir()
    return path


@pytest.fixture
def manager(host, registry, install_dir) -> IntelephenseManager:
    return IntelephenseManager("intelephense", host, registry, install_dir)


def put_server_script(install_dir: Path) -> Path:
    script = install_dir / SERVER_PATH
    script.parent.mkdir(parents=True, exist_ok=True)
    script.write_text("// intelephense")
    return script


def installs_script(install_dir: Path):
    """side_effect for registry.install that lays down the server script."""

    def _install(package_name: str, version: str) -> None:
        put_server_script(install_dir)

    return _install


# ============================================================================
# ensure_installed
# ============================================================================

class TestEnsureInstalled:

    def test_fresh_install(self, manager, registry, install_dir, host) -> None:
        registry.installed_version.return_value = None
        registry.install.side_effect = installs_script(install_dir)

        path = manager.ensure_installed()

        assert path == install_dir / SERVER_PATH
        registry.install.assert_called_once_with("intelephense", "1.0.0")
        assert manager.state.has_verified_this_session
        assert [s[1] for s in host.statuses] == [
            InstallationStatus.CHECKING_FOR_UPDATE,
            InstallationStatus.DOWNLOADING,
            InstallationStatus.NONE,
        ]

    def test_second_call_skips_registry(self, manager, registry, install_dir) -> None:
        registry.installed_version.return_value = None
        registry.install.side_effect = installs_script(install_dir)

        first = manager.ensure_installed()
        second = manager.ensure_installed()

        assert first == second
        assert registry.latest_version.call_count == 1
        registry.installed_version.assert_not_called()
        assert registry.install.call_count == 1

    def test_up_to_date_install_not_reinstalled(
        self, manager, registry, install_dir, host
    ) -> None:
        put_server_script(install_dir)

        path = manager.ensure_installed()

        assert path == install_dir / SERVER_PATH
        registry.install.assert_not_called()
        assert InstallationStatus.DOWNLOADING not in [s[1] for s in host.statuses]

    def test_outdated_install_upgraded(self, manager, registry, install_dir) -> None:
        put_server_script(install_dir)
        registry.latest_version.return_value = "1.1.0"

        manager.ensure_installed()

        registry.install.assert_called_once_with("intelephense", "1.1.0")

    def test_missing_script_reinstalled_even_if_version_matches(
        self, manager, registry, install_dir
    ) -> None:
        registry.install.side_effect = installs_script(install_dir)

        manager.ensure_installed()

        registry.install.assert_called_once_with("intelephense", "1.0.0")

    def test_corrupt_package_json_without_script_reinstalls(
        self, manager, registry, install_dir
    ) -> None:
        registry.installed_version.side_effect = RegistryError(
            "Cannot read package.json: Expecting property name"
        )
        registry.install.side_effect = installs_script(install_dir)

        path = manager.ensure_installed()

        assert path == install_dir / SERVER_PATH
        registry.install.assert_called_once_with("intelephense", "1.0.0")
        registry.installed_version.assert_not_called()

    def test_corrupt_package_json_with_script_keeps_install(
        self, manager, registry, install_dir, host
    ) -> None:
        put_server_script(install_dir)
        registry.installed_version.side_effect = RegistryError("Cannot read package.json")

        path = manager.ensure_installed()

        assert path == install_dir / SERVER_PATH
        registry.install.assert_not_called()
        assert any(
            "Cannot read package.json" in m for m in host.messages_of(MessageType.Warning)
        )

    def test_reverifies_when_script_deleted(self, manager, registry, install_dir) -> None:
        script = put_server_script(install_dir)
        manager.ensure_installed()
        script.unlink()
        registry.install.side_effect = installs_script(install_dir)

        manager.ensure_installed()

        assert registry.latest_version.call_count == 2
        registry.install.assert_called_once()

    def test_install_failure_with_existing_script(
        self, manager, registry, install_dir, host
    ) -> None:
        put_server_script(install_dir)
        registry.latest_version.return_value = "2.0.0"
        registry.install.side_effect = RegistryError("network unreachable")

        path = manager.ensure_installed()

        assert path == install_dir / SERVER_PATH
        assert manager.state.has_verified_this_session
        warnings = host.messages_of(MessageType.Warning)
        assert len(warnings) == 1
        assert "network unreachable" in warnings[0]

    def test_install_failure_without_script(self, manager, registry, host) -> None:
        registry.installed_version.return_value = None
        registry.install.side_effect = RegistryError("E404 not found")

        with pytest.raises(RegistryUnavailableError, match="E404 not found") as exc_info:
            manager.ensure_installed()

        assert exc_info.value.package == "intelephense"
        assert not manager.state.has_verified_this_session
        assert host.statuses[-1][1] == InstallationStatus.FAILED

    def test_install_success_without_script_is_fatal(
        self, manager, registry, install_dir, host
    ) -> None:
        registry.installed_version.return_value = None

        with pytest.raises(InstallInconsistencyError) as exc_info:
            manager.ensure_installed()

        assert exc_info.value.path == str(install_dir / SERVER_PATH)
        registry.install.assert_called_once()
        assert host.statuses[-1] == (
            "intelephense",
            InstallationStatus.FAILED,
            exc_info.value.display(),
        )

    def test_inconsistency_not_retried_within_call(self, manager, registry) -> None:
        registry.installed_version.return_value = None

        with pytest.raises(InstallInconsistencyError):
            manager.ensure_installed()

        assert registry.install.call_count == 1

    def test_registry_unavailable_with_existing_script(
        self, manager, registry, install_dir, host
    ) -> None:
        put_server_script(install_dir)
        registry.latest_version.side_effect = RegistryError("ETIMEDOUT")

        path = manager.ensure_installed()

        assert path == install_dir / SERVER_PATH
        registry.install.assert_not_called()
        assert any("ETIMEDOUT" in m for m in host.messages_of(MessageType.Warning))

    def test_registry_unavailable_without_script(self, manager, registry) -> None:
        registry.latest_version.side_effect = RegistryError("ETIMEDOUT")

        with pytest.raises(RegistryUnavailableError):
            manager.ensure_installed()

        registry.install.assert_not_called()

    def test_failed_call_is_retried_next_time(self, manager, registry, install_dir) -> None:
        registry.latest_version.side_effect = [RegistryError("offline"), "1.0.0"]
        registry.install.side_effect = installs_script(install_dir)

        with pytest.raises(RegistryUnavailableError):
            manager.ensure_installed()
        path = manager.ensure_installed()

        assert path == install_dir / SERVER_PATH
        assert registry.latest_version.call_count == 2


# ============================================================================
# resolve_command
# ============================================================================

class TestResolveCommand:

    def _global_binary(self, tmp_path: Path, name: str) -> Path:
        bin_dir = tmp_path / "bin"
        bin_dir.mkdir(exist_ok=True)
        binary = bin_dir / name
        binary.write_text("#!/bin/sh\n")
        binary.chmod(binary.stat().st_mode | stat.S_IXUSR)
        return binary

    def test_global_binary_preferred(self, manager, registry, tmp_path) -> None:
        binary = self._global_binary(tmp_path, "intelephense")
        worktree = Worktree(tmp_path, env={"PATH": str(binary.parent)})

        command = manager.resolve_command(worktree)

        assert command == ServerCommand(str(binary), ["--stdio"], {})
        registry.latest_version.assert_not_called()
        registry.install.assert_not_called()

    def test_local_install_runs_with_node(
        self, manager, registry, install_dir, worktree
    ) -> None:
        put_server_script(install_dir)

        command = manager.resolve_command(worktree)

        assert command.command == "/usr/bin/node"
        assert command.args == [str((install_dir / SERVER_PATH).resolve()), "--stdio"]
        assert command.env == {}
        assert os.path.isabs(command.args[0])

    def test_global_binary_reevaluated_each_call(
        self, manager, registry, install_dir, tmp_path
    ) -> None:
        put_server_script(install_dir)
        binary = self._global_binary(tmp_path, "intelephense")
        worktree = Worktree(tmp_path, env={"PATH": str(binary.parent)})

        assert manager.resolve_command(worktree).command == str(binary)
        binary.unlink()
        assert manager.resolve_command(worktree).command == "/usr/bin/node"

    def test_configured_binary(self, host, registry, install_dir, worktree) -> None:
        settings = ServerSettings(
            binary=BinarySettings(
                path="/opt/intelephense", arguments=["--stdio", "--verbose"],
                env={"HOME": "/tmp"},
            )
        )
        manager = IntelephenseManager(
            "intelephense", host, registry, install_dir, settings
        )

        command = manager.resolve_command(worktree)

        assert command.to_dict() == {
            "command": "/opt/intelephense",
            "args": ["--stdio", "--verbose"],
            "env": {"HOME": "/tmp"},
        }
        registry.latest_version.assert_not_called()

    def test_install_error_propagates(self, manager, registry, worktree) -> None:
        registry.latest_version.side_effect = RegistryError("offline")

        with pytest.raises(RegistryUnavailableError):
            manager.resolve_command(worktree)

    def test_command_not_cached(self, manager, install_dir, worktree) -> None:
        put_server_script(install_dir)

        first = manager.resolve_command(worktree)
        second = manager.resolve_command(worktree)

        assert first == second
        assert first is not second
