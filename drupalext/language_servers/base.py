"""
Lifecycle management for npm-distributed language servers.

Each supported server kind subclasses NpmLanguageServerManager and supplies
its package name, script path and workspace configuration. The base class
owns the install/verify procedure and command resolution.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any

from lsprotocol.types import LogMessageParams, MessageType

from drupalext.errors import (
    DrupalExtensionError,
    InstallInconsistencyError,
    RegistryUnavailableError,
)
from drupalext.host import InstallationStatus
from drupalext.registry.npm import RegistryError

if TYPE_CHECKING:
    from drupalext.detection import DrupalProject
    from drupalext.host import ExtensionHost
    from drupalext.registry.npm import RegistryClient
    from drupalext.settings import ServerSettings
    from drupalext.worktree import Worktree

STDIO_FLAG = "--stdio"


@dataclass
class ServerCommand:
    """How the host should spawn a language server. Built fresh per call."""

    command: str
    args: list[str] = field(default_factory=list)
    env: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"command": self.command, "args": list(self.args), "env": dict(self.env)}


@dataclass
class ServerInstallState:
    """Install bookkeeping for one managed server."""

    package_name: str
    installed_path: Path
    has_verified_this_session: bool = False


def webroot_path(web_root: str, name: str) -> str:
    """Join a directory name onto the webroot without a leading './'."""
    return name if web_root == "." else f"{web_root}/{name}"


class NpmLanguageServerManager(ABC):
    """
    Base class for language servers installed from npm.

    Prefers a binary found on PATH; otherwise keeps a private npm install
    up to date and runs its script with the host's Node.js.
    """

    def __init__(
        self,
        server_id: str,
        host: ExtensionHost,
        registry: RegistryClient,
        install_dir: Path,
        settings: ServerSettings | None = None,
    ) -> None:
        self.server_id = server_id
        self.host = host
        self.registry = registry
        self.settings = settings
        self.state = ServerInstallState(
            package_name=self.package_name,
            installed_path=Path(install_dir) / self.server_path,
        )

    @property
    @abstractmethod
    def package_name(self) -> str:
        """npm package providing the server."""
        pass

    @property
    @abstractmethod
    def server_path(self) -> str:
        """Entry script relative to the install directory."""
        pass

    @property
    @abstractmethod
    def binary_name(self) -> str:
        """Executable name of a global installation."""
        pass

    @abstractmethod
    def build_workspace_config(self, project: DrupalProject) -> dict[str, Any]:
        """Workspace configuration for the given project."""
        pass

    def server_exists(self) -> bool:
        return self.state.installed_path.is_file()

    def resolve_command(self, worktree: Worktree) -> ServerCommand:
        """
        Resolve the command that starts this server.

        Order: explicit binary from settings, a global install on PATH, then
        the managed npm install run through Node.js.
        """
        binary = self.settings.binary if self.settings else None
        if binary is not None:
            self._log(MessageType.Info, f"Using configured {self.server_id} at: {binary.path}")
            return ServerCommand(binary.path, list(binary.arguments), dict(binary.env))

        path = worktree.which(self.binary_name)
        if path:
            self._log(
                MessageType.Info,
                f"Using globally installed {self.binary_name} at: {path}",
            )
            return ServerCommand(path, [STDIO_FLAG])

        self._log(MessageType.Info, f"Using local npm installation of {self.package_name}")
        script = self.ensure_installed().resolve()
        self._log(MessageType.Info, f"Starting {self.package_name} at: {script}")

        return ServerCommand(self.host.node_binary_path(), [str(script), STDIO_FLAG])

    def ensure_installed(self) -> Path:
        """
        Make sure the managed install exists and matches the latest release.

        Registry calls happen at most once per session once an install has
        been verified.

        Raises:
            RegistryUnavailableError: The registry failed and nothing is
                installed to fall back on.
            InstallInconsistencyError: npm reported success but the server
                script is missing.
        """
        if self.state.has_verified_this_session and self.server_exists():
            return self.state.installed_path

        try:
            self._install_or_verify()
        except DrupalExtensionError as e:
            self.host.set_installation_status(
                self.server_id, InstallationStatus.FAILED, e.display()
            )
            self._log(MessageType.Error, e.display())
            raise

        self.state.has_verified_this_session = True
        self.host.set_installation_status(self.server_id, InstallationStatus.NONE)
        return self.state.installed_path

    def _install_or_verify(self) -> None:
        package = self.package_name
        server_exists = self.server_exists()

        self.host.set_installation_status(
            self.server_id, InstallationStatus.CHECKING_FOR_UPDATE
        )

        try:
            version = self.registry.latest_version(package)
            # A missing script needs an install whatever package.json says.
            installed = None
            if server_exists:
                installed = self.registry.installed_version(package)
        except RegistryError as e:
            if not server_exists:
                raise RegistryUnavailableError(package, str(e)) from e
            self._log(
                MessageType.Warning,
                f"Could not check {package} for updates, using existing install: {e}",
            )
            return

        if server_exists and installed == version:
            return

        self.host.set_installation_status(self.server_id, InstallationStatus.DOWNLOADING)
        self._log(MessageType.Info, f"Installing {package}@{version}...")

        try:
            self.registry.install(package, version)
        except RegistryError as e:
            if not self.server_exists():
                raise RegistryUnavailableError(package, str(e)) from e
            self._log(
                MessageType.Warning,
                f"Failed to install {package}@{version}, using existing install: {e}",
            )
            return

        if not self.server_exists():
            raise InstallInconsistencyError(package, str(self.state.installed_path))

        self._log(MessageType.Info, f"Successfully installed {package}@{version}")

    def _log(self, message_type: MessageType, message: str) -> None:
        self.host.window_log_message(LogMessageParams(message_type, f"[Drupal] {message}"))
