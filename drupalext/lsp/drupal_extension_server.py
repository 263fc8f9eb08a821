from __future__ import annotations

import shutil
from pathlib import Path

from pygls.lsp.server import LanguageServer

from drupalext.errors import NodeRuntimeNotFoundError
from drupalext.host import InstallationStatus
from drupalext.registry.npm import NpmRegistryClient, RegistryClient
from drupalext.session import ExtensionSession
from drupalext.settings import ExtensionSettings
from drupalext.worktree import Worktree

INSTALLATION_STATUS_NOTIFICATION = "drupal/installationStatus"


class DrupalExtensionServer(LanguageServer):
    """
    Language server the editor talks to for Drupal language intelligence.

    It does not answer language features itself. It tells the editor whether
    a project is Drupal and how to launch and configure the real language
    servers, and it is the ExtensionHost the core reports through.

    Attributes:
        settings: User settings loaded at startup.
        registry: npm client shared by all sessions.
        sessions: One ExtensionSession per project root.
    """

    def __init__(
        self,
        name: str,
        version: str,
        settings: ExtensionSettings | None = None,
        registry: RegistryClient | None = None,
    ):
        super().__init__(name, version)

        self.settings = settings or ExtensionSettings()
        self.registry = registry or NpmRegistryClient(self.settings.install_dir)
        self.sessions: dict[Path, ExtensionSession] = {}

    def session_for(self, root_path: Path) -> ExtensionSession:
        """Get or create the session for a project root."""
        root_path = Path(root_path).resolve()
        session = self.sessions.get(root_path)
        if session is None:
            session = ExtensionSession(
                Worktree(root_path), self, self.registry, self.settings
            )
            self.sessions[root_path] = session
        return session

    def node_binary_path(self) -> str:
        if self.settings.node_path:
            return self.settings.node_path
        path = shutil.which("node")
        if path is None:
            raise NodeRuntimeNotFoundError()
        return path

    def set_installation_status(
        self,
        server_id: str,
        status: InstallationStatus,
        message: str | None = None,
    ) -> None:
        params = {"serverId": server_id, "status": status.value}
        if message is not None:
            params["message"] = message
        self.protocol.notify(INSTALLATION_STATUS_NOTIFICATION, params)
