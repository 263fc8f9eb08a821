"""
Per-project extension session.

An ExtensionSession is the state the editor host keeps for one opened
project: the memoized detection result and one lifecycle manager per
language server, created the first time that server is asked for.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any

from lsprotocol.types import LogMessageParams, MessageType

from drupalext.detection import DrupalProject, detect_project
from drupalext.errors import NotAProjectError, UnknownServerError
from drupalext.language_servers import LANGUAGE_SERVERS, NpmLanguageServerManager
from drupalext.settings import ExtensionSettings, merge_settings

if TYPE_CHECKING:
    from drupalext.host import ExtensionHost
    from drupalext.language_servers.base import ServerCommand
    from drupalext.registry.npm import RegistryClient
    from drupalext.worktree import Worktree


class ExtensionSession:
    """
    Dispatches host callbacks for a single project.

    Usage:
        session = ExtensionSession(worktree, host, registry, settings)
        command = session.language_server_command("intelephense")
        config = session.language_server_workspace_configuration("intelephense")
    """

    def __init__(
        self,
        worktree: Worktree,
        host: ExtensionHost,
        registry: RegistryClient,
        settings: ExtensionSettings | None = None,
    ) -> None:
        self.worktree = worktree
        self.host = host
        self.registry = registry
        self.settings = settings or ExtensionSettings()

        self._detected = False
        self._project: DrupalProject | None = None
        self.managers: dict[str, NpmLanguageServerManager] = {}

    def project(self) -> DrupalProject | None:
        """Return the Drupal project, running detection on first use."""
        if self._detected:
            return self._project

        detection = detect_project(self.worktree)
        if detection.project is not None:
            self._log(
                MessageType.Info,
                f"Detected Drupal via {detection.source}, webroot: {detection.project.web_root}",
            )
        elif detection.conclusive:
            self._log(MessageType.Info, f"Not detected in {self.worktree.root_path}")
        else:
            # Unreadable composer.json; try again on the next callback.
            self._log(
                MessageType.Warning,
                f"Could not read composer.json in {self.worktree.root_path}",
            )
            return None

        self._project = detection.project
        self._detected = True
        return self._project

    def manager(self, server_id: str) -> NpmLanguageServerManager:
        """Get or create the lifecycle manager for a server id."""
        manager = self.managers.get(server_id)
        if manager is not None:
            return manager

        manager_class = LANGUAGE_SERVERS.get(server_id)
        if manager_class is None:
            raise UnknownServerError(server_id)

        manager = manager_class(
            server_id,
            self.host,
            self.registry,
            self.settings.install_dir,
            self.settings.for_server(server_id),
        )
        self.managers[server_id] = manager
        return manager

    def language_server_command(self, server_id: str) -> ServerCommand:
        """
        Resolve how to start a language server.

        Raises:
            NotAProjectError: The worktree is not a Drupal project.
            UnknownServerError: The server id is not managed here.
        """
        if self.project() is None:
            raise NotAProjectError(str(self.worktree.root_path))

        return self.manager(server_id).resolve_command(self.worktree)

    def language_server_workspace_configuration(
        self, server_id: str
    ) -> dict[str, Any] | None:
        """
        Build the workspace configuration for a language server.

        Returns None for projects that are not Drupal.
        """
        project = self.project()
        if project is None:
            return None

        config = self.manager(server_id).build_workspace_config(project)
        overrides = self.settings.for_server(server_id).settings
        if overrides:
            config = merge_settings(config, overrides)
        return config

    def _log(self, message_type: MessageType, message: str) -> None:
        self.host.window_log_message(LogMessageParams(message_type, f"[Drupal] {message}"))
