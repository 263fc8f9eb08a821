from __future__ import annotations

from pathlib import Path
from urllib.parse import unquote, urlparse

from lsprotocol.types import (
    INITIALIZE,
    InitializeParams,
    LogMessageParams,
    MessageType,
)
from pygls.exceptions import JsonRpcInternalError, JsonRpcInvalidParams

from drupalext import __version__
from drupalext.errors import DrupalExtensionError
from drupalext.lsp.drupal_extension_server import DrupalExtensionServer
from drupalext.registry.npm import RegistryClient
from drupalext.session import ExtensionSession
from drupalext.settings import ExtensionSettings

LANGUAGE_SERVER_COMMAND = "drupal.languageServerCommand"
WORKSPACE_CONFIGURATION_COMMAND = "drupal.workspaceConfiguration"


def create_server(
    settings: ExtensionSettings | None = None,
    registry: RegistryClient | None = None,
) -> DrupalExtensionServer:
    """
    Creates and returns a configured extension server.

    The editor host calls two commands through workspace/executeCommand,
    each with a payload {"serverId": ..., "rootUri": ...}:

    - drupal.languageServerCommand -> {"command", "args", "env"}
    - drupal.workspaceConfiguration -> configuration object or null
    """
    if settings is None:
        settings = ExtensionSettings.load()
    server = DrupalExtensionServer("drupalext", __version__, settings, registry)

    server.feature(INITIALIZE)(initialize)
    server.command(LANGUAGE_SERVER_COMMAND)(language_server_command)
    server.command(WORKSPACE_CONFIGURATION_COMMAND)(workspace_configuration)

    return server


def initialize(ls: DrupalExtensionServer, params: InitializeParams) -> None:
    """Run detection for the workspace root up front."""
    root_uri = params.root_uri
    if not root_uri:
        return

    project = ls.session_for(_uri_to_path(root_uri)).project()
    if project is None:
        ls.window_log_message(
            LogMessageParams(
                MessageType.Info, "Drupal installation not found in workspace"
            )
        )


def language_server_command(
    ls: DrupalExtensionServer, payload: dict | None = None
) -> dict:
    session, server_id = _session_from_payload(ls, payload, LANGUAGE_SERVER_COMMAND)
    try:
        return session.language_server_command(server_id).to_dict()
    except DrupalExtensionError as e:
        raise JsonRpcInternalError(message=e.display()) from e


def workspace_configuration(
    ls: DrupalExtensionServer, payload: dict | None = None
) -> dict | None:
    session, server_id = _session_from_payload(
        ls, payload, WORKSPACE_CONFIGURATION_COMMAND
    )
    try:
        return session.language_server_workspace_configuration(server_id)
    except DrupalExtensionError as e:
        raise JsonRpcInternalError(message=e.display()) from e


def _session_from_payload(
    ls: DrupalExtensionServer, payload: dict | None, command: str
) -> tuple[ExtensionSession, str]:
    if not isinstance(payload, dict) or not payload.get("serverId"):
        raise JsonRpcInvalidParams(message=f"{command}: 'serverId' is required")

    root_uri = payload.get("rootUri")
    if root_uri:
        root = _uri_to_path(root_uri)
    elif ls.workspace.root_path:
        root = Path(ls.workspace.root_path)
    else:
        raise JsonRpcInvalidParams(message=f"{command}: no 'rootUri' and no workspace")

    return ls.session_for(root), str(payload["serverId"])


def _uri_to_path(uri: str) -> Path:
    parsed = urlparse(uri)
    if parsed.scheme == "file":
        return Path(unquote(parsed.path))
    return Path(uri)
