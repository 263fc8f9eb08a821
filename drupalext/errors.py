"""
Error types for the Drupal extension.

Every failure a host callback can surface derives from DrupalExtensionError.
The structured fields stay on the exception; ``display()`` turns it into the
string the editor shows, and is only called at the host boundary.
"""
from __future__ import annotations


class DrupalExtensionError(Exception):
    """Base class for all errors surfaced to the editor host."""

    def display(self) -> str:
        return str(self)


class NotAProjectError(DrupalExtensionError):
    """The worktree has no Drupal signal; the host should not start servers."""

    def __init__(self, root: str):
        super().__init__(f"Not a Drupal project: {root}")
        self.root = root

    def display(self) -> str:
        return "Not a Drupal project"


class UnknownServerError(DrupalExtensionError):
    """A callback named a language server this extension does not manage."""

    def __init__(self, server_id: str):
        super().__init__(f"Unknown LSP: {server_id}")
        self.server_id = server_id


class RegistryUnavailableError(DrupalExtensionError):
    """The package registry failed and no usable local install exists."""

    def __init__(self, package: str, reason: str):
        super().__init__(f"failed to install '{package}': {reason}")
        self.package = package
        self.reason = reason


class InstallInconsistencyError(DrupalExtensionError):
    """Install reported success but the expected server script is absent."""

    def __init__(self, package: str, path: str):
        super().__init__(
            f"installed package '{package}' did not contain expected path '{path}'"
        )
        self.package = package
        self.path = path


class NodeRuntimeNotFoundError(DrupalExtensionError):
    """No Node.js binary is available to run a locally installed server."""

    def __init__(self):
        super().__init__(
            "Node.js runtime not found. Install node or set 'node_path' in settings"
        )


class SettingsError(DrupalExtensionError):
    """The settings file exists but cannot be used."""
