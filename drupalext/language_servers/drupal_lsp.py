"""
drupal-lsp-server: Drupal-specific completions, hooks and coding standards.
"""
from __future__ import annotations

from typing import Any

from drupalext.detection import DrupalProject
from drupalext.language_servers.base import NpmLanguageServerManager, webroot_path

SERVER_ID = "drupal-lsp-server"
PACKAGE_NAME = "drupal-lsp-server"
SERVER_PATH = "node_modules/drupal-lsp-server/out/server.js"


def build_workspace_config(project: DrupalProject) -> dict[str, Any]:
    """drupal-lsp-server settings with paths rooted at the webroot."""
    root = project.web_root
    return {
        "drupal-lsp-server": {
            "enable": True,
            "drupalRoot": root,
            "paths": {
                "core": webroot_path(root, "core"),
                "modules": webroot_path(root, "modules"),
                "themes": webroot_path(root, "themes"),
            },
            "phpcs": {
                "enable": True,
            },
        }
    }


class DrupalLspManager(NpmLanguageServerManager):
    """drupal-lsp-server install and launch."""

    @property
    def package_name(self) -> str:
        return PACKAGE_NAME

    @property
    def server_path(self) -> str:
        return SERVER_PATH

    @property
    def binary_name(self) -> str:
        return "drupal-lsp-server"

    def build_workspace_config(self, project: DrupalProject) -> dict[str, Any]:
        return build_workspace_config(project)
