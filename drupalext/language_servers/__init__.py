"""Language servers supervised by the extension."""
from drupalext.language_servers import drupal_lsp, intelephense
from drupalext.language_servers.base import (
    NpmLanguageServerManager,
    ServerCommand,
    ServerInstallState,
    webroot_path,
)
from drupalext.language_servers.drupal_lsp import DrupalLspManager
from drupalext.language_servers.intelephense import IntelephenseManager

# Server id (as the editor names it) -> manager class.
LANGUAGE_SERVERS: dict[str, type[NpmLanguageServerManager]] = {
    drupal_lsp.SERVER_ID: DrupalLspManager,
    intelephense.SERVER_ID: IntelephenseManager,
}

__all__ = [
    "LANGUAGE_SERVERS",
    "DrupalLspManager",
    "IntelephenseManager",
    "NpmLanguageServerManager",
    "ServerCommand",
    "ServerInstallState",
    "webroot_path",
]
