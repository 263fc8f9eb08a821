"""
Intelephense (PHP) configured for a Drupal codebase.
"""
from __future__ import annotations

from typing import Any

from drupalext.detection import DrupalProject
from drupalext.language_servers.base import NpmLanguageServerManager, webroot_path

SERVER_ID = "intelephense"
PACKAGE_NAME = "intelephense"
SERVER_PATH = "node_modules/intelephense/lib/intelephense.js"

STUBS = [
    "apache", "bcmath", "bz2", "calendar", "com_dotnet", "Core", "ctype",
    "curl", "date", "dba", "dom", "enchant", "exif", "FFI", "fileinfo", "filter",
    "fpm", "ftp", "gd", "gettext", "gmp", "hash", "iconv", "imap", "intl", "json",
    "ldap", "libxml", "mbstring", "meta", "mysqli", "oci8", "odbc", "openssl",
    "pcntl", "pcre", "PDO", "pgsql", "Phar", "posix", "pspell", "random", "readline",
    "Reflection", "session", "shmop", "SimpleXML", "snmp", "soap", "sockets",
    "sodium", "SPL", "sqlite3", "standard", "superglobals", "sysvmsg", "sysvsem",
    "sysvshm", "tidy", "tokenizer", "uri", "xml", "xmlreader", "xmlrpc",
    "xmlwriter", "xsl", "Zend OPcache", "zip", "zlib",
]

# Drupal keeps PHP in several non-.php extensions.
FILE_ASSOCIATIONS = [
    "*.inc", "*.module", "*.install", "*.theme",
    "*.profile", "*.test", "*.php", "*.info",
]

FILE_EXCLUDES = [
    "**/node_modules/**",
    "**/vendor/**/Tests/**",
    "**/vendor/**/tests/**",
    "**/core/tests/**",
    "**/core/modules/*/tests/**",
    "**/sites/simpletest/**",
    "**/files/**",
    "**/sites/default/files/**",
    "**/.git/**",
]


def build_workspace_config(project: DrupalProject) -> dict[str, Any]:
    """Intelephense settings with include paths rooted at the webroot."""
    root = project.web_root
    return {
        "intelephense": {
            "stubs": list(STUBS),
            "environment": {
                "includePaths": [
                    "vendor",
                    webroot_path(root, "core"),
                    webroot_path(root, "modules"),
                    webroot_path(root, "themes"),
                ],
            },
            "files": {
                "maxSize": 5000000,
                "associations": list(FILE_ASSOCIATIONS),
                "exclude": list(FILE_EXCLUDES),
            },
            "format": {
                "enable": True,
                "braces": "k&r",
            },
        }
    }


class IntelephenseManager(NpmLanguageServerManager):
    """Intelephense install and launch."""

    @property
    def package_name(self) -> str:
        return PACKAGE_NAME

    @property
    def server_path(self) -> str:
        return SERVER_PATH

    @property
    def binary_name(self) -> str:
        return "intelephense"

    def build_workspace_config(self, project: DrupalProject) -> dict[str, Any]:
        return build_workspace_config(project)
