"""
User settings for the Drupal extension.

Settings live in a YAML file:

    install_dir: ~/.cache/drupalext
    node_path: /usr/local/bin/node
    servers:
      intelephense:
        binary:
          path: /opt/intelephense/bin/intelephense
          arguments: ["--stdio"]
        settings:
          intelephense:
            format:
              enable: false

The file is looked up at $DRUPALEXT_CONFIG, then
~/.config/drupalext/settings.yml. A missing file means defaults.
$DRUPALEXT_INSTALL_DIR overrides install_dir.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from drupalext.errors import SettingsError

DEFAULT_CONFIG_PATH = Path("~/.config/drupalext/settings.yml")
DEFAULT_INSTALL_DIR = Path("~/.cache/drupalext")


@dataclass
class BinarySettings:
    """Explicit server binary, bypassing PATH lookup and npm installs."""

    path: str
    arguments: list[str] = field(default_factory=lambda: ["--stdio"])
    env: dict[str, str] = field(default_factory=dict)


@dataclass
class ServerSettings:
    binary: BinarySettings | None = None
    settings: dict[str, Any] = field(default_factory=dict)


@dataclass
class ExtensionSettings:
    install_dir: Path = field(default_factory=lambda: DEFAULT_INSTALL_DIR.expanduser())
    node_path: str | None = None
    servers: dict[str, ServerSettings] = field(default_factory=dict)

    def for_server(self, server_id: str) -> ServerSettings:
        return self.servers.get(server_id) or ServerSettings()

    @classmethod
    def load(cls, path: Path | None = None,
             env: dict[str, str] | None = None) -> ExtensionSettings:
        """
        Load settings from YAML.

        Args:
            path: Settings file. Resolved from the environment if None.
            env: Environment used for overrides (defaults to os.environ).

        Raises:
            SettingsError: If the file is not valid YAML or has a bad shape.
        """
        env = os.environ if env is None else env
        if path is None:
            path = Path(env.get("DRUPALEXT_CONFIG") or DEFAULT_CONFIG_PATH)
        path = path.expanduser()

        data: Any = {}
        if path.is_file():
            try:
                with open(path, "r", encoding="utf-8") as f:
                    data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise SettingsError(f"Invalid YAML in {path}: {e}") from e

        settings = cls.from_dict(data, source=str(path))
        if env.get("DRUPALEXT_INSTALL_DIR"):
            settings.install_dir = Path(env["DRUPALEXT_INSTALL_DIR"]).expanduser()
        return settings

    @classmethod
    def from_dict(cls, data: Any, source: str = "<settings>") -> ExtensionSettings:
        if not isinstance(data, dict):
            raise SettingsError(f"{source}: top level must be a mapping")

        settings = cls()
        if data.get("install_dir"):
            settings.install_dir = Path(str(data["install_dir"])).expanduser()
        if data.get("node_path"):
            settings.node_path = str(data["node_path"])

        servers = data.get("servers") or {}
        if not isinstance(servers, dict):
            raise SettingsError(f"{source}: 'servers' must be a mapping")
        for server_id, raw in servers.items():
            settings.servers[server_id] = _parse_server(server_id, raw or {}, source)

        return settings


def _parse_server(server_id: str, raw: Any, source: str) -> ServerSettings:
    if not isinstance(raw, dict):
        raise SettingsError(f"{source}: servers.{server_id} must be a mapping")

    binary = None
    raw_binary = raw.get("binary")
    if raw_binary is not None:
        if not isinstance(raw_binary, dict) or not raw_binary.get("path"):
            raise SettingsError(f"{source}: servers.{server_id}.binary.path is required")
        binary = BinarySettings(path=str(raw_binary["path"]))
        if raw_binary.get("arguments") is not None:
            binary.arguments = [str(arg) for arg in raw_binary["arguments"]]
        if raw_binary.get("env"):
            binary.env = {str(k): str(v) for k, v in raw_binary["env"].items()}

    overrides = raw.get("settings") or {}
    if not isinstance(overrides, dict):
        raise SettingsError(f"{source}: servers.{server_id}.settings must be a mapping")

    return ServerSettings(binary=binary, settings=overrides)


def merge_settings(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    """Deep-merge user overrides into a generated configuration.

    Nested mappings are merged key by key; any other value replaces the
    generated one. Neither input is modified.
    """
    merged = dict(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_settings(merged[key], value)
        else:
            merged[key] = value
    return merged
