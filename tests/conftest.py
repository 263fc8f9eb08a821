"""Shared fixtures for drupalext tests."""
from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest
from lsprotocol.types import LogMessageParams, MessageType

from drupalext.host import InstallationStatus
from drupalext.worktree import Worktree


class RecordingHost:
    """ExtensionHost that records everything reported to the editor."""

    def __init__(self, node_path: str = "/usr/bin/node"):
        self.node_path = node_path
        self.messages: list[LogMessageParams] = []
        self.statuses: list[tuple[str, InstallationStatus, str | None]] = []

    def window_log_message(self, params: LogMessageParams) -> None:
        self.messages.append(params)

    def node_binary_path(self) -> str:
        return self.node_path

    def set_installation_status(self, server_id, status, message=None) -> None:
        self.statuses.append((server_id, status, message))

    def messages_of(self, message_type: MessageType) -> list[str]:
        return [m.message for m in self.messages if m.type == message_type]


@pytest.fixture
def host() -> RecordingHost:
    return RecordingHost()


@pytest.fixture
def worktree(tmp_path: Path) -> Worktree:
    """Worktree over tmp_path with an empty PATH so no global binary is found."""
    return Worktree(tmp_path, env={"PATH": ""})


@pytest.fixture
def registry() -> MagicMock:
    """Registry client mock reporting 1.0.0 as both latest and installed."""
    client = MagicMock()
    client.latest_version.return_value = "1.0.0"
    client.installed_version.return_value = "1.0.0"
    return client


@pytest.fixture
def write_file(tmp_path: Path):
    """Return a helper that writes a file relative to tmp_path."""

    def _write(relative_path: str, content: str = "") -> Path:
        path = tmp_path / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        return path

    return _write
