"""
What the extension needs from the editor host.

DrupalExtensionServer implements this on top of pygls; tests use a
recording fake.
"""
from __future__ import annotations

from enum import Enum
from typing import Protocol

from lsprotocol.types import LogMessageParams


class InstallationStatus(Enum):
    """Coarse install progress reported to the editor."""

    NONE = "none"
    CHECKING_FOR_UPDATE = "checkingForUpdate"
    DOWNLOADING = "downloading"
    FAILED = "failed"


class ExtensionHost(Protocol):
    def window_log_message(self, params: LogMessageParams) -> None: ...

    def node_binary_path(self) -> str: ...

    def set_installation_status(
        self,
        server_id: str,
        status: InstallationStatus,
        message: str | None = None,
    ) -> None: ...
