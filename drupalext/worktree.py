"""
Read-only access to the project tree opened in the editor.
"""
from __future__ import annotations

import os
import shutil
from pathlib import Path


class Worktree:
    """
    A project root the editor has opened.

    Only reads are exposed: the detector and the language server managers
    never write into the user's project.
    """

    def __init__(self, root_path: Path, env: dict[str, str] | None = None):
        self.root_path = Path(root_path)
        self._env = env

    def read_text_file(self, relative_path: str) -> str | None:
        """
        Read a file relative to the root.

        Returns None if the file does not exist. Any other I/O error
        (permissions, a directory in the way) is raised to the caller.
        """
        try:
            return (self.root_path / relative_path).read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def exists(self, relative_path: str) -> bool:
        """Check if a regular file exists relative to the root."""
        return (self.root_path / relative_path).is_file()

    def which(self, binary_name: str) -> str | None:
        """Find an executable on the worktree's PATH."""
        env = self._env if self._env is not None else os.environ
        return shutil.which(binary_name, path=env.get("PATH"))

    def __repr__(self) -> str:
        return f"Worktree({str(self.root_path)!r})"
