"""
npm wrapper used to install language servers into the extension's own
directory.
"""
from __future__ import annotations

import json
import shutil
import subprocess
from pathlib import Path
from typing import Protocol


class RegistryError(Exception):
    """An npm query or install failed."""


class RegistryClient(Protocol):
    def latest_version(self, package_name: str) -> str: ...

    def installed_version(self, package_name: str) -> str | None: ...

    def install(self, package_name: str, version: str) -> None: ...


class NpmRegistryClient:
    """Query the npm registry and install packages under ``install_dir``."""

    def __init__(self, install_dir: Path, npm_bin: str | None = None,
                 timeout: int = 300):
        """Initialize npm client.

        Args:
            install_dir: Prefix that receives node_modules/.
            npm_bin: npm executable. Looked up on PATH if None.
            timeout: Per-command timeout in seconds.
        """
        self.install_dir = Path(install_dir)
        self.npm_bin = npm_bin or shutil.which("npm") or "npm"
        self.timeout = timeout

    def latest_version(self, package_name: str) -> str:
        """Return the dist-tag "latest" version published for the package."""
        result = self._run(["view", package_name, "version", "--json"])
        try:
            version = json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise RegistryError(
                f"Invalid response from npm for '{package_name}': {e}"
            ) from e
        if not isinstance(version, str) or not version:
            raise RegistryError(f"No published version found for '{package_name}'")
        return version

    def installed_version(self, package_name: str) -> str | None:
        """Read the version recorded in the installed package.json."""
        package_json = self.install_dir / "node_modules" / package_name / "package.json"
        try:
            data = json.loads(package_json.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, json.JSONDecodeError) as e:
            raise RegistryError(f"Cannot read {package_json}: {e}") from e
        version = data.get("version") if isinstance(data, dict) else None
        return version if isinstance(version, str) else None

    def install(self, package_name: str, version: str) -> None:
        """Install an exact package version into the install directory."""
        self.install_dir.mkdir(parents=True, exist_ok=True)
        self._run([
            "install",
            "--prefix", str(self.install_dir),
            "--save-exact",
            "--no-audit",
            "--no-fund",
            f"{package_name}@{version}",
        ])

    def _run(self, args: list[str]) -> subprocess.CompletedProcess:
        cmd = [self.npm_bin] + args
        try:
            result = subprocess.run(
                cmd,
                cwd=str(self.install_dir) if self.install_dir.is_dir() else None,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            raise RegistryError(f"npm {args[0]} failed: {e}") from e

        if result.returncode != 0:
            raise RegistryError(
                f"npm {args[0]} failed: {result.stderr.strip() or result.returncode}"
            )
        return result
