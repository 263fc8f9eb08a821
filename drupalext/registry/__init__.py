"""Package registry access for managed language server installs."""
from .npm import NpmRegistryClient, RegistryClient, RegistryError

__all__ = ["NpmRegistryClient", "RegistryClient", "RegistryError"]
