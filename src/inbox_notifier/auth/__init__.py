"""Gmail credential handling."""

from .credentials import CredentialStore
from .flow import authorize

__all__ = ["CredentialStore", "authorize"]
