"""Directory connection capability.

The provider only talks to these ABCs, so tests can inject an in-memory
factory without a real LDAP server. `client.Ldap3ConnectionFactory` is the
network-backed implementation.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from .models import SearchEntry, TLSOptions

SCOPE_BASE = "base"
SCOPE_ONE_LEVEL = "one"
SCOPE_SUBTREE = "sub"


class LDAPConnection(ABC):
    """A single-use directory session, owned by the operation that dialed it."""

    @abstractmethod
    def start_tls(self, tls: TLSOptions) -> None:
        """Upgrade the plaintext transport in place.

        Raises DirectoryConnectionError if the upgrade fails.
        """

    @abstractmethod
    def bind(self, dn: str, password: str) -> None:
        """Simple bind. Raises BindError if the directory rejects the credentials."""

    @abstractmethod
    def search(
        self,
        base_dn: str,
        scope: str,
        size_limit: int,
        search_filter: str,
        attributes: Sequence[str],
    ) -> list[SearchEntry]:
        """Search without dereferencing aliases. `size_limit` 0 means unlimited.

        Raises SearchError on failure.
        """

    @abstractmethod
    def modify(self, dn: str, replacements: dict[str, list[str | bytes]]) -> None:
        """Replace each attribute in `replacements` with the given values.

        Raises ModifyError if the directory rejects the change.
        """

    @abstractmethod
    def close(self) -> None:
        """Release the connection. Must be safe to call more than once."""

    def __enter__(self) -> "LDAPConnection":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class LDAPConnectionFactory(ABC):
    @abstractmethod
    def dial(self, url: str, tls: TLSOptions) -> LDAPConnection:
        """Open a transport connection to `url`.

        Raises DirectoryConnectionError if the directory cannot be reached.
        """
