from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Mapping


class Implementation(str, Enum):
    GENERIC = "custom"
    ACTIVE_DIRECTORY = "activedirectory"


@dataclass(frozen=True)
class TLSOptions:
    server_name: str = ""
    skip_verify: bool = False
    ca_cert_file: str = ""


@dataclass(frozen=True)
class ProviderConfig:
    """Normalized, immutable provider configuration.

    Filters are already rewritten (no legacy placeholders, attribute-name
    placeholders expanded); only `{input}`, `{username}` and `{dn}` remain
    for per-request substitution.
    """

    url: str
    user: str
    password: str = field(repr=False)
    base_dn: str
    additional_users_dn: str
    additional_groups_dn: str
    users_filter: str
    groups_filter: str
    username_attribute: str
    mail_attribute: str
    display_name_attribute: str
    group_name_attribute: str
    implementation: Implementation = Implementation.GENERIC
    start_tls: bool = False
    timeout_s: int = 5
    tls: TLSOptions = field(default_factory=TLSOptions)


@dataclass(frozen=True)
class SearchEntry:
    dn: str
    attributes: Mapping[str, list[str]] = field(default_factory=dict)

    def get(self, name: str) -> list[str] | None:
        """Values of attribute `name` (case-insensitive), or None when absent."""
        if name in self.attributes:
            return list(self.attributes[name])
        lname = name.lower()
        for key, values in self.attributes.items():
            if key.lower() == lname:
                return list(values)
        return None


@dataclass
class UserProfile:
    dn: str
    username: str
    display_name: str = ""
    emails: list[str] = field(default_factory=list)


@dataclass
class UserDetails:
    username: str
    display_name: str
    emails: list[str]
    groups: list[str]
