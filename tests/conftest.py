"""Shared fixtures: an in-memory directory that records every call."""
from __future__ import annotations

import pytest

from dirauth.errors import BindError, ModifyError, SearchError
from dirauth.ldap import LDAPUserProvider
from dirauth.ldap.connection import LDAPConnection, LDAPConnectionFactory
from dirauth.ldap.models import SearchEntry
from dirauth.settings import LDAPSettings

SERVICE_DN = "cn=admin,dc=example,dc=com"
SERVICE_PASSWORD = "admin-secret"


class FakeConnection(LDAPConnection):
    def __init__(self, factory: "FakeConnectionFactory") -> None:
        self.factory = factory
        self.bound_as: str | None = None
        self.closed = False
        self.started_tls = False

    def start_tls(self, tls):
        self.started_tls = True

    def bind(self, dn, password):
        self.factory.binds.append((dn, password))
        if self.factory.passwords.get(dn) != password:
            raise BindError(f"bind as {dn!r} failed: invalidCredentials")
        self.bound_as = dn

    def search(self, base_dn, scope, size_limit, search_filter, attributes):
        self.factory.searches.append(
            {
                "base_dn": base_dn,
                "scope": scope,
                "size_limit": size_limit,
                "filter": search_filter,
                "attributes": list(attributes),
                "bound_as": self.bound_as,
            }
        )
        if base_dn in self.factory.search_errors:
            raise self.factory.search_errors[base_dn]
        results = self.factory.results.get(base_dn, [])
        if size_limit:
            results = results[:size_limit]
        return list(results)

    def modify(self, dn, replacements):
        if self.factory.modify_error is not None:
            raise self.factory.modify_error
        self.factory.modifications.append((dn, replacements))

    def close(self):
        self.closed = True


class FakeConnectionFactory(LDAPConnectionFactory):
    """Directory double: `results` maps search base -> entries returned."""

    def __init__(self) -> None:
        self.passwords: dict[str, str] = {SERVICE_DN: SERVICE_PASSWORD}
        self.results: dict[str, list[SearchEntry]] = {}
        self.connections: list[FakeConnection] = []
        self.binds: list[tuple[str, str]] = []
        self.searches: list[dict] = []
        self.modifications: list[tuple[str, dict]] = []
        self.dial_error: Exception | None = None
        self.search_errors: dict[str, SearchError] = {}
        self.modify_error: ModifyError | None = None

    def dial(self, url, tls):
        if self.dial_error is not None:
            raise self.dial_error
        conn = FakeConnection(self)
        self.connections.append(conn)
        return conn

    def all_closed(self) -> bool:
        return all(c.closed for c in self.connections)


def make_settings(**overrides) -> LDAPSettings:
    data = {
        "url": "ldap://ldap.example.com",
        "base_dn": "dc=example,dc=com",
        "additional_users_dn": "ou=users",
        "additional_groups_dn": "ou=groups",
        "users_filter": "(&({username_attribute}={input})(objectClass=person))",
        "groups_filter": "(&(member={dn})(objectClass=groupOfNames))",
        "user": SERVICE_DN,
        "password": SERVICE_PASSWORD,
    }
    data.update(overrides)
    return LDAPSettings(**data)


def user_entry(uid: str, **attrs) -> SearchEntry:
    dn = f"uid={uid},ou=users,dc=example,dc=com"
    attributes = {"uid": [uid]}
    attributes.update(attrs)
    return SearchEntry(dn=dn, attributes=attributes)


@pytest.fixture
def directory() -> FakeConnectionFactory:
    return FakeConnectionFactory()


@pytest.fixture
def provider(directory) -> LDAPUserProvider:
    return LDAPUserProvider.from_settings(make_settings(), factory=directory)


@pytest.fixture
def ad_provider(directory) -> LDAPUserProvider:
    return LDAPUserProvider.from_settings(
        make_settings(implementation="activedirectory", users_filter="", groups_filter=""),
        factory=directory,
    )

