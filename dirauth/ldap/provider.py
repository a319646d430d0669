"""User provider backed by an LDAP directory (OpenLDAP, 389-DS, Active Directory...).

Every public call opens its own connection(s), binds, does its work and
releases them before returning; nothing is cached or pooled, so one provider
instance can be shared between threads.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from ..errors import (
    AmbiguousUserError,
    AttributeCardinalityError,
    BindError,
    DirectoryError,
    GroupSearchError,
    InvalidCredentialsError,
    MissingDNError,
    SearchError,
    UserNotFoundError,
)
from ..settings import LDAPSettings
from .client import Ldap3ConnectionFactory
from .connection import SCOPE_SUBTREE, LDAPConnection, LDAPConnectionFactory
from .filters import resolve_groups_filter, resolve_users_filter
from .models import ProviderConfig, UserDetails, UserProfile
from .normalize import normalize
from .passwords import PASSWORD_ENCODINGS
from .utils import resolve_search_dns

log = logging.getLogger(__name__)

# Two is enough to tell "found" from "ambiguous".
USER_SEARCH_SIZE_LIMIT = 2


class LDAPUserProvider:
    def __init__(
        self,
        config: ProviderConfig,
        factory: LDAPConnectionFactory,
        logger: logging.Logger | None = None,
    ) -> None:
        self.config = config
        self.factory = factory
        self.log = logger or log
        self.users_dn, self.groups_dn = resolve_search_dns(config)

    @classmethod
    def from_settings(
        cls,
        settings: LDAPSettings,
        factory: LDAPConnectionFactory | None = None,
        logger: logging.Logger | None = None,
    ) -> "LDAPUserProvider":
        config = normalize(settings, logger)
        if factory is None:
            factory = Ldap3ConnectionFactory(connect_timeout=config.timeout_s, receive_timeout=config.timeout_s)
        return cls(config, factory, logger)

    @contextmanager
    def _operation(self, name: str, username: str) -> Iterator[None]:
        try:
            yield
        except DirectoryError as e:
            e.with_context(name, username)
            raise

    def _connect(self, dn: str, password: str) -> LDAPConnection:
        conn = self.factory.dial(self.config.url, self.config.tls)
        try:
            if self.config.start_tls:
                conn.start_tls(self.config.tls)
            conn.bind(dn, password)
        except BaseException:
            conn.close()
            raise
        return conn

    def _connect_service(self) -> LDAPConnection:
        return self._connect(self.config.user, self.config.password)

    @staticmethod
    def _require_login(username: str) -> None:
        if not (username or "").strip():
            raise UserNotFoundError("empty username")

    def get_user_profile(self, conn: LDAPConnection, username: str) -> UserProfile:
        """Find exactly one user entry matching `username` under the users DN."""
        cfg = self.config
        user_filter = resolve_users_filter(cfg.users_filter, username)
        self.log.debug("Computed user filter is %s", user_filter)

        attributes = ["dn", cfg.display_name_attribute, cfg.mail_attribute, cfg.username_attribute]
        entries = conn.search(self.users_dn, SCOPE_SUBTREE, USER_SEARCH_SIZE_LIMIT, user_filter, attributes)

        if not entries:
            raise UserNotFoundError(f"user {username!r} not found")
        if len(entries) > 1:
            raise AmbiguousUserError(f"multiple users {username!r} found")

        entry = entries[0]
        if not entry.dn:
            raise MissingDNError(f"no DN has been found for user {username!r}")

        usernames = entry.get(cfg.username_attribute) or []
        if len(usernames) != 1:
            raise AttributeCardinalityError(
                f"user {username!r} must have exactly one value for attribute {cfg.username_attribute}, "
                f"got {len(usernames)}"
            )

        display_names = entry.get(cfg.display_name_attribute) or []
        return UserProfile(
            dn=entry.dn,
            username=usernames[0],
            display_name=display_names[0] if display_names else "",
            emails=entry.get(cfg.mail_attribute) or [],
        )

    def get_user_groups(self, conn: LDAPConnection, username: str, profile: UserProfile) -> list[str]:
        """Names of the groups matching the groups filter, in result order."""
        attr = self.config.group_name_attribute
        groups_filter = resolve_groups_filter(self.config.groups_filter, username, profile)
        self.log.debug("Computed groups filter is %s", groups_filter)

        try:
            entries = conn.search(self.groups_dn, SCOPE_SUBTREE, 0, groups_filter, [attr])
        except SearchError as e:
            raise GroupSearchError(f"unable to retrieve groups of user {username!r}: {e.message}") from e

        groups: list[str] = []
        for entry in entries:
            values = entry.get(attr)
            if not values:
                self.log.warning("Group entry %s has no %s attribute, skipped (user %s)", entry.dn, attr, username)
                continue
            groups.extend(values)
        return groups

    def check_user_password(self, username: str, password: str) -> bool:
        """Validate `password` by binding as the user on a fresh connection.

        Returns True on success. Raises InvalidCredentialsError when the user
        bind is rejected and UserNotFoundError when no entry matches; callers
        facing unauthenticated clients should not reveal which of the two
        happened.
        """
        with self._operation("check user password", username):
            self._require_login(username)
            if not password:
                raise InvalidCredentialsError("empty password")

            with self._connect_service() as conn:
                profile = self.get_user_profile(conn, username)

            try:
                user_conn = self._connect(profile.dn, password)
            except BindError as e:
                raise InvalidCredentialsError(f"authentication of user {username!r} failed: {e.message}") from e
            user_conn.close()
            return True

    def get_details(self, username: str) -> UserDetails:
        with self._operation("get details", username):
            self._require_login(username)
            with self._connect_service() as conn:
                profile = self.get_user_profile(conn, username)
                groups = self.get_user_groups(conn, username, profile)

        return UserDetails(
            username=profile.username,
            display_name=profile.display_name,
            emails=profile.emails,
            groups=groups,
        )

    def update_password(self, username: str, new_password: str) -> None:
        encoding = PASSWORD_ENCODINGS[self.config.implementation]
        with self._operation("update password", username):
            self._require_login(username)
            with self._connect_service() as conn:
                profile = self.get_user_profile(conn, username)
                conn.modify(profile.dn, encoding.replacements(new_password))

        self.log.info("Password of user %s (%s) updated", username, profile.dn)

    def check_connection(self) -> None:
        """Dial and bind with the service account, then release the connection."""
        with self._operation("connection check", self.config.user):
            conn = self._connect_service()
            conn.close()
