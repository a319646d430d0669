"""Provider bootstrap for the hosting portal.

Reads the AUTH_* environment, configures logging and builds the LDAP user
provider. The portal calls this once at startup and shares the result.
"""
from __future__ import annotations

import logging

from .env_settings import EnvSettings, get_env, ldap_settings_from_env
from .ldap import LDAPConnectionFactory, LDAPUserProvider
from .log_config import setup_logging


def initialize_provider(
    env: EnvSettings | None = None,
    factory: LDAPConnectionFactory | None = None,
    check_connection: bool = False,
) -> LDAPUserProvider:
    env = env or get_env()
    setup_logging(level=env.log_level, log_file=env.log_file)

    logger = logging.getLogger("dirauth.provider")
    provider = LDAPUserProvider.from_settings(ldap_settings_from_env(env), factory=factory, logger=logger)
    logger.info("LDAP provider ready: url=%s, users_dn=%s, groups_dn=%s",
                provider.config.url, provider.users_dn, provider.groups_dn)

    if check_connection:
        provider.check_connection()
    return provider
