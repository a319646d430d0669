from __future__ import annotations

import logging

from ..settings import LDAPSettings
from .filters import (
    LEGACY_GROUPS_PLACEHOLDERS,
    LEGACY_USERS_PLACEHOLDERS,
    expand_attribute_placeholders,
    rewrite_legacy_placeholders,
)
from .models import Implementation, ProviderConfig, TLSOptions


def normalize(settings: LDAPSettings, logger: logging.Logger | None = None) -> ProviderConfig:
    """Turn validated LDAPSettings into the ProviderConfig the provider holds.

    Pure apart from deprecation warnings: the input settings are not modified,
    and normalizing an already-rewritten template yields it unchanged.
    """
    users_filter = rewrite_legacy_placeholders(
        settings.users_filter, LEGACY_USERS_PLACEHOLDERS, "users filter", logger
    )
    groups_filter = rewrite_legacy_placeholders(
        settings.groups_filter, LEGACY_GROUPS_PLACEHOLDERS, "groups filter", logger
    )

    attrs = (settings.username_attribute, settings.mail_attribute, settings.display_name_attribute)
    users_filter = expand_attribute_placeholders(users_filter, *attrs)
    groups_filter = expand_attribute_placeholders(groups_filter, *attrs)

    return ProviderConfig(
        url=settings.url,
        user=settings.user,
        password=settings.password,
        base_dn=settings.base_dn,
        additional_users_dn=settings.additional_users_dn,
        additional_groups_dn=settings.additional_groups_dn,
        users_filter=users_filter,
        groups_filter=groups_filter,
        username_attribute=settings.username_attribute,
        mail_attribute=settings.mail_attribute,
        display_name_attribute=settings.display_name_attribute,
        group_name_attribute=settings.group_name_attribute,
        implementation=Implementation(settings.implementation),
        start_tls=settings.start_tls,
        timeout_s=settings.timeout_s,
        tls=TLSOptions(
            server_name=settings.tls.server_name,
            skip_verify=settings.tls.skip_verify,
            ca_cert_file=settings.tls.ca_cert_file,
        ),
    )
