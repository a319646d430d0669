"""Search filter templates.

Placeholders substituted per request:
    {input}     raw login as typed by the user (escaped)
    {username}  resolved username of the profile (groups filter only)
    {dn}        resolved DN of the profile (groups filter only)

Placeholders substituted once, when the configuration is normalized:
    {username_attribute}, {mail_attribute}, {display_name_attribute}

Every value is escaped before it is inserted into the template, never after.
"""
from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from .utils import escape_ldap_filter_value, escape_ldap_input

if TYPE_CHECKING:
    from .models import UserProfile

# Legacy positional placeholders, rewritten to their named equivalents.
LEGACY_USERS_PLACEHOLDERS = (("{0}", "{input}"),)
LEGACY_GROUPS_PLACEHOLDERS = (("{0}", "{input}"), ("{1}", "{username}"))

_GROUPS_PLACEHOLDER_RE = re.compile(r"\{(input|username|dn)\}")


def rewrite_legacy_placeholders(
    template: str,
    replacements: tuple[tuple[str, str], ...],
    filter_name: str,
    logger: logging.Logger | None = None,
) -> str:
    """Replace deprecated `{0}`/`{1}` placeholders, warning once per placeholder found."""
    log = logger or logging.getLogger(__name__)
    for old, new in replacements:
        if old in template:
            log.warning(
                "DEPRECATION NOTICE: the LDAP %s no longer supports replacing `%s`. Please use `%s` instead.",
                filter_name, old, new,
            )
            template = template.replace(old, new)
    return template


def expand_attribute_placeholders(
    template: str,
    username_attribute: str,
    mail_attribute: str,
    display_name_attribute: str,
) -> str:
    template = template.replace("{username_attribute}", username_attribute)
    template = template.replace("{mail_attribute}", mail_attribute)
    template = template.replace("{display_name_attribute}", display_name_attribute)
    return template


def resolve_users_filter(template: str, login: str) -> str:
    return template.replace("{input}", escape_ldap_input(login))


def resolve_groups_filter(template: str, login: str, profile: "UserProfile | None" = None) -> str:
    values = {"input": escape_ldap_input(login)}
    if profile is not None:
        values["username"] = escape_ldap_filter_value(profile.username)
        values["dn"] = escape_ldap_filter_value(profile.dn)

    # Single pass: substituted values are never scanned for placeholders again.
    return _GROUPS_PLACEHOLDER_RE.sub(lambda m: values.get(m.group(1), m.group(0)), template)
