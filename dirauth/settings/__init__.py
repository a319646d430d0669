"""LDAP backend configuration schema."""

from .schema import IMPLEMENTATION_DEFAULTS, LDAPSettings, LDAPTLSSettings

__all__ = ["IMPLEMENTATION_DEFAULTS", "LDAPSettings", "LDAPTLSSettings"]
