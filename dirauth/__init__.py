"""Directory-backed identity provider for the authentication portal."""

from .ldap import LDAPUserProvider, UserDetails, normalize
from .settings import LDAPSettings

__all__ = ["LDAPSettings", "LDAPUserProvider", "UserDetails", "normalize"]
