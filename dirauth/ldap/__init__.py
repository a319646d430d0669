"""LDAP / Active Directory user provider package.

Public API:
    - LDAPUserProvider
    - ProviderConfig, normalize
    - UserDetails, UserProfile
    - LDAPConnectionFactory, LDAPConnection (capability ABCs)
    - Ldap3ConnectionFactory (ldap3 backend)
"""

from .client import Ldap3ConnectionFactory
from .connection import LDAPConnection, LDAPConnectionFactory
from .models import Implementation, ProviderConfig, SearchEntry, TLSOptions, UserDetails, UserProfile
from .normalize import normalize
from .provider import LDAPUserProvider

__all__ = [
    "Implementation",
    "LDAPConnection",
    "LDAPConnectionFactory",
    "LDAPUserProvider",
    "Ldap3ConnectionFactory",
    "ProviderConfig",
    "SearchEntry",
    "TLSOptions",
    "UserDetails",
    "UserProfile",
    "normalize",
]
