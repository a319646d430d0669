from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .settings import LDAPSettings, LDAPTLSSettings


class EnvSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    log_level: str = Field("INFO", alias="AUTH_LOG_LEVEL")
    log_file: str = Field("", alias="AUTH_LOG_FILE")

    ldap_implementation: str = Field("custom", alias="AUTH_LDAP_IMPLEMENTATION")
    ldap_url: str = Field("", alias="AUTH_LDAP_URL")
    ldap_base_dn: str = Field("", alias="AUTH_LDAP_BASE_DN")
    ldap_additional_users_dn: str = Field("", alias="AUTH_LDAP_ADDITIONAL_USERS_DN")
    ldap_additional_groups_dn: str = Field("", alias="AUTH_LDAP_ADDITIONAL_GROUPS_DN")
    ldap_users_filter: str = Field("", alias="AUTH_LDAP_USERS_FILTER")
    ldap_groups_filter: str = Field("", alias="AUTH_LDAP_GROUPS_FILTER")
    ldap_username_attribute: str = Field("", alias="AUTH_LDAP_USERNAME_ATTRIBUTE")
    ldap_mail_attribute: str = Field("", alias="AUTH_LDAP_MAIL_ATTRIBUTE")
    ldap_display_name_attribute: str = Field("", alias="AUTH_LDAP_DISPLAY_NAME_ATTRIBUTE")
    ldap_group_name_attribute: str = Field("", alias="AUTH_LDAP_GROUP_NAME_ATTRIBUTE")
    ldap_user: str = Field("", alias="AUTH_LDAP_USER")
    ldap_password: str = Field("", alias="AUTH_LDAP_PASSWORD")
    ldap_start_tls: bool = Field(False, alias="AUTH_LDAP_START_TLS")
    ldap_timeout_s: int = Field(5, alias="AUTH_LDAP_TIMEOUT_S")

    # LDAP TLS
    ldap_tls_server_name: str = Field("", alias="AUTH_LDAP_TLS_SERVER_NAME")
    ldap_tls_skip_verify: bool = Field(False, alias="AUTH_LDAP_TLS_SKIP_VERIFY")
    ldap_tls_ca_cert_file: str = Field("", alias="AUTH_LDAP_TLS_CA_CERT_FILE")


@lru_cache(maxsize=1)
def get_env() -> EnvSettings:
    return EnvSettings()


def ldap_settings_from_env(env: EnvSettings | None = None) -> LDAPSettings:
    """Build validated LDAPSettings from the AUTH_LDAP_* environment."""
    env = env or get_env()
    return LDAPSettings(
        implementation=env.ldap_implementation,
        url=env.ldap_url,
        base_dn=env.ldap_base_dn,
        additional_users_dn=env.ldap_additional_users_dn,
        additional_groups_dn=env.ldap_additional_groups_dn,
        users_filter=env.ldap_users_filter,
        groups_filter=env.ldap_groups_filter,
        username_attribute=env.ldap_username_attribute,
        mail_attribute=env.ldap_mail_attribute,
        display_name_attribute=env.ldap_display_name_attribute,
        group_name_attribute=env.ldap_group_name_attribute,
        user=env.ldap_user,
        password=env.ldap_password,
        start_tls=env.ldap_start_tls,
        timeout_s=env.ldap_timeout_s,
        tls=LDAPTLSSettings(
            server_name=env.ldap_tls_server_name,
            skip_verify=env.ldap_tls_skip_verify,
            ca_cert_file=env.ldap_tls_ca_cert_file,
        ),
    )
