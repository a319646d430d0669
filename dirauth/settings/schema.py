from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

ImplementationName = Literal["custom", "activedirectory"]

# Per-implementation defaults applied to empty fields.
IMPLEMENTATION_DEFAULTS: dict[str, dict[str, str]] = {
    "custom": {
        "username_attribute": "uid",
        "mail_attribute": "mail",
        "display_name_attribute": "displayName",
        "group_name_attribute": "cn",
    },
    "activedirectory": {
        "users_filter": (
            "(&(|({username_attribute}={input})({mail_attribute}={input}))"
            "(sAMAccountType=805306368)"
            "(!(userAccountControl:1.2.840.113556.1.4.803:=2))"
            "(!(pwdLastSet=0)))"
        ),
        "groups_filter": "(&(member={dn})(objectClass=group))",
        "username_attribute": "sAMAccountName",
        "mail_attribute": "mail",
        "display_name_attribute": "displayName",
        "group_name_attribute": "cn",
    },
}


class LDAPTLSSettings(BaseModel):
    server_name: str = Field(default="", max_length=255)
    skip_verify: bool = Field(default=False)
    ca_cert_file: str = Field(default="")

    @field_validator("server_name", "ca_cert_file")
    @classmethod
    def _strip(cls, v: str) -> str:
        return (v or "").strip()


class LDAPSettings(BaseModel):
    """Raw LDAP backend configuration, as loaded from env/file.

    Still contains templates with legacy placeholders; `dirauth.ldap.normalize`
    turns it into the immutable ProviderConfig the provider works with.
    """

    implementation: ImplementationName = Field(default="custom")
    url: str = Field(default="")
    base_dn: str = Field(default="")
    additional_users_dn: str = Field(default="")
    additional_groups_dn: str = Field(default="")

    users_filter: str = Field(default="")
    groups_filter: str = Field(default="")

    username_attribute: str = Field(default="", max_length=128)
    mail_attribute: str = Field(default="", max_length=128)
    display_name_attribute: str = Field(default="", max_length=128)
    group_name_attribute: str = Field(default="", max_length=128)

    user: str = Field(default="")
    password: str = Field(default="")  # plaintext; the secret loader decides where it comes from

    start_tls: bool = Field(default=False)
    timeout_s: int = Field(default=5, ge=1, le=300)
    tls: LDAPTLSSettings = Field(default_factory=LDAPTLSSettings)

    @field_validator(
        "url",
        "base_dn",
        "additional_users_dn",
        "additional_groups_dn",
        "users_filter",
        "groups_filter",
        "username_attribute",
        "mail_attribute",
        "display_name_attribute",
        "group_name_attribute",
        "user",
    )
    @classmethod
    def _strip(cls, v: str) -> str:
        return (v or "").strip()

    @field_validator("implementation", mode="before")
    @classmethod
    def _lower_implementation(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("url")
    @classmethod
    def _validate_url(cls, v: str) -> str:
        if not v:
            raise ValueError("LDAP URL is required.")
        scheme, sep, rest = v.partition("://")
        if not sep or scheme.lower() not in ("ldap", "ldaps"):
            raise ValueError(f"LDAP URL must use the ldap:// or ldaps:// scheme, got '{v}'.")
        if not rest.strip("/"):
            raise ValueError("LDAP URL must include a host.")
        return v

    @field_validator("base_dn")
    @classmethod
    def _validate_base_dn(cls, v: str) -> str:
        if not v:
            raise ValueError("Base DN is required.")
        return v

    @field_validator("user")
    @classmethod
    def _validate_user(cls, v: str) -> str:
        if not v:
            raise ValueError("Service account DN is required.")
        return v

    @model_validator(mode="after")
    def _apply_implementation_defaults(self) -> "LDAPSettings":
        for name, default in IMPLEMENTATION_DEFAULTS[self.implementation].items():
            if not getattr(self, name):
                setattr(self, name, default)

        if not self.users_filter:
            raise ValueError("Users filter is required for the custom implementation.")
        if not self.groups_filter:
            raise ValueError("Groups filter is required for the custom implementation.")

        for name in ("users_filter", "groups_filter"):
            flt = getattr(self, name)
            if not (flt.startswith("(") and flt.endswith(")")):
                raise ValueError(f"{name} must be surrounded by parentheses: '{flt}'.")

        if "{input}" not in self.users_filter and "{0}" not in self.users_filter:
            raise ValueError("Users filter must contain the {input} placeholder.")
        return self
