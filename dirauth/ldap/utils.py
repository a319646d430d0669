from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from .models import ProviderConfig

# Characters that are meaningful in DNs; re-escaped in user input so that a
# login cannot smuggle DN syntax into filters built from it.
SPECIAL_FILTER_CHARS = (",", "#", "+", "<", ">", ";", '"', "=")


def escape_ldap_filter_value(value: str) -> str:
    """RFC 4515 escaping for LDAP filter values."""
    out: list[str] = []
    for ch in value:
        if ch == "\\":
            out.append("\\5c")
        elif ch == "*":
            out.append("\\2a")
        elif ch == "(":
            out.append("\\28")
        elif ch == ")":
            out.append("\\29")
        elif ch == "\x00":
            out.append("\\00")
        else:
            out.append(ch)
    return "".join(out)


def escape_ldap_input(value: str, special_chars: Iterable[str] = SPECIAL_FILTER_CHARS) -> str:
    """Escape raw user input: RFC 4515 first, then backslash-prefix `special_chars`."""
    escaped = escape_ldap_filter_value(value)
    for ch in special_chars:
        escaped = escaped.replace(ch, "\\" + ch)
    return escaped


def join_dn(prefix: str, base_dn: str) -> str:
    prefix = (prefix or "").strip()
    if not prefix:
        return base_dn
    return f"{prefix},{base_dn}"


def resolve_search_dns(cfg: "ProviderConfig") -> tuple[str, str]:
    """Return (users_dn, groups_dn) for the configured base/additional DNs."""
    return join_dn(cfg.additional_users_dn, cfg.base_dn), join_dn(cfg.additional_groups_dn, cfg.base_dn)
