"""ldap3-backed implementation of the directory connection capability."""
from __future__ import annotations

import logging
import ssl
from typing import Any, Sequence

from ldap3 import (
    AUTO_BIND_NONE,
    BASE,
    DEREF_NEVER,
    LEVEL,
    MODIFY_REPLACE,
    NONE,
    SIMPLE,
    SUBTREE,
    Connection,
    Server,
    Tls,
)
from ldap3.core.exceptions import LDAPCommunicationError, LDAPException
from ldap3.core.results import RESULT_SIZE_LIMIT_EXCEEDED, RESULT_SUCCESS

from ..errors import BindError, DirectoryConnectionError, ModifyError, SearchError
from .connection import SCOPE_BASE, SCOPE_ONE_LEVEL, SCOPE_SUBTREE, LDAPConnection, LDAPConnectionFactory
from .models import SearchEntry, TLSOptions

log = logging.getLogger(__name__)

_SCOPES = {
    SCOPE_BASE: BASE,
    SCOPE_ONE_LEVEL: LEVEL,
    SCOPE_SUBTREE: SUBTREE,
}


def _result_description(result: Any) -> str:
    res = dict(result or {})
    desc = res.get("description") or "unknown error"
    msg = res.get("message") or ""
    return f"{desc} ({msg})" if msg else desc


def _decode_values(values: Any) -> list[str]:
    if values is None:
        return []
    if not isinstance(values, (list, tuple)):
        values = [values]
    out: list[str] = []
    for v in values:
        if isinstance(v, bytes):
            out.append(v.decode("utf-8", errors="replace"))
        else:
            out.append(str(v))
    return out


def _decode_attributes(item: dict) -> dict[str, list[str]]:
    raw = item.get("raw_attributes") or item.get("attributes") or {}
    attrs: dict[str, list[str]] = {}
    for name, values in raw.items():
        decoded = _decode_values(values)
        # An attribute without values is an absent attribute.
        if decoded:
            attrs[name] = decoded
    return attrs


def build_tls(tls: TLSOptions) -> Tls:
    tls_kwargs: dict[str, Any] = {
        "validate": ssl.CERT_NONE if tls.skip_verify else ssl.CERT_REQUIRED,
    }
    # Custom CA only matters when verification is enabled.
    if tls.ca_cert_file and not tls.skip_verify:
        tls_kwargs["ca_certs_file"] = tls.ca_cert_file
    if tls.server_name:
        tls_kwargs["valid_names"] = [tls.server_name]
        tls_kwargs["sni"] = tls.server_name
    return Tls(**tls_kwargs)


class Ldap3Connection(LDAPConnection):
    def __init__(self, conn: Connection) -> None:
        self._conn = conn
        self._closed = False

    def start_tls(self, tls: TLSOptions) -> None:
        # `tls` is already attached to the ldap3 Server built in dial().
        try:
            ok = self._conn.start_tls()
        except LDAPException as e:
            raise DirectoryConnectionError(f"StartTLS failed: {e}") from e
        if not ok:
            raise DirectoryConnectionError(f"StartTLS failed: {_result_description(self._conn.result)}")

    def bind(self, dn: str, password: str) -> None:
        # An empty-password simple bind is an unauthenticated bind on most servers.
        if not password:
            raise BindError(f"refusing to bind as {dn!r} with an empty password")

        self._conn.user = dn
        self._conn.password = password
        try:
            ok = self._conn.bind()
        except LDAPCommunicationError as e:
            raise DirectoryConnectionError(f"connection lost while binding as {dn!r}: {e}") from e
        except LDAPException as e:
            raise BindError(f"bind as {dn!r} failed: {e}") from e
        if not ok:
            raise BindError(f"bind as {dn!r} failed: {_result_description(self._conn.result)}")

    def search(
        self,
        base_dn: str,
        scope: str,
        size_limit: int,
        search_filter: str,
        attributes: Sequence[str],
    ) -> list[SearchEntry]:
        # ldap3 always returns the entry DN; "dn" is not a real attribute type.
        attrs = [a for a in attributes if a.lower() != "dn"]
        try:
            self._conn.search(
                search_base=base_dn,
                search_filter=search_filter,
                search_scope=_SCOPES[scope],
                dereference_aliases=DEREF_NEVER,
                attributes=attrs,
                size_limit=size_limit,
            )
        except LDAPCommunicationError as e:
            raise DirectoryConnectionError(f"connection lost during search under {base_dn!r}: {e}") from e
        except LDAPException as e:
            raise SearchError(f"search under {base_dn!r} failed: {e}") from e

        res = dict(self._conn.result or {})
        if res.get("result", RESULT_SUCCESS) not in (RESULT_SUCCESS, RESULT_SIZE_LIMIT_EXCEEDED):
            raise SearchError(f"search under {base_dn!r} failed: {_result_description(res)}")

        entries: list[SearchEntry] = []
        for item in self._conn.response or []:
            if item.get("type") != "searchResEntry":
                continue
            entries.append(SearchEntry(dn=str(item.get("dn") or ""), attributes=_decode_attributes(item)))
        return entries

    def modify(self, dn: str, replacements: dict[str, list[str | bytes]]) -> None:
        changes = {name: [(MODIFY_REPLACE, list(values))] for name, values in replacements.items()}
        try:
            ok = self._conn.modify(dn, changes)
        except LDAPCommunicationError as e:
            raise DirectoryConnectionError(f"connection lost while modifying {dn!r}: {e}") from e
        except LDAPException as e:
            raise ModifyError(f"modify of {dn!r} failed: {e}") from e
        if not ok:
            raise ModifyError(f"modify of {dn!r} failed: {_result_description(self._conn.result)}")

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._conn.unbind()
        except LDAPException:
            log.debug("LDAP unbind failed", exc_info=True)


class Ldap3ConnectionFactory(LDAPConnectionFactory):
    def __init__(self, connect_timeout: float = 5.0, receive_timeout: float | None = None) -> None:
        self.connect_timeout = float(connect_timeout)
        self.receive_timeout = receive_timeout

    def _server(self, url: str, tls: TLSOptions) -> Server:
        return Server(url, tls=build_tls(tls), get_info=NONE, connect_timeout=self.connect_timeout)

    def dial(self, url: str, tls: TLSOptions) -> LDAPConnection:
        try:
            server = self._server(url, tls)
            conn = Connection(
                server,
                authentication=SIMPLE,
                auto_bind=AUTO_BIND_NONE,
                raise_exceptions=False,
                return_empty_attributes=False,
                receive_timeout=self.receive_timeout,
            )
            conn.open()
        except LDAPException as e:
            raise DirectoryConnectionError(f"unable to connect to {url}: {e}") from e
        return Ldap3Connection(conn)
