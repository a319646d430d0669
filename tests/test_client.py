"""ldap3 adapter tests. ldap3's Server/Connection are patched out."""
import ssl
from unittest.mock import MagicMock, patch

import pytest
from ldap3 import BASE, DEREF_NEVER, MODIFY_REPLACE, SUBTREE
from ldap3.core.exceptions import LDAPSocketOpenError, LDAPStartTLSError

from dirauth.errors import BindError, DirectoryConnectionError, ModifyError, SearchError
from dirauth.ldap.client import Ldap3Connection, Ldap3ConnectionFactory, build_tls
from dirauth.ldap.connection import SCOPE_BASE, SCOPE_SUBTREE
from dirauth.ldap.models import TLSOptions


def make_conn(**result) -> tuple[Ldap3Connection, MagicMock]:
    raw = MagicMock()
    raw.result = {"result": 0, "description": "success", **result}
    raw.response = []
    return Ldap3Connection(raw), raw


class TestBuildTLS:
    def test_verify_by_default(self):
        with patch("dirauth.ldap.client.Tls") as tls_cls:
            build_tls(TLSOptions())
        tls_cls.assert_called_once_with(validate=ssl.CERT_REQUIRED)

    def test_skip_verify_ignores_ca(self):
        with patch("dirauth.ldap.client.Tls") as tls_cls:
            build_tls(TLSOptions(skip_verify=True, ca_cert_file="/etc/ssl/ca.pem"))
        tls_cls.assert_called_once_with(validate=ssl.CERT_NONE)

    def test_ca_and_server_name(self):
        with patch("dirauth.ldap.client.Tls") as tls_cls:
            build_tls(TLSOptions(server_name="ldap.example.com", ca_cert_file="/etc/ssl/ca.pem"))
        tls_cls.assert_called_once_with(
            validate=ssl.CERT_REQUIRED,
            ca_certs_file="/etc/ssl/ca.pem",
            valid_names=["ldap.example.com"],
            sni="ldap.example.com",
        )


class TestDial:
    def test_opens_connection(self):
        factory = Ldap3ConnectionFactory(connect_timeout=3, receive_timeout=4)
        with patch("dirauth.ldap.client.Server") as server_cls, \
                patch("dirauth.ldap.client.Connection") as conn_cls, \
                patch("dirauth.ldap.client.Tls"):
            conn = factory.dial("ldaps://ldap.example.com:636", TLSOptions())

        assert isinstance(conn, Ldap3Connection)
        assert server_cls.call_args.args == ("ldaps://ldap.example.com:636",)
        assert server_cls.call_args.kwargs["connect_timeout"] == 3.0
        assert conn_cls.call_args.kwargs["receive_timeout"] == 4
        assert conn_cls.call_args.kwargs["raise_exceptions"] is False
        conn_cls.return_value.open.assert_called_once_with()

    def test_unreachable(self):
        factory = Ldap3ConnectionFactory()
        with patch("dirauth.ldap.client.Server"), \
                patch("dirauth.ldap.client.Connection") as conn_cls, \
                patch("dirauth.ldap.client.Tls"):
            conn_cls.return_value.open.side_effect = LDAPSocketOpenError("socket connection error")
            with pytest.raises(DirectoryConnectionError, match="ldap://down.example.com"):
                factory.dial("ldap://down.example.com", TLSOptions())


class TestStartTLS:
    def test_failure(self):
        conn, raw = make_conn()
        raw.start_tls.side_effect = LDAPStartTLSError("wrong tls")
        with pytest.raises(DirectoryConnectionError):
            conn.start_tls(TLSOptions())

    def test_refused(self):
        conn, raw = make_conn(description="protocolError")
        raw.start_tls.return_value = False
        with pytest.raises(DirectoryConnectionError, match="protocolError"):
            conn.start_tls(TLSOptions())


class TestBind:
    def test_success(self):
        conn, raw = make_conn()
        raw.bind.return_value = True
        conn.bind("cn=admin,dc=example,dc=com", "secret")
        assert raw.user == "cn=admin,dc=example,dc=com"
        assert raw.password == "secret"

    def test_invalid_credentials(self):
        conn, raw = make_conn(result=49, description="invalidCredentials")
        raw.bind.return_value = False
        with pytest.raises(BindError, match="invalidCredentials"):
            conn.bind("uid=bob,dc=example,dc=com", "wrong")

    def test_empty_password_is_refused(self):
        conn, raw = make_conn()
        with pytest.raises(BindError):
            conn.bind("uid=bob,dc=example,dc=com", "")
        raw.bind.assert_not_called()

    def test_connection_lost(self):
        conn, raw = make_conn()
        raw.bind.side_effect = LDAPSocketOpenError("reset")
        with pytest.raises(DirectoryConnectionError):
            conn.bind("uid=bob,dc=example,dc=com", "pw")


class TestSearch:
    def test_request_and_entries(self):
        conn, raw = make_conn()
        raw.response = [
            {
                "type": "searchResEntry",
                "dn": "uid=john,ou=users,dc=example,dc=com",
                "raw_attributes": {
                    "uid": [b"john"],
                    "mail": [b"john@example.com", b"jd@example.com"],
                    "displayName": ["Jöhn".encode("utf-8")],
                    "telephoneNumber": [],
                },
            },
            {"type": "searchResRef", "uri": ["ldap://other.example.com/"]},
        ]

        entries = conn.search(
            "ou=users,dc=example,dc=com", SCOPE_SUBTREE, 2, "(uid=john)", ["dn", "displayName", "mail", "uid"]
        )

        raw.search.assert_called_once_with(
            search_base="ou=users,dc=example,dc=com",
            search_filter="(uid=john)",
            search_scope=SUBTREE,
            dereference_aliases=DEREF_NEVER,
            attributes=["displayName", "mail", "uid"],
            size_limit=2,
        )
        assert len(entries) == 1
        entry = entries[0]
        assert entry.dn == "uid=john,ou=users,dc=example,dc=com"
        assert entry.get("mail") == ["john@example.com", "jd@example.com"]
        assert entry.get("displayname") == ["Jöhn"]
        assert entry.get("telephoneNumber") is None

    def test_scope_mapping(self):
        conn, raw = make_conn()
        conn.search("dc=example,dc=com", SCOPE_BASE, 0, "(objectClass=*)", [])
        assert raw.search.call_args.kwargs["search_scope"] == BASE

    def test_size_limit_exceeded_keeps_entries(self):
        conn, raw = make_conn(result=4, description="sizeLimitExceeded")
        raw.response = [
            {"type": "searchResEntry", "dn": "uid=a,dc=example,dc=com", "raw_attributes": {"uid": [b"a"]}},
            {"type": "searchResEntry", "dn": "uid=b,dc=example,dc=com", "raw_attributes": {"uid": [b"b"]}},
        ]
        entries = conn.search("dc=example,dc=com", SCOPE_SUBTREE, 2, "(uid=*)", ["uid"])
        assert [e.dn for e in entries] == ["uid=a,dc=example,dc=com", "uid=b,dc=example,dc=com"]

    def test_error_result(self):
        conn, raw = make_conn(result=32, description="noSuchObject")
        with pytest.raises(SearchError, match="noSuchObject"):
            conn.search("ou=missing,dc=example,dc=com", SCOPE_SUBTREE, 0, "(cn=*)", ["cn"])

    def test_no_response(self):
        conn, raw = make_conn()
        raw.response = None
        assert conn.search("dc=example,dc=com", SCOPE_SUBTREE, 0, "(cn=*)", ["cn"]) == []


class TestModify:
    def test_replace(self):
        conn, raw = make_conn()
        raw.modify.return_value = True
        conn.modify("CN=Alice,DC=example,DC=com", {"unicodePwd": [b'"\x00x\x00"\x00']})
        raw.modify.assert_called_once_with(
            "CN=Alice,DC=example,DC=com", {"unicodePwd": [(MODIFY_REPLACE, [b'"\x00x\x00"\x00'])]}
        )

    def test_rejected(self):
        conn, raw = make_conn(result=19, description="constraintViolation")
        raw.modify.return_value = False
        with pytest.raises(ModifyError, match="constraintViolation"):
            conn.modify("uid=john,dc=example,dc=com", {"userPassword": ["x"]})


class TestClose:
    def test_unbinds_once(self):
        conn, raw = make_conn()
        conn.close()
        conn.close()
        raw.unbind.assert_called_once_with()

    def test_context_manager(self):
        conn, raw = make_conn()
        with conn:
            pass
        raw.unbind.assert_called_once_with()
