import ldap
import pytest

from ldapsession import LDAPClient, LDAPConnection, LDAPURL
from ldapsession.errors import BindError
from ldapsession.ldapclient import Credentials, make_credentials


def test_ldapurl():
    """ Test setting LDAPURL. """
    url = LDAPURL("ldap://dir.example.com")
    cli = LDAPClient(url)
    assert cli.url is url
    assert LDAPClient("ldap://dir.example.com").url == url
    assert LDAPClient().url == "ldap://localhost:389"
    with pytest.raises(TypeError):
        _ = LDAPClient(None)
    with pytest.raises(ValueError):
        _ = LDAPClient("http://dir.example.com")


def test_defaults():
    """ Test the default options. """
    cli = LDAPClient()
    assert cli.protocol == 3
    assert cli.timeout == 60000
    assert cli.no_referrals is False
    assert cli.starttls is False
    assert cli.credentials is None
    assert cli.raw_attributes == []
    assert cli.cert_policy is None
    assert cli.ca_cert is None
    assert cli.client_key is None


def test_options():
    """ Test setting the recognized options. """
    cli = LDAPClient(
        "ldap://dir.example.com",
        {
            "protocol": 2,
            "timeout": 5000,
            "no-referrals": True,
            "starttls": True,
            "raw-attributes": ["jpegPhoto"],
            "cert-policy": "DEMAND",
            "ca-cert": "/etc/ssl/ca.pem",
            "ca-cert-dir": "/etc/ssl/certs",
            "client-cert": "/etc/ssl/client.pem",
            "client-key": "/etc/ssl/client.key",
        },
    )
    assert cli.protocol == 2
    assert cli.timeout == 5000
    assert cli.no_referrals is True
    assert cli.starttls is True
    assert cli.raw_attributes == ["jpegPhoto"]
    assert cli.cert_policy == "demand"
    assert cli.ca_cert == "/etc/ssl/ca.pem"
    assert cli.ca_cert_dir == "/etc/ssl/certs"
    assert cli.client_cert == "/etc/ssl/client.pem"
    assert cli.client_key == "/etc/ssl/client.key"


def test_zero_means_default():
    """ Test that zero protocol and timeout mean the defaults. """
    cli = LDAPClient(options={"protocol": 0, "timeout": 0})
    assert cli.protocol == 3
    assert cli.timeout == 60000


@pytest.mark.parametrize(
    "options, exc",
    [
        ({"protocol": "3"}, TypeError),
        ({"protocol": 4}, ValueError),
        ({"timeout": 1.5}, TypeError),
        ({"timeout": -1}, ValueError),
        ({"timeout": True}, TypeError),
        ({"starttls": "yes"}, TypeError),
        ({"no-referrals": 1}, TypeError),
        ({"raw-attributes": "jpegPhoto"}, TypeError),
        ({"raw-attributes": ["cn", 1]}, TypeError),
        ({"raw-attributes": ["cn", "CN"]}, ValueError),
        ({"cert-policy": "sometimes"}, ValueError),
        ({"cert-policy": 1}, TypeError),
        ({"ca-cert": 1}, TypeError),
        ({"sizelimit": 10}, ValueError),
    ],
)
def test_invalid_options(options, exc):
    """ Test that invalid options are rejected. """
    with pytest.raises(exc):
        _ = LDAPClient("ldap://dir.example.com", options)


def test_options_type():
    """ Test that options must be a mapping. """
    with pytest.raises(TypeError):
        _ = LDAPClient("ldap://dir.example.com", [("timeout", 10)])


def test_immutable():
    """ Test that the configuration cannot be changed. """
    cli = LDAPClient()
    with pytest.raises(AttributeError):
        cli.timeout = 10
    raw = cli.raw_attributes
    raw.append("cn")
    assert cli.raw_attributes == []


def test_credentials():
    """ Test the bind credentials options. """
    cli = LDAPClient(
        "ldap://dir.example.com",
        {"binddn": "cn=admin,dc=example,dc=com", "password": "secret"},
    )
    assert cli.credentials == Credentials("cn=admin,dc=example,dc=com", "secret")
    assert "secret" not in repr(cli.credentials)
    cli = LDAPClient(options={"binddn": "cn=anon,dc=example,dc=com"})
    assert cli.credentials.password is None
    with pytest.raises(BindError):
        _ = LDAPClient(options={"password": "secret"})


def test_make_credentials():
    """ Test validating bind DN and password pairs. """
    assert make_credentials() is None
    assert make_credentials("cn=a", "") == Credentials("cn=a", "")
    assert make_credentials(b"cn=a", bytearray(b"p")) == Credentials("cn=a", b"p")
    with pytest.raises(BindError, match="no bind DN"):
        make_credentials(None, "secret")
    with pytest.raises(BindError, match="'password' key"):
        make_credentials("cn=a", 1234)
    with pytest.raises(BindError, match="'binddn' key"):
        make_credentials(["cn=a"], "secret")


def test_connect(transport, client):
    """ Test connect method. """
    conn = client.connect()
    assert isinstance(conn, LDAPConnection)
    assert not conn.closed
    assert conn.client is client
    assert conn.binddn == "cn=admin,dc=example,dc=com"
    assert transport.handle.uri == "ldap://dir.example.com/dc=example,dc=com??sub"
    assert transport.submitted() == ["search_ext", "simple_bind"]
    conn.close()


def test_connect_options(transport):
    """ Test that the options are set on the transport. """
    cli = LDAPClient(
        "ldap://dir.example.com",
        {"protocol": 2, "timeout": 2500, "no-referrals": True},
    )
    with cli.connect() as conn:
        options = transport.handle.options
        assert options[ldap.OPT_PROTOCOL_VERSION] == 2
        assert options[ldap.OPT_RESTART] is True
        assert options[ldap.OPT_TIMEOUT] == 2.5
        assert options[ldap.OPT_NETWORK_TIMEOUT] == 2.5
        assert options[ldap.OPT_REFERRALS] is False
        assert ldap.OPT_X_TLS_NEWCTX not in options
        assert conn.binddn is None
    assert transport.submitted() == ["search_ext", "unbind_ext_s"]


def test_connect_tls_options(transport):
    """ Test that the TLS settings are set on the transport. """
    cli = LDAPClient(
        "ldaps://dir.example.com",
        {"cert-policy": "never", "ca-cert": "/etc/ssl/ca.pem"},
    )
    with cli.connect():
        options = transport.handle.options
        assert options[ldap.OPT_X_TLS_REQUIRE_CERT] == ldap.OPT_X_TLS_NEVER
        assert options[ldap.OPT_X_TLS_CACERTFILE] == "/etc/ssl/ca.pem"
        assert options[ldap.OPT_X_TLS_NEWCTX] == 0
        assert ldap.OPT_REFERRALS not in options
