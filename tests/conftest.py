from collections import deque

import ldap
import pytest

from ldapsession import LDAPClient
from ldapsession import library

#: Scripted response of a request that hasn't been answered yet.
NOT_READY = object()


def api_info():
    """Get library information that matches the loaded python-ldap."""
    return {
        "info_version": library.API_INFO_VERSION,
        "api_version": ldap.API_VERSION,
        "protocol_version": 3,
        "vendor_name": library.VENDOR_NAME,
        "vendor_version": ldap.VENDOR_VERSION,
        "extensions": ["X_OPENLDAP", "THREAD_SAFE"],
    }


def ldap_error(exc_cls, code, info="", matched=""):
    """Create a python-ldap error the way the C module raises it."""
    return exc_cls(
        {"result": code, "desc": exc_cls.__name__, "info": info, "matched": matched}
    )


DEFAULTS = {
    "simple_bind": lambda: (ldap.RES_BIND, []),
    "search_ext": lambda: (ldap.RES_SEARCH_RESULT, []),
    "add_ext": lambda: (ldap.RES_ADD, []),
    "modify_ext": lambda: (ldap.RES_MODIFY, []),
    "delete_ext": lambda: (ldap.RES_DELETE, []),
    "compare_ext": lambda: ldap_error(ldap.COMPARE_FALSE, 5),
    "rename": lambda: (ldap.RES_MODRDN, []),
    "passwd": lambda: (ldap.RES_EXTENDED, None),
    "extop": lambda: (ldap.RES_EXTENDED, None),
}


class FakeLDAPObject:
    """
    Stand-in for a python-ldap handle. Every request takes the next
    response from the transport's script or a default success. A response
    is a (type, data[, value]) tuple, an exception to raise, NOT_READY or
    a callable that returns one of them when the result is collected.
    """

    def __init__(self, transport, uri):
        self.transport = transport
        self.uri = uri
        self.options = {}
        self.responses = {}
        self.timeouts = []
        self.abandoned = []
        self.unbound = False
        self.tls_started = False
        self._msgid = 0

    def set_option(self, option, value):
        self.options[option] = value

    def _submit(self, name, *args):
        self.transport.log.append(("submit", name, args))
        if self.transport.submit_error is not None:
            exc, self.transport.submit_error = self.transport.submit_error, None
            raise exc
        self._msgid += 1
        if self.transport.script:
            self.responses[self._msgid] = self.transport.script.popleft()
        else:
            self.responses[self._msgid] = DEFAULTS[name]()
        return self._msgid

    def simple_bind(self, who=None, cred=None):
        return self._submit("simple_bind", who, cred)

    def search_ext(
        self, base, scope, filterstr="(objectClass=*)", attrlist=None, attrsonly=0
    ):
        return self._submit("search_ext", base, scope, filterstr, attrlist, attrsonly)

    def add_ext(self, dn, modlist):
        return self._submit("add_ext", dn, modlist)

    def modify_ext(self, dn, modlist):
        return self._submit("modify_ext", dn, modlist)

    def delete_ext(self, dn):
        return self._submit("delete_ext", dn)

    def compare_ext(self, dn, attr, value):
        return self._submit("compare_ext", dn, attr, value)

    def rename(self, dn, newrdn, newsuperior=None, delold=1):
        return self._submit("rename", dn, newrdn, newsuperior, delold)

    def passwd(self, user, oldpw, newpw):
        return self._submit("passwd", user, oldpw, newpw)

    def extop(self, extreq):
        return self._submit("extop", extreq.requestName)

    def result4(
        self,
        msgid=ldap.RES_ANY,
        all=1,
        timeout=None,
        add_ctrls=0,
        add_intermediates=0,
        add_extop=0,
    ):
        self.timeouts.append(timeout)
        resp = self.responses[msgid]
        if callable(resp):
            resp = resp()
        if resp is NOT_READY:
            if timeout == 0:
                return (None, None, None, None, None, None)
            raise ldap.TIMEOUT({"result": -5, "desc": "Timed out"})
        del self.responses[msgid]
        self.transport.log.append(("result", msgid))
        if isinstance(resp, Exception):
            raise resp
        rtype, rdata, value = (tuple(resp) + (None,))[:3]
        return (rtype, rdata, msgid, [], None, value)

    def abandon_ext(self, msgid):
        self.abandoned.append(msgid)
        self.responses.pop(msgid, None)

    def start_tls_s(self):
        self.transport.log.append(("submit", "start_tls_s", ()))
        if self.transport.starttls_error is not None:
            raise self.transport.starttls_error
        self.tls_started = True

    def unbind_ext_s(self):
        self.transport.log.append(("submit", "unbind_ext_s", ()))
        self.unbound = True


class FakeTransport:
    """Records the handles created in place of ldap.initialize."""

    def __init__(self):
        self.handles = []
        self.script = deque()
        self.log = []
        self.submit_error = None
        self.starttls_error = None

    @property
    def handle(self):
        return self.handles[-1]

    def initialize(self, uri):
        handle = FakeLDAPObject(self, uri)
        self.handles.append(handle)
        return handle

    def submitted(self):
        """Names of the requests sent so far."""
        return [entry[1] for entry in self.log if entry[0] == "submit"]

    def clear(self):
        del self.log[:]


@pytest.fixture
def transport(monkeypatch):
    """Replace the python-ldap transport with a scripted stub."""
    fake = FakeTransport()
    monkeypatch.setattr(ldap, "initialize", fake.initialize)
    monkeypatch.setattr(library, "_api_info", api_info)
    monkeypatch.setattr(library, "_check_done", False)
    monkeypatch.setattr(library, "_check_report", None)
    return fake


@pytest.fixture
def client():
    """Get an LDAPClient with simple authentication."""
    return LDAPClient(
        "ldap://dir.example.com/dc=example,dc=com??sub",
        {
            "binddn": "cn=admin,dc=example,dc=com",
            "password": "secret",
            "timeout": 5000,
        },
    )


@pytest.fixture
def conn(transport, client):
    """Get an open and bound connection on the stub transport."""
    conn = client.connect()
    transport.clear()
    yield conn
    conn.close()


@pytest.fixture
def basedn():
    """Get base DN."""
    return "dc=example,dc=com"
