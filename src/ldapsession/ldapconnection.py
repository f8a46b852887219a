import logging
import threading
from enum import IntEnum
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

import ldap
from ldap.extop import ExtendedRequest

from .errors import (
    BindError,
    ConnectionError,
    InputValidationError,
    LDAPError,
    NoActiveSessionError,
    ProtocolError,
    TimeoutError,
)
from .ldapclient import Credentials, LDAPClient, make_credentials
from .ldapreference import LDAPReference
from .ldapresult import (
    LDAPResult,
    ResultKind,
    check_result,
    parse_error,
    parse_response,
    result_error,
)
from .library import ensure_compatible
from .marshal import (
    GenericValue,
    attribute_list,
    encode_text,
    encode_value,
    entry_to_modlist,
    records_to_modlist,
    to_generic_entry,
)
from .utils import ms_to_timeout

logger = logging.getLogger(__name__)

WHOAMI_OID = "1.3.6.1.4.1.4203.1.11.3"

_TLS_POLICIES = {
    "never": ldap.OPT_X_TLS_NEVER,
    "demand": ldap.OPT_X_TLS_DEMAND,
    "allow": ldap.OPT_X_TLS_ALLOW,
    "try": ldap.OPT_X_TLS_TRY,
}


def _check_timeout(timeout: Any) -> None:
    """Reject a timeout that is neither None nor an int of milliseconds."""
    if timeout is None:
        return
    if isinstance(timeout, bool) or not isinstance(timeout, int):
        raise InputValidationError(
            "The timeout must be int (milliseconds) or None, not '%s'."
            % type(timeout).__name__
        )


class LDAPSearchScope(IntEnum):
    """ Enumeration for LDAP search scopes. """

    BASE = 0  #: For searching only the base DN.
    ONELEVEL = 1  #: For searching one tree level under the base DN.
    ONE = ONELEVEL  #: Alias for :attr:`LDAPSearchScope.ONELEVEL`.
    SUBTREE = 2  #: For searching the entire subtree, including the base DN.
    SUB = SUBTREE  #: Alias for :attr:`LDAPSearchScope.SUBTREE`.


class SearchResult(Dict[str, Dict[str, GenericValue]]):
    """
    The result of a search: a dict of the entries' DNs to their attribute
    dicts in the order the server returned them. The search continuation
    references are listed in the :attr:`references` attribute.
    """

    def __init__(self) -> None:
        super().__init__()
        self.references = []  # type: List[LDAPReference]


class BaseLDAPConnection:
    """
    The state of a single LDAP session: the transport handle, the URI it
    was opened with and the credentials of the last successful bind.

    Every method that talks to the server holds the session lock for its
    whole duration, so only one request is in flight at a time.

    :param LDAPClient client: a client object.
    """

    def __init__(self, client: LDAPClient) -> None:
        if not isinstance(client, LDAPClient):
            raise TypeError("Client parameter must be an LDAPClient.")
        self.__client = client
        self._lock = threading.Lock()
        self._handle = None  # type: Any
        self.__uri = None  # type: Optional[str]
        self.__credentials = None  # type: Optional[Credentials]

    def __enter__(self) -> "BaseLDAPConnection":
        """ Context manager entry point. """
        return self

    def __exit__(self, type, value, traceback) -> None:
        """ Context manager exit point. """
        self.close()

    @property
    def client(self) -> LDAPClient:
        """The client object of the session."""
        return self.__client

    @property
    def closed(self) -> bool:
        """True, if there is no open session context."""
        return self._handle is None

    @property
    def uri(self) -> Optional[str]:
        """The URI of the server, None if the session is closed."""
        return self.__uri

    @property
    def binddn(self) -> Optional[str]:
        """The DN of the last successful bind."""
        return self.__credentials.binddn if self.__credentials else None

    def open(self, timeout: Optional[int] = None) -> "BaseLDAPConnection":
        """
        Open the session and bind with the client's credentials, if any.
        Calling it on an open session does nothing.

        :param int timeout: time limit in milliseconds for the bind.
        :return: the connection object itself.
        """
        _check_timeout(timeout)
        with self._lock:
            if self._handle is not None:
                return self
            self.__uri = str(self.__client.url)
            self._initialize()
            creds = self.__client.credentials
            if creds is not None:
                try:
                    self._bind(creds, timeout)
                except LDAPError:
                    self._unbind()
                    raise
        return self

    def initialize(self) -> None:
        """
        (Re)initialise the session context with the client's
        configuration. An open context is unbound first. The stored bind
        credentials are kept, but not replayed.

        :raises LDAPError: if the context cannot be created, the liveness \
        probe or the StartTLS handshake fails.
        """
        with self._lock:
            if self.__uri is None:
                self.__uri = str(self.__client.url)
            if self._handle is not None:
                self._unbind()
            self._initialize()

    def bind(
        self,
        binddn: Optional[str] = None,
        password: Optional[Union[str, bytes]] = None,
        timeout: Optional[int] = None,
    ) -> None:
        """
        Bind to the server with simple authentication. On success the
        credentials are stored for later :meth:`rebind` calls. On failure
        the session must be bound again before it's used.

        :param str binddn: the bind DN.
        :param str|bytes password: the password. An empty password is \
        sent as empty, a missing one as absent.
        :param int timeout: time limit in milliseconds.
        :raises BindError: if the credentials are missing or contradictory \
        or the server rejected them.
        """
        _check_timeout(timeout)
        creds = make_credentials(binddn, password)
        if creds is None:
            raise BindError("no bind DN given for bind")
        with self._lock:
            self._check_valid("bind")
            self._bind(creds, timeout)

    def rebind(self, timeout: Optional[int] = None) -> None:
        """
        Unbind the current session context, open a new one against the
        same URI and bind again with the stored credentials, if any.

        :param int timeout: time limit in milliseconds for the bind.
        """
        _check_timeout(timeout)
        with self._lock:
            if self.__uri is None:
                raise NoActiveSessionError(
                    "cannot execute LDAPConnection.rebind(); the session has "
                    "been closed"
                )
            if self._handle is not None:
                self._unbind()
            self._initialize()
            if self.__credentials is not None:
                self._bind(self.__credentials, timeout)
            logger.info("Session to %s is re-initialised", self.__uri)

    def close(self) -> None:
        """
        Unbind the session context and release the stored URI and
        credentials. It can be called several times.
        """
        with self._lock:
            if self._handle is not None:
                self._unbind()
            self.__uri = None
            self.__credentials = None

    def clone(self, timeout: Optional[int] = None) -> "BaseLDAPConnection":
        """
        Open a new session with the same client and the stored
        credentials of this one.

        :param int timeout: time limit in milliseconds for the bind.
        :return: the new connection.
        """
        _check_timeout(timeout)
        with self._lock:
            self._check_valid("clone")
            creds = self.__credentials
        other = self.__class__(self.__client)
        with other._lock:
            other.__uri = str(self.__client.url)
            other._initialize()
            if creds is not None:
                try:
                    other._bind(creds, timeout)
                except LDAPError:
                    other._unbind()
                    raise
        return other

    def _check_valid(self, method: str) -> Any:
        if self._handle is None:
            raise NoActiveSessionError(
                "cannot execute LDAPConnection.%s(); the LDAPConnection object "
                "has been closed or the session context has been unbound" % method
            )
        return self._handle

    def _error(self, exc: ldap.LDAPError, primitive: str) -> LDAPError:
        return result_error(parse_error(exc), primitive, self.__uri)

    def _set_option(self, handle: Any, option: int, value: Any, errmsg: str) -> None:
        try:
            handle.set_option(option, value)
        except (ldap.LDAPError, ValueError) as exc:
            raise ProtocolError("%s: %s" % (errmsg, exc), uri=self.__uri) from exc

    def _initialize(self) -> None:
        """Create and configure a new session context. Lock must be held."""
        ensure_compatible()
        client = self.__client
        try:
            handle = ldap.initialize(self.__uri)
        except ldap.LDAPError as exc:
            raise self._error(exc, "ldap_initialize") from exc
        logger.debug("Session context for %s is created", self.__uri)
        try:
            self._set_option(
                handle,
                ldap.OPT_PROTOCOL_VERSION,
                client.protocol,
                "failed to set LDAP protocol v%d; "
                "ldap_set_option(LDAP_OPT_PROTOCOL_VERSION) failed" % client.protocol,
            )
            self._set_option(
                handle,
                ldap.OPT_RESTART,
                True,
                "failed to set LDAP restart option; "
                "ldap_set_option(LDAP_OPT_RESTART) failed",
            )
            timeout = ms_to_timeout(client.timeout)
            self._set_option(
                handle,
                ldap.OPT_TIMEOUT,
                timeout,
                "failed to set LDAP timeout to %d ms; "
                "ldap_set_option(LDAP_OPT_TIMEOUT) failed" % client.timeout,
            )
            self._set_option(
                handle,
                ldap.OPT_NETWORK_TIMEOUT,
                timeout,
                "failed to set LDAP network timeout to %d ms; "
                "ldap_set_option(LDAP_OPT_NETWORK_TIMEOUT) failed" % client.timeout,
            )
            if client.no_referrals:
                self._set_option(
                    handle,
                    ldap.OPT_REFERRALS,
                    False,
                    "failed to disable LDAP referrals; "
                    "ldap_set_option(LDAP_OPT_REFERRALS) failed",
                )
            self._set_tls_options(handle)
            self._handle = handle
            # Liveness probe: an attribute-less search of the root DSE.
            result = self._wait(
                self._submit(
                    "ldap_search_ext",
                    handle.search_ext,
                    "",
                    ldap.SCOPE_BASE,
                    "(objectClass=*)",
                    ["1.1"],
                ),
                client.timeout,
                "ldap_search_ext",
            )
            check_result(result, "ldap_search_ext", self.__uri)
            if client.starttls and not client.url.is_secure:
                logger.debug("Starting TLS on %s", self.__uri)
                try:
                    handle.start_tls_s()
                except ldap.LDAPError as exc:
                    raise self._error(exc, "ldap_start_tls_s") from exc
        except LDAPError:
            self._handle = handle
            self._unbind()
            raise

    def _set_tls_options(self, handle: Any) -> None:
        client = self.__client
        tls_options = (
            (ldap.OPT_X_TLS_CACERTFILE, client.ca_cert, "CA certificate"),
            (ldap.OPT_X_TLS_CACERTDIR, client.ca_cert_dir, "CA certificate directory"),
            (ldap.OPT_X_TLS_CERTFILE, client.client_cert, "client certificate"),
            (ldap.OPT_X_TLS_KEYFILE, client.client_key, "client key"),
        )
        changed = False
        if client.cert_policy is not None:
            self._set_option(
                handle,
                ldap.OPT_X_TLS_REQUIRE_CERT,
                _TLS_POLICIES[client.cert_policy],
                "failed to set the '%s' cert policy" % client.cert_policy,
            )
            changed = True
        for option, value, name in tls_options:
            if value:
                self._set_option(
                    handle, option, value, "failed to set the %s" % name
                )
                changed = True
        if changed:
            # Create a new TLS context to apply the settings.
            self._set_option(
                handle, ldap.OPT_X_TLS_NEWCTX, 0, "failed to create TLS context"
            )

    def _unbind(self) -> None:
        """Unbind the session context ignoring any error. Lock must be held."""
        handle, self._handle = self._handle, None
        try:
            handle.unbind_ext_s()
        except ldap.LDAPError as exc:
            logger.warning("Unbinding from %s failed: %s", self.__uri, exc)
        else:
            logger.debug("Session context for %s is unbound", self.__uri)

    def _bind(self, creds: Credentials, timeout: Optional[int]) -> None:
        """Send a simple bind request. Lock must be held."""
        handle = self._handle
        msgid = self._submit(
            "ldap_sasl_bind", handle.simple_bind, creds.binddn, creds.password
        )
        result = self._wait(msgid, timeout, "ldap_sasl_bind")
        if result.kind is not ResultKind.SUCCESS:
            exc = result_error(result, "ldap_sasl_bind", self.__uri)
            if not isinstance(exc, BindError):
                exc = BindError(
                    str(exc.args[0]),
                    code=exc.code,
                    uri=exc.uri,
                    primitive=exc.primitive,
                    diagnostic=exc.diagnostic,
                    matched_dn=exc.matched_dn,
                )
            raise exc
        self.__credentials = creds
        logger.info("Bound to %s as '%s'", self.__uri, creds.binddn)

    def _submit(self, primitive: str, func: Callable[..., int], *args: Any) -> int:
        """Send a request and return its message ID. Lock must be held."""
        try:
            msgid = func(*args)
        except ldap.LDAPError as exc:
            raise self._error(exc, primitive) from exc
        logger.debug("%s() sent to %s with message ID %d", primitive, self.__uri, msgid)
        return msgid

    def _wait(self, msgid: int, timeout: Optional[int], primitive: str) -> LDAPResult:
        """
        Wait for the result of the `msgid` request. Lock must be held.
        A `None` timeout means the client's default, zero or less polls
        the transport once.
        """
        if timeout is None:
            timeout = self.__client.timeout
        secs = ms_to_timeout(timeout)
        try:
            rtype, rdata, _, _, _, respvalue = self._handle.result4(
                msgid, all=1, timeout=secs, add_extop=1
            )
        except ldap.TIMEOUT:
            rtype = None
        except (ldap.SERVER_DOWN, ldap.CONNECT_ERROR) as exc:
            result = parse_error(exc)
            raise ConnectionError(
                "connection to '%s' failed while waiting for %s(): %s"
                % (self.__uri, primitive, result.diagnostic),
                code=result.code,
                uri=self.__uri,
                primitive="ldap_result",
                diagnostic=result.diagnostic,
            ) from exc
        except ldap.LDAPError as exc:
            result = parse_error(exc)
            logger.debug(
                "%s() message ID %d returned code %d", primitive, msgid, result.code
            )
            return result
        if rtype is None:
            self._abandon(msgid)
            raise TimeoutError(
                "openldap server '%s' did not respond to %s() in %d ms"
                % (self.__uri, primitive, max(timeout, 0)),
                uri=self.__uri,
                primitive="ldap_result",
            )
        logger.debug("%s() message ID %d returned code 0", primitive, msgid)
        return parse_response(rtype, rdata, respvalue)

    def _abandon(self, msgid: int) -> None:
        try:
            self._handle.abandon_ext(msgid)
        except ldap.LDAPError as exc:
            logger.warning("Abandoning message ID %d failed: %s", msgid, exc)

    def _execute(
        self,
        method: str,
        primitive: str,
        submit: str,
        *args: Any,
        timeout: Optional[int] = None
    ) -> LDAPResult:
        """
        Submit a request with the `submit` method of the handle and wait
        for its result while holding the session lock.
        """
        with self._lock:
            handle = self._check_valid(method)
            msgid = self._submit(primitive, getattr(handle, submit), *args)
            return self._wait(msgid, timeout, primitive)

    def _reference(self, urls: Sequence[str], primitive: str) -> LDAPReference:
        try:
            return LDAPReference(self.__client, urls)
        except ValueError as exc:
            raise ProtocolError(
                "%s() returned an invalid referral: %s" % (primitive, exc),
                uri=self.__uri,
                primitive=primitive,
            ) from None

    def _referral(self, result: LDAPResult, primitive: str) -> LDAPReference:
        if not result.referrals:
            # Nowhere to go, the request was not carried out.
            raise result_error(result, primitive, self.__uri)
        return self._reference(result.referrals, primitive)

    def _finish(self, result: LDAPResult, primitive: str) -> Union[bool, LDAPReference]:
        result = check_result(result, primitive, self.__uri)
        if result.kind is ResultKind.REFERRAL:
            return self._referral(result, primitive)
        return True


class LDAPConnection(BaseLDAPConnection):
    """
    Handles synchronous connection to an LDAP server. The string inputs
    are validated and converted before the session lock is taken, the
    results are converted after it's released.

    Every `timeout` parameter is in milliseconds, `None` means the
    client's default timeout.

    :param LDAPClient client: a client object.
    """

    def open(self, timeout: Optional[int] = None) -> "LDAPConnection":
        """
        Open the LDAP connection.

        :param int timeout: time limit in milliseconds for the bind.
        :return: The :class:`LDAPConnection` object itself.
        :rtype: :class:`LDAPConnection`.
        """
        super().open(timeout)
        return self

    def search(
        self,
        base: Optional[str] = None,
        scope: Optional[Union[LDAPSearchScope, int]] = None,
        filter_exp: Optional[str] = None,
        attrlist: Optional[List[str]] = None,
        attrsonly: bool = False,
        timeout: Optional[int] = None,
    ) -> SearchResult:
        """
        Search the directory.

        :param str base: the base DN of the search. If it's not set, the \
        base DN of the client's URL is used.
        :param int scope: the scope of the search, the URL's scope or \
        subtree by default.
        :param str filter_exp: the search filter. Empty means every entry.
        :param list attrlist: the attributes to return, all by default.
        :param bool attrsonly: return only the attribute names.
        :param int timeout: time limit in milliseconds.
        :return: the entries by their DNs. An attribute with a single value \
        is a scalar, with more values a list, without values None.
        :rtype: :class:`SearchResult`
        """
        _check_timeout(timeout)
        url = self.client.url
        if base is None:
            base = url.basedn
        _base = encode_text(base, "base DN")
        if scope is None:
            scope = url.scope_num if url.scope_num != -1 else LDAPSearchScope.SUBTREE
        if isinstance(scope, bool) or not isinstance(scope, int) or scope not in (
            0,
            1,
            2,
        ):
            raise InputValidationError("Invalid search scope: %r." % (scope,))
        if filter_exp is None:
            filter_exp = url.filter_exp
        _filter = encode_text(filter_exp, "search filter") or "(objectClass=*)"
        if attrlist is None:
            attrlist = url.attributes
        _attrlist = attribute_list(attrlist)
        result = self._execute(
            "search",
            "ldap_search_ext",
            "search_ext",
            _base,
            int(scope),
            _filter,
            _attrlist,
            int(bool(attrsonly)),
            timeout=timeout,
        )
        result = check_result(result, "ldap_search_ext", self.uri)
        entries = SearchResult()
        if result.kind is ResultKind.REFERRAL:
            entries.references.append(self._referral(result, "ldap_search_ext"))
            return entries
        raw = self.client.raw_attributes
        for dn, attrs in result.data or ():
            if dn is None:
                # Search continuation reference.
                entries.references.append(self._reference(attrs, "ldap_search_ext"))
            else:
                entries[dn] = to_generic_entry(attrs, raw)
        return entries

    def add(
        self, dn: str, entry: Dict[str, Any], timeout: Optional[int] = None
    ) -> Union[bool, LDAPReference]:
        """
        Add new entry to the directory server.

        :param str dn: the DN of the new entry.
        :param dict entry: attribute names to a value or a list of values.
        :param int timeout: time limit in milliseconds.
        :return: True, if the operation is finished, an \
        :class:`LDAPReference` if the server referred to another one.
        :raises AddError: if the entry is malformed.
        """
        _check_timeout(timeout)
        _dn = encode_text(dn, "DN")
        addlist = entry_to_modlist(entry)
        result = self._execute(
            "add", "ldap_add_ext", "add_ext", _dn, addlist, timeout=timeout
        )
        return self._finish(result, "ldap_add_ext")

    def modify(
        self, dn: str, changes: List[Dict[str, Any]], timeout: Optional[int] = None
    ) -> Union[bool, LDAPReference]:
        """
        Modify an entry of the directory server.

        :param str dn: the DN of the entry.
        :param list changes: list of dicts with the `mod` (`add`, `delete` \
        or `replace`), `attr` and `value` keys. The `value` can be omitted \
        for `delete` to remove every value of the attribute.
        :param int timeout: time limit in milliseconds.
        :return: True, if the operation is finished, an \
        :class:`LDAPReference` if the server referred to another one.
        :raises ModifyError: if any of the changes is malformed.
        """
        _check_timeout(timeout)
        _dn = encode_text(dn, "DN")
        modlist = records_to_modlist(changes)
        result = self._execute(
            "modify", "ldap_modify_ext", "modify_ext", _dn, modlist, timeout=timeout
        )
        return self._finish(result, "ldap_modify_ext")

    def delete(
        self, dn: str, timeout: Optional[int] = None
    ) -> Union[bool, LDAPReference]:
        """
        Remove entry from the directory server.

        :param str dn: the DN of the entry.
        :param int timeout: time limit in milliseconds.
        :return: True, if the operation is finished, an \
        :class:`LDAPReference` if the server referred to another one.
        """
        _check_timeout(timeout)
        _dn = encode_text(dn, "DN")
        result = self._execute(
            "delete", "ldap_delete_ext", "delete_ext", _dn, timeout=timeout
        )
        return self._finish(result, "ldap_delete_ext")

    def compare(
        self, dn: str, attr: str, values: Any, timeout: Optional[int] = None
    ) -> bool:
        """
        Compare the values of an entry's attribute with the candidate
        values. The candidates are compared one after the other.

        :param str dn: the DN of the entry.
        :param str attr: the name of the attribute.
        :param values: a candidate value or a list of them.
        :param int timeout: time limit in milliseconds for each comparison.
        :return: True, if any of the candidates matches, False otherwise.
        :raises InputValidationError: if there are no candidates.
        """
        _check_timeout(timeout)
        _dn = encode_text(dn, "DN")
        _attr = encode_text(attr, "attribute name")
        if not isinstance(values, (list, tuple)):
            values = [values]
        if not values:
            raise InputValidationError("No values are given for comparison.")
        try:
            _values = [encode_value(val) for val in values]
        except (TypeError, UnicodeEncodeError) as exc:
            raise InputValidationError(
                "Invalid value for comparing attribute '%s': %s" % (_attr, exc)
            ) from None
        with self._lock:
            handle = self._check_valid("compare")
            for value in _values:
                msgid = self._submit(
                    "ldap_compare_ext", handle.compare_ext, _dn, _attr, value
                )
                result = self._wait(msgid, timeout, "ldap_compare_ext")
                if result.kind is ResultKind.COMPARE_TRUE:
                    return True
                if result.kind is not ResultKind.COMPARE_FALSE:
                    raise result_error(result, "ldap_compare_ext", self.uri)
        return False

    def rename(
        self,
        dn: str,
        new_rdn: str,
        new_parent: Optional[str] = None,
        delete_old_rdn: bool = True,
        timeout: Optional[int] = None,
    ) -> Union[bool, LDAPReference]:
        """
        Change the entry's distinguished name.

        :param str dn: the DN of the entry.
        :param str new_rdn: the new relative DN.
        :param str new_parent: the DN of the new parent entry, None keeps \
        the entry under its current parent.
        :param bool delete_old_rdn: remove old RDN with renaming.
        :param int timeout: time limit in milliseconds.
        :return: True, if the operation is finished, an \
        :class:`LDAPReference` if the server referred to another one.
        """
        _check_timeout(timeout)
        _dn = encode_text(dn, "DN")
        _rdn = encode_text(new_rdn, "new RDN")
        _parent = None
        if new_parent is not None:
            _parent = encode_text(new_parent, "new parent DN")
        result = self._execute(
            "rename",
            "ldap_rename",
            "rename",
            _dn,
            _rdn,
            _parent,
            int(bool(delete_old_rdn)),
            timeout=timeout,
        )
        return self._finish(result, "ldap_rename")

    def modify_password(
        self,
        user: str,
        old_password: Optional[Union[str, bytes]],
        new_password: Union[str, bytes],
        timeout: Optional[int] = None,
    ) -> Union[bool, LDAPReference]:
        """
        Set a new password for the given user with the password modify
        extended operation. The passwords are sent unchanged.

        :param str user: the DN of the user.
        :param str|bytes old_password: the current password of the user.
        :param str|bytes new_password: the new password.
        :param int timeout: time limit in milliseconds.
        :return: True, if the operation is finished, an \
        :class:`LDAPReference` if the server referred to another one.
        """
        _check_timeout(timeout)
        _user = encode_text(user, "user DN")
        for name, secret in (("old", old_password), ("new", new_password)):
            if secret is not None and not isinstance(secret, (str, bytes)):
                raise InputValidationError(
                    "The %s password must be str or bytes, not '%s'."
                    % (name, type(secret).__name__)
                )
        if new_password is None:
            raise InputValidationError("The new password must be set.")
        result = self._execute(
            "modify_password",
            "ldap_passwd",
            "passwd",
            _user,
            old_password,
            new_password,
            timeout=timeout,
        )
        return self._finish(result, "ldap_passwd")

    def whoami(self, timeout: Optional[int] = None) -> str:
        """
        This method can be used to obtain authorization identity.

        :param int timeout: time limit in milliseconds.
        :return: the authorization ID.
        :rtype: str
        """
        _check_timeout(timeout)
        result = self._execute(
            "whoami",
            "ldap_extended_operation",
            "extop",
            ExtendedRequest(WHOAMI_OID),
            timeout=timeout,
        )
        result = check_result(result, "ldap_extended_operation", self.uri)
        if result.kind is ResultKind.REFERRAL:
            raise result_error(result, "ldap_extended_operation", self.uri)
        if not result.value:
            return ""
        return result.value.decode("UTF-8", errors="replace")
