"""
.. module:: LDAPClient
   :platform: Unix
   :synopsis: For configuring LDAP sessions.

"""
import logging
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Union

from .errors import BindError
from .ldapurl import LDAPURL
from .marshal import encode_text
from .utils import DEFAULT_PROTOCOL, DEFAULT_TIMEOUT_MS

MYPY = False

if MYPY:
    from .ldapconnection import LDAPConnection

logger = logging.getLogger(__name__)

Secret = Union[str, bytes]


class Credentials(NamedTuple):
    """ Bind DN and password for simple authentication. """

    binddn: str
    password: Optional[Secret] = None

    def __repr__(self) -> str:
        # Never show the password.
        return "Credentials(binddn=%r, password=%s)" % (
            self.binddn,
            "None" if self.password is None else "'***'",
        )


def make_credentials(
    binddn: Optional[Any] = None, password: Optional[Any] = None
) -> Optional[Credentials]:
    """
    Validate a bind DN and password pair. A password without a bind DN is
    an error, a bind DN without a password means an unauthenticated simple
    bind, and neither of them means no bind at all.

    :raises BindError: if only the password is given or the password is \
    not a string.
    """
    if binddn is None:
        if password is not None:
            raise BindError("password given but no bind DN given for bind")
        return None
    if password is not None and not isinstance(password, (str, bytes, bytearray)):
        raise BindError(
            "'password' key is not type 'str' but is type '%s'"
            % type(password).__name__
        )
    if not isinstance(binddn, (str, bytes, bytearray)):
        raise BindError(
            "'binddn' key is not type 'str' but is type '%s'" % type(binddn).__name__
        )
    if isinstance(password, bytearray):
        password = bytes(password)
    return Credentials(encode_text(binddn, "bind DN"), password)


class LDAPClient:
    """
    A class for configuring the connection to the directory server. The
    configuration is read once, when the client is created, and used for
    every (re)initialisation of the sessions opened with it.

    :param str|LDAPURL url: an LDAP URL.
    :param dict options: the session options. The recognized keys are \
    `protocol`, `timeout` (in milliseconds), `no-referrals`, `starttls`, \
    `binddn`, `password`, `raw-attributes`, `cert-policy`, `ca-cert`, \
    `ca-cert-dir`, `client-cert` and `client-key`.
    :raises TypeError: if the `url` parameter is not string \
    or not a valid LDAP URL, or any option has a wrong type.
    :raises ValueError: if an option is unknown or has an invalid value.
    :raises BindError: if a password is set without a bind DN.
    """

    _cert_policies = ("never", "demand", "allow", "try")

    _options = (
        "protocol",
        "timeout",
        "no-referrals",
        "starttls",
        "binddn",
        "password",
        "raw-attributes",
        "cert-policy",
        "ca-cert",
        "ca-cert-dir",
        "client-cert",
        "client-key",
    )

    def __init__(
        self,
        url: Union[LDAPURL, str] = "ldap://",
        options: Optional[Mapping[str, Any]] = None,
    ) -> None:
        """Init method."""
        if isinstance(url, str):
            self.__url = LDAPURL(url)
        elif isinstance(url, LDAPURL):
            self.__url = url
        else:
            raise TypeError("The url parameter must be string or an LDAPURL.")
        if options is None:
            options = {}
        elif not isinstance(options, Mapping):
            raise TypeError("The options parameter must be a dict.")
        unknown = [key for key in options if key not in self._options]
        if unknown:
            raise ValueError("Unknown option(s): %s." % ", ".join(map(str, unknown)))
        self.__protocol = self.__get_protocol(options.get("protocol"))
        self.__timeout = self.__get_timeout(options.get("timeout"))
        self.__no_referrals = self.__get_flag(options, "no-referrals")
        self.__starttls = self.__get_flag(options, "starttls")
        self.__credentials = make_credentials(
            options.get("binddn"), options.get("password")
        )
        self.__raw_list = self.__get_raw_list(options.get("raw-attributes"))
        policy = options.get("cert-policy")
        if policy is not None:
            if not isinstance(policy, str):
                raise TypeError("The cert-policy option must be string.")
            if policy.lower() not in self._cert_policies:
                raise ValueError("'%s' is an invalid policy." % policy)
            policy = policy.lower()
        self.__cert_policy = policy  # type: Optional[str]
        self.__tls_files = {}  # type: Dict[str, Optional[str]]
        for key in ("ca-cert", "ca-cert-dir", "client-cert", "client-key"):
            path = options.get(key)
            if path is not None and not isinstance(path, str):
                raise TypeError("The %s option must be string or None." % key)
            self.__tls_files[key] = path
        logger.debug(
            "LDAPClient configured for %s (protocol: %d, timeout: %d ms)",
            self.__url,
            self.__protocol,
            self.__timeout,
        )

    @staticmethod
    def __get_protocol(value: Any) -> int:
        if value is None:
            return DEFAULT_PROTOCOL
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError("The protocol option must be int.")
        if value == 0:
            return DEFAULT_PROTOCOL
        if value not in (2, 3):
            raise ValueError("LDAP protocol version %d is not supported." % value)
        return value

    @staticmethod
    def __get_timeout(value: Any) -> int:
        if value is None:
            return DEFAULT_TIMEOUT_MS
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError("The timeout option must be int (milliseconds).")
        if value < 0:
            raise ValueError("The timeout option must not be negative.")
        return value or DEFAULT_TIMEOUT_MS

    @staticmethod
    def __get_flag(options: Mapping[str, Any], key: str) -> bool:
        value = options.get(key, False)
        if not isinstance(value, bool):
            raise TypeError("The %s option must be bool." % key)
        return value

    @staticmethod
    def __get_raw_list(raw_list: Any) -> List[str]:
        if raw_list is None:
            return []
        if isinstance(raw_list, str) or not isinstance(raw_list, (list, tuple)):
            raise TypeError("The raw-attributes option must be a list.")
        for elem in raw_list:
            if not isinstance(elem, str):
                raise TypeError("All element of raw-attributes must be string.")
        if len(raw_list) > len(set(map(str.lower, raw_list))):
            raise ValueError("Attribute names must be different from each other.")
        return list(raw_list)

    @property
    def url(self) -> LDAPURL:
        """The URL of the directory server."""
        return self.__url

    @property
    def protocol(self) -> int:
        """The LDAP protocol version."""
        return self.__protocol

    @property
    def timeout(self) -> int:
        """The default operation timeout in milliseconds."""
        return self.__timeout

    @property
    def no_referrals(self) -> bool:
        """True, if the transport must not follow referrals."""
        return self.__no_referrals

    @property
    def starttls(self) -> bool:
        """True, if an encrypted channel is required."""
        return self.__starttls

    @property
    def credentials(self) -> Optional[Credentials]:
        """The bind credentials from the options, if any."""
        return self.__credentials

    @property
    def raw_attributes(self) -> List[str]:
        """A list of attributes that should be kept in byte format."""
        return list(self.__raw_list)

    @property
    def cert_policy(self) -> Optional[str]:
        """The certification policy, None if the library's default is used."""
        return self.__cert_policy

    @property
    def ca_cert(self) -> Optional[str]:
        """The path of the CA certificate file."""
        return self.__tls_files["ca-cert"]

    @property
    def ca_cert_dir(self) -> Optional[str]:
        """The path of the CA certificate directory."""
        return self.__tls_files["ca-cert-dir"]

    @property
    def client_cert(self) -> Optional[str]:
        """The path of the client certificate."""
        return self.__tls_files["client-cert"]

    @property
    def client_key(self) -> Optional[str]:
        """The key file to the client's certificate."""
        return self.__tls_files["client-key"]

    def connect(self, timeout: Optional[int] = None) -> "LDAPConnection":
        """
        Open a connection to the LDAP server and bind with the configured
        credentials.

        :param int timeout: time limit in milliseconds for the bind.
        :return: an LDAP connection.
        :rtype: :class:`LDAPConnection`
        """
        from .ldapconnection import LDAPConnection

        return LDAPConnection(self).open(timeout)
