from ipaddress import IPv6Address
from typing import List, Tuple

import re
import urllib.parse


class LDAPURL:
    """
    Read-only LDAP URL object holding the connection information (scheme,
    hostname and port) and the optional search defaults (base DN,
    attributes, scope and filter) of an LDAP URL.

    :param str strurl: string representation of a valid LDAP URL. Must \
    be started with `ldap://`, `ldaps://` or `ldapi://`.

    :raises TypeError: if the `strurl` is not a string.
    :raises ValueError: if the string parameter is not a valid LDAP URL.
    """

    __slots__ = ("__strurl", "__hostinfo", "__searchinfo", "__ipv6")

    _hostname_regex = re.compile(
        r"^(([a-zA-Z0-9]|[a-zA-Z0-9][a-zA-Z0-9\-]"
        r"*[a-zA-Z0-9])\.)*([A-Za-z0-9]|"
        r"[A-Za-z0-9][A-Za-z0-9\-]*[A-Za-z0-9])$"
    )

    def __init__(self, strurl: str = "ldap://") -> None:
        """Init method."""
        if not isinstance(strurl, str):
            raise TypeError("The url parameter must be a string.")
        self.__strurl = strurl
        self.__hostinfo = ("ldap", "localhost", 389)  # type: Tuple[str, str, int]
        # Default values to the search parameters.
        self.__searchinfo = ("", [], "", "")  # type: Tuple[str, List[str], str, str]
        self.__ipv6 = False
        self.__str2url(strurl)

    def __str2url(self, strurl: str) -> None:
        """Parsing string url to LDAPURL."""
        # Form: [scheme]://[host]:[port]/[basedn]?[attrs]?[scope]?[filter]?[exts]
        scheme, host, port = self.__hostinfo
        basedn, attrlist, scope, filter_exp = self.__searchinfo
        parsed_url = urllib.parse.urlparse(strurl)
        scheme = parsed_url.scheme
        if scheme not in ("ldap", "ldaps", "ldapi"):
            raise ValueError(f"'{strurl}' is not a valid LDAP URL")
        if scheme == "ldaps":
            port = 636
        elif scheme == "ldapi":
            port = 0
        if parsed_url.hostname:
            host = parsed_url.hostname
        if scheme != "ldapi":
            valid, self.__ipv6 = self.is_valid_hostname(host)
            if not valid:
                raise ValueError(f"'{strurl}' has an invalid hostname")
        try:
            if parsed_url.port:
                port = parsed_url.port
        except ValueError:
            raise ValueError(f"'{strurl}' has an invalid port") from None
        basedn = urllib.parse.unquote(parsed_url.path[1:])
        params = parsed_url.query.split("?")
        if len(params) > 0 and len(params[0]) > 0:
            attrlist = params[0].split(",")
        if len(params) > 1 and params[1]:
            scope = params[1].lower()
            if scope not in ("base", "one", "sub"):
                raise ValueError("Invalid scope type.")
        if len(params) > 2:
            filter_exp = urllib.parse.unquote(params[2])
        self.__hostinfo = (scheme, host, port)
        self.__searchinfo = (basedn, attrlist, scope, filter_exp)

    @classmethod
    def is_valid_hostname(cls, hostname: str) -> Tuple[bool, bool]:
        """Validate a hostname."""
        try:
            IPv6Address(hostname)
            return (True, True)
        except ValueError:
            # Try IPv4 and standard hostname.
            if cls._hostname_regex.match(hostname):
                return (True, False)
            return (False, False)

    @property
    def scheme(self) -> str:
        """The URL scheme."""
        return self.__hostinfo[0]

    @property
    def host(self) -> str:
        """The hostname."""
        return self.__hostinfo[1]

    @property
    def port(self) -> int:
        """The portnumber."""
        return self.__hostinfo[2]

    @property
    def is_secure(self) -> bool:
        """True, if the channel is encrypted from the start (`ldaps`)."""
        return self.scheme == "ldaps"

    @property
    def basedn(self) -> str:
        """The default base DN for searching."""
        return self.__searchinfo[0]

    @property
    def attributes(self) -> List[str]:
        """The searching attributes."""
        return list(self.__searchinfo[1])

    @property
    def scope(self) -> str:
        """The searching scope."""
        return self.__searchinfo[2]

    @property
    def scope_num(self) -> int:
        """Return the searching scope number, -1 if it's not set."""
        return {"base": 0, "one": 1, "sub": 2}.get(self.scope, -1)

    @property
    def filter_exp(self) -> str:
        """The searching filter expression."""
        return self.__searchinfo[3]

    def get_address(self) -> str:
        """
        Return the full address of the host.
        """
        if self.scheme == "ldapi":
            return f"{self.__hostinfo[0]}://{self.__hostinfo[1]}"
        if self.__ipv6:
            return (
                f"{self.__hostinfo[0]}://[{self.__hostinfo[1]}]:{self.__hostinfo[2]:d}"
            )
        return f"{self.__hostinfo[0]}://{self.__hostinfo[1]}:{self.__hostinfo[2]:d}"

    def __eq__(self, other: object) -> bool:
        """
        Check equality of two LDAPURL or an LDAPURL and a string.
        """
        if isinstance(other, LDAPURL):
            return (
                self.get_address() == other.get_address()
                and self.basedn.lower() == other.basedn.lower()
                and self.scope == other.scope
                and self.filter_exp == other.filter_exp
                and self.attributes == other.attributes
            )
        elif isinstance(other, str):
            try:
                other = LDAPURL(other)
            except ValueError:
                return False
            return self == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.get_address())

    def __str__(self) -> str:
        """Returns the LDAP URL as it was given."""
        return self.__strurl

    def __repr__(self) -> str:
        """The LDAPURL representation."""
        return "<LDAPURL %s>" % str(self)
