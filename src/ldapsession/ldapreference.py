from typing import List, Sequence, Union

from .ldapclient import LDAPClient
from .ldapurl import LDAPURL


class LDAPReference:
    """
    Object for handling an LDAP referral or search continuation reference.

    :param LDAPClient client: a client object.
    :param list references: list of valid LDAP URLs (as string or \
    :class:`LDAPURL` objects).
    """

    def __init__(
        self, client: LDAPClient, references: Sequence[Union[str, LDAPURL]]
    ) -> None:
        if not isinstance(client, LDAPClient):
            raise TypeError("Client parameter must be an LDAPClient.")
        self.__client = client
        self.__refs = []  # type: List[LDAPURL]
        for ref in references:
            if isinstance(ref, str):
                self.__refs.append(LDAPURL(ref))
            elif isinstance(ref, LDAPURL):
                self.__refs.append(ref)
            else:
                raise TypeError("Reference must be string or LDAPURL.")

    @property
    def client(self) -> LDAPClient:
        """The LDAP client."""
        return self.__client

    @property
    def references(self) -> List[LDAPURL]:
        """The list of LDAPURLs of the references."""
        return self.__refs

    def __repr__(self) -> str:
        return "<LDAPReference %s>" % ", ".join(str(ref) for ref in self.__refs)
