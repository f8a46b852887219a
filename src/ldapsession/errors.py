from typing import Optional, Type


class LDAPError(Exception):
    """General LDAP error."""

    code = 0

    def __init__(
        self,
        msg: Optional[str] = None,
        code: Optional[int] = None,
        uri: Optional[str] = None,
        primitive: Optional[str] = None,
        diagnostic: Optional[str] = None,
        matched_dn: Optional[str] = None,
    ) -> None:
        super().__init__(*(() if msg is None else (msg,)))
        if code is not None:
            self.code = code
        self.uri = uri
        self.primitive = primitive
        self.diagnostic = diagnostic
        self.matched_dn = matched_dn

    @property
    def hexcode(self) -> int:
        """ Error code in 16 bit length hexadecimal format. """
        return (self.code + (1 << 16)) % (1 << 16)

    def __str__(self) -> str:
        return "{} (0x{:04X} [{:d}])".format(
            self.args[0] if self.args else "", self.hexcode, self.code
        )


class InputValidationError(LDAPError, ValueError):
    """
    Raised, when a caller-supplied value does not have the expected shape.
    It is always raised before any request is sent to the server.
    """

    code = -104


class ModifyError(InputValidationError):
    """
    Raised, when an element of a modification list is malformed.

    :param str msg: the error message.
    :param int index: the position of the offending element.
    :param str attribute: the name of the offending attribute, if known.
    """

    def __init__(
        self, msg: str, index: Optional[int] = None, attribute: Optional[str] = None
    ) -> None:
        super().__init__(msg)
        self.index = index
        self.attribute = attribute


class AddError(ModifyError):
    """Raised, when an attribute of a new entry is malformed."""


class NoActiveSessionError(LDAPError):
    """
    Raised, when an operation is attempted on a session that has been
    closed or unbound.
    """

    code = -101


class BindError(LDAPError):
    """
    Raised, when the bind credentials are missing or contradictory, or
    when the server rejects the bind request.
    """

    code = -102


class IncompatibleLibrary(LDAPError):
    """
    Raised, when the loaded LDAP library does not match the one this
    package was built for.
    """

    code = -103


class ConnectionError(LDAPError):
    """
    Raised, when the transport signals a failure. The session must be
    re-initialised before it can be used again.
    """

    code = -1


class TimeoutError(LDAPError):
    """ Raised, when the specified timeout is exceeded. """

    code = -5


class ProtocolError(LDAPError):
    """
    Raised, when the server or the transport returns an error code for
    a request.
    """

    code = 0x02


class AuthenticationError(BindError, ProtocolError):
    """Raised, when authentication is failed with the server."""

    code = 0x31


class AuthMethodNotSupported(BindError, ProtocolError):
    """Raised, when the chosen authentication method is not supported. """

    code = 0x07


class SizeLimitError(ProtocolError):
    """
    Raised, when the search operation exceeds the client side size
    limit or server side size limit that's applied to the bound user.
    """

    code = 0x04


class NoSuchAttribute(ProtocolError):
    """Raised, when the given attribute of an entry does not exist."""

    code = 0x10


class TypeOrValueExists(ProtocolError):
    """
    Raised, when the attribute already exists or the value
    has been already assigned.
    """

    code = 0x14


class NoSuchObjectError(ProtocolError):
    """
    Raised, when operation (except search) is performed on
    an entry that is not found in the directory.
    """

    code = 0x20


class InvalidDN(ProtocolError):
    """Raised, when dn string is not a valid distinguished name."""

    code = 0x22


class InsufficientAccess(ProtocolError):
    """Raised, when the user has insufficient access rights."""

    code = 0x32


class UnwillingToPerform(ProtocolError):
    """Raised, when the server is not willing to handle requests."""

    code = 0x35


class ObjectClassViolation(ProtocolError):
    """Raised, when try to add or modify an LDAP entry and it violates the
    object class rules."""

    code = 0x41


class NotAllowedOnNonleaf(ProtocolError):
    """Raised, when the operation is not allowed on a nonleaf object."""

    code = 0x42


class AlreadyExists(ProtocolError):
    """Raised, when try to add an entry and it already exists in the
    dictionary. """

    code = 0x44


class AffectsMultipleDSA(ProtocolError):
    """Raised, when multiple directory server agents are affected. """

    code = 0x47


class FilterError(ProtocolError):
    """Raised, when the search filter is malformed."""

    code = -7


_ERRORS = {
    0x02: ProtocolError,
    0x04: SizeLimitError,
    0x07: AuthMethodNotSupported,
    0x10: NoSuchAttribute,
    0x14: TypeOrValueExists,
    0x20: NoSuchObjectError,
    0x22: InvalidDN,
    0x31: AuthenticationError,
    0x32: InsufficientAccess,
    0x35: UnwillingToPerform,
    0x41: ObjectClassViolation,
    0x42: NotAllowedOnNonleaf,
    0x44: AlreadyExists,
    0x47: AffectsMultipleDSA,
    -7: FilterError,
}


def get_error(code: int) -> Type[LDAPError]:
    """ Return an error class by code number. """
    if code in (-1, -11, 0x51, 0x5B):
        # OpenLDAP returns -1 for Server Down and -11 for Connect Error.
        return ConnectionError
    elif code in (-5, 0x55):
        return TimeoutError
    return _ERRORS.get(code, ProtocolError)
