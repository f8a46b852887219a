import logging

from .ldapurl import LDAPURL
from .ldapconnection import LDAPConnection
from .ldapconnection import LDAPSearchScope
from .ldapconnection import SearchResult
from .ldapclient import Credentials, LDAPClient
from .ldapreference import LDAPReference
from .ldapresult import LDAPResult, ResultKind
from .library import check_library, get_library_info
from .marshal import LDAPModOp
from .errors import *

__version__ = "1.0.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "Credentials",
    "LDAPClient",
    "LDAPConnection",
    "LDAPModOp",
    "LDAPReference",
    "LDAPResult",
    "LDAPSearchScope",
    "LDAPURL",
    "ResultKind",
    "SearchResult",
    # Errors
    "LDAPError",
    "InputValidationError",
    "ModifyError",
    "AddError",
    "NoActiveSessionError",
    "BindError",
    "IncompatibleLibrary",
    "InvalidDN",
    "ConnectionError",
    "AuthenticationError",
    "AuthMethodNotSupported",
    "ObjectClassViolation",
    "AlreadyExists",
    "InsufficientAccess",
    "TimeoutError",
    "ProtocolError",
    "UnwillingToPerform",
    "NoSuchObjectError",
    "AffectsMultipleDSA",
    "SizeLimitError",
    "NotAllowedOnNonleaf",
    "NoSuchAttribute",
    "TypeOrValueExists",
    "FilterError",
    # Library functions
    "check_library",
    "get_library_info",
]
