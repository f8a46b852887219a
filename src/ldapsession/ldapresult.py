"""
Classification of the responses returned by the LDAP transport.

A response is either the tuple returned by a successful result call or
the exception raised for a non-success result code. Both are turned into
an :class:`LDAPResult` that holds the result code, the diagnostic
message, the matched DN and the referral URLs.
"""
import logging
from enum import Enum
from typing import Any, NamedTuple, Optional, Tuple

import ldap

from .errors import LDAPError, get_error

logger = logging.getLogger(__name__)

SUCCESS = 0x00
COMPARE_FALSE = 0x05
COMPARE_TRUE = 0x06
PARTIAL_RESULTS = 0x09
REFERRAL = 0x0A
OTHER = 0x50


class ResultKind(Enum):
    """ Classification of an LDAP result code. """

    SUCCESS = "success"
    COMPARE_TRUE = "compare-true"
    COMPARE_FALSE = "compare-false"
    REFERRAL = "referral"
    ERROR = "error"


def classify(code: int) -> ResultKind:
    """ Return the kind of the `code` result code. """
    if code == SUCCESS:
        return ResultKind.SUCCESS
    elif code == COMPARE_TRUE:
        return ResultKind.COMPARE_TRUE
    elif code == COMPARE_FALSE:
        return ResultKind.COMPARE_FALSE
    elif code in (REFERRAL, PARTIAL_RESULTS):
        return ResultKind.REFERRAL
    return ResultKind.ERROR


class LDAPResult(NamedTuple):
    """ The parsed result of a single LDAP exchange. """

    code: int
    diagnostic: str = ""
    matched_dn: str = ""
    referrals: Tuple[str, ...] = ()
    rtype: Optional[int] = None
    data: Any = None
    value: Optional[bytes] = None

    @property
    def kind(self) -> ResultKind:
        return classify(self.code)


def _to_str(value: Any) -> str:
    if isinstance(value, bytes):
        return value.decode("UTF-8", errors="replace")
    return "" if value is None else str(value)


def _split_referrals(info: str) -> Tuple[str, ...]:
    # libldap appends the referral URLs to the diagnostic message:
    # "Referral:\nldap://host/dn\nldap://other/dn"
    lines = [line.strip() for line in info.splitlines()]
    try:
        start = lines.index("Referral:")
    except ValueError:
        return ()
    return tuple(line for line in lines[start + 1 :] if line)


def parse_response(
    rtype: int, rdata: Any, respvalue: Optional[bytes] = None
) -> LDAPResult:
    """
    Build the result of a successful exchange from the type, the data and
    the extended response value returned by the transport.
    """
    return LDAPResult(SUCCESS, rtype=rtype, data=rdata, value=respvalue)


def parse_error(exc: ldap.LDAPError) -> LDAPResult:
    """
    Extract the result code, the diagnostic text, the matched DN and the
    referral list from an error raised by the transport.
    """
    info = exc.args[0] if exc.args and isinstance(exc.args[0], dict) else {}
    code = info.get("result", getattr(exc, "errnum", OTHER))
    text = _to_str(info.get("info"))
    referrals = _split_referrals(text)
    if referrals:
        text = text[: text.find("Referral:")].strip()
    return LDAPResult(
        code,
        diagnostic=text or _to_str(info.get("desc")),
        matched_dn=_to_str(info.get("matched")),
        referrals=referrals,
        rtype=info.get("msgtype"),
    )


def result_error(
    result: LDAPResult, primitive: str, uri: Optional[str] = None
) -> LDAPError:
    """
    Create the typed error for a failed `result` of the `primitive`
    transport call.
    """
    msg = "openldap server %sreturned error code %d to %s(): %s" % (
        "'%s' " % uri if uri else "",
        result.code,
        primitive,
        result.diagnostic or "unknown error",
    )
    cls = get_error(result.code)
    return cls(
        msg,
        code=result.code,
        uri=uri,
        primitive=primitive,
        diagnostic=result.diagnostic,
        matched_dn=result.matched_dn,
    )


def check_result(
    result: LDAPResult, primitive: str, uri: Optional[str] = None
) -> LDAPResult:
    """
    Return the result if it's a success or a referral, raise the
    corresponding error otherwise. The two compare codes are not
    accepted here, they are only valid for a compare request.
    """
    kind = result.kind
    if kind is ResultKind.SUCCESS:
        return result
    if kind is ResultKind.REFERRAL:
        logger.warning(
            "%s() on '%s' returned a referral to %s", primitive, uri, result.referrals
        )
        return result
    if kind in (ResultKind.COMPARE_TRUE, ResultKind.COMPARE_FALSE):
        result = result._replace(
            diagnostic="unexpected compare result for a non-compare request"
        )
    raise result_error(result, primitive, uri)
