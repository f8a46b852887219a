"""
Process-wide checks of the LDAP library behind the transport.
"""
import logging
import threading
from typing import Any, Dict, List, Optional

import ldap

from .errors import IncompatibleLibrary

logger = logging.getLogger(__name__)

#: The API info structure version of libldap.
API_INFO_VERSION = 1
#: The vendor of the library the transport is built against.
VENDOR_NAME = "OpenLDAP"

_check_lock = threading.Lock()
_check_done = False
_check_report = None  # type: Optional[str]


def _api_info() -> Dict[str, Any]:
    return ldap.get_option(ldap.OPT_API_INFO)


def check_library() -> Optional[str]:
    """
    Compare the version and vendor information of the loaded LDAP library
    with the ones that the transport module was built against.

    :return: a description of the incompatibility or None if the library \
    is compatible.
    :rtype: str|None
    """
    try:
        info = _api_info()
    except ldap.LDAPError as exc:
        return (
            "the openldap library returned an error to the "
            "ldap_get_option(LDAP_OPT_API_INFO) function: %s" % exc
        )
    if info.get("info_version") != API_INFO_VERSION:
        return (
            "library info version mismatch; module was compiled with API info "
            "version %d but the library provides API info version %s"
            % (API_INFO_VERSION, info.get("info_version"))
        )
    if info.get("api_version") != ldap.API_VERSION:
        return (
            "library version mismatch; module was compiled with API version %d "
            "but the library provides API version %s"
            % (ldap.API_VERSION, info.get("api_version"))
        )
    if info.get("vendor_name") != VENDOR_NAME:
        return (
            "library vendor name mismatch; module was compiled with a library "
            "from '%s' but the library is now running with a library from '%s'"
            % (VENDOR_NAME, info.get("vendor_name"))
        )
    if info.get("vendor_version") != ldap.VENDOR_VERSION:
        return (
            "library vendor version mismatch; module was compiled with API "
            "vendor version %d but the library provides API vendor version %s"
            % (ldap.VENDOR_VERSION, info.get("vendor_version"))
        )
    return None


def ensure_compatible() -> None:
    """
    Run :func:`check_library` once per process. Later calls return the
    outcome of the first check.

    :raises IncompatibleLibrary: if the library is not compatible.
    """
    global _check_done, _check_report
    with _check_lock:
        if not _check_done:
            _check_report = check_library()
            _check_done = True
            if _check_report is None:
                logger.debug("LDAP library check passed")
            else:
                logger.error("LDAP library check failed: %s", _check_report)
    if _check_report is not None:
        raise IncompatibleLibrary("cannot use the openldap library: %s" % _check_report)


def get_library_info() -> Dict[str, Any]:
    """
    Return the information of the loaded LDAP library.

    :return: a dict with the `api_version`, `protocol_version`, \
    `vendor_name`, `vendor_version` and `extensions` keys. The dict is \
    empty if the library does not provide the information.
    :rtype: dict
    """
    try:
        info = _api_info()
    except ldap.LDAPError:
        logger.debug("ldap_get_option(LDAP_OPT_API_INFO) failed", exc_info=True)
        return {}
    extensions = [
        ext.decode("UTF-8") if isinstance(ext, bytes) else ext
        for ext in info.get("extensions") or ()
    ]  # type: List[str]
    return {
        "api_version": info.get("api_version"),
        "protocol_version": info.get("protocol_version"),
        "vendor_name": info.get("vendor_name"),
        "vendor_version": info.get("vendor_version"),
        "extensions": extensions,
    }
