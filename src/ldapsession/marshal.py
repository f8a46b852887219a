"""
Conversion between generic Python values (str, bytes, lists and dicts)
and the primitives that the LDAP transport accepts and returns.

Every string leaving this module is UTF-8 encoded, every value coming
back from the server is decoded as UTF-8 unless it is requested as raw.
"""
from enum import IntEnum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Type, Union

from .errors import AddError, InputValidationError, ModifyError
from .utils import build_array

GenericValue = Union[None, str, bytes, List[Union[str, bytes]]]
ModRecord = Tuple[int, str, Optional[List[bytes]]]
AddRecord = Tuple[str, List[bytes]]


class LDAPModOp(IntEnum):
    """Enumeration for LDAP modification operations."""

    ADD = 0  #: For adding new values to the attribute.
    DELETE = 1  #: For deleting existing values from the attribute list.
    REPLACE = 2  #: For replacing the existing attribute values.

    @classmethod
    def from_name(cls, name: str) -> "LDAPModOp":
        """
        Look up an operation by its lower-case name (`add`, `delete` or
        `replace`).

        :raises KeyError: if the name is unknown.
        """
        if not isinstance(name, str) or name != name.lower():
            raise KeyError(name)
        return cls[name.upper()]


def encode_text(value: Any, what: str) -> str:
    """
    Transcode a DN, filter or attribute name to a text string.

    :param value: a str or UTF-8 encoded bytes.
    :param str what: the name of the value for the error message.
    :raises InputValidationError: if the value is not a string, not \
    valid UTF-8 or contains a NUL character.
    """
    if isinstance(value, str):
        try:
            value.encode("UTF-8")
        except UnicodeEncodeError as exc:
            raise InputValidationError(
                "%s cannot be encoded as UTF-8: %s" % (what, exc)
            ) from None
    elif isinstance(value, (bytes, bytearray)):
        try:
            value = bytes(value).decode("UTF-8")
        except UnicodeDecodeError as exc:
            raise InputValidationError(
                "%s is not valid UTF-8: %s" % (what, exc)
            ) from None
    else:
        raise InputValidationError(
            "%s must be a string, not '%s'." % (what, type(value).__name__)
        )
    if "\x00" in value:
        raise InputValidationError("%s contains a NUL character." % what)
    return value


def encode_value(value: Any) -> bytes:
    """
    Convert a single attribute value to the bytes sent to the server.

    :raises TypeError: if the value cannot be represented as a string.
    """
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, bool):
        return b"TRUE" if value else b"FALSE"
    if isinstance(value, (str, int, float)):
        return str(value).encode("UTF-8")
    raise TypeError("type '%s' is not supported" % type(value).__name__)


def encode_values(
    value: Any,
    index: int,
    attr: str,
    error_cls: Type[ModifyError] = ModifyError,
) -> Optional[List[bytes]]:
    """
    Convert an attribute value (scalar or list of scalars) to a list of
    bytes. An absent value or an empty list gives `None`.
    """

    def convert(pos: int, item: Any) -> bytes:
        try:
            return encode_value(item)
        except (TypeError, UnicodeEncodeError) as exc:
            raise error_cls(
                "element %d: value %d of attribute '%s' is invalid: %s"
                % (index, pos, attr, exc),
                index,
                attr,
            ) from None

    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        return build_array(value, convert)
    return [convert(0, value)]


def attribute_list(attrs: Optional[Iterable[Any]]) -> Optional[List[str]]:
    """
    Convert a list of attribute names for a search request. `None` means
    all user attributes.
    """
    if attrs is not None and isinstance(attrs, (str, bytes)):
        raise InputValidationError("The attribute list must be a list of strings.")
    return build_array(
        attrs, lambda idx, item: encode_text(item, "attribute name %d" % idx)
    )


def records_to_modlist(records: Iterable[Any]) -> List[ModRecord]:
    """
    Convert a list of modification dicts into the modification list of
    a modify request. Each element must be a dict with the `mod` (one of
    `add`, `delete` or `replace`), `attr` and optionally the `value` keys.

    The first malformed element stops the conversion.

    :param list records: the modification dicts.
    :return: list of (operation, attribute, values) tuples.
    :raises ModifyError: if any of the elements is malformed.
    """
    if isinstance(records, (str, bytes, Mapping)) or not isinstance(
        records, (list, tuple)
    ):
        raise ModifyError(
            "modification list is type '%s'; expecting 'list'"
            % type(records).__name__
        )
    if not records:
        raise ModifyError("modification list is empty")
    last = len(records) - 1
    modlist = []
    for idx, rec in enumerate(records):
        if not isinstance(rec, Mapping):
            raise ModifyError(
                "element %d/%d (starting from 0) is type '%s'; expecting 'dict'"
                % (idx, last, type(rec).__name__),
                idx,
            )
        for key in ("mod", "attr"):
            if rec.get(key) is None:
                raise ModifyError(
                    "element %d/%d: no value for '%s' key present in ldap "
                    "modification dict" % (idx, last, key),
                    idx,
                )
            if not isinstance(rec[key], str):
                raise ModifyError(
                    "element %d/%d: '%s' key is not type 'str' but is type '%s'"
                    % (idx, last, key, type(rec[key]).__name__),
                    idx,
                )
        attr = encode_text(rec["attr"], "attribute name")
        try:
            mod_op = LDAPModOp.from_name(rec["mod"])
        except KeyError:
            raise ModifyError(
                "element %d/%d: don't know how to process modification action "
                "'%s' (expecting one of 'add', 'delete', 'replace')"
                % (idx, last, rec["mod"]),
                idx,
                attr,
            ) from None
        values = encode_values(rec.get("value"), idx, attr)
        if values is None and mod_op != LDAPModOp.DELETE:
            raise ModifyError(
                "element %d/%d: '%s' modification of attribute '%s' requires "
                "at least one value" % (idx, last, mod_op.name.lower(), attr),
                idx,
                attr,
            )
        modlist.append((int(mod_op), attr, values))
    return modlist


def entry_to_modlist(entry: Any) -> List[AddRecord]:
    """
    Convert the attribute dict of a new entry into the attribute list of
    an add request. Every key is an implicit `add` modification, so every
    attribute must have at least one value.

    :param dict entry: attribute name to value or list of values.
    :raises AddError: if the dict or any of its values is malformed.
    """
    if not isinstance(entry, Mapping):
        raise AddError(
            "entry is type '%s'; expecting 'dict'" % type(entry).__name__
        )
    if not entry:
        raise AddError("entry has no attributes")
    addlist = []
    for idx, (key, value) in enumerate(entry.items()):
        if not isinstance(key, str):
            raise AddError(
                "element %d: attribute name is type '%s'; expecting 'str'"
                % (idx, type(key).__name__),
                idx,
            )
        attr = encode_text(key, "attribute name")
        values = encode_values(value, idx, attr, AddError)
        if values is None:
            raise AddError(
                "element %d: attribute '%s' of a new entry requires at least "
                "one value" % (idx, attr),
                idx,
                attr,
            )
        addlist.append((attr, values))
    return addlist


def decode_value(value: bytes, raw: bool = False) -> Union[str, bytes]:
    """
    Decode a value received from the server. Values that are not valid
    UTF-8 (e.g. binary attributes) are kept as bytes.
    """
    if raw:
        return value
    try:
        return value.decode("UTF-8")
    except UnicodeDecodeError:
        return value


def to_generic_value(values: Optional[List[bytes]], raw: bool = False) -> GenericValue:
    """
    Convert the value list of an attribute: no values gives None, a single
    value gives a scalar, two or more give a list in server order.
    """
    if not values:
        return None
    if len(values) == 1:
        return decode_value(values[0], raw)
    return [decode_value(val, raw) for val in values]


def to_generic_entry(
    attrs: Mapping[str, List[bytes]], raw_attributes: Iterable[str] = ()
) -> Dict[str, GenericValue]:
    """
    Convert the attribute dict of a search result entry.

    :param dict attrs: attribute name to list of raw values.
    :param list raw_attributes: names of attributes kept as bytes.
    """
    raw = {name.lower() for name in raw_attributes}
    return {
        name: to_generic_value(values, name.lower() in raw)
        for name, values in attrs.items()
    }
