from typing import Any, Callable, Iterable, List, Optional, TypeVar

T = TypeVar("T")

#: Default LDAP operation timeout in milliseconds.
DEFAULT_TIMEOUT_MS = 60000

#: Default LDAP protocol version.
DEFAULT_PROTOCOL = 3


def ms_to_timeout(timeout_ms: int) -> float:
    """
    Convert a millisecond duration to the timeout value (in seconds)
    that the transport expects. Negative durations are clamped to zero,
    which means polling once without waiting.

    :param int timeout_ms: the duration in milliseconds.
    :return: the timeout in seconds.
    :rtype: float
    """
    if timeout_ms < 0:
        timeout_ms = 0
    secs, msecs = divmod(int(timeout_ms), 1000)
    return secs + msecs / 1000.0


def build_array(
    items: Optional[Iterable[Any]], convert: Callable[[int, Any], T]
) -> Optional[List[T]]:
    """
    Build a protocol array from an ordered sequence by applying `convert`
    to every element with its position. An absent or empty sequence gives
    `None`, which the transport reads as its own default.

    :param items: the source sequence.
    :param convert: the per-element converter, called as convert(index, item).
    :return: the converted list or None.
    """
    if not items:
        return None
    return [convert(idx, item) for idx, item in enumerate(items)]
