"""Field locator: finds which request source holds a field.

Precedence is params, then query, then body, then header. Path params
count as present only when their value is truthy; the other sources count
a key as present even if its value is falsy (``0``, ``False``, ``""``).
Path params are rarely legitimately falsy while query and body fields often
are, so the two checks are kept apart.
"""

from typing import Any, Mapping, Optional, Sequence

from paramcheck.formatting import FieldRef, to_path
from paramcheck.types import UNDEFINED, Location, RequestData


def _child(container: Any, segment: str) -> Any:
    if isinstance(container, Mapping):
        return container[segment] if segment in container else UNDEFINED
    if isinstance(container, Sequence) and not isinstance(container, (str, bytes)):
        try:
            index = int(segment)
        except ValueError:
            return UNDEFINED
        if -len(container) <= index < len(container):
            return container[index]
    return UNDEFINED


def get_value(container: Any, name: FieldRef) -> Any:
    """Read a (possibly nested) field, returning UNDEFINED when absent.

    A string key present verbatim wins over its dotted interpretation, so
    headers such as ``x.trace`` can still be addressed directly.

    Examples:
        >>> get_value({"user": {"tags": ["a", "b"]}}, "user.tags[1]")
        'b'
        >>> get_value({}, "missing")
        UNDEFINED
    """
    if isinstance(name, str) and isinstance(container, Mapping) and name in container:
        return container[name]

    current = container
    for segment in to_path(name):
        current = _child(current, segment)
        if current is UNDEFINED:
            return UNDEFINED
    return current


def has_value(container: Any, name: FieldRef) -> bool:
    """Return True if the field path exists, whatever its value."""
    return get_value(container, name) is not UNDEFINED


def locate(request: RequestData, name: FieldRef) -> Optional[Location]:
    """Determine which request source currently holds a field.

    Returns:
        The first matching location, or None when no source has the field

    Examples:
        >>> locate(RequestData(query={"age": "17"}), "age")
        <Location.QUERY: 'query'>
        >>> locate(RequestData(params={"id": ""}, body={"id": 0}), "id")
        <Location.BODY: 'body'>
    """
    if get_value(request.params, name):
        return Location.PARAMS

    if has_value(request.query, name):
        return Location.QUERY

    if has_value(request.body, name):
        return Location.BODY

    if has_value(request.headers, name):
        return Location.HEADER

    return None


__all__ = [
    "get_value",
    "has_value",
    "locate",
]
