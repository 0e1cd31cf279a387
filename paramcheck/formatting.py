"""Field path helpers used for error display and nested lookups."""

import re
from typing import Any, List, Sequence, Union

FieldRef = Union[str, Sequence[Any]]

_INT_LIKE = re.compile(r"^[-+]?(0|[1-9][0-9]*)$")
_PATH_TOKEN = re.compile(r"[^.\[\]]+")


def is_int_like(segment: Any) -> bool:
    """Return True if a path segment addresses an array index."""
    if isinstance(segment, bool):
        return False
    if isinstance(segment, int):
        return True
    return bool(_INT_LIKE.match(str(segment)))


def format_param(param: FieldRef) -> str:
    """Render a field reference into a display string.

    Integer-like segments render as indexes, everything else is dot-joined.

    Examples:
        >>> format_param("email")
        'email'
        >>> format_param(["users", 0, "name"])
        'users[0].name'
        >>> format_param([0, "id"])
        '[0].id'
    """
    if isinstance(param, str):
        return param

    result = ""
    for segment in param:
        if is_int_like(segment):
            result = f"{result}[{segment}]"
        elif result:
            result = f"{result}.{segment}"
        else:
            result = f"{segment}"
    return result


def to_path(param: FieldRef) -> List[str]:
    """Split a field reference into path segments.

    Examples:
        >>> to_path("users[0].name")
        ['users', '0', 'name']
        >>> to_path(["a", 1])
        ['a', '1']
    """
    if isinstance(param, str):
        return _PATH_TOKEN.findall(param)
    return [str(segment) for segment in param]


__all__ = [
    "FieldRef",
    "is_int_like",
    "format_param",
    "to_path",
]
