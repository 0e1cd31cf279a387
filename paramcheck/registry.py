"""Predicate registry: uniform invocation for built-in and custom predicates.

Built-in predicates operate on strings, so the chain's current value is
rendered with to_display_string before they are called. Custom predicates
receive the raw value, their arguments, and the RequestData as the trailing
positional argument:

    >>> def is_even(value, request):
    ...     return isinstance(value, int) and value % 2 == 0
    >>> registry = PredicateRegistry(custom={"is_even": is_even})
    >>> registry.invoke("is_even", 4, RequestData())
    True
    >>> registry.invoke("is_int", 4, RequestData())
    True

The registry is built once at setup and never mutated afterwards, so it can
be shared by every request.
"""

import functools
import inspect
import math
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Dict, FrozenSet, Iterator, Mapping, Optional, Tuple

from paramcheck.errors import UnknownPredicateError
from paramcheck.predicates import BUILTIN_PREDICATES
from paramcheck.types import UNDEFINED, RequestData


def to_display_string(value: Any) -> str:
    """Render a value the way built-in predicates expect to see it.

    Examples:
        >>> to_display_string(None)
        ''
        >>> to_display_string(17)
        '17'
        >>> to_display_string(True)
        'true'
        >>> to_display_string(["a", 1])
        'a,1'
    """
    if value is None or value is UNDEFINED:
        return ""
    if isinstance(value, float) and math.isnan(value):
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, (list, tuple)):
        return ",".join(to_display_string(item) for item in value)
    return str(value)


@functools.lru_cache(maxsize=None)
def _option_names(func: Callable[..., bool]) -> FrozenSet[str]:
    try:
        parameters = list(inspect.signature(func).parameters.values())
    except (TypeError, ValueError):
        return frozenset()
    # The first parameter is always the value under test
    return frozenset(
        p.name
        for p in parameters[1:]
        if p.kind in (inspect.Parameter.POSITIONAL_OR_KEYWORD, inspect.Parameter.KEYWORD_ONLY)
    )


def split_options(
    func: Callable[..., bool], args: Tuple[Any, ...], kwargs: Dict[str, Any]
) -> Tuple[Tuple[Any, ...], Dict[str, Any]]:
    """Turn a trailing options mapping into keyword arguments.

    ``is_length({"min": 2})`` becomes ``is_length(min=2)``. The mapping is only
    unpacked when every key names a parameter of ``func``, so a predicate
    that takes a mapping as an ordinary argument still receives it as is.

    Examples:
        >>> from paramcheck.predicates import is_in, is_length
        >>> split_options(is_length, ({"min": 2},), {})
        ((), {'min': 2})
        >>> split_options(is_in, ({"admin": 1},), {})
        (({'admin': 1},), {})
    """
    if not args or not isinstance(args[-1], Mapping):
        return args, kwargs
    options = args[-1]
    names = _option_names(func)
    if not all(isinstance(key, str) and key in names for key in options):
        return args, kwargs
    return args[:-1], {**options, **kwargs}


@dataclass(frozen=True)
class RegistryEntry:
    """A registered predicate.

    Attributes:
        name: Name the predicate is applied under
        builtin: Whether the value is stringified before the call
        func: The underlying predicate function
    """
    name: str
    builtin: bool
    func: Callable[..., bool]

    def invoke(self, value: Any, request: RequestData, *args: Any, **kwargs: Any) -> bool:
        """Call the predicate with the argument convention of its kind."""
        if self.builtin:
            args, kwargs = split_options(self.func, args, kwargs)
            return bool(self.func(to_display_string(value), *args, **kwargs))
        return bool(self.func(value, *args, request, **kwargs))


class PredicateRegistry(Mapping[str, RegistryEntry]):
    """Immutable mapping of predicate name to RegistryEntry.

    Args:
        builtins: Built-in predicates by name (defaults to the bundled library)
        custom: Caller-supplied predicates; they shadow built-ins of the same name
    """

    def __init__(
        self,
        builtins: Optional[Mapping[str, Callable[..., bool]]] = None,
        custom: Optional[Mapping[str, Callable[..., bool]]] = None,
    ) -> None:
        if builtins is None:
            builtins = BUILTIN_PREDICATES

        entries: Dict[str, RegistryEntry] = {}
        for name, func in builtins.items():
            entries[name] = RegistryEntry(name=name, builtin=True, func=func)
        for name, func in (custom or {}).items():
            if not callable(func):
                raise TypeError(f"Custom predicate '{name}' is not callable")
            entries[name] = RegistryEntry(name=name, builtin=False, func=func)

        self._entries = MappingProxyType(entries)

    def __getitem__(self, name: str) -> RegistryEntry:
        return self._entries[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def entry(self, name: str) -> RegistryEntry:
        """Return the entry for ``name``, raising UnknownPredicateError if absent."""
        if name not in self._entries:
            raise UnknownPredicateError(name)
        return self._entries[name]

    def invoke(self, name: str, value: Any, request: RequestData, *args: Any, **kwargs: Any) -> bool:
        """Look up a predicate by name and call it."""
        return self.entry(name).invoke(value, request, *args, **kwargs)


__all__ = [
    "to_display_string",
    "split_options",
    "RegistryEntry",
    "PredicateRegistry",
]
