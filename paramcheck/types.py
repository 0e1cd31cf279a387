"""Core type definitions for paramcheck.

This module defines the fundamental types shared by the validation engine:
- Location: The four request data sources plus the "any" pseudo-location
- ChainState: Lifecycle states of a validator chain
- RequestData: The already-parsed request a session validates
- ErrorRecord: A single field validation failure
- UNDEFINED: Marker for a field that was not found in any source

These types form the contract between request handlers and the engine.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from typing_extensions import Protocol


class _Undefined:
    """Marker type for values that were never present in the request."""

    _instance: Optional["_Undefined"] = None

    def __new__(cls) -> "_Undefined":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __reduce__(self) -> str:
        return "UNDEFINED"


UNDEFINED = _Undefined()


class Location(str, Enum):
    """Request data sources a field can be read from.

    ANY is not a real source: it defers resolution to the field locator.
    """
    PARAMS = "params"
    QUERY = "query"
    BODY = "body"
    HEADER = "header"
    ANY = "any"


# Concrete sources, in locator precedence order
SOURCE_LOCATIONS = (Location.PARAMS, Location.QUERY, Location.BODY, Location.HEADER)


class ChainState(str, Enum):
    """Validator chain states.

    A chain starts ACTIVE. Once SKIPPED, no predicate can record errors.
    """
    ACTIVE = "active"
    SKIPPED = "skipped"


@dataclass
class RequestData:
    """The four data sources of one request.

    Attributes:
        params: Path parameters resolved by the router
        query: Query string parameters
        body: Decoded request body (usually a dict, may be any JSON value)
        headers: Request headers

    Examples:
        >>> req = RequestData(query={"page": "2"})
        >>> req.source(Location.QUERY)
        {'page': '2'}
    """
    params: Dict[str, Any] = field(default_factory=dict)
    query: Dict[str, Any] = field(default_factory=dict)
    body: Any = field(default_factory=dict)
    headers: Dict[str, Any] = field(default_factory=dict)

    def source(self, location: Location) -> Any:
        """Return the data bucket for a concrete location."""
        location = Location(location)
        if location is Location.PARAMS:
            return self.params
        if location is Location.QUERY:
            return self.query
        if location is Location.BODY:
            return self.body
        if location is Location.HEADER:
            return self.headers
        raise ValueError(f"'{location.value}' is not a concrete request source")


@dataclass(frozen=True)
class ErrorRecord:
    """A single field validation failure.

    Attributes:
        param: Display path of the field (e.g. "email", "users[0].name")
        msg: Human-readable failure message
        value: The value that failed validation (UNDEFINED if absent)
    """
    param: str
    msg: str
    value: Any = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization."""
        return {
            "param": self.param,
            "msg": self.msg,
            "value": None if self.value is UNDEFINED else self.value,
        }


class ErrorLog(list):
    """Session error list that also remembers which field each error belongs to.

    Formatters may return any shape, so the field path is kept beside the
    record instead of being read back out of it.

    Examples:
        >>> log = ErrorLog()
        >>> log.record("age", ("age", "too young"))
        >>> log, log.params
        ([('age', 'too young')], ['age'])
    """

    def __init__(self) -> None:
        super().__init__()
        self.params: List[str] = []

    def record(self, param: str, error: Any) -> None:
        self.append(error)
        self.params.append(param)

    def by_param(self) -> Dict[str, Any]:
        """Field path -> last error recorded for it."""
        return dict(zip(self.params, self))


class ErrorFormatter(Protocol):
    """Callable that shapes a failure into the record stored by the session."""

    def __call__(self, param: str, msg: str, value: Any) -> Any:
        ...


class Predicate(Protocol):
    """A named boolean check. Custom predicates also get the RequestData last."""

    def __call__(self, value: Any, *args: Any, **kwargs: Any) -> bool:
        ...


def default_error_formatter(param: str, msg: str, value: Any) -> ErrorRecord:
    """Default error shape: ``ErrorRecord(param, msg, value)``."""
    return ErrorRecord(param=param, msg=msg, value=value)


__all__ = [
    "UNDEFINED",
    "Location",
    "SOURCE_LOCATIONS",
    "ChainState",
    "RequestData",
    "ErrorRecord",
    "ErrorLog",
    "ErrorFormatter",
    "Predicate",
    "default_error_formatter",
]
