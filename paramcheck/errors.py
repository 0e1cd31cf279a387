"""Exception types raised by paramcheck.

Field-level failures are never raised: they are recorded on the session as
ErrorRecord values (see paramcheck.types). The only failure that propagates
out of a normal validation phase is ValidationFailed, raised by
ValidationSession.valid() when the caller asks for the merge-or-raise result.

The remaining exceptions signal programmer errors: a schema with the wrong
shape, a predicate name that is not registered, or an illegal chain state
transition.
"""

from typing import Any, Dict, List, Mapping, Sequence

from paramcheck.types import ChainState, ErrorRecord


def error_to_dict(error: Any) -> Any:
    """Serialize an error produced by any error formatter."""
    if isinstance(error, ErrorRecord):
        return error.to_dict()
    if isinstance(error, Mapping):
        return dict(error)
    return error


class ValidationFailed(Exception):
    """Aggregate failure for one request's validation phase.

    Attributes:
        errors: Deduplicated error records, in order of first occurrence

    Examples:
        >>> exc = ValidationFailed([ErrorRecord(param="age", msg="must be int", value="x")])
        >>> exc.to_dict()
        {'errors': [{'param': 'age', 'msg': 'must be int', 'value': 'x'}]}
    """

    def __init__(self, errors: Sequence[Any]):
        self.errors: List[Any] = list(errors)
        count = len(self.errors)
        super().__init__(f"Request validation failed with {count} error{'s' if count != 1 else ''}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization."""
        return {"errors": [error_to_dict(e) for e in self.errors]}


class SchemaDefinitionError(ValueError):
    """Raised when a declarative schema does not have the expected shape.

    Attributes:
        problems: One message per shape violation found
    """

    def __init__(self, problems: Sequence[str]):
        self.problems = list(problems)
        super().__init__("Invalid validation schema: " + "; ".join(self.problems))


class UnknownPredicateError(AttributeError):
    """Raised when a chain is asked to apply a predicate that is not registered."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"No predicate named '{name}' is registered")


class InvalidChainTransitionError(Exception):
    """Raised when a validator chain is moved through an illegal transition.

    Attributes:
        current_state: The state before the attempted transition
        target_state: The state that was attempted
    """

    def __init__(self, current_state: ChainState, target_state: ChainState):
        self.current_state = current_state
        self.target_state = target_state
        super().__init__(
            f"Invalid chain transition: cannot transition from "
            f"'{current_state.value}' to '{target_state.value}'"
        )


__all__ = [
    "error_to_dict",
    "ValidationFailed",
    "SchemaDefinitionError",
    "UnknownPredicateError",
    "InvalidChainTransitionError",
]
