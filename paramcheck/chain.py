"""Validator chain: the per-field validation session.

A chain is bound to one field of one request. Predicates are applied in
call order and return the chain, so checks read fluently:

    >>> from paramcheck.registry import PredicateRegistry
    >>> from paramcheck.types import ErrorLog
    >>> errors = ErrorLog()
    >>> chain = ValidatorChain("age", "must be an int", RequestData(query={"age": "x"}),
    ...                        Location.QUERY, PredicateRegistry(), errors)
    >>> chain.not_empty().is_int().state
    <ChainState.ACTIVE: 'active'>
    >>> errors
    [ErrorRecord(param='age', msg='must be an int', value='x')]

The chain is a two-state machine. It starts ACTIVE; optional() or the
first failure under skip_validation_on_first_error move it to SKIPPED, and
nothing leaves SKIPPED. A SKIPPED chain ignores every predicate call.
"""

import math
from typing import Any, Dict, List, Optional, Set

import structlog

from paramcheck.errors import InvalidChainTransitionError
from paramcheck.formatting import FieldRef, format_param
from paramcheck.locator import get_value
from paramcheck.registry import PredicateRegistry
from paramcheck.types import (
    UNDEFINED,
    ChainState,
    ErrorFormatter,
    ErrorLog,
    Location,
    RequestData,
    default_error_formatter,
)

log = structlog.get_logger(__name__)

DEFAULT_FAIL_MESSAGE = "Invalid value"

VALID_TRANSITIONS: Dict[ChainState, Set[ChainState]] = {
    ChainState.ACTIVE: {ChainState.SKIPPED},
    # Terminal
    ChainState.SKIPPED: set(),
}


def _is_falsy(value: Any) -> bool:
    # Scalar falsy values only; empty lists and objects are still validated
    if value is None or value is UNDEFINED or value is False:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (int, float)):
        return value == 0 or math.isnan(value)
    return False


class ValidatorChain:
    """Fluent, stateful validator for a single request field.

    Attributes:
        param: Field name or path segments
        fail_msg: Message used for the next recorded failure
        request: The request being validated
        location: Source the value was read from (None if unresolved)
        value: Current field value (UNDEFINED if not found)
        validation_errors: Errors recorded by this chain only
        last_error: Error recorded by the most recent predicate, or None
        state: ACTIVE or SKIPPED
    """

    def __init__(
        self,
        param: FieldRef,
        fail_msg: Optional[str],
        request: RequestData,
        location: Optional[Location],
        registry: PredicateRegistry,
        errors: ErrorLog,
        error_formatter: ErrorFormatter = default_error_formatter,
        skip_validation_on_first_error: bool = False,
    ) -> None:
        """Bind a chain to a field.

        Args:
            param: Field name, dotted path, or sequence of path segments
            fail_msg: Failure message; DEFAULT_FAIL_MESSAGE when empty
            request: The request data
            location: Source to read from; falsy leaves the value UNDEFINED
            registry: Predicates the chain can apply
            errors: The session-wide error log failures are recorded in
            error_formatter: Shapes each recorded failure
            skip_validation_on_first_error: Stop validating after one failure
        """
        self.param = param
        self.fail_msg = fail_msg
        self.request = request
        self.location = Location(location) if location else None
        self.registry = registry
        self.error_formatter = error_formatter
        self.skip_validation_on_first_error = skip_validation_on_first_error
        self.value: Any = (
            get_value(request.source(self.location), param) if self.location else UNDEFINED
        )
        self.validation_errors: List[Any] = []
        self.last_error: Any = None
        self.state = ChainState.ACTIVE
        self._session_errors = errors

    def __getattr__(self, name: str) -> Any:
        # Only reached for names that are not real attributes
        if name.startswith("_"):
            raise AttributeError(name)
        registry = self.__dict__.get("registry")
        if registry is None or name not in registry:
            raise AttributeError(
                f"'{type(self).__name__}' object has no attribute or predicate '{name}'"
            )

        def predicate(*args: Any, **kwargs: Any) -> "ValidatorChain":
            return self.apply(name, *args, **kwargs)

        predicate.__name__ = name
        return predicate

    @property
    def skip_validating(self) -> bool:
        """True once the chain has stopped recording errors."""
        return self.state is ChainState.SKIPPED

    def can_transition_to(self, target_state: ChainState) -> bool:
        return target_state in VALID_TRANSITIONS[self.state]

    def transition_to(self, target_state: ChainState) -> None:
        """Move to a new state.

        Raises:
            InvalidChainTransitionError: If the transition is not allowed
        """
        if not self.can_transition_to(target_state):
            raise InvalidChainTransitionError(self.state, target_state)
        self.state = target_state

    def skip(self) -> None:
        """Stop validating this field. Idempotent."""
        if self.state is ChainState.ACTIVE:
            self.transition_to(ChainState.SKIPPED)

    def apply(self, name: str, *args: Any, **kwargs: Any) -> "ValidatorChain":
        """Apply the named predicate to the current value.

        A failure is recorded on this chain and on the session error list.
        Calls on a SKIPPED chain do nothing.

        Raises:
            UnknownPredicateError: If no predicate has that name
        """
        entry = self.registry.entry(name)
        if self.skip_validating:
            return self

        if entry.invoke(self.value, self.request, *args, **kwargs):
            self.last_error = None
            return self

        error = self.format_error(self.param, self.fail_msg or DEFAULT_FAIL_MESSAGE, self.value)
        self.validation_errors.append(error)
        self._session_errors.record(format_param(self.param), error)
        self.last_error = error
        log.debug(
            "predicate_failed",
            param=format_param(self.param),
            predicate=name,
            location=self.location.value if self.location else None,
        )

        if self.skip_validation_on_first_error:
            self.skip()

        return self

    def not_empty(self) -> "ValidatorChain":
        return self.apply("is_length", min=1)

    def len(self, *args: Any, **kwargs: Any) -> "ValidatorChain":
        return self.apply("is_length", *args, **kwargs)

    def optional(self, check_falsy: bool = False) -> "ValidatorChain":
        """Skip the following predicates when the value is absent.

        Args:
            check_falsy: Also skip for None, False, "", 0 and NaN

        Only predicates applied after this call are affected.
        """
        if check_falsy:
            if _is_falsy(self.value):
                self.skip()
        elif self.value is UNDEFINED:
            self.skip()

        return self

    def with_message(self, msg: str) -> "ValidatorChain":
        """Use ``msg`` for failures recorded by subsequent predicates."""
        self.fail_msg = msg
        return self

    def format_error(self, param: FieldRef, msg: str, value: Any) -> Any:
        return self.error_formatter(format_param(param), msg, value)

    def __repr__(self) -> str:
        return (
            f"ValidatorChain(param={format_param(self.param)!r}, "
            f"location={self.location.value if self.location else None!r}, "
            f"state={self.state.value!r})"
        )


__all__ = [
    "DEFAULT_FAIL_MESSAGE",
    "VALID_TRANSITIONS",
    "ValidatorChain",
]
