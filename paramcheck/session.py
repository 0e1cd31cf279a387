"""Request validator and per-request validation sessions.

RequestValidator is configured once at application setup. It owns the
predicate registry, which is immutable and shared by every request.
Each request gets its own ValidationSession; all chains and schemas run
through a session write into that session's error list, and the session's
valid() call decides the outcome of the validation phase.

Usage:
    >>> from paramcheck import RequestData, RequestValidator
    >>> validator = RequestValidator()
    >>> session = validator.session(RequestData(query={"age": "17"}, body={"name": "Ada"}))
    >>> session.check("age").is_int(min=0)  # doctest: +ELLIPSIS
    ValidatorChain(param='age', location='query', state='active')
    >>> session.check_body({"name": {"not_empty": {}}})
    >>> session.valid()
    {'age': '17', 'name': 'Ada'}
"""

from typing import Any, Callable, Dict, List, Mapping, Optional, Union

import structlog

from paramcheck.chain import ValidatorChain
from paramcheck.errors import ValidationFailed
from paramcheck.formatting import FieldRef
from paramcheck.locator import locate
from paramcheck.registry import PredicateRegistry
from paramcheck.schema import validate_schema
from paramcheck.types import (
    ErrorFormatter,
    ErrorLog,
    Location,
    RequestData,
    default_error_formatter,
)

log = structlog.get_logger(__name__)

# Transport metadata left out of the merged parameters
HEADER_DENYLIST = frozenset({
    "host",
    "connection",
    "origin",
    "user-agent",
    "accept-language",
    "accept",
    "content-type",
    "content-length",
    "accept-encoding",
})


def merge_params(request: RequestData) -> Dict[str, Any]:
    """Merge every request source into one parameter dict.

    Query comes first, then path params, then the body (when it is a
    mapping), then headers minus HEADER_DENYLIST. Later sources win.

    Examples:
        >>> merge_params(RequestData(
        ...     params={"id": "7"}, query={"id": "1", "page": "2"},
        ...     headers={"Host": "example.com", "x-api-key": "k"},
        ... ))
        {'id': '7', 'page': '2', 'x-api-key': 'k'}
    """
    merged: Dict[str, Any] = {}
    merged.update(request.query)
    merged.update(request.params)
    if isinstance(request.body, Mapping):
        merged.update(request.body)
    merged.update(
        (name, value)
        for name, value in request.headers.items()
        if name.lower() not in HEADER_DENYLIST
    )
    return merged


def _dedupe(errors: List[Any]) -> List[Any]:
    # Records may hold unhashable values, so compare by equality
    unique: List[Any] = []
    for error in errors:
        if error not in unique:
            unique.append(error)
    return unique


class ValidationSession:
    """Validation state for a single request.

    Attributes:
        request: The request data being validated
        registry: Shared predicate registry
        error_formatter: Shapes each recorded failure
        skip_validation_on_first_error: Stop a field after its first failure
    """

    def __init__(
        self,
        request: RequestData,
        registry: PredicateRegistry,
        error_formatter: ErrorFormatter = default_error_formatter,
        skip_validation_on_first_error: bool = False,
    ) -> None:
        self.request = request
        self.registry = registry
        self.error_formatter = error_formatter
        self.skip_validation_on_first_error = skip_validation_on_first_error
        self._errors = ErrorLog()

    @property
    def errors(self) -> List[Any]:
        """Errors recorded so far, in order."""
        return list(self._errors)

    def _check(
        self,
        param: Union[FieldRef, Mapping[str, Any]],
        fail_msg: Optional[str],
        location: Location,
    ) -> Optional[ValidatorChain]:
        if isinstance(param, Mapping):
            validate_schema(
                param,
                self.request,
                location,
                self.registry,
                self._errors,
                error_formatter=self.error_formatter,
                skip_validation_on_first_error=self.skip_validation_on_first_error,
            )
            return None

        resolved = locate(self.request, param) if location is Location.ANY else location
        return ValidatorChain(
            param,
            fail_msg,
            self.request,
            resolved,
            self.registry,
            self._errors,
            error_formatter=self.error_formatter,
            skip_validation_on_first_error=self.skip_validation_on_first_error,
        )

    def check(self, param: Union[FieldRef, Mapping[str, Any]], fail_msg: Optional[str] = None) -> Any:
        """Validate a field wherever it is found, or run a schema with ANY as default.

        Returns:
            A ValidatorChain for a field, None for a schema
        """
        return self._check(param, fail_msg, Location.ANY)

    def check_params(self, param: Union[FieldRef, Mapping[str, Any]], fail_msg: Optional[str] = None) -> Any:
        return self._check(param, fail_msg, Location.PARAMS)

    def check_query(self, param: Union[FieldRef, Mapping[str, Any]], fail_msg: Optional[str] = None) -> Any:
        return self._check(param, fail_msg, Location.QUERY)

    def check_body(self, param: Union[FieldRef, Mapping[str, Any]], fail_msg: Optional[str] = None) -> Any:
        return self._check(param, fail_msg, Location.BODY)

    def check_headers(self, param: Union[FieldRef, Mapping[str, Any]], fail_msg: Optional[str] = None) -> Any:
        return self._check(param, fail_msg, Location.HEADER)

    def valid(self, mapped: bool = False) -> Dict[str, Any]:
        """Finish the validation phase.

        Args:
            mapped: Return errors keyed by field instead of raising

        Returns:
            With ``mapped`` and errors recorded: field path -> last error for it.
            Without errors: the merged request parameters (see merge_params).

        Raises:
            ValidationFailed: If errors were recorded and ``mapped`` is false
        """
        if mapped and self._errors:
            return self._errors.by_param()

        if self._errors:
            errors = _dedupe(self._errors)
            log.info("validation_failed", error_count=len(errors))
            raise ValidationFailed(errors)

        log.debug("validation_passed")
        return merge_params(self.request)


class RequestValidator:
    """Application-wide validator configuration.

    Attributes:
        registry: Built-in predicates merged with ``custom_validators``
        error_formatter: Shapes each recorded failure
        skip_validation_on_first_error: Stop a field after its first failure

    Examples:
        >>> validator = RequestValidator(
        ...     custom_validators={"is_even": lambda value, request: int(value) % 2 == 0},
        ... )
        >>> session = validator.session(RequestData(body={"n": 3}))
        >>> session.check("n", "must be even").is_even().last_error
        ErrorRecord(param='n', msg='must be even', value=3)
    """

    def __init__(
        self,
        custom_validators: Optional[Mapping[str, Callable[..., bool]]] = None,
        error_formatter: Optional[ErrorFormatter] = None,
        skip_validation_on_first_error: bool = False,
    ) -> None:
        self.registry = PredicateRegistry(custom=custom_validators)
        self.error_formatter = error_formatter or default_error_formatter
        self.skip_validation_on_first_error = skip_validation_on_first_error

    def session(self, request: RequestData) -> ValidationSession:
        """Start validating a request."""
        return ValidationSession(
            request,
            self.registry,
            error_formatter=self.error_formatter,
            skip_validation_on_first_error=self.skip_validation_on_first_error,
        )


__all__ = [
    "HEADER_DENYLIST",
    "merge_params",
    "ValidationSession",
    "RequestValidator",
]
