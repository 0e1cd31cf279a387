"""Declarative schema executor.

A schema maps field names to constraint sets. Each constraint names a chain
method (a predicate or one of not_empty/len/optional) and may carry its
arguments and its own failure message:

    {
        "age": {
            "in": "query",
            "errorMessage": "age is required",
            "not_empty": {},
            "is_int": {"options": {"min": 18}, "errorMessage": "must be an adult"},
        },
    }

Fields run in declaration order, constraints in declaration order within a
field. ``in`` overrides the location for its own field only; an ``in``
naming an unknown location drops the field without recording anything.

The schema's shape is checked with jsonschema before anything runs.
"""

import functools
from typing import Any, Dict, List, Mapping, Optional

import structlog
from jsonschema import Draft7Validator

from paramcheck.chain import ValidatorChain
from paramcheck.errors import SchemaDefinitionError
from paramcheck.locator import locate
from paramcheck.registry import PredicateRegistry
from paramcheck.types import (
    SOURCE_LOCATIONS,
    ErrorFormatter,
    ErrorLog,
    Location,
    RequestData,
    default_error_formatter,
)

log = structlog.get_logger(__name__)

DEFAULT_SCHEMA_FAIL_MESSAGE = "Invalid param"

# Keys of a constraint set that are not chain methods
RESERVED_KEYS = ("in", "errorMessage")

# Chain control methods a constraint set may name besides predicates
CHAIN_METHODS = ("optional", "not_empty", "len")

# Shape of a declarative schema. "in" is deliberately unconstrained so that
# an unknown location skips the field instead of rejecting the schema.
SCHEMA_DEFINITION: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "additionalProperties": {
        "type": "object",
        "properties": {
            "in": {},
            "errorMessage": {"type": "string"},
        },
        "additionalProperties": {
            "type": "object",
            "properties": {
                "options": {"type": ["array", "object"]},
                "errorMessage": {"type": "string"},
            },
        },
    },
}

Draft7Validator.check_schema(SCHEMA_DEFINITION)
_definition_validator = Draft7Validator(SCHEMA_DEFINITION)


def check_schema_definition(schema: Mapping[str, Any]) -> None:
    """Check a declarative schema's shape.

    Raises:
        SchemaDefinitionError: Listing every shape violation found

    Examples:
        >>> check_schema_definition({"name": {"not_empty": {}}})
        >>> check_schema_definition({"name": {"not_empty": {"options": 1}}})
        Traceback (most recent call last):
        ...
        paramcheck.errors.SchemaDefinitionError: Invalid validation schema: name.not_empty.options: 1 is not of type 'array', 'object'
    """
    problems: List[str] = []
    for error in _definition_validator.iter_errors(_as_plain(schema)):
        path = ".".join(str(p) for p in error.absolute_path)
        problems.append(f"{path}: {error.message}" if path else error.message)
    if problems:
        raise SchemaDefinitionError(problems)


def _as_plain(value: Any) -> Any:
    # jsonschema only recognises dict/list as object/array
    if isinstance(value, Mapping):
        return {key: _as_plain(item) for key, item in value.items()}
    if isinstance(value, tuple):
        return [_as_plain(item) for item in value]
    return value


def _known_location(value: Any) -> Optional[Location]:
    try:
        location = Location(value)
    except ValueError:
        return None
    return location if location in SOURCE_LOCATIONS else None


def validate_schema(
    schema: Mapping[str, Mapping[str, Any]],
    request: RequestData,
    default_location: Location,
    registry: PredicateRegistry,
    errors: ErrorLog,
    error_formatter: ErrorFormatter = default_error_formatter,
    skip_validation_on_first_error: bool = False,
) -> None:
    """Run a declarative schema against a request.

    Args:
        schema: Field name -> constraint set
        request: The request data
        default_location: Location for fields without ``in``; ANY uses the locator
        registry: Predicates available to the chains
        errors: Session error log failures are recorded in
        error_formatter: Shapes each recorded failure
        skip_validation_on_first_error: Stop a field after its first failure

    Raises:
        SchemaDefinitionError: If the schema has the wrong shape
        UnknownPredicateError: If a constraint names an unknown predicate
    """
    check_schema_definition(schema)
    default_location = Location(default_location)

    for field_name, constraints in schema.items():
        location: Optional[Location] = default_location
        if "in" in constraints:
            location = _known_location(constraints["in"])
            if location is None:
                log.debug("schema_field_skipped", param=field_name, location=constraints["in"])
                continue

        if location is Location.ANY:
            location = locate(request, field_name)

        chain = ValidatorChain(
            field_name,
            None,
            request,
            location,
            registry,
            errors,
            error_formatter=error_formatter,
            skip_validation_on_first_error=skip_validation_on_first_error,
        )
        field_message = constraints.get("errorMessage")

        for method_name, method_options in constraints.items():
            if method_name in RESERVED_KEYS:
                continue

            chain.fail_msg = (
                method_options.get("errorMessage") or field_message or DEFAULT_SCHEMA_FAIL_MESSAGE
            )
            _call(chain, method_name, method_options.get("options"))


def _call(chain: ValidatorChain, method_name: str, options: Any) -> None:
    if method_name in CHAIN_METHODS:
        method = getattr(chain, method_name)
    else:
        method = functools.partial(chain.apply, method_name)

    if isinstance(options, Mapping):
        method(**options)
    elif options and method_name in CHAIN_METHODS and isinstance(options[-1], Mapping):
        # [{"check_falsy": true}] and friends: trailing object holds keyword options
        method(*options[:-1], **options[-1])
    else:
        method(*(options or ()))


__all__ = [
    "DEFAULT_SCHEMA_FAIL_MESSAGE",
    "RESERVED_KEYS",
    "SCHEMA_DEFINITION",
    "check_schema_definition",
    "validate_schema",
]
