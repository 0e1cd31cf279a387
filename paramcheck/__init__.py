"""paramcheck: declarative validation for HTTP request fields.

paramcheck provides:
- Field location across path params, query string, body and headers
- Chainable per-field validators with optional-field and first-error semantics
- Built-in predicates plus caller-supplied custom predicates
- Declarative schemas with per-field locations and error messages
- One aggregate failure, or a field-keyed error map, per request

Basic usage:
    >>> from paramcheck import RequestData, RequestValidator
    >>> validator = RequestValidator()
    >>> session = validator.session(RequestData(query={"age": "17"}))
    >>> session.check({"age": {"is_int": {}, "errorMessage": "must be int"}})
    >>> session.valid()
    {'age': '17'}

The Starlette/FastAPI integration lives in ``paramcheck.asgi``.
"""

__version__ = "0.1.0"
__author__ = "paramcheck contributors"

# Version info
VERSION = (0, 1, 0)

# Core exports
from paramcheck.chain import ValidatorChain
from paramcheck.errors import SchemaDefinitionError, UnknownPredicateError, ValidationFailed
from paramcheck.session import RequestValidator, ValidationSession
from paramcheck.types import UNDEFINED, ErrorRecord, Location, RequestData

# Package metadata
__all__ = [
    "__version__",
    "VERSION",
    "UNDEFINED",
    "ErrorRecord",
    "Location",
    "RequestData",
    "RequestValidator",
    "SchemaDefinitionError",
    "UnknownPredicateError",
    "ValidationFailed",
    "ValidationSession",
    "ValidatorChain",
]
