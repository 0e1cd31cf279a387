"""Test suite for paramcheck.

This package contains tests for:
- Field path formatting and field location
- Predicate registry and built-in predicates
- Validator chain state machine (optional, skip on first error)
- Declarative schema execution
- Error aggregation (mapped, raising, merged params)
- Starlette integration
"""
