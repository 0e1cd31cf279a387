"""Unit tests for the predicate registry.

Tests cover:
- Stringification of values for built-in predicates
- Built-in vs custom calling conventions
- Custom predicates shadowing built-ins
- Registry immutability and unknown names
"""

import math

import pytest

from paramcheck.errors import UnknownPredicateError
from paramcheck.predicates import BUILTIN_PREDICATE_NAMES, BUILTIN_PREDICATES
from paramcheck.registry import PredicateRegistry, to_display_string
from paramcheck.types import UNDEFINED, RequestData


class Money:
    def __init__(self, cents):
        self.cents = cents

    def __str__(self):
        return f"{self.cents / 100:.2f}"


class TestToDisplayString:
    """Test the single controlled coercion applied for built-ins."""

    @pytest.mark.parametrize("value", [None, UNDEFINED, math.nan])
    def test_empty_values(self, value):
        """Should render missing values as an empty string."""
        assert to_display_string(value) == ""

    def test_scalars(self):
        assert to_display_string("abc") == "abc"
        assert to_display_string(17) == "17"
        assert to_display_string(2.5) == "2.5"
        assert to_display_string(0) == "0"

    def test_booleans_render_lowercase(self):
        """Should render booleans the way they appear in JSON."""
        assert to_display_string(True) == "true"
        assert to_display_string(False) == "false"

    def test_sequences_are_comma_joined(self):
        assert to_display_string(["a", 1, None]) == "a,1,"

    def test_objects_use_their_string_conversion(self):
        assert to_display_string(Money(1250)) == "12.50"


class TestPredicateRegistry:
    """Test registry construction and dispatch."""

    def test_builtins_are_declared_explicitly(self):
        """Should expose exactly the declared built-in names by default."""
        registry = PredicateRegistry()
        assert set(registry) == set(BUILTIN_PREDICATE_NAMES)
        assert all(registry[name].builtin for name in registry)
        assert "contains" in registry
        assert "equals" in registry
        assert "matches" in registry

    def test_builtin_receives_string(self):
        """Should stringify the value before calling a built-in."""
        seen = []

        def record(value, *args):
            seen.append((value, args))
            return True

        registry = PredicateRegistry(builtins={"is_recorded": record})
        assert registry.invoke("is_recorded", 42, RequestData(), "extra") is True
        assert seen == [("42", ("extra",))]

    def test_builtin_trailing_options_mapping(self):
        """Should unpack a trailing mapping whose keys are the predicate's keyword names."""
        registry = PredicateRegistry()
        request = RequestData()
        assert registry.invoke("is_length", "a", request, {"min": 2}) is False
        assert registry.invoke("is_length", "abc", request, {"min": 2, "max": 3}) is True
        assert registry.invoke("is_int", "17", request, {"min": 18}) is False

    def test_builtin_mapping_argument_kept_when_not_options(self):
        """Should pass a mapping through when its keys are not parameter names."""
        registry = PredicateRegistry()
        assert registry.invoke("is_in", "admin", RequestData(), {"admin": 1, "user": 2}) is True

    def test_custom_receives_raw_value_and_request(self):
        """Should pass the raw value, arguments, then the request last."""
        seen = []
        request = RequestData(query={"q": "1"})

        def is_between(value, low, high, req):
            seen.append((value, low, high, req))
            return low <= value <= high

        registry = PredicateRegistry(custom={"is_between": is_between})
        assert registry.invoke("is_between", 5, request, 1, 10) is True
        assert seen == [(5, 1, 10, request)]
        assert registry["is_between"].builtin is False

    def test_custom_shadows_builtin(self):
        """Should let a custom predicate replace a built-in of the same name."""
        registry = PredicateRegistry(custom={"is_int": lambda value, request: value == "custom"})
        assert registry["is_int"].builtin is False
        assert registry.invoke("is_int", "custom", RequestData()) is True
        assert registry.invoke("is_int", "12", RequestData()) is False

    def test_results_are_coerced_to_bool(self):
        registry = PredicateRegistry(custom={"is_truthy": lambda value, request: value})
        assert registry.invoke("is_truthy", [1], RequestData()) is True
        assert registry.invoke("is_truthy", [], RequestData()) is False

    def test_unknown_predicate(self):
        """Should raise UnknownPredicateError for unregistered names."""
        registry = PredicateRegistry()
        with pytest.raises(UnknownPredicateError) as exc_info:
            registry.invoke("is_wizard", "x", RequestData())
        assert exc_info.value.name == "is_wizard"
        assert isinstance(exc_info.value, AttributeError)

    def test_non_callable_custom_rejected(self):
        with pytest.raises(TypeError):
            PredicateRegistry(custom={"is_bad": "not callable"})

    def test_registry_is_read_only(self):
        """Should not allow entries to be replaced after construction."""
        registry = PredicateRegistry()
        with pytest.raises(TypeError):
            registry._entries["is_int"] = None
        assert registry["is_int"].func is BUILTIN_PREDICATES["is_int"]
