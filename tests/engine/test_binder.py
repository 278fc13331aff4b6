# tests/engine/test_binder.py
"""Tests for parameter binding, literal parsing and coercion."""

from __future__ import annotations

from typing import Any

import pytest

from nodeflow.contracts.errors import BindingError
from nodeflow.contracts.operations import PathMapEntry
from nodeflow.core.value_tree import ValueTree
from nodeflow.engine.binder import ParameterBinder, coerce, ensure_valid_json, parse_literal
from nodeflow.engine.context import ExecutionContext, RunContext
from nodeflow.engine.expression import JinjaExpressionEvaluator
from tests.conftest import make_spec


def typed(count: int, ratio: float, flag: bool, label: str, items: list[str], anything: Any) -> None:
    pass


def with_default(limit: int = 10) -> None:
    pass


def with_context(value: int, context: ExecutionContext) -> None:
    pass


class Opaque:
    pass


def takes_opaque(thing: Opaque) -> None:
    pass


def _bind(func: Any, mapping: dict[str, str], data: dict[str, Any] | None = None, **kwargs: Any) -> dict[str, Any]:
    binder = kwargs.pop("binder", None) or ParameterBinder()
    tree = ValueTree({"input": data}) if data is not None else ValueTree({"input": None})
    return binder.bind(
        make_spec(func),
        [PathMapEntry(source, parameter) for parameter, source in mapping.items()],
        tree,
        kwargs.pop("context", None),
        kwargs.pop("run", None),
    )


class TestUnmappedParameters:
    """Zero values and declared defaults."""

    def test_value_types_get_zero_reference_types_get_none(self) -> None:
        arguments = _bind(typed, {})

        assert arguments == {
            "count": 0,
            "ratio": 0.0,
            "flag": False,
            "label": None,
            "items": None,
            "anything": None,
        }

    def test_declared_default_wins(self) -> None:
        assert _bind(with_default, {}) == {"limit": 10}

    def test_arguments_in_declared_order(self) -> None:
        arguments = _bind(typed, {"label": '"x"', "count": "1"})

        assert list(arguments) == ["count", "ratio", "flag", "label", "items", "anything"]


class TestContextParameter:
    """The context parameter receives the ExecutionContext."""

    def test_context_injected(self) -> None:
        sentinel = object()

        arguments = _bind(with_context, {"value": "input.v"}, {"v": 3}, context=sentinel)

        assert arguments == {"value": 3, "context": sentinel}


class TestDirectLookup:
    """Mappings without markers are path lookups first."""

    def test_list_preserved_exactly(self) -> None:
        arguments = _bind(typed, {"items": "input.names"}, {"names": ["a", "b,c", "d"]})

        assert arguments["items"] == ["a", "b,c", "d"]

    def test_object_preserved_for_any(self) -> None:
        payload = {"nested": {"k": [1, 2]}}

        arguments = _bind(typed, {"anything": "input.obj"}, {"obj": payload})

        assert arguments["anything"] == payload

    def test_lookup_value_coerced(self) -> None:
        arguments = _bind(typed, {"count": "input.n", "ratio": "input.n"}, {"n": "7"})

        assert arguments["count"] == 7
        assert arguments["ratio"] == 7.0

    def test_missing_path_falls_back_to_literal(self) -> None:
        arguments = _bind(typed, {"label": "hello", "count": "42"}, {})

        assert arguments["label"] == "hello"
        assert arguments["count"] == 42

    def test_indexed_lookup(self) -> None:
        arguments = _bind(typed, {"label": "input.names.1"}, {"names": ["a", "b"]})

        assert arguments["label"] == "b"


class TestTemplates:
    """Rendered mappings."""

    def test_string_template_is_auto_quoted(self) -> None:
        arguments = _bind(typed, {"label": "Hello {{ input.name }}"}, {"name": "ada"})

        assert arguments["label"] == "Hello ada"

    def test_string_that_looks_numeric_stays_string(self) -> None:
        arguments = _bind(typed, {"label": "{{ input.n }}"}, {"n": 5})

        assert arguments["label"] == "5"

    def test_quoted_string_template_parsed_as_json(self) -> None:
        arguments = _bind(typed, {"label": '"{{ input.name }}"'}, {"name": "ada"})

        assert arguments["label"] == "ada"

    def test_numeric_template(self) -> None:
        arguments = _bind(typed, {"count": "{{ input.a + input.b }}"}, {"a": 2, "b": 3})

        assert arguments["count"] == 5

    def test_boolean_template(self) -> None:
        arguments = _bind(typed, {"flag": "{{ input.a > 1 }}"}, {"a": 2})

        assert arguments["flag"] is True

    def test_list_template_round_trips_through_json(self) -> None:
        arguments = _bind(typed, {"items": "{{ input.names }}"}, {"names": ["x", "y"]})

        assert arguments["items"] == ["x", "y"]

    def test_bare_word_list_repaired(self) -> None:
        arguments = _bind(typed, {"items": "[{{ input.a }}, {{ input.b }}]"}, {"a": "red", "b": "blue"})

        assert arguments["items"] == ["red", "blue"]

    def test_empty_render_is_empty_string_for_str(self) -> None:
        arguments = _bind(typed, {"label": '"{{ input.missing }}"'}, {})

        assert arguments["label"] == ""

    def test_empty_render_is_none_for_other_types(self) -> None:
        arguments = _bind(typed, {"anything": "{{ input.missing }}"}, {})

        assert arguments["anything"] is None

    def test_run_parameters_in_scope(self) -> None:
        run = RunContext(parameters={"greeting": "hi"})

        arguments = _bind(typed, {"label": "{{ parameters.greeting }}!"}, {}, run=run)

        assert arguments["label"] == "hi!"


class TestBindingErrors:
    """Failures abort the whole binding."""

    def test_uncoercible_value(self) -> None:
        with pytest.raises(BindingError) as exc_info:
            _bind(typed, {"count": "input.n"}, {"n": "many"})

        assert exc_info.value.parameter == "count"

    def test_annotation_without_schema(self) -> None:
        with pytest.raises(BindingError, match="unsupported parameter type Opaque") as exc_info:
            _bind(takes_opaque, {"thing": "input.thing"}, {"thing": {"a": 1}})

        assert exc_info.value.parameter == "thing"

    def test_malformed_template(self) -> None:
        with pytest.raises(BindingError, match="Invalid template syntax"):
            _bind(typed, {"count": "{{ input.n "}, {"n": 1})

    def test_invalid_json_literal(self) -> None:
        with pytest.raises(BindingError, match="invalid literal"):
            _bind(typed, {"anything": "{{ input.text }}"}, {"text": "{broken"})

    def test_strict_undefined_variable(self) -> None:
        binder = ParameterBinder(JinjaExpressionEvaluator(strict_undefined=True))

        with pytest.raises(BindingError, match="Undefined variable"):
            _bind(typed, {"count": "{{ nope }}"}, {}, binder=binder)


class TestParseLiteral:
    """Literal parsing of rendered text."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("42", 42),
            ("-1.5", -1.5),
            ("+7", 7),
            ("TRUE", True),
            ("False", False),
            ("null", None),
            ('"quoted"', "quoted"),
            ("[1, 2]", [1, 2]),
            ('{"a": 1}', {"a": 1}),
            ("plain words", "plain words"),
            ("fast", "fast"),
        ],
    )
    def test_parses(self, text: str, expected: Any) -> None:
        assert parse_literal(text) == expected

    def test_number_prefixed_text_is_invalid(self) -> None:
        with pytest.raises(ValueError):
            parse_literal("5 apples")


class TestEnsureValidJson:
    """Bare-word list repair."""

    def test_quotes_bare_words(self) -> None:
        assert ensure_valid_json("[a, b, c]") == '["a","b","c"]'

    def test_keeps_numbers_and_tokens(self) -> None:
        assert ensure_valid_json("[a, 1, 2.5, TRUE]") == '["a",1,2.5,true]'

    def test_empty_list(self) -> None:
        assert ensure_valid_json("[ ]") == "[]"

    def test_valid_json_untouched(self) -> None:
        assert ensure_valid_json('["a", "b"]') == '["a", "b"]'

    def test_nested_structures_untouched(self) -> None:
        assert ensure_valid_json("[[a], b]") == "[[a], b]"


class TestCoerce:
    """pydantic-backed coercion."""

    def test_any_is_untouched(self) -> None:
        value = object()

        assert coerce(value, Any) is value

    def test_lax_numeric_string(self) -> None:
        assert coerce("3", int) == 3

    def test_list_of_int(self) -> None:
        assert coerce(["1", 2], list[int]) == [1, 2]
