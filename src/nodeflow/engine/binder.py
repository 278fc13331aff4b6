# src/nodeflow/engine/binder.py
"""Parameter binding.

Turns a node's input mappings plus its input tree into the keyword
arguments of an operation call. Each declared parameter is bound
independently and in declared order:

1. The context parameter receives the ExecutionContext.
2. An unmapped parameter receives its zero value.
3. A mapping without expression markers is a direct path lookup; a
   present value is coerced and used as-is, so lists and objects keep
   their exact shape.
4. Anything else is rendered as a template, parsed as a literal and
   coerced to the declared type.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping, Sequence
from functools import lru_cache
from typing import TYPE_CHECKING, Any

from pydantic import PydanticUserError, TypeAdapter, ValidationError

from nodeflow.contracts.errors import BindingError, ExpressionError
from nodeflow.contracts.operations import OperationSpec, ParameterSpec, PathMapEntry
from nodeflow.core.value_tree import ValueTree
from nodeflow.engine.expression import ExpressionEvaluator, JinjaExpressionEvaluator

if TYPE_CHECKING:
    from nodeflow.engine.context import ExecutionContext, RunContext

_LITERAL_TOKENS: dict[str, Any] = {"true": True, "false": False, "null": None}
_JSON_PREFIXES = ("{", "[", '"', "-", "+")
_BARE_LIST = re.compile(r"^\[\s*([^\[\]{}\"']*?)\s*\]$")
_NUMBER = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")


def ensure_valid_json(text: str) -> str:
    """Quote the bare-word elements of a bracketed list.

    ``[a, b, 3]`` becomes ``["a", "b", 3]``. Numbers and true/false/null
    are left bare. Text that is not a flat bracketed list is returned
    unchanged.
    """
    stripped = text.strip()
    match = _BARE_LIST.match(stripped)
    if match is None:
        return text
    body = match.group(1)
    if not body:
        return "[]"
    elements = []
    for raw in body.split(","):
        element = raw.strip()
        if _NUMBER.match(element) or element.lower() in _LITERAL_TOKENS:
            elements.append(element.lower() if element.lower() in _LITERAL_TOKENS else element)
        else:
            elements.append(json.dumps(element))
    return "[" + ",".join(elements) + "]"


def parse_literal(text: str) -> Any:
    """Parse rendered text into a value.

    Case-insensitive true/false/null map to the JSON values; text that looks
    like a JSON literal (object, array, string, number) is parsed as JSON;
    anything else is the text itself.

    Raises:
        ValueError: If text looks like a JSON literal but does not parse
    """
    stripped = text.strip()
    lowered = stripped.lower()
    if lowered in _LITERAL_TOKENS:
        return _LITERAL_TOKENS[lowered]
    if stripped[:1].isdigit() or stripped.startswith(_JSON_PREFIXES):
        if stripped.startswith("+") and _NUMBER.match(stripped):
            stripped = stripped[1:]
        return json.loads(stripped)
    return text


@lru_cache(maxsize=256)
def _adapter(annotation: Any) -> TypeAdapter[Any]:
    return TypeAdapter(annotation)


def coerce(value: Any, annotation: Any) -> Any:
    """Coerce ``value`` to ``annotation`` with pydantic's lax validation.

    Raises:
        ValidationError: If the value is not convertible
        PydanticUserError: If pydantic cannot build a schema for the annotation
    """
    if annotation is Any:
        return value
    try:
        adapter = _adapter(annotation)
    except TypeError:
        # Unhashable annotation, skip the cache
        adapter = TypeAdapter(annotation)
    return adapter.validate_python(value)


class ParameterBinder:
    """Binds operation parameters from an input tree."""

    def __init__(self, evaluator: ExpressionEvaluator | None = None) -> None:
        self._evaluator = evaluator if evaluator is not None else JinjaExpressionEvaluator()

    @property
    def evaluator(self) -> ExpressionEvaluator:
        return self._evaluator

    def bind(
        self,
        operation: OperationSpec,
        input_map: Sequence[PathMapEntry],
        input_tree: ValueTree,
        context: ExecutionContext | None,
        run: RunContext | None = None,
    ) -> dict[str, Any]:
        """Produce keyword arguments for ``operation``.

        Raises:
            BindingError: On the first parameter that cannot be bound
        """
        sources = {entry.destination: entry.source for entry in input_map}
        scope: dict[str, Any] | None = None
        arguments: dict[str, Any] = {}

        for param in operation.parameters:
            if param.is_context:
                arguments[param.name] = context
                continue

            source = sources.get(param.name)
            if source is None:
                arguments[param.name] = param.zero_value()
                continue

            if not self._evaluator.has_markers(source):
                found = input_tree.get(source)
                if found is not None:
                    arguments[param.name] = self._coerce(param, found)
                    continue

            if scope is None:
                scope = input_tree.to_plain()
                if run is not None:
                    scope["parameters"] = dict(run.parameters)
            arguments[param.name] = self._bind_template(param, source, scope)

        return arguments

    def _bind_template(self, param: ParameterSpec, source: str, scope: Mapping[str, Any]) -> Any:
        quote = param.is_text and not source.startswith('"') and not source.endswith('"')
        try:
            rendered = self._evaluator.render(source, scope)
        except ExpressionError as e:
            raise BindingError(param.name, str(e)) from e

        if quote:
            # Fail closed to a string literal
            return self._coerce(param, rendered)
        if not rendered.strip():
            return "" if param.is_text else None

        try:
            value = parse_literal(ensure_valid_json(rendered))
        except ValueError as e:
            raise BindingError(param.name, f"invalid literal {rendered!r}: {e}") from e
        return self._coerce(param, value)

    def _coerce(self, param: ParameterSpec, value: Any) -> Any:
        try:
            return coerce(value, param.annotation)
        except ValidationError as e:
            raise BindingError(param.name, f"expected {_type_name(param.annotation)}: {e.errors()[0]['msg']}") from e
        except PydanticUserError as e:
            raise BindingError(param.name, f"unsupported parameter type {_type_name(param.annotation)}") from e


def _type_name(annotation: Any) -> str:
    return getattr(annotation, "__name__", None) or str(annotation)
