# src/nodeflow/engine/expression.py
"""Expression evaluation for input mappings.

The binder only depends on the ExpressionEvaluator protocol: "does this
text contain expression markers" and "render this template against a
plain variable scope". The default implementation is a sandboxed Jinja2
environment.

Rendering rules of the Jinja2 evaluator:
    - booleans render as ``true`` / ``false``
    - None and undefined values render as empty text
    - lists and dicts render as JSON so they parse back losslessly
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Protocol

from jinja2 import ChainableUndefined, StrictUndefined, Template, TemplateSyntaxError, Undefined, UndefinedError
from jinja2.exceptions import SecurityError
from jinja2.sandbox import SandboxedEnvironment

from nodeflow.contracts.errors import ExpressionError

if TYPE_CHECKING:
    from nodeflow.core.config import TemplateSettings

_MARKERS: tuple[str, ...] = ("{{", "}}", "{%", "%}")


class ExpressionEvaluator(Protocol):
    """Renders input-mapping templates."""

    def has_markers(self, text: str) -> bool:
        """Return True if ``text`` must be rendered rather than looked up."""
        ...

    def render(self, template: str, scope: Mapping[str, Any]) -> str:
        """Render ``template`` against ``scope``.

        Raises:
            ExpressionError: On syntax, sandbox or undefined-variable failures
        """
        ...


def _finalize(value: Any) -> Any:
    if isinstance(value, Undefined):
        # str() decides: empty, or raise under StrictUndefined
        return value
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, dict | list | tuple):
        return json.dumps(value)
    return value


class JinjaExpressionEvaluator:
    """Sandboxed Jinja2 evaluator.

    Compiled templates are cached per source text; the environment is
    sandboxed so templates cannot reach interpreter internals.
    """

    def __init__(self, *, strict_undefined: bool = False) -> None:
        self._strict = strict_undefined
        self._env = SandboxedEnvironment(
            undefined=StrictUndefined if strict_undefined else ChainableUndefined,
            autoescape=False,
            finalize=_finalize,
            keep_trailing_newline=True,
        )
        self._cache: dict[str, Template] = {}

    @property
    def strict_undefined(self) -> bool:
        return self._strict

    def has_markers(self, text: str) -> bool:
        return any(marker in text for marker in _MARKERS)

    def _compile(self, template: str) -> Template:
        compiled = self._cache.get(template)
        if compiled is None:
            try:
                compiled = self._env.from_string(template)
            except TemplateSyntaxError as e:
                raise ExpressionError(f"Invalid template syntax: {e}") from e
            self._cache[template] = compiled
        return compiled

    def render(self, template: str, scope: Mapping[str, Any]) -> str:
        compiled = self._compile(template)
        try:
            return compiled.render(**scope)
        except UndefinedError as e:
            raise ExpressionError(f"Undefined variable: {e}") from e
        except SecurityError as e:
            raise ExpressionError(f"Sandbox violation: {e}") from e
        except Exception as e:
            raise ExpressionError(f"Template rendering failed: {e}") from e


def build_evaluator(settings: TemplateSettings | None = None) -> JinjaExpressionEvaluator:
    """Create the evaluator described by ``settings`` (defaults when None)."""
    if settings is None:
        return JinjaExpressionEvaluator()
    return JinjaExpressionEvaluator(strict_undefined=settings.strict_undefined)
