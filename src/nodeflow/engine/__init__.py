"""Execution engine: binding, node evaluation, ports and graph runs.

Graph construction from documents lives in nodeflow.engine.builder.
"""

from nodeflow.engine.binder import ParameterBinder, coerce, ensure_valid_json, parse_literal
from nodeflow.engine.context import ExecutionContext, RunContext
from nodeflow.engine.expression import ExpressionEvaluator, JinjaExpressionEvaluator, build_evaluator
from nodeflow.engine.node import DEFAULT_PORT, Node, Subscription
from nodeflow.engine.runner import GraphRunner, RunResult

__all__ = [
    "DEFAULT_PORT",
    "ExecutionContext",
    "ExpressionEvaluator",
    "GraphRunner",
    "JinjaExpressionEvaluator",
    "Node",
    "ParameterBinder",
    "RunContext",
    "RunResult",
    "Subscription",
    "build_evaluator",
    "coerce",
    "ensure_valid_json",
    "parse_literal",
]
