"""Resolve the key and function expressions of a candidate pair."""

from __future__ import annotations

import ast
from typing import TYPE_CHECKING

from flake8_query_key.exceptions import UnsupportedFunctionError, UnsupportedKeyError

if TYPE_CHECKING:
    from flake8_query_key.source import SourceCode

KeyLiteral = ast.List | ast.Tuple
FunctionNode = ast.Lambda | ast.FunctionDef | ast.AsyncFunctionDef


def resolve_key(expression: ast.expr, source: SourceCode) -> KeyLiteral:
    """Return the list/tuple display holding the key elements.

    A bare name is followed once to the display it is first bound to.

    Raises:
        UnsupportedKeyError: for any other shape, e.g. a key factory call
    """
    node: ast.AST | None = expression
    if isinstance(node, ast.Name):
        node = referenced_expression(node, source)

    if _is_key_literal(node, source):
        return node

    msg = f"Unsupported key expression: {source.text_of(expression)}"
    raise UnsupportedKeyError(msg, expression)


def resolve_function(expression: ast.expr, source: SourceCode) -> FunctionNode:
    """Return the lambda or def computing the cached value.

    Raises:
        UnsupportedFunctionError: if the expression is neither a lambda nor a
            name first bound by ``def``
    """
    node: ast.AST | None = expression
    if isinstance(node, ast.Name):
        node = referenced_expression(node, source)

    if isinstance(node, (ast.Lambda, ast.FunctionDef, ast.AsyncFunctionDef)):
        return node

    msg = f"Unsupported function expression: {source.text_of(expression)}"
    raise UnsupportedFunctionError(msg, expression)


def referenced_expression(name: ast.Name, source: SourceCode) -> ast.AST | None:
    """The value ``name`` is first bound to, or the def that binds it."""
    declaration = source.scope_graph.resolve_declaration(name)
    if declaration is None:
        return None

    binding = declaration.node
    if isinstance(binding, (ast.FunctionDef, ast.AsyncFunctionDef)):
        return binding
    if not isinstance(binding, ast.Name):
        return None

    parent = source.parent_of(binding)
    if isinstance(parent, ast.Assign) and any(target is binding for target in parent.targets):
        return parent.value
    if isinstance(parent, ast.AnnAssign) and parent.target is binding:
        return parent.value
    return None


def _is_key_literal(node: ast.AST | None, source: SourceCode) -> bool:
    if isinstance(node, ast.List):
        return True
    if isinstance(node, ast.Tuple):
        # Only parenthesised tuples have a closing bracket to append before.
        text = source.text_of(node)
        return text.startswith("(") and text.endswith(")")
    return False
