"""Exceptions raised while analysing a key/function pair.

None of these reach flake8: the rule catches them and abandons the pair.
"""

from __future__ import annotations

import ast


class QueryKeyError(Exception):
    """Base class for query key analysis errors."""

    def __init__(self, message: str, node: ast.AST | None = None):
        super().__init__(message)
        self.node = node


class UnsupportedKeyError(QueryKeyError):
    """The key expression is not a list/tuple display or a name bound to one."""


class UnsupportedFunctionError(QueryKeyError):
    """The compute function is not a lambda or a name bound to a def."""
