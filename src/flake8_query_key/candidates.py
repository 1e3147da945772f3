"""Locate key/function pairs in a module."""

from __future__ import annotations

import ast
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Collection, Iterator

DEFAULT_QUERY_KEY_NAMES = frozenset({"query_key", "queryKey"})
DEFAULT_QUERY_FN_NAMES = frozenset({"query_fn", "queryFn"})


@dataclass(frozen=True)
class CandidatePair:
    key_expression: ast.expr
    function_expression: ast.expr
    anchor_node: ast.AST
    key_name: str


def find_candidates(
    tree: ast.AST,
    key_names: Collection[str] = DEFAULT_QUERY_KEY_NAMES,
    fn_names: Collection[str] = DEFAULT_QUERY_FN_NAMES,
) -> Iterator[CandidatePair]:
    """Yield a pair for every dict display or call carrying both a key and a function entry.

    Dict entries need a string-constant key; calls are matched on keyword
    arguments, so ``use_query(query_key=..., query_fn=...)`` and
    ``dict(query_key=..., query_fn=...)`` both count. Pairs come in document order.
    """
    candidates = []
    for node in ast.walk(tree):
        entries = _entries(node)
        if not entries:
            continue

        key_entry = _first_named(entries, key_names)
        fn_entry = _first_named(entries, fn_names)
        if key_entry is None or fn_entry is None:
            continue

        name, anchor, key_expression = key_entry
        candidates.append(CandidatePair(key_expression, fn_entry[2], anchor, name))

    candidates.sort(key=lambda pair: (pair.anchor_node.lineno, pair.anchor_node.col_offset))
    yield from candidates


def _entries(node: ast.AST) -> list[tuple[str, ast.AST, ast.expr]]:
    if isinstance(node, ast.Dict):
        return [
            (key.value, key, value)
            for key, value in zip(node.keys, node.values)
            if isinstance(key, ast.Constant) and isinstance(key.value, str)
        ]
    if isinstance(node, ast.Call):
        return [(keyword.arg, keyword, keyword.value) for keyword in node.keywords if keyword.arg is not None]
    return []


def _first_named(
    entries: list[tuple[str, ast.AST, ast.expr]], names: Collection[str]
) -> tuple[str, ast.AST, ast.expr] | None:
    for entry in entries:
        if entry[0] in names:
            return entry
    return None
