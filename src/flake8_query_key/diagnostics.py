"""Diagnostics and the fixes suggested with them."""

from __future__ import annotations

import ast
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from flake8_query_key.source import SourceCode

Error = tuple[int, int, str, type]


@dataclass(frozen=True)
class Suggestion:
    """Replace ``node``'s source text with ``replacement``."""

    message_id: str
    message: str
    node: ast.AST
    replacement: str


@dataclass(frozen=True)
class Diagnostic:
    code: str
    message_id: str
    message: str
    node: ast.AST
    data: Mapping[str, str] = field(default_factory=dict)
    suggestions: tuple[Suggestion, ...] = ()
    rule: type | None = None

    def to_flake8(self) -> Error:
        return (self.node.lineno, self.node.col_offset, f"{self.code} {self.message}", self.rule or type(self))


def apply_suggestion(source: SourceCode, suggestion: Suggestion) -> str:
    """Return the file text with the suggestion applied. ``source`` is left untouched."""
    return source.replace(suggestion.node, suggestion.replacement)
