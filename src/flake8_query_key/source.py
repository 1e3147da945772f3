"""Source text access for a single file."""

from __future__ import annotations

import ast
import re
from functools import cached_property

from flake8_query_key.scope import ScopeGraph

# Line ends as ast counts them; str.splitlines also splits on \f, \x1c-\x1e, \x85, \u2028 and \u2029.
_LINE_ENDS = re.compile(r"(?<=\r\n)|(?<=\r)(?!\n)|(?<=\n)")


class SourceCode:
    """The text of one file together with its tree, parent links and scopes.

    All positions handed out are character offsets into ``text``; ``ast``
    columns are UTF-8 byte offsets and are converted here.
    """

    def __init__(self, text: str, tree: ast.AST | None = None) -> None:
        self.text = text
        self.tree = tree if tree is not None else ast.parse(text)
        self._lines = _LINE_ENDS.split(text)
        self._line_starts = [0]
        for line in self._lines:
            self._line_starts.append(self._line_starts[-1] + len(line))
        self._parents: dict[ast.AST, ast.AST] = {}
        for parent in ast.walk(self.tree):
            for child in ast.iter_child_nodes(parent):
                self._parents[child] = parent

    @classmethod
    def from_lines(cls, lines: list[str], tree: ast.AST | None = None) -> SourceCode:
        return cls("".join(lines), tree)

    @cached_property
    def scope_graph(self) -> ScopeGraph:
        return ScopeGraph(self.tree)

    def parent_of(self, node: ast.AST) -> ast.AST | None:
        return self._parents.get(node)

    def text_of(self, node: ast.AST) -> str:
        """Return the exact source text of ``node``."""
        start, end = self.span_of(node)
        return self.text[start:end]

    def span_of(self, node: ast.AST) -> tuple[int, int]:
        return (
            self._offset(node.lineno, node.col_offset),
            self._offset(node.end_lineno, node.end_col_offset),
        )

    def replace(self, node: ast.AST, replacement: str) -> str:
        """Return the file text with ``node`` replaced by ``replacement``."""
        start, end = self.span_of(node)
        return self.text[:start] + replacement + self.text[end:]

    def _offset(self, lineno: int, byte_col: int) -> int:
        line = self._lines[lineno - 1] if lineno <= len(self._lines) else ""
        char_col = len(line.encode("utf-8")[:byte_col].decode("utf-8", errors="ignore"))
        return self._line_starts[lineno - 1] + char_col
