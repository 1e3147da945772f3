"""Flake8 checker for cache keys that miss dependencies of their query function."""

from __future__ import annotations

import ast
import logging
from typing import TYPE_CHECKING, Any

from flake8_query_key.candidates import DEFAULT_QUERY_FN_NAMES, DEFAULT_QUERY_KEY_NAMES, find_candidates
from flake8_query_key.rules import ALL_RULES
from flake8_query_key.source import SourceCode

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from flake8_query_key.diagnostics import Diagnostic, Error


logger = logging.getLogger(__name__)


class QueryKeyChecker:
    name = "flake8-query-key"
    version = "0.1.0"

    query_key_names: frozenset[str] = DEFAULT_QUERY_KEY_NAMES
    query_fn_names: frozenset[str] = DEFAULT_QUERY_FN_NAMES

    def __init__(self, tree: ast.AST, lines: list[str], filename: str = "stdin") -> None:
        self.tree = tree
        self.lines = lines
        self.filename = filename
        self.rules = [rule() for rule in ALL_RULES]

    @classmethod
    def add_options(cls, parser: Any) -> None:
        parser.add_option(
            "--query-key-names",
            default=",".join(sorted(DEFAULT_QUERY_KEY_NAMES)),
            parse_from_config=True,
            comma_separated_list=True,
            help="Names of the cache key entry. (Default: %(default)s)",
        )
        parser.add_option(
            "--query-fn-names",
            default=",".join(sorted(DEFAULT_QUERY_FN_NAMES)),
            parse_from_config=True,
            comma_separated_list=True,
            help="Names of the query function entry next to the key. (Default: %(default)s)",
        )

    @classmethod
    def parse_options(cls, options: Any) -> None:
        cls.query_key_names = _names(options.query_key_names)
        cls.query_fn_names = _names(options.query_fn_names)

    def run(self) -> Iterator[Error]:
        for diagnostic in self.diagnostics():
            yield diagnostic.to_flake8()

    def diagnostics(self) -> Iterator[Diagnostic]:
        """Yield diagnostics together with their suggested fixes."""
        source = SourceCode.from_lines(self.lines, self.tree)
        candidates = list(find_candidates(self.tree, self.query_key_names, self.query_fn_names))
        logger.debug("Checking %d candidate pairs in %s", len(candidates), self.filename)
        for candidate in candidates:
            for rule in self.rules:
                yield from rule.check(candidate, source)


def check_source(
    text: str,
    key_names: Iterable[str] | None = None,
    fn_names: Iterable[str] | None = None,
) -> list[Diagnostic]:
    """Check a module's source text outside of flake8."""
    checker = QueryKeyChecker(ast.parse(text), text.splitlines(keepends=True))
    if key_names is not None:
        checker.query_key_names = _names(key_names)
    if fn_names is not None:
        checker.query_fn_names = _names(fn_names)
    diagnostics = list(checker.diagnostics())
    logger.debug("Found %d diagnostics", len(diagnostics))
    return diagnostics


def _names(value: str | Iterable[str]) -> frozenset[str]:
    if isinstance(value, str):
        value = value.split(",")
    return frozenset(name.strip() for name in value if name.strip())
