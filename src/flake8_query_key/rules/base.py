"""Base class for all rules."""

from __future__ import annotations

import ast
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import TYPE_CHECKING, ClassVar

from flake8_query_key.diagnostics import Diagnostic, Suggestion

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from flake8_query_key.candidates import CandidatePair
    from flake8_query_key.source import SourceCode


class BaseRule(ABC):
    """Base class for lint rules run on each key/function pair."""

    code: ClassVar[str]
    messages: ClassVar[Mapping[str, str]]

    @abstractmethod
    def check(self, candidate: CandidatePair, source: SourceCode) -> Iterator[Diagnostic]:
        """Check a candidate pair and yield diagnostics."""

    def _report(
        self,
        node: ast.AST,
        message_id: str,
        data: Mapping[str, str],
        suggestions: Sequence[Suggestion] = (),
    ) -> Diagnostic:
        """Create a diagnostic anchored at the given node."""
        return Diagnostic(
            code=self.code,
            message_id=message_id,
            message=self.messages[message_id].format(**data),
            node=node,
            data=dict(data),
            suggestions=tuple(suggestions),
            rule=type(self),
        )

    def _suggest(self, node: ast.AST, message_id: str, data: Mapping[str, str], replacement: str) -> Suggestion:
        return Suggestion(
            message_id=message_id,
            message=self.messages[message_id].format(**data),
            node=node,
            replacement=replacement,
        )
