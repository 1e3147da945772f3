"""QKD001: Every free variable of the query function must be part of the query key."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from flake8_query_key.diff import find_missing
from flake8_query_key.exceptions import QueryKeyError
from flake8_query_key.fixes import fix_key_text
from flake8_query_key.keys import resolve_function, resolve_key
from flake8_query_key.references import collect_external_references, filter_references
from flake8_query_key.rules.base import BaseRule

if TYPE_CHECKING:
    from collections.abc import Iterator

    from flake8_query_key.candidates import CandidatePair
    from flake8_query_key.diagnostics import Diagnostic
    from flake8_query_key.source import SourceCode


logger = logging.getLogger(__name__)


class ExhaustiveDepsRule(BaseRule):
    code = "QKD001"
    messages = {
        "missingDeps": "The following dependencies are missing in your {key_name}: {deps}",
        "fixTo": "Fix to {result}",
    }

    def check(self, candidate: CandidatePair, source: SourceCode) -> Iterator[Diagnostic]:
        try:
            function = resolve_function(candidate.function_expression, source)
            # TODO: resolve keys built by factory helpers, e.g. todo_keys.detail(id)
            key = resolve_key(candidate.key_expression, source)
        except QueryKeyError as error:
            logger.debug("Skipping %s on line %d: %s", candidate.key_name, candidate.anchor_node.lineno, error)
            return

        references = filter_references(collect_external_references(function, source))
        missing = find_missing(key, references, source)
        if not missing:
            return

        missing_texts = [reference.text for reference in missing]
        result = fix_key_text(key, missing_texts, source)
        logger.debug("Missing %s in %s on line %d", missing_texts, candidate.key_name, candidate.anchor_node.lineno)

        yield self._report(
            candidate.anchor_node,
            "missingDeps",
            {"key_name": candidate.key_name, "deps": ", ".join(missing_texts)},
            suggestions=[self._suggest(key, "fixTo", {"result": result}, result)],
        )
