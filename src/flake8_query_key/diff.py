"""Compare the function's free variables against the key."""

from __future__ import annotations

import ast
from typing import TYPE_CHECKING

from flake8_query_key.references import normalized_text

if TYPE_CHECKING:
    from flake8_query_key.keys import KeyLiteral
    from flake8_query_key.references import ExternalReference
    from flake8_query_key.source import SourceCode


def key_texts(key: KeyLiteral, source: SourceCode) -> set[str]:
    """Texts a reference may match: each element, and every name chain inside one."""
    texts = set()
    for element in key.elts:
        texts.add(source.text_of(element))
        for node in ast.walk(element):
            if isinstance(node, ast.Name):
                texts.add(normalized_text(node, source))
    return texts


def find_missing(
    key: KeyLiteral, references: list[ExternalReference], source: SourceCode
) -> list[ExternalReference]:
    """References absent from the key, one per text, in first-occurrence order.

    Matching is purely textual: ``user.id`` and ``user["id"]`` are different keys.
    """
    existing = key_texts(key, source)
    seen: set[str] = set()
    missing = []
    for reference in references:
        if reference.text in existing or reference.text in seen:
            continue
        seen.add(reference.text)
        missing.append(reference)
    return missing
