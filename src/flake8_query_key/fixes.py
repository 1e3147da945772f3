"""Build the replacement text for a key with missing dependencies."""

from __future__ import annotations

import ast
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from flake8_query_key.keys import KeyLiteral
    from flake8_query_key.source import SourceCode


def append_missing(original_text: str, missing_texts: list[str], elements_end: int | None = None) -> str:
    """Return ``original_text`` with ``missing_texts`` added as trailing elements.

    Args:
        original_text: source of a list or parenthesised tuple display
        missing_texts: element texts to add, in order
        elements_end: offset in ``original_text`` just past the last existing
            element, or None when the display is empty

    Existing text is never rewritten. The new elements go right after the last
    existing one so that a trailing comma, comment or line break before the
    closing bracket stays where it was.
    """
    addition = ", ".join(missing_texts)
    if not addition:
        return original_text
    if elements_end is None:
        return original_text[0] + addition + original_text[1:]
    return original_text[:elements_end] + ", " + addition + original_text[elements_end:]


def fix_key_text(key: KeyLiteral, missing_texts: list[str], source: SourceCode) -> str:
    if isinstance(key, ast.Tuple) and not key.elts and len(missing_texts) == 1:
        # "(id)" is not a tuple
        missing_texts = [f"{missing_texts[0]},"]

    elements_end = None
    if key.elts:
        key_start, _ = source.span_of(key)
        _, last_end = source.span_of(key.elts[-1])
        elements_end = last_end - key_start
    return append_missing(source.text_of(key), missing_texts, elements_end)
