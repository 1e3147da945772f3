"""Flake8 plugin checking that cache keys cover every input of their query function."""

from flake8_query_key.checker import QueryKeyChecker, check_source
from flake8_query_key.diagnostics import Diagnostic, Suggestion, apply_suggestion

__all__ = [
    "QueryKeyChecker",
    "check_source",
    "Diagnostic",
    "Suggestion",
    "apply_suggestion",
]
