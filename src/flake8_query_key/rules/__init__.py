from flake8_query_key.rules.base import BaseRule
from flake8_query_key.rules.exhaustive_deps import ExhaustiveDepsRule

ALL_RULES = [
    ExhaustiveDepsRule,
]

__all__ = [
    "BaseRule",
    "ExhaustiveDepsRule",
    "ALL_RULES",
]
