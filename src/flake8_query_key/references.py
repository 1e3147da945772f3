"""Collect and filter the free variables a compute function reads."""

from __future__ import annotations

import ast
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from flake8_query_key.scope import DeclarationKind

if TYPE_CHECKING:
    from flake8_query_key.keys import FunctionNode
    from flake8_query_key.source import SourceCode


logger = logging.getLogger(__name__)

# Names that never carry a value worth keying on.
IGNORED_NAMES = frozenset({"undefined", "NotImplemented", "Ellipsis", "__debug__"})


@dataclass(frozen=True)
class ExternalReference:
    identifier: ast.Name
    text: str
    kind: DeclarationKind
    is_class_name: bool
    is_type_reference: bool
    is_callee: bool

    @property
    def name(self) -> str:
        return self.identifier.id


def expression_root(node: ast.AST, source: SourceCode) -> ast.AST:
    """Walk up attribute and subscript chains: ``user`` in ``user.id[0]`` gives the whole chain."""
    current = node
    parent = source.parent_of(current)
    while isinstance(parent, (ast.Attribute, ast.Subscript)) and parent.value is current:
        current = parent
        parent = source.parent_of(current)
    return current


def normalized_text(node: ast.AST, source: SourceCode) -> str:
    return source.text_of(expression_root(node, source))


def is_callee(node: ast.AST, source: SourceCode) -> bool:
    """True if the chain starting at ``node`` is the function being called."""
    root = expression_root(node, source)
    parent = source.parent_of(root)
    return isinstance(parent, ast.Call) and parent.func is root


def collect_external_references(function: FunctionNode, source: SourceCode) -> list[ExternalReference]:
    """Every read inside ``function`` of a name bound outside of it.

    Reads in nested functions and comprehensions are included. Decorators
    are not part of the function and are skipped.
    """
    graph = source.scope_graph
    function_scope = graph.scope_created_by(function)
    if function_scope is None:
        return []

    body = function.body if isinstance(function.body, list) else [function.body]
    references = []
    for root in [function.args, *body]:
        references.extend(graph.references_under(root))

    external = []
    for reference in references:
        declaration = reference.resolved
        if declaration is not None and declaration.scope.is_within(function_scope):
            continue
        external.append(
            ExternalReference(
                identifier=reference.identifier,
                text=normalized_text(reference.identifier, source),
                kind=declaration.kind if declaration is not None else DeclarationKind.UNRESOLVED,
                is_class_name=declaration is not None and declaration.is_class,
                is_type_reference=reference.is_type_reference,
                is_callee=is_callee(reference.identifier, source),
            )
        )
    return external


def filter_references(references: list[ExternalReference]) -> list[ExternalReference]:
    """Keep the references that must appear in the key."""
    relevant = []
    for reference in references:
        if reference.name in IGNORED_NAMES:
            continue
        if reference.is_class_name:
            continue
        if reference.is_type_reference or reference.is_callee:
            continue
        relevant.append(reference)

    if len(relevant) != len(references):
        logger.debug("Excluded %d of %d external references", len(references) - len(relevant), len(references))
    return relevant
