"""Scope graph over a Python ``ast`` tree.

Builds the module, function, class and comprehension scopes of a file, the
names each scope binds, and answers two queries: which declaration a name
resolves to, and which names are read under a given node.
"""

from __future__ import annotations

import ast
import contextlib
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator


class ScopeKind(Enum):
    MODULE = "module"
    FUNCTION = "function"
    CLASS = "class"
    COMPREHENSION = "comprehension"


class DeclarationKind(Enum):
    VARIABLE = "Variable"
    PARAMETER = "Parameter"
    CLASS_NAME = "ClassName"
    UNRESOLVED = "Unresolved"


@dataclass(frozen=True)
class Binding:
    name: str
    kind: DeclarationKind
    node: ast.AST


@dataclass(frozen=True)
class Declaration:
    """All bindings of one name in one scope."""

    name: str
    scope: Scope
    bindings: tuple[Binding, ...]

    @property
    def kind(self) -> DeclarationKind:
        return self.bindings[0].kind

    @property
    def is_class(self) -> bool:
        """True if any binding of the name is a class statement."""
        return any(binding.kind is DeclarationKind.CLASS_NAME for binding in self.bindings)

    @property
    def node(self) -> ast.AST:
        """The first binding site, e.g. the ``Name`` target of ``x = [...]``."""
        return self.bindings[0].node


@dataclass(frozen=True)
class Reference:
    identifier: ast.Name
    resolved: Declaration | None
    is_type_reference: bool


class Scope:
    def __init__(self, kind: ScopeKind, node: ast.AST, parent: Scope | None) -> None:
        self.kind = kind
        self.node = node
        self.parent = parent
        self.bindings: dict[str, list[Binding]] = {}
        self.globals: set[str] = set()
        self.nonlocals: set[str] = set()

    def __repr__(self) -> str:
        return f"Scope({self.kind.value}, line={getattr(self.node, 'lineno', 0)})"

    def bind(self, name: str, kind: DeclarationKind, node: ast.AST) -> None:
        self.bindings.setdefault(name, []).append(Binding(name, kind, node))

    def declaration(self, name: str) -> Declaration | None:
        bindings = self.bindings.get(name)
        if not bindings:
            return None
        return Declaration(name, self, tuple(bindings))

    def is_within(self, other: Scope) -> bool:
        """True if this scope is ``other`` or nested inside it."""
        current: Scope | None = self
        while current is not None:
            if current is other:
                return True
            current = current.parent
        return False


class ScopeGraph:
    def __init__(self, tree: ast.AST) -> None:
        self.module_scope: Scope | None = None
        self._scope_of: dict[ast.AST, Scope] = {}
        self._created: dict[ast.AST, Scope] = {}
        self._type_references: set[ast.Name] = set()
        self._augmented_targets: set[ast.Name] = set()
        _ScopeBuilder(self).visit(tree)

    def scope_created_by(self, node: ast.AST) -> Scope | None:
        """The scope opened by a def, lambda, class or comprehension node."""
        return self._created.get(node)

    def resolve_declaration(self, name: ast.Name) -> Declaration | None:
        scope = self._scope_of.get(name)
        if scope is None:
            return None
        return self._resolve(name.id, scope)

    def references_under(self, node: ast.AST) -> list[Reference]:
        """Every name read under ``node``, in document order."""
        names = [
            child
            for child in ast.walk(node)
            if isinstance(child, ast.Name)
            and (isinstance(child.ctx, ast.Load) or child in self._augmented_targets)
        ]
        names.sort(key=lambda name: (name.lineno, name.col_offset))
        return [
            Reference(
                identifier=name,
                resolved=self.resolve_declaration(name),
                is_type_reference=name in self._type_references,
            )
            for name in names
            if name in self._scope_of
        ]

    def _resolve(self, name: str, scope: Scope) -> Declaration | None:
        # Class bodies are only visible from the class scope itself.
        current: Scope | None = scope
        while current is not None:
            if current is scope or current.kind is not ScopeKind.CLASS:
                if name in current.globals:
                    return self.module_scope.declaration(name) if self.module_scope else None
                if name not in current.nonlocals:
                    declaration = current.declaration(name)
                    if declaration is not None:
                        return declaration
            current = current.parent
        return None


class _ScopeBuilder(ast.NodeVisitor):
    def __init__(self, graph: ScopeGraph) -> None:
        self.graph = graph
        self.scope: Scope | None = None
        self.in_annotation = False

    def visit(self, node: ast.AST) -> None:
        if self.scope is not None:
            self.graph._scope_of[node] = self.scope
        super().visit(node)

    @contextlib.contextmanager
    def _enter(self, kind: ScopeKind, node: ast.AST) -> Iterator[Scope]:
        outer = self.scope
        self.scope = Scope(kind, node, outer)
        self.graph._created[node] = self.scope
        try:
            yield self.scope
        finally:
            self.scope = outer

    def _visit_all(self, nodes: Iterable[ast.AST | None]) -> None:
        for node in nodes:
            if node is not None:
                self.visit(node)

    def _visit_annotation(self, node: ast.AST | None) -> None:
        if node is None:
            return
        outer, self.in_annotation = self.in_annotation, True
        try:
            self.visit(node)
        finally:
            self.in_annotation = outer

    def _bind(self, name: str, kind: DeclarationKind, node: ast.AST, scope: Scope | None = None) -> None:
        scope = scope or self.scope
        if scope is None or name in scope.globals or name in scope.nonlocals:
            return
        scope.bind(name, kind, node)

    # region scopes
    def visit_Module(self, node: ast.Module) -> None:
        with self._enter(ScopeKind.MODULE, node) as scope:
            self.graph.module_scope = scope
            self.graph._scope_of[node] = scope
            self.generic_visit(node)

    def visit_FunctionDef(self, node: ast.FunctionDef | ast.AsyncFunctionDef) -> None:
        self._bind(node.name, DeclarationKind.VARIABLE, node)
        self._visit_all(node.decorator_list)
        self._visit_outer_arguments(node.args)
        self._visit_annotation(node.returns)
        with self._enter(ScopeKind.FUNCTION, node):
            self._bind_parameters(node.args)
            self._visit_all(node.body)

    visit_AsyncFunctionDef = visit_FunctionDef

    def visit_Lambda(self, node: ast.Lambda) -> None:
        self._visit_outer_arguments(node.args)
        with self._enter(ScopeKind.FUNCTION, node):
            self._bind_parameters(node.args)
            self.visit(node.body)

    def visit_ClassDef(self, node: ast.ClassDef) -> None:
        self._bind(node.name, DeclarationKind.CLASS_NAME, node)
        self._visit_all(node.decorator_list)
        self._visit_all(node.bases)
        self._visit_all(node.keywords)
        with self._enter(ScopeKind.CLASS, node):
            self._visit_all(node.body)

    def visit_ListComp(self, node: ast.ListComp | ast.SetComp | ast.GeneratorExp) -> None:
        self._visit_comprehension(node, [node.elt])

    visit_SetComp = visit_ListComp
    visit_GeneratorExp = visit_ListComp

    def visit_DictComp(self, node: ast.DictComp) -> None:
        self._visit_comprehension(node, [node.key, node.value])

    def _visit_comprehension(self, node: ast.AST, elements: list[ast.AST]) -> None:
        generators: list[ast.comprehension] = node.generators
        # The first iterable is evaluated in the enclosing scope.
        self.visit(generators[0].iter)
        with self._enter(ScopeKind.COMPREHENSION, node):
            for index, generator in enumerate(generators):
                self.graph._scope_of[generator] = self.scope
                if index:
                    self.visit(generator.iter)
                self.visit(generator.target)
                self._visit_all(generator.ifs)
            self._visit_all(elements)

    def _visit_outer_arguments(self, args: ast.arguments) -> None:
        self._visit_all(args.defaults)
        self._visit_all(args.kw_defaults)
        for arg in _all_arguments(args):
            self._visit_annotation(arg.annotation)

    def _bind_parameters(self, args: ast.arguments) -> None:
        for arg in _all_arguments(args):
            self._bind(arg.arg, DeclarationKind.PARAMETER, arg)

    # endregion scopes

    # region bindings
    def visit_Name(self, node: ast.Name) -> None:
        if isinstance(node.ctx, (ast.Store, ast.Del)):
            self._bind(node.id, DeclarationKind.VARIABLE, node)
        elif self.in_annotation:
            self.graph._type_references.add(node)

    def visit_NamedExpr(self, node: ast.NamedExpr) -> None:
        self.visit(node.value)
        self.graph._scope_of[node.target] = self.scope
        target_scope = self.scope
        while target_scope.kind is ScopeKind.COMPREHENSION and target_scope.parent is not None:
            target_scope = target_scope.parent
        self._bind(node.target.id, DeclarationKind.VARIABLE, node.target, target_scope)

    def visit_AnnAssign(self, node: ast.AnnAssign) -> None:
        self._visit_annotation(node.annotation)
        self._visit_all([node.value, node.target])

    def visit_AugAssign(self, node: ast.AugAssign) -> None:
        if isinstance(node.target, ast.Name):
            self.graph._augmented_targets.add(node.target)
        self.generic_visit(node)

    def visit_Global(self, node: ast.Global) -> None:
        # At module level the names are already global.
        if self.scope.kind is not ScopeKind.MODULE:
            self.scope.globals.update(node.names)

    def visit_Nonlocal(self, node: ast.Nonlocal) -> None:
        self.scope.nonlocals.update(node.names)

    def visit_Import(self, node: ast.Import | ast.ImportFrom) -> None:
        for alias in node.names:
            if alias.name == "*":
                continue
            self._bind(alias.asname or alias.name.split(".")[0], DeclarationKind.VARIABLE, alias)

    visit_ImportFrom = visit_Import

    def visit_ExceptHandler(self, node: ast.ExceptHandler) -> None:
        if node.name:
            self._bind(node.name, DeclarationKind.VARIABLE, node)
        self.generic_visit(node)

    def visit_MatchAs(self, node: ast.MatchAs | ast.MatchStar) -> None:
        if node.name:
            self._bind(node.name, DeclarationKind.VARIABLE, node)
        self.generic_visit(node)

    visit_MatchStar = visit_MatchAs

    def visit_MatchMapping(self, node: ast.MatchMapping) -> None:
        if node.rest:
            self._bind(node.rest, DeclarationKind.VARIABLE, node)
        self.generic_visit(node)

    # endregion bindings


def _all_arguments(args: ast.arguments) -> list[ast.arg]:
    arguments = [*args.posonlyargs, *args.args, *args.kwonlyargs]
    if args.vararg:
        arguments.append(args.vararg)
    if args.kwarg:
        arguments.append(args.kwarg)
    return arguments
