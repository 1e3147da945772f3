"""Tests for QueryKeyChecker."""

import ast
import textwrap
from pathlib import Path
from types import SimpleNamespace

import pytest

from flake8_query_key import QueryKeyChecker, apply_suggestion, check_source
from flake8_query_key.rules import ExhaustiveDepsRule
from flake8_query_key.source import SourceCode


@pytest.fixture
def check():
    """Return a function that checks code and returns its diagnostics."""
    def _check(code: str):
        return check_source(textwrap.dedent(code).lstrip())
    return _check


@pytest.fixture
def missing(check):
    """Return a function that checks code and returns the missing dependencies."""
    def _missing(code: str) -> list[str]:
        diagnostics = check(code)
        assert len(diagnostics) <= 1
        if not diagnostics:
            return []
        return diagnostics[0].data["deps"].split(", ")
    return _missing


@pytest.fixture
def fixed(check):
    """Return a function that applies the single suggested fix to code."""
    def _fixed(code: str) -> str:
        code = textwrap.dedent(code).lstrip()
        (diagnostic,) = check(code)
        (suggestion,) = diagnostic.suggestions
        return apply_suggestion(SourceCode(code), suggestion)
    return _fixed


# Basic scenarios

def test_missing_parameter(check):
    diagnostics = check("""
        def todos(id):
            return use_query(query_key=["todos"], query_fn=lambda: fetch(id))
    """)
    assert len(diagnostics) == 1
    assert diagnostics[0].message == "The following dependencies are missing in your query_key: id"
    assert diagnostics[0].suggestions[0].replacement == '["todos", id]'
    assert diagnostics[0].suggestions[0].message == 'Fix to ["todos", id]'


def test_dependency_in_key(missing):
    assert missing("""
        def todos(status):
            return use_query(query_key=["todos", status], query_fn=lambda: fetch(status))
    """) == []


def test_local_variable_is_not_a_dependency(missing):
    assert missing("""
        def todos():
            def fetch_todos():
                x = 1
                return fetch(x)
            return use_query(query_key=["todos"], query_fn=fetch_todos)
    """) == []


def test_callee_is_not_a_dependency(missing):
    assert missing("""
        def helper(value):
            return value

        def todos(id):
            return use_query(query_key=["todos"], query_fn=lambda: helper(id))
    """) == ["id"]


def test_key_factory_is_skipped(check):
    assert check("""
        def todos(id):
            return use_query(query_key=todo_keys(), query_fn=lambda: fetch(id))
    """) == []


def test_type_annotations_are_not_dependencies(missing):
    assert missing("""
        def todos():
            def fetch_todos(x: SomeType) -> Result:
                y: Other = x
                return fetch(y)
            return use_query(query_key=["todos"], query_fn=fetch_todos)
    """) == []


# Key indirection

def test_key_through_variable(missing):
    assert missing("""
        def todos(id):
            key = ["todos", id]
            return use_query(query_key=key, query_fn=lambda: fetch(id))
    """) == []


def test_key_through_annotated_variable(missing):
    assert missing("""
        def todos(id, page):
            key: list = ["todos", id]
            return use_query(query_key=key, query_fn=lambda: fetch(id, page))
    """) == ["page"]


def test_key_through_variable_bound_to_call_is_skipped(check):
    assert check("""
        def todos(id):
            key = make_key("todos")
            return use_query(query_key=key, query_fn=lambda: fetch(id))
    """) == []


def test_fix_applies_to_the_bound_list(fixed):
    assert fixed("""
        def todos(id):
            key = ["todos"]
            return use_query(query_key=key, query_fn=lambda: fetch(id))
    """) == textwrap.dedent("""\
        def todos(id):
            key = ["todos", id]
            return use_query(query_key=key, query_fn=lambda: fetch(id))
    """)


# Function shapes

def test_unrecognised_function_is_skipped(check):
    assert check("""
        from api import fetch_todos

        def todos(id):
            return use_query(query_key=["todos"], query_fn=fetch_todos)
    """) == []


def test_async_def_function(missing):
    assert missing("""
        def todos(id):
            async def fetch_todos():
                return await fetch(id)
            return use_query(query_key=["todos"], query_fn=fetch_todos)
    """) == ["id"]


def test_decorators_are_ignored(missing):
    assert missing("""
        def todos(id, retry):
            @with_retry(retry)
            def fetch_todos():
                return fetch(id)
            return use_query(query_key=["todos", id], query_fn=fetch_todos)
    """) == []


def test_lambda_default_is_a_dependency(missing):
    assert missing("""
        def todos(page):
            return use_query(query_key=["todos"], query_fn=lambda page=page: fetch(page))
    """) == ["page"]


# Exclusions

def test_class_name_is_excluded(missing):
    assert missing("""
        class Todo:
            pass

        def todos(id):
            return use_query(query_key=["todos"], query_fn=lambda: fetch(Todo, id))
    """) == ["id"]


def test_ignored_names_are_excluded(missing):
    assert missing("""
        def todos(id):
            return use_query(query_key=["todos"], query_fn=lambda: fetch(undefined, NotImplemented, id))
    """) == ["id"]


def test_method_call_chain_is_excluded(missing):
    assert missing("""
        def todos(user):
            return use_query(query_key=["todos"], query_fn=lambda: user.name.upper())
    """) == []


# References

def test_attribute_chain_text(missing):
    assert missing("""
        def todos(user):
            return use_query(query_key=["todos"], query_fn=lambda: fetch(user.id))
    """) == ["user.id"]


def test_matching_is_textual(missing):
    assert missing("""
        def todos(user):
            return use_query(query_key=["todos", user], query_fn=lambda: fetch(user.id))
    """) == ["user.id"]


def test_nested_key_names_count(missing):
    assert missing("""
        def todos(user, page):
            return use_query(query_key=["todos", {"user": user.id, "page": page}], query_fn=lambda: fetch(user.id, page))
    """) == []


def test_self_attribute(missing):
    assert missing("""
        class TodoView:
            def get(self, id):
                return use_query(query_key=["todos", self.user], query_fn=lambda: fetch(self.user, id))
    """) == ["id"]


def test_reported_once_in_first_occurrence_order(missing):
    assert missing("""
        def todos(id, page):
            return use_query(query_key=["todos"], query_fn=lambda: fetch(page, id, page, id))
    """) == ["page", "id"]


def test_comprehension_inside_function(missing):
    assert missing("""
        def todos(items, page):
            return use_query(query_key=["todos"], query_fn=lambda: [fetch(item, page) for item in items])
    """) == ["page", "items"]


def test_nested_closure(missing):
    assert missing("""
        def todos(id, page):
            def fetch_todos():
                def inner():
                    return fetch(id)
                return inner() + [page]
            return use_query(query_key=["todos", page], query_fn=fetch_todos)
    """) == ["id"]


def test_nonlocal_counter(missing):
    assert missing("""
        def todos():
            count = 0
            def fetch_todos():
                nonlocal count
                count += 1
                return fetch(count)
            return use_query(query_key=["todos"], query_fn=fetch_todos)
    """) == ["count"]


def test_module_level_names_are_dependencies(missing):
    assert missing("""
        PAGE_SIZE = 20

        def todos(id):
            return use_query(query_key=["todos", id], query_fn=lambda: fetch(id, limit=PAGE_SIZE))
    """) == ["PAGE_SIZE"]


# Candidate shapes

def test_dict_display(check):
    diagnostics = check("""
        def todos(id):
            return use_query({"query_key": ["todos"], "query_fn": lambda: fetch(id)})
    """)
    assert [d.data["deps"] for d in diagnostics] == ["id"]
    assert isinstance(diagnostics[0].node, ast.Constant)


def test_camel_case_names(missing):
    assert missing("""
        def todos(id):
            return use_query({"queryKey": ["todos"], "queryFn": lambda: fetch(id)})
    """) == ["id"]


def test_key_without_function_is_ignored(check):
    assert check("""
        def todos(id):
            return use_query(query_key=["todos"], select=lambda data: data[id])
    """) == []


def test_custom_names():
    code = "load(cache_key=['todos'], loader=lambda: fetch(id))\n"
    assert check_source(code) == []
    diagnostics = check_source(code, key_names=["cache_key"], fn_names="loader")
    assert diagnostics[0].message == "The following dependencies are missing in your cache_key: id"


# Fixes

def test_fix_tuple_key(fixed):
    assert fixed("""
        def todos(id):
            return use_query(query_key=("todos",), query_fn=lambda: fetch(id))
    """) == textwrap.dedent("""\
        def todos(id):
            return use_query(query_key=("todos", id,), query_fn=lambda: fetch(id))
    """)


def test_fix_empty_keys(check):
    diagnostics = check("""
        def todos(id, page):
            a = use_query(query_key=[], query_fn=lambda: fetch(id, page))
            b = use_query(query_key=(), query_fn=lambda: fetch(id))
    """)
    assert [d.suggestions[0].replacement for d in diagnostics] == ["[id, page]", "(id,)"]


def test_fix_keeps_multiline_formatting(fixed):
    assert fixed("""
        def todos(id):
            return use_query(
                query_key=[
                    "todos",  # list
                ],
                query_fn=lambda: fetch(id),
            )
    """) == textwrap.dedent("""\
        def todos(id):
            return use_query(
                query_key=[
                    "todos", id,  # list
                ],
                query_fn=lambda: fetch(id),
            )
    """)


def test_fix_is_idempotent(fixed, check):
    code = fixed("""
        def todos(user, items, page):
            return use_query(
                query_key=["todos", {"page": page}],
                query_fn=lambda: [fetch(user.id, item) for item in items[page]],
            )
    """)
    assert check(code) == []


# flake8 integration

def test_run_yields_flake8_errors():
    code = "use_query(query_key=['todos'], query_fn=lambda: fetch(id))\n"
    checker = QueryKeyChecker(ast.parse(code), code.splitlines(keepends=True))
    assert list(checker.run()) == [
        (1, 10, "QKD001 The following dependencies are missing in your query_key: id", ExhaustiveDepsRule),
    ]


def test_run_reports_in_document_order():
    code = textwrap.dedent("""\
        a = use_query(query_key=[], query_fn=lambda: fetch(first))
        b = use_query(query_key=[], query_fn=lambda: fetch(second))
    """)
    checker = QueryKeyChecker(ast.parse(code), code.splitlines(keepends=True))
    assert [line for line, _, _, _ in checker.run()] == [1, 2]


def test_add_options():
    class FakeParser:
        def __init__(self):
            self.options = {}

        def add_option(self, name, **kwargs):
            self.options[name] = kwargs

    parser = FakeParser()
    QueryKeyChecker.add_options(parser)
    assert parser.options["--query-key-names"]["default"] == "queryKey,query_key"
    assert parser.options["--query-fn-names"]["default"] == "queryFn,query_fn"
    assert all(option["parse_from_config"] for option in parser.options.values())


def test_parse_options(monkeypatch):
    monkeypatch.setattr(QueryKeyChecker, "query_key_names", QueryKeyChecker.query_key_names)
    monkeypatch.setattr(QueryKeyChecker, "query_fn_names", QueryKeyChecker.query_fn_names)

    QueryKeyChecker.parse_options(SimpleNamespace(query_key_names=["cache_key", " "], query_fn_names=["loader"]))

    assert QueryKeyChecker.query_key_names == frozenset({"cache_key"})
    code = "load(cache_key=['todos'], loader=lambda: fetch(id))\n"
    checker = QueryKeyChecker(ast.parse(code), code.splitlines(keepends=True))
    assert len(list(checker.run())) == 1


def test_bad_patterns_example():
    path = Path(__file__).parent.parent / "examples" / "bad_patterns.py"
    code = path.read_text(encoding="utf-8")
    diagnostics = check_source(code)
    assert [(d.node.lineno, d.data["deps"]) for d in diagnostics] == [(24, "page"), (37, "todo_id")]


@pytest.mark.parametrize("before", ["x = 1\n\x0c\n", "label = 'a\u2028b'\n"])
def test_page_break_or_line_separator_before_pair(before):
    code = before + "def todos(id):\n    return use_query(query_key=['todos'], query_fn=lambda: fetch(id))\n"
    diagnostics = check_source(code)
    assert [d.data["deps"] for d in diagnostics] == ["id"]
    fixed = apply_suggestion(SourceCode(code), diagnostics[0].suggestions[0])
    assert "query_key=['todos', id]" in fixed
    assert check_source(fixed) == []


def test_class_fallback_for_optional_import(missing):
    assert missing("""
        try:
            from fast import Encoder
        except ImportError:
            class Encoder:
                pass

        def todos(id):
            return use_query(query_key=["todos", id], query_fn=lambda: fetch(id, Encoder))
    """) == []
