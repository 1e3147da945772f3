"""Example file with query keys missing dependencies, for testing."""

from dataclasses import dataclass

from api import fetch_todo, fetch_todos, use_query

PAGE_SIZE = 20


@dataclass
class Filters:
    status: str


def todo_list(status: str, page: int):
    # GOOD - everything the query reads is in the key
    good = use_query(
        query_key=["todos", status, page, PAGE_SIZE],
        query_fn=lambda: fetch_todos(status=status, page=page, limit=PAGE_SIZE, filters=Filters),
    )

    # BAD - page is missing
    bad = use_query(
        query_key=["todos", status],
        query_fn=lambda: fetch_todos(status=status, page=page),
    )
    return good, bad


def todo_detail(todo_id: int):
    key = ["todo"]

    def load(expand: bool = False) -> dict:
        return fetch_todo(todo_id, expand=expand)

    # BAD - todo_id is missing from the key bound above
    return use_query({"queryKey": key, "queryFn": load})


def todo_factory(todo_id: int):
    # OK - keys built by a factory are not checked
    return use_query(query_key=todo_keys.detail(todo_id), query_fn=lambda: fetch_todo(todo_id))
