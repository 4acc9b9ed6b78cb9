"""Unit tests for operation declarations and SQL path resolution."""

import asyncio
import threading
from enum import Enum
from typing import Callable

import pytest

from ravesql.exceptions import ImproperConfigurationError, NoDescriptorFoundError
from ravesql.resolver import (
    CallerResolver,
    OperationDescriptor,
    OperationRegistry,
    current_operation,
    default_registry,
    sql_path,
)


class PersonQuery(Enum):
    SELECT_ALL = "select_all"
    SELECT_BY_ID = "select_by_id"


def test_register_and_get(registry: OperationRegistry) -> None:
    descriptor = registry.register("people.select_all", "sql/person/select_all.sql")

    assert descriptor == OperationDescriptor("people.select_all", "sql/person/select_all.sql")
    assert registry.get("people.select_all") == descriptor
    assert "people.select_all" in registry
    assert len(registry) == 1
    assert list(registry) == [descriptor]


def test_register_same_path_twice_is_noop(registry: OperationRegistry) -> None:
    first = registry.register("people.select_all", "sql/person/select_all.sql")
    second = registry.register("people.select_all", "sql/person/select_all.sql")

    assert first == second
    assert len(registry) == 1


def test_register_conflicting_path_fails(registry: OperationRegistry) -> None:
    registry.register("people.select_all", "sql/person/select_all.sql")

    with pytest.raises(ImproperConfigurationError):
        registry.register("people.select_all", "sql/person/select_by_id.sql")
    assert registry.get("people.select_all").path == "sql/person/select_all.sql"  # type: ignore[union-attr]


def test_register_empty_path_fails(registry: OperationRegistry) -> None:
    with pytest.raises(ImproperConfigurationError):
        registry.register("people.nothing", "")


def test_enum_operation_identifiers(registry: OperationRegistry) -> None:
    registry.register(PersonQuery.SELECT_BY_ID, "sql/person/select_by_id.sql")

    assert PersonQuery.SELECT_BY_ID in registry
    assert PersonQuery.SELECT_ALL not in registry
    assert registry.get(PersonQuery.SELECT_BY_ID).operation == "PersonQuery.SELECT_BY_ID"  # type: ignore[union-attr]
    assert 42 not in registry


def test_clear(registry: OperationRegistry) -> None:
    registry.register("a", "sql/a.sql")
    registry.clear()
    assert len(registry) == 0


def test_sql_path_publishes_descriptor_while_running(registry: OperationRegistry) -> None:
    @sql_path("sql/person/select_all.sql", registry=registry)
    def select_all() -> "OperationDescriptor | None":
        return current_operation()

    assert current_operation() is None
    descriptor = select_all()
    assert descriptor is not None
    assert descriptor.path == "sql/person/select_all.sql"
    assert descriptor.operation.endswith("select_all")
    assert current_operation() is None
    assert select_all.__sql_operation__ == descriptor  # type: ignore[attr-defined]
    assert descriptor.operation in registry


def test_sql_path_explicit_operation(registry: OperationRegistry) -> None:
    @sql_path("sql/person/select_by_id.sql", operation=PersonQuery.SELECT_BY_ID, registry=registry)
    def select_by_id() -> str:
        return CallerResolver(registry).resolve_path()

    assert select_by_id() == "sql/person/select_by_id.sql"
    assert CallerResolver(registry).resolve_path(PersonQuery.SELECT_BY_ID) == "sql/person/select_by_id.sql"


def _make_path_reader(path: str, registry: OperationRegistry) -> "Callable[[], str]":
    @sql_path(path, registry=registry)
    def read_path() -> str:
        return CallerResolver(registry).resolve_path()

    return read_path


def test_factory_built_operations_keep_their_own_paths(registry: OperationRegistry) -> None:
    read_a = _make_path_reader("sql/person/select_all.sql", registry)
    read_b = _make_path_reader("sql/person/select_by_id.sql", registry)

    assert read_a() == "sql/person/select_all.sql"
    assert read_b() == "sql/person/select_by_id.sql"
    assert read_b.__sql_operation__.path == "sql/person/select_by_id.sql"  # type: ignore[attr-defined]
    assert len(registry) == 1


def test_explicit_operation_rebinding_still_fails(registry: OperationRegistry) -> None:
    @sql_path("sql/person/select_all.sql", operation="people.list", registry=registry)
    def first() -> None: ...

    with pytest.raises(ImproperConfigurationError):

        @sql_path("sql/person/select_by_id.sql", operation="people.list", registry=registry)
        def second() -> None: ...


def test_sql_path_with_empty_registry_does_not_use_default(registry: OperationRegistry) -> None:
    assert len(registry) == 0

    @sql_path("sql/person/insert.sql", registry=registry)
    def insert() -> None: ...

    assert insert.__sql_operation__.operation in registry  # type: ignore[attr-defined]
    assert default_registry.get(insert.__sql_operation__.operation) is None  # type: ignore[attr-defined]


def test_nearest_enclosing_operation_wins(registry: OperationRegistry) -> None:
    resolver = CallerResolver(registry)

    @sql_path("sql/inner.sql", registry=registry)
    def inner() -> str:
        return resolver.resolve_path()

    @sql_path("sql/outer.sql", registry=registry)
    def outer() -> "tuple[str, str, str]":
        before = resolver.resolve_path()
        nested = inner()
        after = resolver.resolve_path()
        return before, nested, after

    assert outer() == ("sql/outer.sql", "sql/inner.sql", "sql/outer.sql")


def test_undecorated_helper_sees_enclosing_operation(registry: OperationRegistry) -> None:
    resolver = CallerResolver(registry)

    def helper() -> str:
        return resolver.resolve_path()

    @sql_path("sql/person/select_all.sql", registry=registry)
    def operation() -> str:
        return helper()

    assert operation() == "sql/person/select_all.sql"


def test_resolve_without_declaration_fails(registry: OperationRegistry) -> None:
    resolver = CallerResolver(registry)

    with pytest.raises(NoDescriptorFoundError):
        resolver.resolve_path()
    with pytest.raises(NoDescriptorFoundError, match="unknown.operation"):
        resolver.resolve_path("unknown.operation")


def test_descriptor_is_reset_after_exception(registry: OperationRegistry) -> None:
    @sql_path("sql/fails.sql", registry=registry)
    def failing() -> None:
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        failing()
    assert current_operation() is None


def test_async_operations(registry: OperationRegistry) -> None:
    resolver = CallerResolver(registry)

    @sql_path("sql/first.sql", registry=registry)
    async def first() -> str:
        await asyncio.sleep(0)
        return resolver.resolve_path()

    @sql_path("sql/second.sql", registry=registry)
    async def second() -> str:
        await asyncio.sleep(0)
        return resolver.resolve_path()

    async def run_both() -> "list[str]":
        return list(await asyncio.gather(first(), second()))

    assert asyncio.run(run_both()) == ["sql/first.sql", "sql/second.sql"]


def test_operations_are_thread_local(registry: OperationRegistry) -> None:
    resolver = CallerResolver(registry)
    entered = threading.Event()
    release = threading.Event()
    seen: "list[OperationDescriptor | None]" = []

    @sql_path("sql/blocking.sql", registry=registry)
    def blocking() -> None:
        entered.set()
        release.wait(timeout=5)

    worker = threading.Thread(target=blocking)
    worker.start()
    assert entered.wait(timeout=5)
    seen.append(current_operation())
    release.set()
    worker.join(timeout=5)

    assert seen == [None]
    with pytest.raises(NoDescriptorFoundError):
        resolver.resolve_path()
