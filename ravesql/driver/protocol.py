"""Executor capability consumed by the execution engine."""

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

__all__ = ("Executor",)


@runtime_checkable
class Executor(Protocol):
    """Runs SQL with named parameters against a database.

    Implementations own the connection and its transaction. SQL is passed
    with ``:name`` placeholders; converting to the driver's paramstyle is the
    implementation's concern.
    """

    def fetch_all(self, sql: str, parameters: "Mapping[str, Any]") -> "list[dict[str, Any]]":
        """Run a query and return every row as a column name to value mapping."""
        ...

    def execute(self, sql: str, parameters: "Mapping[str, Any]") -> int:
        """Run a data-changing statement and return the affected row count."""
        ...

    def execute_many(self, sql: str, parameter_sets: "Sequence[Mapping[str, Any]]") -> "list[int]":
        """Run one statement per parameter set and return one count per set, in order.

        When element ``i`` fails, implementations either raise
        :class:`~ravesql.exceptions.ExecutionError` with ``index=i`` (as
        :class:`~ravesql.driver.DBAPIExecutor` does) or set ``batch_index = i``
        on the exception they let escape. The engine reports ``i`` either way.
        """
        ...
