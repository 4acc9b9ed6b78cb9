"""Execution engine: runs SQL text through an executor and shapes the result."""

from typing import TYPE_CHECKING, Any, Optional

from ravesql.exceptions import ExecutionError, MultipleRowsReturnedError, NoSuchRowError, wrap_executor_errors
from ravesql.parameters.binder import ParameterBinder
from ravesql.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from ravesql.driver.protocol import Executor
    from ravesql.typing import RawParameters

__all__ = ("ExecutionEngine",)

logger = get_logger("driver.engine")


class ExecutionEngine:
    """Execute SQL with bound parameters and return rows or update counts.

    Any failure raised by the executor that is not already a RaveSQL error is
    wrapped in :class:`~ravesql.exceptions.ExecutionError` with the original
    chained as its cause.

    Batches fail fast: elements run in order and the first failure aborts the
    batch with the failing element's index on the error. The engine never
    commits or rolls back; statements that already ran stay in the
    connection's open transaction.
    """

    __slots__ = ("binder", "executor")

    def __init__(self, executor: "Executor", binder: "Optional[ParameterBinder]" = None) -> None:
        self.executor = executor
        self.binder = binder or ParameterBinder()

    def query(self, sql: str, parameters: "Mapping[str, Any]") -> "list[dict[str, Any]]":
        """Run a query and return every row."""
        with wrap_executor_errors("query", sql):
            rows = self.executor.fetch_all(sql, parameters)
        logger.debug("Query returned %d rows", len(rows), extra={"rows": len(rows)})
        return rows

    def query_one(self, sql: str, parameters: "Mapping[str, Any]") -> "dict[str, Any]":
        """Run a query that must return exactly one row.

        Raises:
            NoSuchRowError: If no row was returned.
            MultipleRowsReturnedError: If more than one row was returned.
        """
        rows = self.query(sql, parameters)
        if not rows:
            raise NoSuchRowError
        if len(rows) > 1:
            raise MultipleRowsReturnedError(len(rows))
        return rows[0]

    def update(self, sql: str, parameters: "Mapping[str, Any]") -> int:
        """Run a data-changing statement and return the affected row count."""
        with wrap_executor_errors("update", sql):
            count = self.executor.execute(sql, parameters)
        logger.debug("Update affected %d rows", count, extra={"affected_rows": count})
        return count

    def batch_update(self, sql: str, items: "Sequence[RawParameters]") -> "list[int]":
        """Run ``sql`` once per element of ``items``.

        Each element is bound with the engine's binder before anything runs, so a
        malformed element fails the batch without touching the database.

        Returns:
            One affected row count per element, in input order.

        Raises:
            ExecutionError: If an element fails, or the executor returns the wrong
                number of counts.
        """
        parameter_sets = self.binder.bind_many(items)
        with wrap_executor_errors("batch_update", sql):
            counts = list(self.executor.execute_many(sql, parameter_sets))
        if len(counts) != len(parameter_sets):
            msg = f"batch_update expected {len(parameter_sets)} update counts, executor returned {len(counts)}"
            raise ExecutionError(msg, operation="batch_update", sql=sql)
        logger.debug("Batch of %d statements executed", len(counts), extra={"batch_size": len(counts)})
        return counts
