"""Executor for any PEP 249 (DB-API 2.0) connection."""

import contextlib
import sys
from typing import TYPE_CHECKING, Any, Optional, Union

from ravesql.exceptions import ExecutionError
from ravesql.parameters.styles import ParameterStyle, convert
from ravesql.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

__all__ = ("DBAPICursor", "DBAPIExecutor", "detect_paramstyle")

logger = get_logger("driver.dbapi")


def detect_paramstyle(connection: Any) -> ParameterStyle:
    """Read the ``paramstyle`` of the driver module that created ``connection``.

    Falls back to ``named`` when the module does not declare a supported style.
    """
    module_name = type(connection).__module__.split(".", 1)[0]
    module = sys.modules.get(module_name)
    style = getattr(module, "paramstyle", None)
    try:
        return ParameterStyle(style)
    except ValueError:
        logger.debug("Driver module %s has no usable paramstyle (%r); using named", module_name, style)
        return ParameterStyle.NAMED


class DBAPICursor:
    """Context manager for DB-API cursor management."""

    def __init__(self, connection: Any) -> None:
        self.connection = connection
        self.cursor: Optional[Any] = None

    def __enter__(self) -> Any:
        self.cursor = self.connection.cursor()
        return self.cursor

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self.cursor is not None:
            with contextlib.suppress(Exception):
                self.cursor.close()


class DBAPIExecutor:
    """Run SQL through a DB-API connection.

    A cursor is opened and closed for every call. Transactions are left to the
    owner of the connection: nothing here commits or rolls back.

    Args:
        connection: An open PEP 249 connection.
        parameter_style: Paramstyle the driver expects. Defaults to the
            ``paramstyle`` attribute of the driver module.
    """

    __slots__ = ("connection", "parameter_style")

    def __init__(
        self, connection: Any, *, parameter_style: "Optional[Union[ParameterStyle, str]]" = None
    ) -> None:
        self.connection = connection
        self.parameter_style = (
            ParameterStyle(parameter_style) if parameter_style is not None else detect_paramstyle(connection)
        )

    def fetch_all(self, sql: str, parameters: "Mapping[str, Any]") -> "list[dict[str, Any]]":
        statement, driver_parameters = convert(sql, parameters, self.parameter_style)
        with DBAPICursor(self.connection) as cursor:
            cursor.execute(statement, driver_parameters)
            if not cursor.description:
                return []
            column_names = [column[0] for column in cursor.description]
            return [dict(zip(column_names, row)) for row in cursor.fetchall()]

    def execute(self, sql: str, parameters: "Mapping[str, Any]") -> int:
        statement, driver_parameters = convert(sql, parameters, self.parameter_style)
        with DBAPICursor(self.connection) as cursor:
            cursor.execute(statement, driver_parameters)
            return int(cursor.rowcount)

    def execute_many(self, sql: str, parameter_sets: "Sequence[Mapping[str, Any]]") -> "list[int]":
        """Run ``sql`` once per parameter set.

        ``executemany`` reports one total, so each element runs separately to
        get its own row count.

        Raises:
            ExecutionError: If an element fails; ``index`` names the element.
        """
        counts: list[int] = []
        with DBAPICursor(self.connection) as cursor:
            for index, parameters in enumerate(parameter_sets):
                statement, driver_parameters = convert(sql, parameters, self.parameter_style)
                try:
                    cursor.execute(statement, driver_parameters)
                except Exception as e:
                    msg = f"execute_many failed: {e}"
                    raise ExecutionError(msg, operation="execute_many", sql=sql, index=index) from e
                counts.append(int(cursor.rowcount))
        return counts

    def __repr__(self) -> str:
        return f"DBAPIExecutor(connection={self.connection!r}, parameter_style={self.parameter_style.value!r})"
