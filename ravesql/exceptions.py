from collections.abc import Generator
from contextlib import contextmanager
from typing import Any, Optional

__all__ = (
    "ExecutionError",
    "ImproperConfigurationError",
    "MalformedParametersError",
    "MappingError",
    "MultipleRowsReturnedError",
    "NoDescriptorFoundError",
    "NoSuchRowError",
    "PreloadError",
    "RaveSQLError",
    "ResourceError",
    "ResourceNotFoundError",
    "ResourceReadError",
    "ResultCountError",
    "wrap_executor_errors",
)


class RaveSQLError(Exception):
    """Base exception class from which all RaveSQL exceptions inherit."""

    detail: str

    def __init__(self, *args: Any, detail: str = "") -> None:
        """Initialize ``RaveSQLError``.

        Args:
            *args: args are converted to :class:`str` before passing to :class:`Exception`
            detail: detail of the exception.
        """
        str_args = [str(arg) for arg in args if arg]
        if not detail:
            if str_args:
                detail, *str_args = str_args
            elif hasattr(self, "detail"):
                detail = self.detail
        self.detail = detail
        super().__init__(*str_args)

    def __repr__(self) -> str:
        if self.detail:
            return f"{self.__class__.__name__} - {self.detail}"
        return self.__class__.__name__

    def __str__(self) -> str:
        return " ".join((*self.args, self.detail)).strip()


class ImproperConfigurationError(RaveSQLError):
    """Improper Configuration error.

    Raised when the repository or one of its collaborators is wired inconsistently,
    for example when an operation is registered twice with different SQL paths.
    """


# -- SQL resource errors --
class ResourceError(RaveSQLError):
    """Base class for errors raised while retrieving SQL text."""

    path: str

    def __init__(self, path: str, message: Optional[str] = None) -> None:
        super().__init__(detail=message or f"Error retrieving SQL resource: {path}")
        self.path = path


class ResourceNotFoundError(ResourceError):
    """No SQL resource exists at the requested logical path."""

    def __init__(self, path: str, message: Optional[str] = None) -> None:
        super().__init__(path, message or f"SQL file not found: {path}")


class ResourceReadError(ResourceError):
    """The SQL resource exists but could not be read or decoded."""

    def __init__(self, path: str, message: Optional[str] = None) -> None:
        super().__init__(path, message or f"Error reading SQL file: {path}")


class PreloadError(ResourceError):
    """Preloading stopped at the first path that could not be loaded."""

    def __init__(self, path: str) -> None:
        super().__init__(path, f"Failed to preload SQL for path: {path}")


# -- Operation resolution errors --
class NoDescriptorFoundError(RaveSQLError):
    """No SQL path is declared for the calling operation."""

    def __init__(self, message: Optional[str] = None) -> None:
        if message is None:
            message = "No @sql_path declaration found for the calling operation."
        super().__init__(message)


# -- Parameter errors --
class MalformedParametersError(RaveSQLError):
    """Parameters could not be normalized into a named parameter set."""


# -- Mapping errors --
class MappingError(RaveSQLError):
    """A result row could not be mapped into the requested target type."""

    schema_type: Any

    def __init__(self, message: str, schema_type: Any = None) -> None:
        super().__init__(detail=message)
        self.schema_type = schema_type


# -- Result cardinality errors --
class ResultCountError(RaveSQLError):
    """Base class for single-row queries that did not return exactly one row."""


class NoSuchRowError(ResultCountError):
    """A single row was required but the query returned none."""

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or "Expected exactly one row, but the query returned no rows.")


class MultipleRowsReturnedError(ResultCountError):
    """A single row was required but the query returned more than one."""

    count: int

    def __init__(self, count: int, message: Optional[str] = None) -> None:
        super().__init__(message or f"Expected exactly one row, but the query returned {count} rows.")
        self.count = count


# -- Execution errors --
class ExecutionError(RaveSQLError):
    """The underlying executor failed; the original fault is chained as ``__cause__``."""

    operation: str
    sql: Optional[str]
    index: Optional[int]

    def __init__(
        self, message: str, *, operation: str = "execute", sql: Optional[str] = None, index: Optional[int] = None
    ) -> None:
        detail_message = message
        if index is not None:
            detail_message = f"{message} (batch element {index})"
        if sql:
            detail_message = f"{detail_message}\nSQL: {sql}"
        super().__init__(detail=detail_message)
        self.operation = operation
        self.sql = sql
        self.index = index


@contextmanager
def wrap_executor_errors(operation: str, sql: Optional[str] = None) -> Generator[None, None, None]:
    """Convert executor faults into :class:`ExecutionError`.

    RaveSQL errors raised inside the block pass through untouched, so a fault is
    wrapped exactly once.

    Args:
        operation: Name of the engine operation, used in the error message.
        sql: SQL text being executed.

    Raises:
        ExecutionError: If the block raised anything other than a :class:`RaveSQLError`.
    """
    try:
        yield
    except RaveSQLError:
        raise
    except Exception as exc:
        msg = f"{operation} failed: {exc}"
        raise ExecutionError(msg, operation=operation, sql=sql, index=getattr(exc, "batch_index", None)) from exc
