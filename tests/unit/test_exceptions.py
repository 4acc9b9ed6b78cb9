import pytest

from ravesql.exceptions import (
    ExecutionError,
    ImproperConfigurationError,
    MalformedParametersError,
    MappingError,
    MultipleRowsReturnedError,
    NoDescriptorFoundError,
    NoSuchRowError,
    PreloadError,
    RaveSQLError,
    ResourceError,
    ResourceNotFoundError,
    ResourceReadError,
    ResultCountError,
    wrap_executor_errors,
)


def test_exception_hierarchy() -> None:
    """Every error derives from RaveSQLError."""
    assert issubclass(ResourceNotFoundError, ResourceError)
    assert issubclass(ResourceReadError, ResourceError)
    assert issubclass(PreloadError, ResourceError)
    assert issubclass(NoSuchRowError, ResultCountError)
    assert issubclass(MultipleRowsReturnedError, ResultCountError)

    for error in (
        ImproperConfigurationError,
        ResourceError,
        NoDescriptorFoundError,
        MalformedParametersError,
        MappingError,
        ExecutionError,
        ResultCountError,
    ):
        assert issubclass(error, RaveSQLError)


def test_exception_instantiation() -> None:
    exc = MalformedParametersError("Key-values must be in pairs")
    assert str(exc) == "Key-values must be in pairs"
    assert exc.detail == "Key-values must be in pairs"
    assert repr(exc) == "MalformedParametersError - Key-values must be in pairs"


def test_resource_errors_carry_path() -> None:
    not_found = ResourceNotFoundError("sql/missing.sql")
    assert not_found.path == "sql/missing.sql"
    assert str(not_found) == "SQL file not found: sql/missing.sql"

    read_error = ResourceReadError("sql/broken.sql")
    assert str(read_error) == "Error reading SQL file: sql/broken.sql"

    preload = PreloadError("sql/missing.sql")
    assert preload.path == "sql/missing.sql"
    assert "sql/missing.sql" in str(preload)


def test_no_descriptor_default_message() -> None:
    assert "@sql_path" in str(NoDescriptorFoundError())
    assert str(NoDescriptorFoundError("custom")) == "custom"


def test_result_count_errors() -> None:
    assert "no rows" in str(NoSuchRowError())
    exc = MultipleRowsReturnedError(3)
    assert exc.count == 3
    assert "3 rows" in str(exc)


def test_execution_error_details() -> None:
    exc = ExecutionError("update failed: boom", operation="update", sql="UPDATE t SET a = 1", index=2)
    assert exc.operation == "update"
    assert exc.sql == "UPDATE t SET a = 1"
    assert exc.index == 2
    assert "(batch element 2)" in str(exc)
    assert "SQL: UPDATE t SET a = 1" in str(exc)


def test_wrap_executor_errors_wraps_foreign_exceptions() -> None:
    with pytest.raises(ExecutionError) as exc_info:
        with wrap_executor_errors("query", "SELECT 1"):
            raise ValueError("driver exploded")

    assert isinstance(exc_info.value.__cause__, ValueError)
    assert exc_info.value.operation == "query"
    assert exc_info.value.sql == "SELECT 1"
    assert exc_info.value.index is None
    assert "driver exploded" in str(exc_info.value)


def test_wrap_executor_errors_reads_batch_index() -> None:
    error = RuntimeError("constraint violated")
    error.batch_index = 4  # type: ignore[attr-defined]

    with pytest.raises(ExecutionError) as exc_info:
        with wrap_executor_errors("batch_update"):
            raise error

    assert exc_info.value.index == 4


def test_wrap_executor_errors_passes_domain_errors_through() -> None:
    original = NoSuchRowError()
    with pytest.raises(NoSuchRowError) as exc_info:
        with wrap_executor_errors("query"):
            raise original
    assert exc_info.value is original


def test_exception_chaining() -> None:
    try:
        try:
            raise ValueError("Original error")
        except ValueError as e:
            raise MappingError("Mapped error", dict) from e
    except MappingError as exc:
        assert isinstance(exc.__cause__, ValueError)
        assert exc.schema_type is dict
