"""RaveSQL: run externally stored SQL and map the results onto Python types."""

from ravesql import exceptions
from ravesql.__metadata__ import __version__
from ravesql.cache import CacheStats, ResourceCache, SqlResource
from ravesql.config import RepositoryConfig
from ravesql.driver import DBAPIExecutor, ExecutionEngine, Executor
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
)
from ravesql.mapping import RowMapper, to_value_type
from ravesql.parameters import ParameterBinder, ParameterSet, ParameterShape, ParameterStyle
from ravesql.repository import RaveRepository
from ravesql.resolver import (
    CallerResolver,
    OperationDescriptor,
    OperationRegistry,
    current_operation,
    default_registry,
    sql_path,
)
from ravesql.storage import FileSystemResourceStore, PackageResourceStore, ResourceStore

__all__ = (
    "CacheStats",
    "CallerResolver",
    "DBAPIExecutor",
    "ExecutionEngine",
    "ExecutionError",
    "Executor",
    "FileSystemResourceStore",
    "ImproperConfigurationError",
    "MalformedParametersError",
    "MappingError",
    "MultipleRowsReturnedError",
    "NoDescriptorFoundError",
    "NoSuchRowError",
    "OperationDescriptor",
    "OperationRegistry",
    "PackageResourceStore",
    "ParameterBinder",
    "ParameterSet",
    "ParameterShape",
    "ParameterStyle",
    "PreloadError",
    "RaveRepository",
    "RaveSQLError",
    "RepositoryConfig",
    "ResourceCache",
    "ResourceError",
    "ResourceNotFoundError",
    "ResourceReadError",
    "ResourceStore",
    "ResultCountError",
    "RowMapper",
    "SqlResource",
    "__version__",
    "current_operation",
    "default_registry",
    "exceptions",
    "sql_path",
    "to_value_type",
)
