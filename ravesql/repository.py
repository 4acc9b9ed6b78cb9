"""The repository façade.

:class:`RaveRepository` is what application code talks to. Every call runs the
same pipeline: resolve the SQL path, load its text through the cache, bind the
parameters, execute, and map the rows.

Two families of methods share that pipeline. The implicit family finds the SQL
path from the operation declared with :func:`~ravesql.resolver.sql_path` (or
from ``operation=``); the ``raw_`` family takes the path as its first argument.
"""

from enum import Enum
from typing import TYPE_CHECKING, Any, Optional, overload

from ravesql.cache import ResourceCache
from ravesql.config import RepositoryConfig
from ravesql.driver.dbapi import DBAPIExecutor
from ravesql.driver.engine import ExecutionEngine
from ravesql.exceptions import MalformedParametersError, PreloadError, ResourceError
from ravesql.mapping import RowMapper
from ravesql.parameters.binder import ParameterBinder
from ravesql.resolver import CallerResolver
from ravesql.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from ravesql.driver.protocol import Executor
    from ravesql.parameters.binder import ParameterSet
    from ravesql.resolver import OperationId, OperationRegistry
    from ravesql.storage.protocol import ResourceStore
    from ravesql.typing import RawParameters, SchemaT

__all__ = ("RaveRepository",)

logger = get_logger("repository")


class RaveRepository:
    """Run externally stored SQL and map the results.

    Parameters can be given to any query or update as alternating names and
    values, as a single mapping, object, :class:`~ravesql.parameters.ParameterSet`
    or list, or through ``params=``::

        repository.raw_query("sql/by_name.sql", User, "first_name", "Alice")
        repository.raw_query("sql/by_name.sql", User, {"first_name": "Alice"})
        repository.raw_query("sql/by_name.sql", User, params=user)

    Args:
        executor: Executes SQL against the database.
        store: Source of SQL text. Defaults to the store described by ``config``.
        config: Repository configuration.
        registry: Registry used to resolve implicit SQL paths.
        binder: Parameter binder.
        mapper: Row mapper.
    """

    __slots__ = ("_cache", "_config", "_engine", "_mapper", "_resolver")

    def __init__(
        self,
        executor: "Executor",
        *,
        store: "Optional[ResourceStore]" = None,
        config: "Optional[RepositoryConfig]" = None,
        registry: "Optional[OperationRegistry]" = None,
        binder: "Optional[ParameterBinder]" = None,
        mapper: "Optional[RowMapper]" = None,
    ) -> None:
        self._config = config or RepositoryConfig()
        self._cache = ResourceCache(store or self._config.create_store(), encoding=self._config.encoding)
        self._resolver = CallerResolver(registry)
        self._engine = ExecutionEngine(executor, binder or ParameterBinder())
        self._mapper = mapper or RowMapper()
        if self._config.preload_paths:
            self.preload(self._config.preload_paths)

    @classmethod
    def from_connection(
        cls, connection: Any, config: "Optional[RepositoryConfig]" = None, **kwargs: Any
    ) -> "RaveRepository":
        """Create a repository executing through a DB-API connection.

        Args:
            connection: An open PEP 249 connection.
            config: Repository configuration; its ``parameter_style`` is passed to the executor.
            **kwargs: Passed through to the constructor.
        """
        config = config or RepositoryConfig()
        executor = DBAPIExecutor(connection, parameter_style=config.parameter_style)
        return cls(executor, config=config, **kwargs)

    @property
    def cache(self) -> ResourceCache:
        return self._cache

    @property
    def registry(self) -> "OperationRegistry":
        return self._resolver.registry

    @property
    def config(self) -> RepositoryConfig:
        return self._config

    @property
    def engine(self) -> ExecutionEngine:
        return self._engine

    # -- Implicit-path operations --
    @overload
    def query(
        self,
        schema_type: None,
        *key_values: Any,
        params: "RawParameters" = None,
        operation: "Optional[OperationId]" = None,
    ) -> "list[dict[str, Any]]": ...
    @overload
    def query(
        self,
        schema_type: "type[SchemaT]",
        *key_values: Any,
        params: "RawParameters" = None,
        operation: "Optional[OperationId]" = None,
    ) -> "list[SchemaT]": ...

    def query(
        self,
        schema_type: Any,
        *key_values: Any,
        params: "RawParameters" = None,
        operation: "Optional[OperationId]" = None,
    ) -> "list[Any]":
        """Run the calling operation's query and map every row onto ``schema_type``.

        Args:
            schema_type: Target type for each row, or None for dicts.
            *key_values: Alternating parameter names and values, or one parameter object.
            params: Parameters in any admissible shape, instead of ``key_values``.
            operation: Explicit operation identifier. Defaults to the running
                :func:`~ravesql.resolver.sql_path` operation.

        Raises:
            NoDescriptorFoundError: If no SQL path is declared for the operation.
        """
        return self.raw_query(self._resolver.resolve_path(operation), schema_type, *key_values, params=params)

    @overload
    def query_one(
        self,
        schema_type: None,
        *key_values: Any,
        params: "RawParameters" = None,
        operation: "Optional[OperationId]" = None,
    ) -> "dict[str, Any]": ...
    @overload
    def query_one(
        self,
        schema_type: "type[SchemaT]",
        *key_values: Any,
        params: "RawParameters" = None,
        operation: "Optional[OperationId]" = None,
    ) -> "SchemaT": ...

    def query_one(
        self,
        schema_type: Any,
        *key_values: Any,
        params: "RawParameters" = None,
        operation: "Optional[OperationId]" = None,
    ) -> Any:
        """Run the calling operation's query, which must return exactly one row.

        Raises:
            NoSuchRowError: If the query returned no rows.
            MultipleRowsReturnedError: If the query returned more than one row.
        """
        return self.raw_query_one(self._resolver.resolve_path(operation), schema_type, *key_values, params=params)

    def update(
        self, *key_values: Any, params: "RawParameters" = None, operation: "Optional[OperationId]" = None
    ) -> int:
        """Run the calling operation's statement and return the affected row count."""
        return self.raw_update(self._resolver.resolve_path(operation), *key_values, params=params)

    def batch_update(
        self, items: "Sequence[RawParameters]", *, operation: "Optional[OperationId]" = None
    ) -> "list[int]":
        """Run the calling operation's statement once per element of ``items``."""
        return self.raw_batch_update(self._resolver.resolve_path(operation), items)

    # -- Explicit-path operations --
    def raw_query(
        self, path: str, schema_type: Any, *key_values: Any, params: "RawParameters" = None
    ) -> "list[Any]":
        """Run the query stored at ``path`` and map every row onto ``schema_type``."""
        sql = self._cache.load(path)
        rows = self._engine.query(sql, self._bind(key_values, params))
        return self._mapper.map_rows(rows, schema_type)

    def raw_query_one(self, path: str, schema_type: Any, *key_values: Any, params: "RawParameters" = None) -> Any:
        """Run the query stored at ``path``, which must return exactly one row."""
        sql = self._cache.load(path)
        row = self._engine.query_one(sql, self._bind(key_values, params))
        return self._mapper.map_row(row, schema_type)

    def raw_update(self, path: str, *key_values: Any, params: "RawParameters" = None) -> int:
        """Run the statement stored at ``path`` and return the affected row count."""
        sql = self._cache.load(path)
        return self._engine.update(sql, self._bind(key_values, params))

    def raw_batch_update(self, path: str, items: "Sequence[RawParameters]") -> "list[int]":
        """Run the statement stored at ``path`` once per element of ``items``.

        Returns:
            One affected row count per element, in input order.
        """
        sql = self._cache.load(path)
        return self._engine.batch_update(sql, items)

    # -- Cache management --
    def preload(self, paths: "Iterable[str]") -> None:
        """Load ``paths`` into the cache, in order.

        Paths loaded before a failure stay cached.

        Raises:
            PreloadError: If a path cannot be loaded; the original error is chained.
        """
        loaded = 0
        for path in paths:
            try:
                self._cache.load(path)
            except ResourceError as e:
                logger.exception("Failed to preload SQL resource %s", path, extra={"sql_path": path})
                raise PreloadError(path) from e
            loaded += 1
        logger.info("Preloaded %d SQL resources", loaded, extra={"preloaded": loaded})

    def clear_cache(self) -> None:
        """Drop every cached SQL text; later calls reload from the store."""
        self._cache.invalidate_all()

    def _bind(self, key_values: "tuple[Any, ...]", params: "RawParameters") -> "ParameterSet":
        return self._engine.binder.bind(_collect_parameters(key_values, params))

    def __repr__(self) -> str:
        return f"RaveRepository(executor={self._engine.executor!r}, cache={self._cache!r})"


def _collect_parameters(key_values: "tuple[Any, ...]", params: "RawParameters") -> "RawParameters":
    """Pick the raw parameters of one call from its positional values and ``params=``."""
    if not key_values:
        return params
    if params is not None:
        msg = "Pass parameters either positionally or with params=, not both"
        raise MalformedParametersError(msg)
    if len(key_values) == 1 and not isinstance(key_values[0], (str, Enum)):
        return key_values[0]
    return key_values

