"""Operation-to-SQL-path declarations and their resolution.

An *operation* is an application function that runs one SQL resource. The
association is declared next to the function with :func:`sql_path`::

    class UserRepository:
        def __init__(self, repository: RaveRepository) -> None:
            self.repository = repository

        @sql_path("sql/select_by_id.sql")
        def get(self, user_id: int) -> User:
            return self.repository.query_one(User, "id", user_id)

While ``get`` runs, its descriptor is published in a context variable so that
the repository's implicit-path methods can find the SQL path without being told.
Operations can also be registered under an explicit identifier (a string or an
enum member) and passed as ``operation=`` instead.
"""

import functools
import inspect
import threading
from contextvars import ContextVar
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Optional, TypeVar, Union

from ravesql.exceptions import ImproperConfigurationError, NoDescriptorFoundError
from ravesql.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterator

__all__ = (
    "CallerResolver",
    "OperationDescriptor",
    "OperationRegistry",
    "current_operation",
    "default_registry",
    "sql_path",
)

logger = get_logger("resolver")

FuncT = TypeVar("FuncT", bound=Callable[..., Any])
OperationId = Union[str, Enum]


@dataclass(frozen=True)
class OperationDescriptor:
    """Static association between an operation identifier and a SQL resource path."""

    operation: str
    path: str


_current_operation: ContextVar[Optional[OperationDescriptor]] = ContextVar("ravesql_current_operation", default=None)


def current_operation() -> "Optional[OperationDescriptor]":
    """Get the descriptor of the innermost running :func:`sql_path` operation.

    Returns:
        The active descriptor or None outside any declared operation.
    """
    return _current_operation.get()


def _operation_key(operation: OperationId) -> str:
    if isinstance(operation, Enum):
        return f"{type(operation).__qualname__}.{operation.name}"
    return operation


class OperationRegistry:
    """Thread-safe mapping of operation identifiers to SQL resource paths."""

    __slots__ = ("_descriptors", "_lock")

    def __init__(self) -> None:
        self._descriptors: dict[str, OperationDescriptor] = {}
        self._lock = threading.Lock()

    def register(self, operation: OperationId, path: str) -> OperationDescriptor:
        """Associate ``operation`` with ``path``.

        Registering the same pair twice is a no-op.

        Args:
            operation: Operation identifier, a string or an enum member.
            path: Logical path of the SQL resource.

        Returns:
            The stored descriptor.

        Raises:
            ImproperConfigurationError: If ``operation`` is already bound to a different path.
        """
        if not path:
            msg = f"Operation {operation!r} must declare a non-empty SQL path"
            raise ImproperConfigurationError(msg)
        key = _operation_key(operation)
        descriptor = OperationDescriptor(operation=key, path=path)
        with self._lock:
            existing = self._descriptors.setdefault(key, descriptor)
        if existing.path != path:
            msg = f"Operation {key!r} is already bound to {existing.path!r}, cannot rebind to {path!r}"
            raise ImproperConfigurationError(msg)
        return existing

    def get(self, operation: OperationId) -> "Optional[OperationDescriptor]":
        with self._lock:
            return self._descriptors.get(_operation_key(operation))

    def clear(self) -> None:
        with self._lock:
            self._descriptors.clear()

    def __contains__(self, operation: object) -> bool:
        if not isinstance(operation, (str, Enum)):
            return False
        with self._lock:
            return _operation_key(operation) in self._descriptors

    def __iter__(self) -> "Iterator[OperationDescriptor]":
        with self._lock:
            return iter(list(self._descriptors.values()))

    def __len__(self) -> int:
        with self._lock:
            return len(self._descriptors)


default_registry = OperationRegistry()
"""Registry used by :func:`sql_path` and :class:`CallerResolver` when none is given."""


def _register_default(registry: OperationRegistry, key: str, path: str) -> OperationDescriptor:
    """Register a declaration under its ``module.qualname`` key.

    Functions built by a factory or in a loop share one qualname. The first
    declaration keeps the key; later ones with another path stay unregistered
    and resolve through the context variable only.
    """
    existing = registry.get(key)
    if path and existing is not None and existing.path != path:
        logger.debug(
            "Operation %s is already bound to %s, leaving %s unregistered",
            key,
            existing.path,
            path,
            extra={"operation": key, "sql_path": path},
        )
        return OperationDescriptor(operation=key, path=path)
    return registry.register(key, path)


def sql_path(
    path: str, *, operation: "Optional[OperationId]" = None, registry: "Optional[OperationRegistry]" = None
) -> "Callable[[FuncT], FuncT]":
    """Declare the SQL resource an operation runs.

    Args:
        path: Logical path of the SQL resource.
        operation: Identifier to register the operation under. Defaults to the
            function's ``module.qualname``.
        registry: Registry to record the declaration in. Defaults to :data:`default_registry`.

    Returns:
        A decorator for sync or async functions.
    """

    def decorator(func: FuncT) -> FuncT:
        target = registry if registry is not None else default_registry
        if operation is not None:
            descriptor = target.register(operation, path)
        else:
            descriptor = _register_default(target, f"{func.__module__}.{func.__qualname__}", path)

        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                token = _current_operation.set(descriptor)
                try:
                    return await func(*args, **kwargs)
                finally:
                    _current_operation.reset(token)

            wrapper: Any = async_wrapper
        else:

            @functools.wraps(func)
            def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
                token = _current_operation.set(descriptor)
                try:
                    return func(*args, **kwargs)
                finally:
                    _current_operation.reset(token)

            wrapper = sync_wrapper

        wrapper.__sql_operation__ = descriptor
        return wrapper  # type: ignore[no-any-return]

    return decorator


class CallerResolver:
    """Determine which SQL resource the calling operation declared.

    Resolution is recomputed on every call; nothing is cached because the calling
    operation differs from call to call.
    """

    __slots__ = ("registry",)

    def __init__(self, registry: "Optional[OperationRegistry]" = None) -> None:
        self.registry = registry if registry is not None else default_registry

    def resolve(self, operation: "Optional[OperationId]" = None) -> OperationDescriptor:
        """Resolve the descriptor for ``operation`` or for the running operation.

        Args:
            operation: Explicit operation identifier. When omitted, the innermost
                running :func:`sql_path` operation is used.

        Raises:
            NoDescriptorFoundError: If no declaration applies.
        """
        if operation is not None:
            descriptor = self.registry.get(operation)
            if descriptor is None:
                msg = f"No SQL path is registered for operation {_operation_key(operation)!r}."
                raise NoDescriptorFoundError(msg)
            return descriptor

        descriptor = _current_operation.get()
        if descriptor is None:
            raise NoDescriptorFoundError
        return descriptor

    def resolve_path(self, operation: "Optional[OperationId]" = None) -> str:
        """Return the SQL path for ``operation`` or for the running operation."""
        descriptor = self.resolve(operation)
        logger.debug("Resolved operation %s to %s", descriptor.operation, descriptor.path)
        return descriptor.path
