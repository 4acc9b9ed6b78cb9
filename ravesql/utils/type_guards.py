"""Type guard functions for runtime type checking in RaveSQL.

This module provides type-safe runtime checks used by the parameter binder and
the row mapper to decide how an object exposes its fields.
"""

import datetime
from collections.abc import Mapping
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from msgspec import Struct
from typing_extensions import is_typeddict

from ravesql.typing import ATTRS_INSTALLED, PYDANTIC_INSTALLED

if TYPE_CHECKING:
    from typing_extensions import TypeGuard

__all__ = (
    "is_attrs_instance",
    "is_attrs_schema",
    "is_dataclass",
    "is_dataclass_instance",
    "is_dict",
    "is_key_value_sequence",
    "is_msgspec_struct",
    "is_namedtuple_instance",
    "is_pydantic_model",
    "is_scalar",
    "is_typed_dict",
)

_SCALAR_TYPES = (str, bytes, bytearray, int, float, bool, Decimal, datetime.date, datetime.time)


def is_dataclass_instance(obj: Any) -> bool:
    """Check if an object is a dataclass instance.

    Args:
        obj: An object to check.

    Returns:
        True if the object is a dataclass instance.
    """
    return not isinstance(obj, type) and hasattr(type(obj), "__dataclass_fields__")


def is_dataclass(obj: Any) -> bool:
    """Check if an object is a dataclass class or instance.

    Args:
        obj: Value to check.

    Returns:
        bool
    """
    if isinstance(obj, type) and hasattr(obj, "__dataclass_fields__"):
        return True
    return is_dataclass_instance(obj)


def is_msgspec_struct(obj: Any) -> bool:
    """Check if a value is a msgspec Struct class or instance.

    Args:
        obj: Value to check.

    Returns:
        bool
    """
    if isinstance(obj, type):
        return issubclass(obj, Struct)
    return isinstance(obj, Struct)


def is_pydantic_model(obj: Any) -> bool:
    """Check if a value is a pydantic model class or instance.

    Args:
        obj: Value to check.

    Returns:
        bool
    """
    if not PYDANTIC_INSTALLED:
        return False
    from pydantic import BaseModel

    if isinstance(obj, type):
        return issubclass(obj, BaseModel)
    return isinstance(obj, BaseModel)


def is_attrs_schema(cls: Any) -> bool:
    """Check if the given class is an attrs class."""
    if not ATTRS_INSTALLED or not isinstance(cls, type):
        return False
    import attrs

    return attrs.has(cls)


def is_attrs_instance(obj: Any) -> bool:
    """Check if the given object is an instance of an attrs class."""
    return not isinstance(obj, type) and is_attrs_schema(type(obj))


def is_typed_dict(obj: Any) -> bool:
    """Check if an object is a TypedDict class."""
    return isinstance(obj, type) and is_typeddict(obj)


def is_namedtuple_instance(obj: Any) -> bool:
    """Check if an object is an instance of a ``collections.namedtuple`` or ``typing.NamedTuple``."""
    return isinstance(obj, tuple) and hasattr(type(obj), "_fields")


def is_dict(obj: Any) -> "TypeGuard[Mapping[str, Any]]":
    """Check if a value is a mapping.

    Args:
        obj: Value to check.

    Returns:
        bool
    """
    return isinstance(obj, Mapping)


def is_key_value_sequence(obj: Any) -> "TypeGuard[list[Any] | tuple[Any, ...]]":
    """Check if a value is a plain list or tuple of alternating names and values.

    Named tuples carry their own field names and are treated as objects instead.
    """
    return isinstance(obj, (list, tuple)) and not is_namedtuple_instance(obj)


def is_scalar(obj: Any) -> bool:
    """Check if a value is a scalar that cannot carry named fields."""
    return isinstance(obj, _SCALAR_TYPES)
