"""Normalization of caller-supplied parameters into a named parameter set.

Every query and update passes through :meth:`ParameterBinder.bind`, which
accepts one of the admissible shapes and produces a :class:`ParameterSet`:

- ``None``: no parameters
- a :class:`ParameterSet`: passed through unchanged
- a mapping: copied entry by entry
- a ``list``/``tuple`` of alternating names and values
- any structured object: its declared fields, read by name
"""

import dataclasses
from collections.abc import Mapping, Sequence
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Optional

from ravesql.exceptions import MalformedParametersError
from ravesql.utils.logging import get_logger
from ravesql.utils.type_guards import (
    is_attrs_instance,
    is_dataclass_instance,
    is_dict,
    is_key_value_sequence,
    is_msgspec_struct,
    is_namedtuple_instance,
    is_pydantic_model,
    is_scalar,
)

if TYPE_CHECKING:
    from collections.abc import Iterator

    from ravesql.typing import RawParameters

__all__ = ("FieldReader", "ParameterBinder", "ParameterSet", "ParameterShape", "detect_shape")

logger = get_logger("parameters.binder")

FieldReader = Callable[[Any], Mapping[str, Any]]
"""Callable returning the bindable fields of one object."""


class ParameterSet(dict[str, Any]):
    """Named parameters for one statement execution."""

    def add_value(self, name: str, value: Any) -> "ParameterSet":
        """Set ``name`` to ``value`` and return the set for chaining."""
        self[name] = value
        return self

    def __repr__(self) -> str:
        return f"ParameterSet({dict.__repr__(self)})"


class ParameterShape(str, Enum):
    """The admissible shapes of raw parameters."""

    NONE = "none"
    PARAMETER_SET = "parameter_set"
    MAPPING = "mapping"
    KEY_VALUES = "key_values"
    OBJECT = "object"

    def __str__(self) -> str:
        return self.value


def detect_shape(raw: Any) -> ParameterShape:
    """Classify raw parameters.

    Raises:
        MalformedParametersError: If ``raw`` is a scalar, which carries no parameter names.
    """
    if raw is None:
        return ParameterShape.NONE
    if isinstance(raw, ParameterSet):
        return ParameterShape.PARAMETER_SET
    if is_dict(raw):
        return ParameterShape.MAPPING
    if is_key_value_sequence(raw):
        return ParameterShape.KEY_VALUES
    if is_scalar(raw) or isinstance(raw, Enum):
        msg = f"Cannot bind a scalar {type(raw).__name__} value; pass name/value pairs, a mapping or an object"
        raise MalformedParametersError(msg)
    return ParameterShape.OBJECT


def _parameter_name(name: Any, index: int) -> str:
    if isinstance(name, Enum):
        if isinstance(name.value, str):
            return name.value
    elif isinstance(name, str):
        return name
    msg = f"Parameter name at position {index} must be a string, got {type(name).__name__}"
    raise MalformedParametersError(msg)


def _read_dataclass(obj: Any) -> "dict[str, Any]":
    return {field.name: getattr(obj, field.name) for field in dataclasses.fields(obj)}


def _read_msgspec(obj: Any) -> "dict[str, Any]":
    return {name: getattr(obj, name) for name in obj.__struct_fields__}


def _read_pydantic(obj: Any) -> "dict[str, Any]":
    return {name: getattr(obj, name) for name in type(obj).model_fields}


def _read_attrs(obj: Any) -> "dict[str, Any]":
    import attrs

    return {field.name: getattr(obj, field.name) for field in attrs.fields(type(obj))}


def _read_namedtuple(obj: Any) -> "dict[str, Any]":
    return dict(obj._asdict())


def _iter_public_names(obj: Any) -> "Iterator[str]":
    seen: set[str] = set()
    for cls in type(obj).__mro__:
        for name in getattr(cls, "__slots__", ()):
            if isinstance(name, str) and not name.startswith("_") and name not in seen:
                seen.add(name)
                yield name
    for name in getattr(obj, "__dict__", {}):
        if not name.startswith("_") and name not in seen:
            seen.add(name)
            yield name
    for cls in type(obj).__mro__:
        for name, member in vars(cls).items():
            if isinstance(member, property) and not name.startswith("_") and name not in seen:
                seen.add(name)
                yield name


def _read_plain_object(obj: Any) -> "dict[str, Any]":
    values: dict[str, Any] = {}
    for name in _iter_public_names(obj):
        try:
            values[name] = getattr(obj, name)
        except Exception as e:  # noqa: BLE001
            logger.debug("Skipping unreadable field %s.%s: %s", type(obj).__name__, name, e)
    return values


class ParameterBinder:
    """Turn raw parameters of any admissible shape into a :class:`ParameterSet`.

    Objects are flattened through an explicit per-type field declaration: dataclass
    fields, msgspec Struct fields, pydantic ``model_fields``, attrs fields and
    namedtuple fields. Other objects expose their public instance attributes,
    ``__slots__`` and readable properties. A custom reader registered with
    :meth:`register` takes precedence for its type and subclasses.
    """

    __slots__ = ("_readers",)

    def __init__(self, readers: "Optional[Mapping[type, FieldReader]]" = None) -> None:
        self._readers: dict[type, FieldReader] = dict(readers or {})

    def register(self, type_: type, reader: FieldReader) -> None:
        """Use ``reader`` to flatten instances of ``type_``."""
        self._readers[type_] = reader

    def bind(self, raw: "RawParameters" = None) -> ParameterSet:
        """Normalize ``raw`` into a :class:`ParameterSet`.

        Args:
            raw: Parameters in any admissible shape.

        Returns:
            A fresh parameter set, or ``raw`` itself when it already is one.

        Raises:
            MalformedParametersError: If ``raw`` is a scalar, an odd-length
                name/value sequence, or uses non-string names.
        """
        shape = detect_shape(raw)
        if shape is ParameterShape.NONE:
            return ParameterSet()
        if shape is ParameterShape.PARAMETER_SET:
            return raw  # type: ignore[return-value]
        if shape is ParameterShape.MAPPING:
            return self._bind_mapping(raw)
        if shape is ParameterShape.KEY_VALUES:
            return self._bind_key_values(raw)
        return self._bind_object(raw)

    def bind_many(self, items: "Sequence[RawParameters]") -> "list[ParameterSet]":
        """Bind each element of ``items`` in order."""
        return [self.bind(item) for item in items]

    @staticmethod
    def _bind_mapping(raw: "Mapping[Any, Any]") -> ParameterSet:
        parameters = ParameterSet()
        for name, value in raw.items():
            if isinstance(name, Enum) and isinstance(name.value, str):
                name = name.value
            elif not isinstance(name, str):
                msg = f"Parameter mapping keys must be strings, got {type(name).__name__}"
                raise MalformedParametersError(msg)
            parameters[name] = value
        return parameters

    @staticmethod
    def _bind_key_values(raw: "Sequence[Any]") -> ParameterSet:
        if len(raw) % 2 != 0:
            msg = f"Key-values must be in pairs, got {len(raw)} items"
            raise MalformedParametersError(msg)
        parameters = ParameterSet()
        for index in range(0, len(raw), 2):
            parameters[_parameter_name(raw[index], index)] = raw[index + 1]
        return parameters

    def _bind_object(self, raw: Any) -> ParameterSet:
        return ParameterSet(self._reader_for(raw)(raw))

    def _reader_for(self, obj: Any) -> FieldReader:
        for cls in type(obj).__mro__:
            reader = self._readers.get(cls)
            if reader is not None:
                return reader
        if is_dataclass_instance(obj):
            return _read_dataclass
        if is_msgspec_struct(obj):
            return _read_msgspec
        if is_pydantic_model(obj):
            return _read_pydantic
        if is_attrs_instance(obj):
            return _read_attrs
        if is_namedtuple_instance(obj):
            return _read_namedtuple
        return _read_plain_object
