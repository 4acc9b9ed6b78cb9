"""Result row mapping.

Rows arrive from the executor as ``dict[str, Any]`` keyed by column name. The
:class:`RowMapper` turns each row into an instance of the requested target
type, matching columns to fields case-insensitively and coercing values to
the declared field types.
"""

import dataclasses
import datetime
import typing
from collections.abc import Mapping, Sequence
from decimal import Decimal, InvalidOperation
from enum import Enum
from functools import lru_cache
from pathlib import Path, PurePath
from typing import TYPE_CHECKING, Any, Callable, Final, Optional, Union, cast, overload
from uuid import UUID

import msgspec
import msgspec.structs

from ravesql._serialization import decode_json
from ravesql.cache import DEFAULT_ENCODING
from ravesql.exceptions import MappingError
from ravesql.utils.logging import get_logger
from ravesql.utils.type_guards import (
    is_attrs_schema,
    is_dataclass,
    is_msgspec_struct,
    is_pydantic_model,
    is_typed_dict,
)

if TYPE_CHECKING:
    from ravesql.typing import SchemaT

__all__ = ("RowMapper", "to_value_type")

logger = get_logger("mapping")

_BOOL_TRUE_VALUES: Final[frozenset[str]] = frozenset({"true", "1", "yes", "y", "t", "on"})
_BOOL_FALSE_VALUES: Final[frozenset[str]] = frozenset({"false", "0", "no", "n", "f", "off", ""})
_NONE_TYPE: Final = type(None)


def _convert_to_int(value: Any) -> int:
    if isinstance(value, (bool, int, float, Decimal)):
        return int(value)
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            try:
                return int(float(value))
            except ValueError:
                pass
    msg = f"Cannot convert {type(value).__name__} to int"
    raise TypeError(msg)


def _convert_to_str(value: Any) -> str:
    if isinstance(value, (bytes, bytearray, memoryview)):
        try:
            return bytes(value).decode(DEFAULT_ENCODING)
        except UnicodeDecodeError as e:
            msg = f"Cannot decode {type(value).__name__} as {DEFAULT_ENCODING} text: {e}"
            raise TypeError(msg) from e
    return str(value)


def _convert_to_float(value: Any) -> float:
    if isinstance(value, (bool, int, float, Decimal)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            pass
    msg = f"Cannot convert {type(value).__name__} to float"
    raise TypeError(msg)


def _convert_to_bool(value: Any) -> bool:
    if isinstance(value, (int, float, Decimal)):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _BOOL_TRUE_VALUES:
            return True
        if lowered in _BOOL_FALSE_VALUES:
            return False
    msg = f"Cannot convert {type(value).__name__} {value!r} to bool"
    raise TypeError(msg)


def _convert_to_datetime(value: Any) -> datetime.datetime:
    if isinstance(value, datetime.datetime):
        return value
    if isinstance(value, datetime.date):
        return datetime.datetime.combine(value, datetime.time.min)
    if isinstance(value, str):
        try:
            return datetime.datetime.fromisoformat(value)
        except ValueError:
            pass
    msg = f"Cannot convert {type(value).__name__} to datetime"
    raise TypeError(msg)


def _convert_to_date(value: Any) -> datetime.date:
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if isinstance(value, str):
        try:
            return datetime.date.fromisoformat(value)
        except ValueError:
            try:
                return datetime.datetime.fromisoformat(value).date()
            except ValueError:
                pass
    msg = f"Cannot convert {type(value).__name__} to date"
    raise TypeError(msg)


def _convert_to_time(value: Any) -> datetime.time:
    if isinstance(value, datetime.datetime):
        return value.time()
    if isinstance(value, datetime.time):
        return value
    if isinstance(value, str):
        try:
            return datetime.time.fromisoformat(value)
        except ValueError:
            pass
    msg = f"Cannot convert {type(value).__name__} to time"
    raise TypeError(msg)


def _convert_to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, float, str)) and not isinstance(value, bool):
        try:
            return Decimal(str(value))
        except InvalidOperation:
            pass
    msg = f"Cannot convert {type(value).__name__} to Decimal"
    raise TypeError(msg)


def _convert_to_uuid(value: Any) -> UUID:
    if isinstance(value, UUID):
        return value
    try:
        if isinstance(value, str):
            return UUID(value)
        if isinstance(value, bytes):
            return UUID(bytes=value)
    except ValueError:
        pass
    msg = f"Cannot convert {type(value).__name__} to UUID"
    raise TypeError(msg)


def _convert_to_path(value: Any) -> Path:
    if isinstance(value, Path):
        return value
    if isinstance(value, (str, PurePath)):
        return Path(value)
    msg = f"Cannot convert {type(value).__name__} to Path"
    raise TypeError(msg)


def _parse_json(value: Any) -> Any:
    if isinstance(value, (str, bytes)):
        try:
            return decode_json(value)
        except msgspec.DecodeError:
            return None
    return None


def _convert_to_dict(value: Any) -> "dict[str, Any]":
    if isinstance(value, dict):
        return value
    if isinstance(value, Mapping):
        return dict(value)
    parsed = _parse_json(value)
    if isinstance(parsed, dict):
        return parsed
    msg = f"Cannot convert {type(value).__name__} to dict"
    raise TypeError(msg)


def _convert_to_list(value: Any) -> "list[Any]":
    if isinstance(value, list):
        return value
    if isinstance(value, (tuple, set, frozenset)):
        return list(value)
    parsed = _parse_json(value)
    if isinstance(parsed, list):
        return parsed
    msg = f"Cannot convert {type(value).__name__} to list"
    raise TypeError(msg)


def _convert_to_enum(value: Any, enum_type: "type[Enum]") -> Enum:
    try:
        return enum_type(value)
    except ValueError:
        pass
    if isinstance(value, str) and value in enum_type.__members__:
        return enum_type[value]
    msg = f"Cannot convert {value!r} to {enum_type.__name__}"
    raise TypeError(msg)


_CONVERTERS: "Final[dict[type, Callable[[Any], Any]]]" = {
    int: _convert_to_int,
    float: _convert_to_float,
    str: _convert_to_str,
    bool: _convert_to_bool,
    datetime.datetime: _convert_to_datetime,
    datetime.date: _convert_to_date,
    datetime.time: _convert_to_time,
    Decimal: _convert_to_decimal,
    UUID: _convert_to_uuid,
    Path: _convert_to_path,
    dict: _convert_to_dict,
    list: _convert_to_list,
}


def to_value_type(value: Any, value_type: Any) -> Any:
    """Convert a database value to the declared Python type.

    ``None`` passes through. ``Optional[X]`` and other unions are tried member
    by member. Generic aliases such as ``list[int]`` are converted to their
    origin type only. Enums are looked up by value, then by member name.
    Unsupported annotations return the value unchanged.

    Args:
        value: The value to convert.
        value_type: The target type annotation.

    Raises:
        TypeError: If the value cannot be converted.

    Returns:
        The converted value.

    Examples:
        >>> to_value_type("42", int)
        42
        >>> to_value_type(1, bool)
        True
    """
    if value is None or value_type is Any or value_type is _NONE_TYPE:
        return value

    origin = typing.get_origin(value_type)
    if origin is Union or (origin is not None and getattr(origin, "__name__", None) == "UnionType"):
        members = [arg for arg in typing.get_args(value_type) if arg is not _NONE_TYPE]
        for member in members:
            if isinstance(member, type) and type(value) is member:
                return value
        last_error: Optional[TypeError] = None
        for member in members:
            try:
                return to_value_type(value, member)
            except TypeError as e:
                last_error = e
        if last_error is not None:
            raise last_error
        return value
    if origin is not None:
        return to_value_type(value, origin) if isinstance(origin, type) else value

    if not isinstance(value_type, type):
        return value

    if value_type in {int, bool, datetime.date, datetime.time}:
        if type(value) is value_type:
            return value
    elif isinstance(value, value_type):
        return value

    if issubclass(value_type, Enum):
        return _convert_to_enum(value, value_type)

    converter = _CONVERTERS.get(value_type)
    if converter is not None:
        return converter(value)

    try:
        return value_type(value)
    except (TypeError, ValueError) as e:
        msg = f"Cannot convert {type(value).__name__} to {value_type.__name__}"
        raise TypeError(msg) from e


@dataclasses.dataclass(frozen=True)
class _FieldSpec:
    name: str
    """Attribute name on the target."""

    argument: str
    """Keyword used when the target is constructed."""

    annotation: Any


@dataclasses.dataclass(frozen=True)
class _TargetPlan:
    kind: str
    fields: "tuple[_FieldSpec, ...]"
    exact: "dict[str, _FieldSpec]"
    relaxed: "dict[str, _FieldSpec]"

    def match(self, column: str) -> "Optional[_FieldSpec]":
        lowered = column.lower()
        spec = self.exact.get(lowered)
        if spec is None:
            spec = self.relaxed.get(lowered.replace("_", ""))
        return spec


def _type_hints(obj: Any) -> "dict[str, Any]":
    try:
        return typing.get_type_hints(obj)
    except Exception:  # noqa: BLE001
        raw = getattr(obj, "__annotations__", {})
        return {name: (Any if isinstance(hint, str) else hint) for name, hint in raw.items()}


def _is_class_var(annotation: Any) -> bool:
    return annotation is typing.ClassVar or typing.get_origin(annotation) is typing.ClassVar


def _dataclass_fields(schema_type: type) -> "list[_FieldSpec]":
    hints = _type_hints(schema_type)
    return [
        _FieldSpec(field.name, field.name, hints.get(field.name, Any))
        for field in dataclasses.fields(schema_type)
        if field.init
    ]


def _msgspec_fields(schema_type: type) -> "list[_FieldSpec]":
    return [
        _FieldSpec(field.name, field.name, field.type)
        for field in msgspec.structs.fields(cast("type[msgspec.Struct]", schema_type))
    ]


def _pydantic_fields(schema_type: type) -> "list[_FieldSpec]":
    model_fields = cast("Any", schema_type).model_fields
    return [_FieldSpec(name, name, field.annotation) for name, field in model_fields.items()]


def _attrs_fields(schema_type: type) -> "list[_FieldSpec]":
    import attrs

    hints = _type_hints(schema_type)
    return [
        _FieldSpec(field.name, getattr(field, "alias", None) or field.name.lstrip("_"), hints.get(field.name, Any))
        for field in attrs.fields(schema_type)
        if field.init
    ]


def _typed_dict_fields(schema_type: type) -> "list[_FieldSpec]":
    return [_FieldSpec(name, name, hint) for name, hint in _type_hints(schema_type).items()]


def _plain_fields(schema_type: type) -> "list[_FieldSpec]":
    specs: dict[str, _FieldSpec] = {}
    hints = _type_hints(schema_type)
    for name, hint in hints.items():
        if not name.startswith("_") and not _is_class_var(hint):
            specs[name] = _FieldSpec(name, name, hint)
    for cls in schema_type.__mro__:
        slots = getattr(cls, "__slots__", ())
        for name in (slots,) if isinstance(slots, str) else slots:
            if isinstance(name, str) and not name.startswith("_") and name not in specs:
                specs[name] = _FieldSpec(name, name, hints.get(name, Any))

    try:
        probe = schema_type()
    except Exception as e:
        msg = f"{schema_type.__name__} cannot be constructed without arguments: {e}"
        raise MappingError(msg, schema_type) from e
    for name in getattr(probe, "__dict__", {}):
        if not name.startswith("_") and name not in specs:
            specs[name] = _FieldSpec(name, name, Any)

    for cls in reversed(schema_type.__mro__):
        for name, member in vars(cls).items():
            if isinstance(member, property) and member.fset is not None and not name.startswith("_"):
                annotation = _type_hints(member.fget).get("return", Any) if member.fget else Any
                specs[name] = _FieldSpec(name, name, annotation)
    return list(specs.values())


def _detect_kind(schema_type: type) -> str:
    if is_typed_dict(schema_type):
        return "typed_dict"
    if is_dataclass(schema_type):
        return "dataclass"
    if is_msgspec_struct(schema_type):
        return "msgspec"
    if is_pydantic_model(schema_type):
        return "pydantic"
    if is_attrs_schema(schema_type):
        return "attrs"
    return "plain"


def _is_schema_class(annotation: Any) -> bool:
    if not isinstance(annotation, type) or typing.get_origin(annotation) is not None:
        return False
    return _detect_kind(annotation) != "plain"


_FIELD_READERS: "Final[dict[str, Callable[[type], list[_FieldSpec]]]]" = {
    "typed_dict": _typed_dict_fields,
    "dataclass": _dataclass_fields,
    "msgspec": _msgspec_fields,
    "pydantic": _pydantic_fields,
    "attrs": _attrs_fields,
    "plain": _plain_fields,
}


@lru_cache(maxsize=256)
def _target_plan(schema_type: type) -> _TargetPlan:
    kind = _detect_kind(schema_type)
    fields = tuple(_FIELD_READERS[kind](schema_type))
    exact: dict[str, _FieldSpec] = {}
    relaxed: dict[str, _FieldSpec] = {}
    for spec in fields:
        exact.setdefault(spec.name.lower(), spec)
        relaxed.setdefault(spec.name.lower().replace("_", ""), spec)
    logger.debug("Built %s mapping plan for %s with %d fields", kind, schema_type.__name__, len(fields))
    return _TargetPlan(kind=kind, fields=fields, exact=exact, relaxed=relaxed)


class RowMapper:
    """Map result rows onto target types.

    Supported targets are dataclasses, msgspec Structs, pydantic models, attrs
    classes, TypedDicts and plain classes with a no-argument constructor.
    ``None`` or ``dict`` as the target returns a copy of the row.
    """

    __slots__ = ()

    @overload
    def map_row(self, row: "Mapping[str, Any]", schema_type: None = None) -> "dict[str, Any]": ...
    @overload
    def map_row(self, row: "Mapping[str, Any]", schema_type: "type[SchemaT]") -> "SchemaT": ...

    def map_row(self, row: "Mapping[str, Any]", schema_type: Any = None) -> Any:
        """Map one row onto ``schema_type``.

        Args:
            row: Column name to value mapping.
            schema_type: Target type, or None for a plain dict.

        Raises:
            MappingError: If the target cannot be built from the row.

        Returns:
            The mapped instance.
        """
        if schema_type is None or schema_type is dict:
            return dict(row)
        if not isinstance(schema_type, type):
            msg = f"Cannot map rows onto {schema_type!r}: target must be a class"
            raise MappingError(msg, schema_type)

        plan = _target_plan(schema_type)
        values: dict[str, Any] = {}
        for column, value in row.items():
            spec = plan.match(column)
            if spec is None:
                continue
            values[spec.name] = self._coerce(value, spec, schema_type)
        return self._build(plan, schema_type, values)

    @overload
    def map_rows(self, rows: "Sequence[Mapping[str, Any]]", schema_type: None = None) -> "list[dict[str, Any]]": ...
    @overload
    def map_rows(self, rows: "Sequence[Mapping[str, Any]]", schema_type: "type[SchemaT]") -> "list[SchemaT]": ...

    def map_rows(self, rows: "Sequence[Mapping[str, Any]]", schema_type: Any = None) -> "list[Any]":
        """Map every row in order."""
        return [self.map_row(row, schema_type) for row in rows]

    def _coerce(self, value: Any, spec: _FieldSpec, schema_type: type) -> Any:
        annotation = spec.annotation
        try:
            if value is not None and _is_schema_class(annotation):
                nested = _parse_json(value) if isinstance(value, (str, bytes)) else value
                if isinstance(nested, Mapping):
                    return self.map_row(nested, annotation)
            return to_value_type(value, annotation)
        except (TypeError, ValueError) as e:
            msg = f"Cannot map column value for {schema_type.__name__}.{spec.name}: {e}"
            raise MappingError(msg, schema_type) from e

    @staticmethod
    def _build(plan: _TargetPlan, schema_type: type, values: "dict[str, Any]") -> Any:
        try:
            if plan.kind == "typed_dict":
                return values
            if plan.kind == "msgspec":
                return msgspec.convert(values, schema_type, strict=False)
            if plan.kind == "pydantic":
                return cast("Any", schema_type).model_validate(values)
            if plan.kind in {"dataclass", "attrs"}:
                arguments = {spec.argument: values[spec.name] for spec in plan.fields if spec.name in values}
                return schema_type(**arguments)
            instance = schema_type()
            for name, value in values.items():
                setattr(instance, name, value)
        except MappingError:
            raise
        except Exception as e:
            msg = f"Cannot construct {schema_type.__name__} from row: {e}"
            raise MappingError(msg, schema_type) from e
        return instance
