from collections.abc import Mapping
from importlib.util import find_spec
from typing import TYPE_CHECKING, Any, Union

from typing_extensions import TypeAlias, TypeVar

PYDANTIC_INSTALLED: bool = find_spec("pydantic") is not None
"""Whether pydantic models are available as mapping targets and parameter objects."""
ATTRS_INSTALLED: bool = find_spec("attrs") is not None
"""Whether attrs classes are available as mapping targets and parameter objects."""


if TYPE_CHECKING:
    T = TypeVar("T")
    SchemaT = TypeVar("SchemaT", default="dict[str, Any]")
    """Type variable for the target shape rows are mapped into.

    Defaults to :type:`dict[str, Any]` when no target shape is given.
    """
else:
    T = Any
    SchemaT = Any


DictRow: TypeAlias = "dict[str, Any]"
"""A result row keyed by column name."""
RowMapping: TypeAlias = "Mapping[str, Any]"
"""Any read-only row keyed by column name."""
RawParameters: TypeAlias = "Union[None, Mapping[str, Any], list[Any], tuple[Any, ...], Any]"
"""Every parameter shape accepted by the binder.

Represents:
- :type:`None`
- :type:`Mapping[str, Any]`
- alternating name/value :type:`list` or :type:`tuple`
- :class:`~ravesql.parameters.ParameterSet`
- any structured object (dataclass, msgspec Struct, pydantic model, attrs class, plain object)
"""


__all__ = (
    "ATTRS_INSTALLED",
    "PYDANTIC_INSTALLED",
    "DictRow",
    "RawParameters",
    "RowMapping",
    "SchemaT",
    "T",
)
