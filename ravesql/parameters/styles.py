"""Named placeholder extraction and conversion to DB-API paramstyles.

SQL resources are written with colon placeholders (``:name``). Drivers accept
one of the PEP 249 paramstyles, so before execution the statement is rewritten
to the driver's style and the :class:`~ravesql.parameters.ParameterSet` is
reshaped to match: a mapping for named styles, an ordered list for
positional ones.
"""

import re
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import TYPE_CHECKING, Any, Final, Union

from ravesql.exceptions import MalformedParametersError

if TYPE_CHECKING:
    from collections.abc import Mapping

__all__ = ("ParameterInfo", "ParameterStyle", "convert", "extract_parameters")

_PARAMETER_REGEX: Final = re.compile(
    r"""
    (?P<dquote>"(?:[^"]|"")*") |
    (?P<squote>'(?:[^']|'')*') |
    (?P<line_comment>--[^\r\n]*) |
    (?P<block_comment>/\*(?:[^*]|\*(?!/))*\*/) |
    (?P<cast>::) |
    (?P<named_colon>:(?P<colon_name>[A-Za-z_]\w*))
    """,
    re.VERBOSE | re.MULTILINE | re.DOTALL,
)

_CACHE_SIZE: Final = 512


class ParameterStyle(str, Enum):
    """PEP 249 paramstyles."""

    QMARK = "qmark"
    NUMERIC = "numeric"
    NAMED = "named"
    FORMAT = "format"
    PYFORMAT = "pyformat"

    @property
    def is_positional(self) -> bool:
        return self in {ParameterStyle.QMARK, ParameterStyle.NUMERIC, ParameterStyle.FORMAT}

    def placeholder(self, name: str, number: int) -> str:
        """Render one placeholder in this style.

        Args:
            name: Parameter name.
            number: 1-based position of the parameter in the driver's argument list.

        Returns:
            The placeholder text.
        """
        if self is ParameterStyle.QMARK:
            return "?"
        if self is ParameterStyle.NUMERIC:
            return f":{number}"
        if self is ParameterStyle.FORMAT:
            return "%s"
        if self is ParameterStyle.PYFORMAT:
            return f"%({name})s"
        return f":{name}"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ParameterInfo:
    """A placeholder found in SQL text."""

    name: str
    """Parameter name without the leading colon."""

    position: int
    """Offset of the placeholder in the SQL string."""

    ordinal: int
    """Order of appearance in the SQL (0-based)."""

    placeholder_text: str
    """The original text of the placeholder."""


@lru_cache(maxsize=_CACHE_SIZE)
def extract_parameters(sql: str) -> "tuple[ParameterInfo, ...]":
    """Find every ``:name`` placeholder in ``sql``.

    Quoted strings and identifiers, comments and ``::`` casts are skipped.

    Args:
        sql: SQL text to scan.

    Returns:
        Placeholders in order of appearance. Repeated names appear once per occurrence.
    """
    found: list[ParameterInfo] = []
    for match in _PARAMETER_REGEX.finditer(sql):
        if match.lastgroup != "named_colon":
            continue
        found.append(
            ParameterInfo(
                name=match.group("colon_name"),
                position=match.start(),
                ordinal=len(found),
                placeholder_text=match.group(0),
            )
        )
    return tuple(found)


@lru_cache(maxsize=_CACHE_SIZE)
def _compile(sql: str, style: ParameterStyle) -> "tuple[str, tuple[str, ...]]":
    """Rewrite ``sql`` into ``style``.

    Returns:
        The rewritten SQL and the parameter names the driver expects. For
        ``qmark`` and ``format`` there is one name per placeholder occurrence;
        for every other style each name appears once.
    """
    escape_percent = style in {ParameterStyle.FORMAT, ParameterStyle.PYFORMAT}
    pieces: list[str] = []
    names: list[str] = []
    numbers: dict[str, int] = {}
    last = 0

    for match in _PARAMETER_REGEX.finditer(sql):
        if match.lastgroup != "named_colon":
            continue
        text = sql[last : match.start()]
        pieces.append(text.replace("%", "%%") if escape_percent else text)
        name = match.group("colon_name")
        if style in {ParameterStyle.QMARK, ParameterStyle.FORMAT}:
            names.append(name)
            number = len(names)
        else:
            number = numbers.get(name, 0)
            if not number:
                names.append(name)
                number = numbers[name] = len(names)
        pieces.append(style.placeholder(name, number))
        last = match.end()

    tail = sql[last:]
    pieces.append(tail.replace("%", "%%") if escape_percent else tail)
    return "".join(pieces), tuple(names)


def convert(
    sql: str, parameters: "Mapping[str, Any]", style: "Union[ParameterStyle, str]" = ParameterStyle.NAMED
) -> "tuple[str, Union[dict[str, Any], list[Any]]]":
    """Rewrite ``sql`` and reshape ``parameters`` for a driver paramstyle.

    Args:
        sql: SQL text with ``:name`` placeholders.
        parameters: Values by name. Names the SQL does not reference are dropped.
        style: Target paramstyle.

    Raises:
        MalformedParametersError: If a placeholder has no value.

    Returns:
        The converted SQL and the driver parameters, a dict for named styles or
        a list in placeholder order for positional ones.
    """
    style = ParameterStyle(style)
    converted, names = _compile(sql, style)

    missing = [name for name in dict.fromkeys(names) if name not in parameters]
    if missing:
        msg = f"Missing value for SQL parameter(s): {', '.join(':' + name for name in missing)}"
        raise MalformedParametersError(msg)

    if style.is_positional:
        return converted, [parameters[name] for name in names]
    return converted, {name: parameters[name] for name in names}
