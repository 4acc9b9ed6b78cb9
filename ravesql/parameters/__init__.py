"""Parameter normalization and paramstyle conversion."""

from ravesql.parameters.binder import FieldReader, ParameterBinder, ParameterSet, ParameterShape, detect_shape
from ravesql.parameters.styles import ParameterInfo, ParameterStyle, convert, extract_parameters

__all__ = (
    "FieldReader",
    "ParameterBinder",
    "ParameterInfo",
    "ParameterSet",
    "ParameterShape",
    "ParameterStyle",
    "convert",
    "detect_shape",
    "extract_parameters",
)
