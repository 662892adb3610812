"""Conversion engine: typed values, merge rules, bookkeeping and the driver."""

from .driver import EventDriver
from .normalizer import (
    add_occurrence,
    coalesce_leading_scalars,
    make_object,
    merge,
    promote_to_array,
)
from .state import TEXT_BUCKET, AttributeStager, ElementContextStack, PartialValueTable
from .values import (
    JsonArray,
    JsonObject,
    JsonScalar,
    JsonValue,
    ValueKind,
    serialize,
    to_python,
)

__all__ = [
    "EventDriver",
    "add_occurrence",
    "coalesce_leading_scalars",
    "make_object",
    "merge",
    "promote_to_array",
    "TEXT_BUCKET",
    "AttributeStager",
    "ElementContextStack",
    "PartialValueTable",
    "JsonArray",
    "JsonObject",
    "JsonScalar",
    "JsonValue",
    "ValueKind",
    "serialize",
    "to_python",
]
