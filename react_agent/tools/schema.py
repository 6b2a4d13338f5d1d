"""JSON schema derivation for tool input models.

Produces the flat `{"type": "object", "properties": ..., "required": [...]}` shape
that function-calling APIs expect, without pydantic's `$defs`/`anyOf` output.
A field is required only when pydantic requires it and its type is not nullable.
"""

import types
from collections.abc import Callable, Sequence
from datetime import date, datetime
from enum import Enum
from typing import Annotated, Any, Literal, Union, get_args, get_origin

from pydantic import BaseModel

SchemaBuilder = Callable[[], dict[str, Any]]

_SCALAR_TYPES: dict[Any, str] = {
    str: "string",
    int: "integer",
    float: "number",
    bool: "boolean",
}

_ARRAY_ORIGINS = (list, tuple, set, frozenset, Sequence)

_registry: dict[Any, SchemaBuilder] = {
    datetime: lambda: {"type": "string", "format": "date-time"},
    date: lambda: {"type": "string", "format": "date"},
}


def register_type_schema(type_: Any, builder: SchemaBuilder) -> None:
    """Register a schema builder for a type the derivation does not know."""
    _registry[type_] = builder


def is_nullable(annotation: Any) -> bool:
    """Check whether an annotation admits None (`T | None`, `Optional[T]`)."""
    if get_origin(annotation) is Annotated:
        return is_nullable(get_args(annotation)[0])
    if get_origin(annotation) in (Union, types.UnionType):
        return type(None) in get_args(annotation)
    return annotation is type(None)


def object_schema(model: type[BaseModel]) -> dict[str, Any]:
    """Derive the object schema for a pydantic model."""
    properties: dict[str, Any] = {}
    required: list[str] = []

    for field_name, field in model.model_fields.items():
        name = field.alias or field_name
        prop = type_schema(field.annotation)
        if field.description:
            prop["description"] = field.description
        properties[name] = prop

        if field.is_required() and not is_nullable(field.annotation):
            required.append(name)

    return {"type": "object", "properties": properties, "required": required}


def type_schema(annotation: Any) -> dict[str, Any]:
    """Derive the schema for a single field annotation."""
    origin = get_origin(annotation)
    args = get_args(annotation)

    if origin is Annotated:
        return type_schema(args[0])

    if origin in (Union, types.UnionType):
        non_none = [arg for arg in args if arg is not type(None)]
        if len(non_none) == 1:
            return type_schema(non_none[0])
        return {"anyOf": [type_schema(arg) for arg in non_none]}

    if origin is Literal:
        return {"type": _literal_type(args), "enum": list(args)}

    if origin in _ARRAY_ORIGINS or annotation in _ARRAY_ORIGINS:
        schema: dict[str, Any] = {"type": "array"}
        item_args = [arg for arg in args if arg is not Ellipsis]
        if item_args:
            schema["items"] = type_schema(item_args[0])
        return schema

    if origin is dict or annotation is dict:
        return {"type": "object"}

    if annotation in _registry:
        return _registry[annotation]()

    if isinstance(annotation, type):
        if issubclass(annotation, BaseModel):
            return object_schema(annotation)
        if issubclass(annotation, Enum):
            values = [member.value for member in annotation]
            return {"type": _literal_type(values), "enum": values}
        # bool before int: bool is an int subclass
        for scalar in (bool, int, float, str):
            if issubclass(annotation, scalar):
                return {"type": _SCALAR_TYPES[scalar]}

    raise TypeError(f"No JSON schema registered for type {annotation!r}")


def _literal_type(values: Sequence[Any]) -> str:
    kinds = {type(value) for value in values}
    if len(kinds) == 1:
        kind = kinds.pop()
        for scalar in (bool, int, float, str):
            if issubclass(kind, scalar):
                return _SCALAR_TYPES[scalar]
    return "string"
