"""
Schema slot helpers for versionchain.

A schema slot is a pydantic model class that declares its own version as a
literal ``v`` field:

    >>> class NoteV1(BaseModel):
    ...     v: Literal[1]
    ...     title: str
    >>> schema_version(NoteV1)
    1

Invariants:
    - The version is read from the model, never supplied separately
    - Only single-value integer literals are accepted as versions
    - Two slots are the same slot only if they are the same class
"""

from __future__ import annotations

from typing import Any, Dict, Literal, Optional, Tuple, Type, get_args, get_origin

from pydantic import BaseModel, ValidationError

from .errors import InvalidSchemaError

VERSION_FIELD = "v"


def schema_version(schema: Type[BaseModel]) -> int:
    """Read the declared version of a schema slot.

    Args:
        schema: Pydantic model class with a ``v: Literal[<int>]`` field

    Returns:
        The integer version literal

    Raises:
        InvalidSchemaError: If the schema is not a model class or its
            ``v`` field is not a single integer literal
    """
    if not (isinstance(schema, type) and issubclass(schema, BaseModel)):
        raise InvalidSchemaError(f"Schema must be a pydantic model class, got {schema!r}")

    name = schema.__name__
    field_info = schema.model_fields.get(VERSION_FIELD)
    if field_info is None:
        raise InvalidSchemaError(
            f"Schema '{name}' has no '{VERSION_FIELD}' field", schema_name=name
        )

    annotation = field_info.annotation
    if get_origin(annotation) is not Literal:
        raise InvalidSchemaError(
            f"Schema '{name}' must declare '{VERSION_FIELD}' as Literal[<int>], "
            f"got {annotation!r}",
            schema_name=name,
        )

    values = get_args(annotation)
    if len(values) != 1 or not isinstance(values[0], int) or isinstance(values[0], bool):
        raise InvalidSchemaError(
            f"Schema '{name}' must declare exactly one integer version, got {values!r}",
            schema_name=name,
        )
    return values[0]


def safe_validate(
    schema: Type[BaseModel],
    data: Any,
) -> Tuple[Optional[BaseModel], Optional[ValidationError]]:
    """Validate data against a schema without raising.

    Returns:
        Tuple of (normalized_model, None) or (None, validation_error)
    """
    try:
        return schema.model_validate(data), None
    except ValidationError as e:
        return None, e


def describe_schema(schema: Type[BaseModel]) -> Dict[str, Any]:
    """Describe a schema slot as a JSON-serializable dictionary."""
    return {
        "name": schema.__name__,
        "json_schema": schema.model_json_schema(),
    }
