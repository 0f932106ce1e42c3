"""
Version tag issues and their classification.

Before any schema is consulted, a record's ``v`` field is checked by
``read_version``. Problems are reported as ``pydantic.ValidationError``
instances with a single issue at ``loc == ("v",)``, so callers handle them
the same way as schema rejections.

Issue types produced here:
    - ``missing``: the record has no ``v`` field
    - ``version_type``: the record is not a mapping, or ``v`` is not a number
    - ``unsupported_version``: ``v`` is a number but not a reachable version

Invariants:
    - The three issue types are disjoint
    - Classification only looks at issues located at ``("v",)``
    - Anything that is not a ValidationError is never classified
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Iterable, List, Optional, Tuple, Union

from pydantic import ValidationError
from pydantic_core import InitErrorDetails, PydanticCustomError

from .slot import VERSION_FIELD

VERSION_LOC = (VERSION_FIELD,)

MISSING = "missing"
VERSION_TYPE = "version_type"
UNSUPPORTED_VERSION = "unsupported_version"

# pydantic's own codes count too, so schema rejections of ``v`` classify alike
TYPE_MISMATCH_CODES = frozenset(
    {VERSION_TYPE, "int_type", "float_type", "int_parsing", "float_parsing"}
)
UNSUPPORTED_CODES = frozenset({UNSUPPORTED_VERSION, "literal_error"})

Number = Union[int, float]


def _version_error(error_type: Union[str, PydanticCustomError], data: Any) -> ValidationError:
    return ValidationError.from_exception_data(
        "VersionTag",
        [InitErrorDetails(type=error_type, loc=VERSION_LOC, input=data)],
    )


def read_version(data: Any) -> Tuple[Optional[Number], Optional[ValidationError]]:
    """Extract the numeric version tag from untyped data.

    Only the minimal structure is checked: a mapping with a numeric ``v``.
    Booleans are not numbers here.

    Args:
        data: Untyped input record

    Returns:
        Tuple of (version, None) or (None, validation_error)
    """
    if not isinstance(data, Mapping):
        return None, _version_error(
            PydanticCustomError(
                VERSION_TYPE,
                "Expected an object with a numeric version, got {received}",
                {"received": type(data).__name__},
            ),
            data,
        )

    if VERSION_FIELD not in data:
        return None, _version_error(MISSING, data)

    version = data[VERSION_FIELD]
    if isinstance(version, bool) or not isinstance(version, (int, float)):
        return None, _version_error(
            PydanticCustomError(
                VERSION_TYPE,
                "Version must be a number, got {received}",
                {"received": type(version).__name__},
            ),
            data,
        )

    return version, None


def unsupported_version_error(
    version: Number,
    supported: Iterable[int],
    data: Any,
) -> ValidationError:
    """Build the error for a numeric version outside the reachable set."""
    return _version_error(
        PydanticCustomError(
            UNSUPPORTED_VERSION,
            "Invalid version {version}, expected one of: {expected}",
            {"version": version, "expected": ", ".join(str(v) for v in supported)},
        ),
        data,
    )


def _version_issue_types(error: Any) -> List[str]:
    if not isinstance(error, ValidationError):
        return []
    return [
        issue["type"]
        for issue in error.errors(include_url=False)
        if tuple(issue["loc"])[:1] == VERSION_LOC
    ]


def is_invalid_version_type(error: Any) -> bool:
    """Whether the error reports a ``v`` that is present but not a number."""
    return any(t in TYPE_MISMATCH_CODES for t in _version_issue_types(error))


def is_unsupported_version(error: Any) -> bool:
    """Whether the error reports a numeric ``v`` that is not supported."""
    return any(t in UNSUPPORTED_CODES for t in _version_issue_types(error))


def is_missing_version(error: Any) -> bool:
    """Whether the error reports a record without ``v``."""
    return any(t == MISSING for t in _version_issue_types(error))
