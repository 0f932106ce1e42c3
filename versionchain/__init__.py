"""
versionchain - versioned record schemas and forward migration.

This package lets a program read records written under any historical
version of its storage format:
- Schema slots are pydantic models declaring ``v: Literal[<int>]``
- A VersionChain registers slots in the order they were introduced,
  each with an optional upgrade function from the previous slot
- Records are validated and upgraded step by step to the latest (or a
  chosen) version

Example:
    >>> from typing import Literal
    >>> from pydantic import BaseModel
    >>> from versionchain import VersionChain
    >>>
    >>> class NoteV1(BaseModel):
    ...     v: Literal[1]
    ...     title: str
    >>>
    >>> class NoteV2(BaseModel):
    ...     v: Literal[2]
    ...     title: str
    ...     content: str
    >>>
    >>> chain = (
    ...     VersionChain()
    ...     .register(NoteV1)
    ...     .register(NoteV2, lambda d: {**d, "content": ""})
    ... )
    >>> result = chain.safe_upgrade_to_latest({"v": 1, "title": "Hi"})
    >>> result.success, result.data.content
    (True, '')

Invariants:
    - Migration follows registration order, not numeric order
    - Data problems are returned in an UpgradeResult, never raised
    - Registration problems are raised immediately

Version: 1.0.0
"""

__version__ = "1.0.0"

from .chain import Handler, UpgradeResult, VersionChain
from .compat import ChainChange, ChangeKind, CompatibilityError, check_chain, validate_chain
from .config import Settings, get_settings
from .errors import (
    ChainFrozenError,
    EmptyChainError,
    InvalidSchemaError,
    RegistrationConflictError,
    UnknownTargetVersionError,
    VersionChainError,
)
from .issues import is_invalid_version_type, is_missing_version, is_unsupported_version
from .slot import schema_version

__all__ = [
    # Version
    "__version__",
    # Chain
    "VersionChain",
    "Handler",
    "UpgradeResult",
    "schema_version",
    # Classification
    "is_invalid_version_type",
    "is_unsupported_version",
    "is_missing_version",
    # Compatibility
    "ChainChange",
    "ChangeKind",
    "CompatibilityError",
    "check_chain",
    "validate_chain",
    # Configuration
    "Settings",
    "get_settings",
    # Errors
    "VersionChainError",
    "RegistrationConflictError",
    "InvalidSchemaError",
    "ChainFrozenError",
    "EmptyChainError",
    "UnknownTargetVersionError",
]
