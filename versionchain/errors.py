"""
Error types for versionchain.

This module defines the exceptions raised (or returned) by a VersionChain:
- VersionChainError: Base exception
- RegistrationConflictError: Duplicate version or schema at registration
- InvalidSchemaError: Schema does not declare a usable version literal
- ChainFrozenError: Registration attempted on a frozen chain
- EmptyChainError: Query or migration on a chain with no versions
- UnknownTargetVersionError: Partial migration to an unregistered version

Data problems (missing/malformed ``v``, unsupported version, schema
rejection) are not exceptions of this module: they surface as
``pydantic.ValidationError`` inside an UpgradeResult.

Invariants:
    - All errors inherit from VersionChainError
    - Every error carries a stable ``code`` for programmatic handling
    - Registration errors are raised before the chain is mutated
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class VersionChainError(Exception):
    """Base exception for all versionchain errors.

    Attributes:
        message: Error message
        code: Error code for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or "VERSIONCHAIN_ERROR"
        self.details = details or {}


class RegistrationConflictError(VersionChainError):
    """A schema could not be registered.

    Raised when:
    - The schema's version number is already registered
    - The same schema class is already registered
    - An upgrade function is given for the first registered version
    """

    def __init__(
        self,
        message: str,
        version: Optional[int] = None,
        existing_version: Optional[int] = None,
    ) -> None:
        super().__init__(
            message,
            code="REGISTRATION_CONFLICT",
            details={"version": version, "existing_version": existing_version},
        )
        self.version = version
        self.existing_version = existing_version


class InvalidSchemaError(VersionChainError):
    """Schema does not declare its version as ``v: Literal[<int>]``."""

    def __init__(self, message: str, schema_name: Optional[str] = None) -> None:
        super().__init__(
            message,
            code="INVALID_SCHEMA",
            details={"schema": schema_name},
        )
        self.schema_name = schema_name


class ChainFrozenError(VersionChainError):
    """Chain is frozen and cannot be modified."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="CHAIN_FROZEN")


class EmptyChainError(VersionChainError):
    """No versions have been registered yet."""

    def __init__(self, message: str = "No versions registered") -> None:
        super().__init__(message, code="EMPTY_CHAIN")


class UnknownTargetVersionError(VersionChainError):
    """Requested migration target is not a registered version.

    Returned inside a failed UpgradeResult by ``safe_upgrade_to`` so that
    callers can tell a bad target argument apart from bad input data.

    Attributes:
        target_version: The requested target
        supported_versions: Registered versions in registration order
    """

    def __init__(
        self,
        target_version: Any,
        supported_versions: Optional[List[int]] = None,
    ) -> None:
        supported_versions = supported_versions or []
        msg = (
            f"Target version {target_version} is not registered. "
            f"Supported versions: {', '.join(str(v) for v in supported_versions)}"
        )
        super().__init__(
            msg,
            code="UNKNOWN_TARGET_VERSION",
            details={
                "target_version": target_version,
                "supported_versions": supported_versions,
            },
        )
        self.target_version = target_version
        self.supported_versions = supported_versions
