"""
Version chain for versioned records.

The VersionChain is the registry of every schema a record has ever been
stored under, in the order the schemas were introduced. It provides:
- Registration of schema slots with optional upgrade functions
- Validation and migration of untyped records to the latest version
- Partial migration up to a chosen registered version
- Freeze mechanism and fingerprint for deployment checks

Invariants:
    - Versions and schema classes are unique within a chain
    - The first registered version has no upgrade function
    - Migration follows registration order, never numeric order
    - Upgrade output always carries the handler's own version
    - latest_version/latest_schema are the most recently registered slot

How to change safely:
    - Only ever append new versions; old records depend on old slots
    - Give every new slot an upgrade function unless old records already
      validate against it
    - Run ``versionchain check`` before shipping a new version

Example:
    >>> chain = (
    ...     VersionChain()
    ...     .register(NoteV1)
    ...     .register(NoteV2, lambda d: {**d, "content": ""})
    ... )
    >>> result = chain.safe_upgrade_to_latest({"v": 1, "title": "Hi"})
    >>> result.data
    NoteV2(v=2, title='Hi', content='')
"""

from __future__ import annotations

import hashlib
import json
import logging
import threading
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Type

from pydantic import BaseModel

from .config import get_settings
from .errors import (
    ChainFrozenError,
    EmptyChainError,
    RegistrationConflictError,
    UnknownTargetVersionError,
)
from .issues import read_version, unsupported_version_error
from .slot import VERSION_FIELD, describe_schema, safe_validate, schema_version

logger = logging.getLogger(__name__)

UpgradeFn = Callable[[Dict[str, Any]], Any]


@dataclass(frozen=True)
class Handler:
    """One registered version.

    Attributes:
        version: Version declared by the schema
        schema: Pydantic model class for this version
        upgrade: Converts the previous version's record (without ``v``)
            into this version's shape
    """

    version: int
    schema: Type[BaseModel]
    upgrade: Optional[UpgradeFn] = None

    def apply(self, record: Dict[str, Any]) -> Dict[str, Any]:
        """Build raw data for this version from the previous normalized record.

        The returned data always has ``v`` set to this handler's version,
        whatever the upgrade function wrote there.
        """
        if self.upgrade is None:
            output: Any = record
        else:
            output = self.upgrade(dict(record))

        if isinstance(output, BaseModel):
            output = output.model_dump()
        elif not isinstance(output, Mapping):
            raise TypeError(
                f"Upgrade to version {self.version} must return a mapping, "
                f"got {type(output).__name__}"
            )
        return {**output, VERSION_FIELD: self.version}


@dataclass(frozen=True)
class UpgradeResult:
    """Outcome of a migration.

    Attributes:
        success: Whether the record was migrated
        data: Normalized model of the target version (on success)
        error: pydantic.ValidationError for bad data, or
            UnknownTargetVersionError for a bad target (on failure)
    """

    success: bool
    data: Optional[BaseModel] = None
    error: Optional[Exception] = None

    @classmethod
    def ok(cls, data: BaseModel) -> UpgradeResult:
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: Exception) -> UpgradeResult:
        return cls(success=False, error=error)

    def unwrap(self) -> BaseModel:
        """Return the migrated model or raise the failure."""
        if not self.success:
            raise self.error
        return self.data


class VersionChain:
    """Ordered registry of versioned schemas and their upgrades.

    Thread-safety:
        - Registration is thread-safe (uses internal lock)
        - Migration and queries only read the registry
        - Freeze is atomic and irreversible

    Attributes:
        latest_version: Version of the most recently registered slot
        latest_schema: Schema of the most recently registered slot
        frozen: Whether the chain rejects new registrations
        fingerprint: SHA-256 hash of the chain (computed on freeze)

    Example:
        >>> chain = VersionChain().register(NoteV1).register(NoteV2, up)
        >>> chain.latest_version
        2
        >>> chain.safe_upgrade_to({"v": 1, "title": "Hi"}, 2).success
        True
    """

    def __init__(self, validate_source: Optional[bool] = None) -> None:
        """Initialize an empty, mutable chain.

        Args:
            validate_source: Validate input against its declared version's
                schema before upgrading it (default: from settings)
        """
        self._handlers: List[Handler] = []
        self._index: Dict[int, int] = {}
        self._latest: Optional[Handler] = None
        if validate_source is None:
            validate_source = get_settings().validate_source
        self._validate_source = validate_source
        self._frozen = False
        self._fingerprint: Optional[str] = None
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._handlers)

    def __contains__(self, version: object) -> bool:
        return not isinstance(version, bool) and version in self._index

    def __iter__(self) -> Iterator[Handler]:
        return iter(self._handlers)

    def __repr__(self) -> str:
        return f"VersionChain(versions={self.versions})"

    @property
    def frozen(self) -> bool:
        """Whether the chain is frozen."""
        return self._frozen

    @property
    def fingerprint(self) -> Optional[str]:
        """Chain fingerprint (available after freeze)."""
        return self._fingerprint

    @property
    def versions(self) -> List[int]:
        """Registered versions in registration order."""
        return [h.version for h in self._handlers]

    @property
    def handlers(self) -> Sequence[Handler]:
        """Registered handlers in registration order."""
        return tuple(self._handlers)

    @property
    def latest_version(self) -> int:
        return self._require_latest().version

    @property
    def latest_schema(self) -> Type[BaseModel]:
        return self._require_latest().schema

    def _require_latest(self) -> Handler:
        if self._latest is None:
            raise EmptyChainError()
        return self._latest

    def register(
        self,
        schema: Type[BaseModel],
        upgrade: Optional[UpgradeFn] = None,
    ) -> VersionChain:
        """Register the next version.

        Args:
            schema: Pydantic model class declaring ``v: Literal[<int>]``
            upgrade: Converts the previously registered version's record
                (without ``v``) into this version's shape

        Returns:
            This chain, for chained calls

        Raises:
            InvalidSchemaError: If the schema does not declare its version
            RegistrationConflictError: If the version or schema is already
                registered, or an upgrade is given for the first version
            ChainFrozenError: If the chain is frozen
        """
        version = schema_version(schema)
        if upgrade is not None and not callable(upgrade):
            raise TypeError(f"Upgrade for version {version} must be callable")

        with self._lock:
            if self._frozen:
                raise ChainFrozenError(f"Cannot register version {version}: chain is frozen")

            if version in self._index:
                existing = self._handlers[self._index[version]]
                raise RegistrationConflictError(
                    f"Version {version} already registered with schema "
                    f"'{existing.schema.__name__}'",
                    version=version,
                    existing_version=existing.version,
                )

            for existing in self._handlers:
                if existing.schema is schema:
                    raise RegistrationConflictError(
                        f"Schema '{schema.__name__}' already registered as "
                        f"version {existing.version}",
                        version=version,
                        existing_version=existing.version,
                    )

            if not self._handlers and upgrade is not None:
                raise RegistrationConflictError(
                    f"First version {version} cannot have an upgrade function",
                    version=version,
                )

            handler = Handler(version=version, schema=schema, upgrade=upgrade)
            self._index[version] = len(self._handlers)
            self._handlers.append(handler)
            self._latest = handler

        logger.debug(
            f"Registered version {version} ({schema.__name__}, "
            f"upgrade={'yes' if upgrade else 'no'})"
        )
        return self

    def safe_upgrade_to_latest(self, data: Any) -> UpgradeResult:
        """Validate a record and migrate it to the latest version.

        Args:
            data: Untyped record with a numeric ``v``

        Returns:
            UpgradeResult holding the latest-schema model or a
            pydantic.ValidationError
        """
        self._require_latest()
        return self._migrate(data, self._handlers)

    def safe_upgrade_to(self, data: Any, target_version: int) -> UpgradeResult:
        """Validate a record and migrate it up to ``target_version``.

        Upgrades registered after the target are not applied. An
        unregistered target fails with UnknownTargetVersionError without
        looking at the data.

        Args:
            data: Untyped record with a numeric ``v``
            target_version: Registered version to stop at

        Returns:
            UpgradeResult holding the target-schema model, a
            pydantic.ValidationError, or an UnknownTargetVersionError
        """
        self._require_latest()
        index = None if isinstance(target_version, bool) else self._index.get(target_version)
        if index is None:
            return UpgradeResult.fail(UnknownTargetVersionError(target_version, self.versions))
        return self._migrate(data, self._handlers[: index + 1])

    def upgrade_to_latest(self, data: Any) -> BaseModel:
        """Like safe_upgrade_to_latest, but raise on failure.

        Raises:
            pydantic.ValidationError: If the record cannot be migrated
        """
        return self.safe_upgrade_to_latest(data).unwrap()

    def upgrade_to(self, data: Any, target_version: int) -> BaseModel:
        """Like safe_upgrade_to, but raise on failure.

        Raises:
            pydantic.ValidationError: If the record cannot be migrated
            UnknownTargetVersionError: If the target is not registered
        """
        return self.safe_upgrade_to(data, target_version).unwrap()

    def is_latest(self, data: Any) -> bool:
        """Whether the data validates against the latest schema as-is."""
        _, error = safe_validate(self._require_latest().schema, data)
        return error is None

    def has_latest_structure(self, data: Any) -> bool:
        """Whether the data has the latest shape, whatever its ``v`` says.

        The caller's mapping is not modified.
        """
        latest = self._require_latest()
        _, error = read_version(data)
        if error is not None:
            return False
        candidate = {**data, VERSION_FIELD: latest.version}
        _, error = safe_validate(latest.schema, candidate)
        return error is None

    def needs_upgrade(self, data: Any) -> bool:
        """Whether the data declares a version other than the latest."""
        latest = self._require_latest()
        version, error = read_version(data)
        if error is not None:
            return False
        return version != latest.version

    def _migrate(self, data: Any, handlers: Sequence[Handler]) -> UpgradeResult:
        version, error = read_version(data)
        if error is not None:
            return UpgradeResult.fail(error)

        supported = [h.version for h in handlers]
        if version not in supported:
            return UpgradeResult.fail(unsupported_version_error(version, supported, data))

        start = supported.index(version)
        steps = handlers[start + 1:]

        if self._validate_source or not steps:
            current, error = safe_validate(handlers[start].schema, data)
            if error is not None:
                return UpgradeResult.fail(error)
            record = current.model_dump(exclude={VERSION_FIELD})
        else:
            record = {k: v for k, v in data.items() if k != VERSION_FIELD}

        for handler in steps:
            current, error = safe_validate(handler.schema, handler.apply(record))
            if error is not None:
                logger.debug(
                    f"Upgrade from version {version} rejected at version "
                    f"{handler.version}: {error.error_count()} issue(s)"
                )
                return UpgradeResult.fail(error)
            record = current.model_dump(exclude={VERSION_FIELD})

        if steps:
            logger.debug(
                f"Upgraded record from version {version} to {handlers[-1].version} "
                f"({len(steps)} step(s))"
            )
        return UpgradeResult.ok(current)

    def freeze(self) -> str:
        """Freeze chain and compute fingerprint.

        Returns:
            Chain fingerprint

        Raises:
            ChainFrozenError: If already frozen
            EmptyChainError: If no versions are registered
        """
        with self._lock:
            if self._frozen:
                raise ChainFrozenError("Chain is already frozen")
            if not self._handlers:
                raise EmptyChainError("Cannot freeze a chain with no versions")

            self._fingerprint = self._compute_fingerprint()
            self._frozen = True

        logger.info(
            f"Version chain frozen at version {self.latest_version} "
            f"({len(self)} versions, {self._fingerprint})"
        )
        return self._fingerprint

    def _compute_fingerprint(self) -> str:
        """Compute SHA-256 fingerprint."""
        canonical = json.dumps(self.to_dict(), sort_keys=True, separators=(",", ":"), default=str)
        hash_bytes = hashlib.sha256(canonical.encode("utf-8")).hexdigest()
        return f"sha256:{hash_bytes}"

    def to_dict(self) -> dict:
        """Convert to dictionary (versions in registration order)."""
        return {
            "latest_version": self._latest.version if self._latest else None,
            "versions": [
                {
                    "version": h.version,
                    "schema": describe_schema(h.schema),
                    "has_upgrade": h.upgrade is not None,
                }
                for h in self._handlers
            ],
        }

    def to_json(self, indent: Optional[int] = 2) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), indent=indent, sort_keys=True, default=str)
