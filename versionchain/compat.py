"""
Compatibility checking between consecutive versions of a chain.

Each registered schema is compared with the one registered just before it.
A change that would make older records fail validation is breaking unless
the newer version has an upgrade function to bridge it:
- A new required field (or an optional field becoming required)
- A field whose type annotation changed

Other changes are reported for information only.

Invariants:
    - Comparison follows registration order, like migration does
    - The ``v`` field is never compared (it differs by definition)
    - A version with an upgrade function never produces breaking changes

Example:
    >>> changes = check_chain(chain)
    >>> breaking = [c for c in changes if c.is_breaking]
    >>> if breaking:
    ...     raise CompatibilityError(breaking)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Dict, List, Optional

from pydantic.fields import FieldInfo

from .chain import Handler, VersionChain
from .slot import VERSION_FIELD

logger = logging.getLogger(__name__)


class ChangeKind(Enum):
    """Types of changes between consecutive versions."""
    # Informational
    FIELD_ADDED = auto()
    FIELD_REMOVED = auto()
    VERSION_DECREASED = auto()

    # Breaking unless bridged by an upgrade function
    REQUIRED_ADDED = auto()
    FIELD_TYPE_CHANGED = auto()

    @property
    def needs_upgrade(self) -> bool:
        """Whether this change kind breaks older records without an upgrade."""
        return self in {ChangeKind.REQUIRED_ADDED, ChangeKind.FIELD_TYPE_CHANGED}


@dataclass
class ChainChange:
    """A single change between two consecutive versions.

    Attributes:
        kind: The type of change
        from_version: Version registered before
        to_version: Version that introduced the change
        path: Changed element (e.g., "v2.field:content")
        has_upgrade: Whether to_version has an upgrade function
        old_value: Previous value (if applicable)
        new_value: New value (if applicable)
        message: Human-readable description of the change
    """
    kind: ChangeKind
    from_version: int
    to_version: int
    path: str
    has_upgrade: bool = False
    old_value: Optional[Any] = None
    new_value: Optional[Any] = None
    message: str = ""

    @property
    def is_breaking(self) -> bool:
        """Whether this change breaks older records."""
        return self.kind.needs_upgrade and not self.has_upgrade

    def __str__(self) -> str:
        status = "BREAKING" if self.is_breaking else "OK"
        return f"[{status}] {self.kind.name}: {self.path} - {self.message}"


class CompatibilityError(Exception):
    """Raised when breaking changes are detected in a chain.

    Attributes:
        changes: List of breaking changes detected
    """

    def __init__(self, changes: List[ChainChange]):
        self.changes = changes
        messages = [str(c) for c in changes]
        super().__init__(
            f"Version chain check failed with {len(changes)} breaking change(s):\n"
            + "\n".join(messages)
        )


def check_chain(chain: VersionChain) -> List[ChainChange]:
    """Compare every version with its predecessor in registration order.

    Args:
        chain: The chain to check

    Returns:
        List of ChainChange objects describing all differences
    """
    changes: List[ChainChange] = []
    handlers = list(chain)
    for previous, current in zip(handlers, handlers[1:]):
        changes.extend(_check_pair(previous, current))
    return changes


def _check_pair(previous: Handler, current: Handler) -> List[ChainChange]:
    """Check differences between two consecutive versions."""
    changes: List[ChainChange] = []
    has_upgrade = current.upgrade is not None
    prefix = f"v{current.version}"

    def change(kind: ChangeKind, path: str, message: str, old=None, new=None) -> ChainChange:
        return ChainChange(
            kind=kind,
            from_version=previous.version,
            to_version=current.version,
            path=path,
            has_upgrade=has_upgrade,
            old_value=old,
            new_value=new,
            message=message,
        )

    if current.version < previous.version:
        changes.append(change(
            ChangeKind.VERSION_DECREASED,
            prefix,
            f"Version {current.version} registered after version {previous.version}",
            old=previous.version,
            new=current.version,
        ))

    old_fields = _fields(previous)
    new_fields = _fields(current)

    # Check for removed fields
    for name in old_fields:
        if name not in new_fields:
            changes.append(change(
                ChangeKind.FIELD_REMOVED,
                f"{prefix}.field:{name}",
                f"Field '{name}' was removed",
            ))

    # Check for added and modified fields
    for name, new_field in new_fields.items():
        path = f"{prefix}.field:{name}"
        old_field = old_fields.get(name)

        if old_field is None:
            if new_field.is_required():
                changes.append(change(
                    ChangeKind.REQUIRED_ADDED,
                    path,
                    f"Required field '{name}' added",
                ))
            else:
                changes.append(change(
                    ChangeKind.FIELD_ADDED,
                    path,
                    f"Optional field '{name}' added",
                ))
            continue

        if old_field.annotation != new_field.annotation:
            old_type = _type_name(old_field.annotation)
            new_type = _type_name(new_field.annotation)
            changes.append(change(
                ChangeKind.FIELD_TYPE_CHANGED,
                path,
                f"Field type changed from '{old_type}' to '{new_type}'",
                old=old_type,
                new=new_type,
            ))

        if not old_field.is_required() and new_field.is_required():
            changes.append(change(
                ChangeKind.REQUIRED_ADDED,
                path,
                f"Field '{name}' changed from optional to required",
            ))

    return changes


def _fields(handler: Handler) -> Dict[str, FieldInfo]:
    return {
        name: info
        for name, info in handler.schema.model_fields.items()
        if name != VERSION_FIELD
    }


def _type_name(annotation: Any) -> str:
    if isinstance(annotation, type):
        return annotation.__name__
    return repr(annotation).replace("typing.", "")


def validate_chain(chain: VersionChain) -> None:
    """Validate that the chain has no breaking changes.

    This is a convenience function for CI/CD pipelines.

    Args:
        chain: The chain to check

    Raises:
        CompatibilityError: If breaking changes are detected
    """
    changes = check_chain(chain)
    breaking = [c for c in changes if c.is_breaking]
    if breaking:
        raise CompatibilityError(breaking)
    logger.info(f"Version chain check passed with {len(changes)} non-breaking changes")
