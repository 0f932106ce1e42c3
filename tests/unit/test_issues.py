"""
Unit tests for version tag issues.

Tests cover:
- Reading the version tag from untyped data
- Classification of missing, malformed and unsupported versions
- Classification of schema errors on the v field
"""

from typing import Literal

import pytest
from pydantic import BaseModel, ValidationError

from versionchain import (
    UnknownTargetVersionError,
    VersionChain,
    is_invalid_version_type,
    is_missing_version,
    is_unsupported_version,
)
from versionchain.issues import (
    MISSING,
    UNSUPPORTED_VERSION,
    VERSION_TYPE,
    read_version,
    unsupported_version_error,
)


class NoteV1(BaseModel):
    v: Literal[1]
    title: str


@pytest.fixture
def chain():
    """Single-version chain."""
    return VersionChain().register(NoteV1)


def classify(error):
    return (
        is_missing_version(error),
        is_invalid_version_type(error),
        is_unsupported_version(error),
    )


class TestReadVersion:
    """Tests for read_version()."""

    def test_integer_version(self):
        """Integer versions are read."""
        assert read_version({"v": 3, "title": "x"}) == (3, None)

    def test_float_version(self):
        """Float versions count as numeric."""
        version, error = read_version({"v": 2.0})
        assert version == 2.0
        assert error is None

    def test_missing_version(self):
        """Missing v is reported at ('v',)."""
        version, error = read_version({"title": "x"})

        assert version is None
        issue = error.errors()[0]
        assert issue["loc"] == ("v",)
        assert issue["type"] == MISSING

    def test_string_version(self):
        """String v is a type mismatch."""
        _, error = read_version({"v": "1"})
        issue = error.errors()[0]
        assert issue["loc"] == ("v",)
        assert issue["type"] == VERSION_TYPE
        assert "str" in issue["msg"]

    def test_bool_version(self):
        """Booleans are not versions."""
        _, error = read_version({"v": True})
        assert error.errors()[0]["type"] == VERSION_TYPE

    def test_non_mapping(self):
        """Non-mapping input is a type mismatch at ('v',)."""
        _, error = read_version(["v", 1])
        issue = error.errors()[0]
        assert issue["loc"] == ("v",)
        assert issue["type"] == VERSION_TYPE

    def test_unsupported_version_error(self):
        """Unsupported version message lists supported versions."""
        error = unsupported_version_error(5, [1, 2], {"v": 5})
        issue = error.errors()[0]

        assert isinstance(error, ValidationError)
        assert issue["type"] == UNSUPPORTED_VERSION
        assert issue["msg"] == "Invalid version 5, expected one of: 1, 2"


class TestClassification:
    """Tests for the classification helpers."""

    def test_missing_version(self, chain):
        """Missing v is neither a type error nor unsupported."""
        result = chain.safe_upgrade_to_latest({})
        assert classify(result.error) == (True, False, False)

    def test_invalid_version_type(self, chain):
        """Non-numeric v is a type error only."""
        result = chain.safe_upgrade_to_latest({"v": "1"})
        assert classify(result.error) == (False, True, False)

    def test_unsupported_version(self, chain):
        """Numeric unregistered v is unsupported only."""
        result = chain.safe_upgrade_to_latest({"v": 2})
        assert classify(result.error) == (False, False, True)

    def test_other_field_errors_not_classified(self, chain):
        """Errors on other fields are not version errors."""
        result = chain.safe_upgrade_to_latest({"v": 1, "title": 5})
        assert not result.success
        assert classify(result.error) == (False, False, False)

    def test_schema_literal_error_is_unsupported(self):
        """A schema rejecting the v literal counts as unsupported."""
        with pytest.raises(ValidationError) as exc_info:
            NoteV1.model_validate({"v": 5, "title": "x"})
        assert is_unsupported_version(exc_info.value)
        assert not is_invalid_version_type(exc_info.value)

    def test_unknown_target_not_classified(self):
        """Plain errors are never classified."""
        error = UnknownTargetVersionError(9, [1])
        assert classify(error) == (False, False, False)
        assert classify(None) == (False, False, False)
