"""
Unit tests for schema slots.

Tests cover:
- Reading the declared version
- Rejection of schemas without a usable version literal
"""

from typing import Literal

import pytest
from pydantic import BaseModel

from versionchain import InvalidSchemaError, schema_version
from versionchain.slot import describe_schema, safe_validate


class TestSchemaVersion:
    """Tests for schema_version()."""

    def test_reads_literal(self):
        """Version comes from the v literal."""

        class Record(BaseModel):
            v: Literal[7]

        assert schema_version(Record) == 7

    def test_not_a_model_raises(self):
        """Only pydantic model classes are schema slots."""
        with pytest.raises(InvalidSchemaError, match="pydantic model class"):
            schema_version(dict)

    def test_missing_field_raises(self):
        """Schemas must have a v field."""

        class Record(BaseModel):
            title: str

        with pytest.raises(InvalidSchemaError) as exc_info:
            schema_version(Record)
        assert exc_info.value.code == "INVALID_SCHEMA"
        assert exc_info.value.schema_name == "Record"

    def test_plain_int_raises(self):
        """A plain int annotation is not a declared version."""

        class Record(BaseModel):
            v: int

        with pytest.raises(InvalidSchemaError, match="Literal"):
            schema_version(Record)

    def test_string_literal_raises(self):
        """Versions must be integers."""

        class Record(BaseModel):
            v: Literal["1"]

        with pytest.raises(InvalidSchemaError, match="integer version"):
            schema_version(Record)

    def test_multiple_literals_raise(self):
        """A slot declares exactly one version."""

        class Record(BaseModel):
            v: Literal[1, 2]

        with pytest.raises(InvalidSchemaError):
            schema_version(Record)


class TestHelpers:
    """Tests for validation helpers."""

    def test_safe_validate(self):
        """safe_validate returns model or error."""

        class Record(BaseModel):
            v: Literal[1]
            title: str

        model, error = safe_validate(Record, {"v": 1, "title": "x"})
        assert error is None
        assert model.title == "x"

        model, error = safe_validate(Record, {"v": 1})
        assert model is None
        assert error.error_count() == 1

    def test_describe_schema(self):
        """describe_schema includes the JSON schema."""

        class Record(BaseModel):
            v: Literal[1]
            title: str

        description = describe_schema(Record)
        assert description["name"] == "Record"
        assert "title" in description["json_schema"]["properties"]
