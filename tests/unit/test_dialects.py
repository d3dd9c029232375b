from __future__ import annotations

from typing import Any, Dict

import pytest
from pydantic import ValidationError

from recordstore.dialects import DialectDescriptor, available_dialects, get_dialect
from recordstore.errors import ConfigurationError, DialectValidationError, ErrorKind


def _fields(**overrides: Any) -> Dict[str, Any]:
    fields = get_dialect("sqlite").model_dump()
    fields.update(overrides)
    return fields


def test_available_dialects_returns_sorted_list():
    assert available_dialects() == ["mysql", "postgresql", "sqlite"]


@pytest.mark.parametrize("name", ["sqlite", "postgresql", "mysql", "PostgreSQL"])
def test_builtin_dialects_validate(name):
    dialect = get_dialect(name)
    assert dialect.name == name.lower()
    assert dialect.pagination_second_length is True


def test_unknown_dialect_is_configuration_error():
    with pytest.raises(ConfigurationError) as excinfo:
        get_dialect("oracle")
    assert "Available: mysql, postgresql, sqlite" in str(excinfo.value)


def test_format_dialects_use_percent_marker():
    assert get_dialect("postgresql").param_marker == "%s"
    assert get_dialect("mysql").param_marker == "%s"
    assert get_dialect("sqlite").param_marker == "?"


def test_build_accepts_valid_templates():
    dialect = DialectDescriptor.build(**_fields(name="custom"))
    assert dialect.name == "custom"


def test_unknown_placeholder_fails_fast():
    fields = _fields(record_retrieval="SELECT * FROM {{SCHEMA}}.{{TABLE_NAME}} LIMIT ?, ?")
    with pytest.raises(DialectValidationError) as excinfo:
        DialectDescriptor.build(**fields)
    assert "{{SCHEMA}}" in str(excinfo.value)
    assert excinfo.value.kind is ErrorKind.CONFIGURATION


def test_unknown_placeholder_in_statement_list_fails_fast():
    fields = _fields(record_table_init=("CREATE TABLE {{TABLE_NAME}} (x INT)", "{{TABLESPACE}}"))
    with pytest.raises(DialectValidationError) as excinfo:
        DialectDescriptor.build(**fields)
    assert "record_table_init[1]" in str(excinfo.value)


def test_id_templates_need_record_ids_token():
    fields = _fields(record_deletion_with_ids="DELETE FROM {{TABLE_NAME}} WHERE record_id = ?")
    with pytest.raises(DialectValidationError):
        DialectDescriptor.build(**fields)


def test_record_templates_need_table_token():
    fields = _fields(record_insert="INSERT INTO records VALUES (?, ?, ?)")
    with pytest.raises(DialectValidationError):
        DialectDescriptor.build(**fields)


def test_empty_table_init_is_rejected():
    with pytest.raises(DialectValidationError):
        DialectDescriptor.build(**_fields(record_table_init=()))


def test_unsupported_param_marker_is_rejected():
    with pytest.raises(DialectValidationError):
        DialectDescriptor.build(**_fields(param_marker=":1"))


def test_unknown_field_is_rejected():
    with pytest.raises(DialectValidationError):
        DialectDescriptor.build(**_fields(cache_results=True))


def test_descriptor_is_immutable():
    dialect = get_dialect("sqlite")
    with pytest.raises(ValidationError):
        dialect.pagination_first_zero_indexed = False


def test_templates_flattens_statement_lists():
    dialect = get_dialect("sqlite")
    names = [name for name, _ in dialect.templates()]
    assert "record_table_init[0]" in names
    assert "system_table_check" in names
    assert "list_tables" in names
