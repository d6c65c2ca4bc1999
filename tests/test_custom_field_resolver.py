from contextlib import contextmanager
from pathlib import Path
import copy
import json
import sys

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from productive_sync.core.errors import EntityResolutionError
from productive_sync.services.custom_field_resolver import (
    CustomFieldValueResolver,
    is_numeric,
    parse_custom_fields,
)


class StubCustomFieldStore:
    """In-memory stand-in for PostgresCustomFieldStore with rollback support."""

    def __init__(self, fields=None, options=None, fail_on_insert=False):
        self.fields = fields or {}
        self.options = options or {}
        self.fail_on_insert = fail_on_insert
        self.rows = []
        self.option_lookups = []
        self.transactions = 0

    @contextmanager
    def transaction(self):
        self.transactions += 1
        snapshot = copy.deepcopy(self.rows)
        try:
            yield
        except Exception:
            self.rows = snapshot
            raise

    def delete_values(self, entity_id, entity_type):
        before = len(self.rows)
        self.rows = [
            r for r in self.rows
            if not (str(r["entity_id"]) == str(entity_id) and r["entity_type"] == entity_type)
        ]
        return before - len(self.rows)

    def find_field(self, field_id):
        return self.fields.get(str(field_id))

    def find_option(self, option_id):
        self.option_lookups.append(option_id)
        return self.options.get(str(option_id))

    def insert_value(self, value):
        if self.fail_on_insert:
            raise RuntimeError("insert failed")
        self.rows.append(value.to_row())


FIELDS = {
    "5": {"id": "5", "name": "Priority"},
    "6": {"id": "6", "name": "Notes"},
    "8": {"id": "8", "name": "Tags"},
}
OPTIONS = {"7": {"id": "7", "name": "High Priority"}}


def _resolver(**kwargs):
    store = StubCustomFieldStore(fields=FIELDS, options=OPTIONS, **kwargs)
    return CustomFieldValueResolver(store), store


def test_option_id_resolves_to_option_name():
    resolver, store = _resolver()
    written = resolver.resolve({"id": 42, "custom_fields": {"5": "7"}}, "project")

    assert written == 1
    assert store.rows == [
        {
            "entity_id": 42,
            "entity_type": "project",
            "custom_field_id": 5,
            "custom_field_option_id": 7,
            "custom_field_name": "Priority",
            "custom_field_value": "High Priority",
            "raw_value": "7",
        }
    ]


def test_reprocessing_entity_is_idempotent():
    resolver, store = _resolver()
    entity = {"id": 42, "custom_fields": json.dumps({"5": "7", "6": "call back"})}

    resolver.resolve(entity, "deal")
    first = copy.deepcopy(store.rows)
    resolver.resolve(entity, "deal")

    assert store.rows == first
    assert len(store.rows) == 2


def test_other_entities_rows_are_not_touched():
    resolver, store = _resolver()
    resolver.resolve({"id": 1, "custom_fields": {"5": "7"}}, "project")
    resolver.resolve({"id": 1, "custom_fields": {"5": "7"}}, "deal")
    resolver.resolve({"id": 1, "custom_fields": {"6": "x"}}, "project")

    assert sorted((r["entity_type"], r["custom_field_id"]) for r in store.rows) == [
        ("deal", 5),
        ("project", 6),
    ]


def test_non_numeric_value_is_stored_raw_without_lookup():
    resolver, store = _resolver()
    resolver.resolve({"id": 1, "custom_fields": {"6": "call back"}}, "project")

    assert store.option_lookups == []
    row = store.rows[0]
    assert row["custom_field_value"] == "call back"
    assert row["raw_value"] == "call back"
    assert row["custom_field_option_id"] is None


def test_numeric_value_without_option_falls_back_to_raw():
    resolver, store = _resolver()
    resolver.resolve({"id": 1, "custom_fields": {"5": 12}}, "project")

    assert store.option_lookups == [12]
    row = store.rows[0]
    assert row["custom_field_value"] == "12"
    assert row["raw_value"] == "12"
    assert row["custom_field_option_id"] is None


def test_unknown_field_is_skipped():
    resolver, store = _resolver()
    written = resolver.resolve({"id": 1, "custom_fields": {"999": "7", "5": "7"}}, "project")

    assert written == 1
    assert [r["custom_field_id"] for r in store.rows] == [5]


def test_list_values_are_serialized_and_not_looked_up():
    resolver, store = _resolver()
    resolver.resolve({"id": 1, "custom_fields": {"8": ["7", "9"]}}, "project")

    assert store.option_lookups == []
    assert store.rows[0]["raw_value"] == '["7", "9"]'
    assert store.rows[0]["custom_field_value"] == '["7", "9"]'


@pytest.mark.parametrize("custom_fields", [None, "", "{}", {}, "not json", "[1, 2]"])
def test_empty_custom_fields_is_a_no_op(custom_fields):
    resolver, store = _resolver()
    written = resolver.resolve({"id": 1, "custom_fields": custom_fields}, "project")

    assert written == 0
    assert store.transactions == 0


def test_failure_rolls_back_and_raises():
    resolver, store = _resolver()
    resolver.resolve({"id": 1, "custom_fields": {"5": "7"}}, "project")
    before = copy.deepcopy(store.rows)

    store.fail_on_insert = True
    with pytest.raises(EntityResolutionError) as excinfo:
        resolver.resolve({"id": 1, "custom_fields": {"6": "changed"}}, "project")

    assert excinfo.value.entity_id == 1
    assert excinfo.value.entity_type == "project"
    assert store.rows == before


def test_resolve_many_counts_processed_and_errors():
    resolver, store = _resolver()
    entities = [
        {"id": 1, "custom_fields": {"5": "7"}},
        {"id": "not-a-number", "custom_fields": {"5": "7"}},
        {"id": 3, "custom_fields": None},
    ]

    stats = resolver.resolve_many(entities, "deal")

    assert stats.found == 3
    assert stats.processed == 2
    assert stats.errors == 1
    assert [r["entity_id"] for r in store.rows] == [1]


@pytest.mark.parametrize(
    "value, expected",
    [
        ("7", True),
        (" 42 ", True),
        ("-1.5", True),
        ("1e3", True),
        (".5", True),
        (3, True),
        (2.5, True),
        ("", False),
        ("7a", False),
        ("abc", False),
        (True, False),
        (None, False),
        (["7"], False),
    ],
)
def test_is_numeric(value, expected):
    assert is_numeric(value) is expected


def test_parse_custom_fields_accepts_json_text_and_mappings():
    assert parse_custom_fields('{"5": "7"}') == {"5": "7"}
    assert parse_custom_fields({"5": "7"}) == {"5": "7"}
    assert parse_custom_fields(None) == {}
