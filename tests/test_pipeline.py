from pathlib import Path
import sys

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from productive_sync.core.errors import ProductiveAPIError
from productive_sync.tasks import pipeline
from productive_sync.tasks.pipeline import (
    SyncAlreadyRunning,
    execute_sync,
    run_custom_field_values,
    run_sync,
)


class FakeProductiveClient:
    def __init__(self, failing=()):
        self.failing = set(failing)
        self.paths = []

    def get(self, path, params=None):
        self.paths.append(path)
        if path in self.failing:
            raise ProductiveAPIError(503, "Service Unavailable")
        return {"data": [{"id": "1", "type": path, "attributes": {"name": path}, "relationships": {}}]}


class DummySupabaseClient:
    def __init__(self):
        self.logs = []
        self.upserts = []

    def log_sync_operation(self, sync_type, plan):
        self.logs.append({"plan": plan, "status": "started"})
        return "log-1"

    def update_sync_log(self, log_id, status, stats=None, error=None):
        self.logs[-1].update({"status": status, "stats": stats, "error": error})

    def upsert_rows(self, table, rows, on_conflict="id"):
        self.upserts.append(table)
        return {"success": True, "count": len(rows)}

    def count_rows(self, table):
        return 1

    def count_not_null(self, table, column):
        return 1


def test_run_sync_success_logs_completed_and_returns_zero():
    supabase = DummySupabaseClient()
    client = FakeProductiveClient()

    code = run_sync("prs", client=client, supabase=supabase)

    assert code == 0
    assert client.paths == ["payment_reminder_sequences", "payment_reminders"]
    assert supabase.upserts == ["productive_payment_reminder_sequences", "productive_payment_reminders"]
    assert supabase.logs[-1]["status"] == "completed"
    assert supabase.logs[-1]["stats"]["counts"] == {
        "payment_reminder_sequences": 1,
        "payment_reminders": 1,
    }


def test_run_sync_fetch_failure_returns_one():
    supabase = DummySupabaseClient()
    client = FakeProductiveClient(failing={"tasks"})

    code = run_sync("task-lists", client=client, supabase=supabase)

    assert code == 1
    assert client.paths == ["task_lists", "tasks"]
    assert supabase.upserts == []
    assert supabase.logs[-1]["status"] == "failed"
    assert "Failed to fetch tasks" in supabase.logs[-1]["error"]


def test_run_sync_unknown_plan_returns_one():
    assert run_sync("nope", client=FakeProductiveClient(), supabase=DummySupabaseClient()) == 1


def test_concurrent_sync_is_rejected():
    assert pipeline._sync_lock.acquire(blocking=False)
    try:
        assert pipeline.is_sync_running()
        with pytest.raises(SyncAlreadyRunning):
            execute_sync("prs", client=FakeProductiveClient(), supabase=DummySupabaseClient())
    finally:
        pipeline._sync_lock.release()
    assert not pipeline.is_sync_running()


class StubCustomFieldStore:
    def __init__(self, entities=None, fail_load=False):
        self.entities = entities or {}
        self.fail_load = fail_load
        self.loaded = []

    def load_entities(self, entity_type):
        if self.fail_load:
            raise ConnectionError("database unreachable")
        self.loaded.append(entity_type)
        return self.entities.get(entity_type, [])

    def find_field(self, field_id):
        return None

    def close(self):
        pass


def test_custom_field_values_counts_without_failing():
    store = StubCustomFieldStore({"project": [{"id": 1, "custom_fields": None}], "deal": []})

    assert run_custom_field_values(store=store) == 0
    assert store.loaded == ["project", "deal"]


def test_custom_field_values_limited_to_one_entity_type():
    store = StubCustomFieldStore()

    assert run_custom_field_values(["deal"], store=store) == 0
    assert store.loaded == ["deal"]


def test_custom_field_values_systemic_error_returns_one():
    assert run_custom_field_values(store=StubCustomFieldStore(fail_load=True)) == 1
