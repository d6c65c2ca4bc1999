"""Show what the Supabase mirror currently holds.

Run via `python scripts/sync_status.py` after a sync. Prints row counts per
mirror table, the latest sync_log entries and foreign key coverage for the
core tables.
"""

from __future__ import annotations

import sys
from pathlib import Path

from rich import box
from rich.console import Console
from rich.table import Table


# Make project modules importable when executed as a script
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from productive_sync.config import SYNC_LOG_TABLE, table_name  # noqa: E402
from productive_sync.core.resources import RESOURCES  # noqa: E402
from productive_sync.database.store_service import DataStoreService  # noqa: E402
from productive_sync.database.supabase_client import SupabaseClient  # noqa: E402
from productive_sync.tasks.sync_plans import SYNC_PLANS  # noqa: E402


console = Console()


def _fmt(value) -> str:
    return "n/a" if value is None else f"{value:,}"


def run_report() -> int:
    supabase = SupabaseClient()

    console.rule("Mirror tables")
    counts_table = Table(box=box.SIMPLE_HEAVY)
    counts_table.add_column("Resource")
    counts_table.add_column("Table")
    counts_table.add_column("Rows", justify="right")
    for name in RESOURCES:
        table = table_name(name)
        counts_table.add_row(name, table, _fmt(supabase.count_rows(table)))
    console.print(counts_table)

    console.rule("Recent syncs")
    recent = (
        supabase.client.table(SYNC_LOG_TABLE)
        .select("plan, status, started_at, completed_at, error_message")
        .order("started_at", desc=True)
        .limit(10)
        .execute()
    )
    log_table = Table(show_edge=False, header_style="bold")
    for column in ("plan", "status", "started_at", "completed_at", "error_message"):
        log_table.add_column(column)
    for row in recent.data or []:
        log_table.add_row(*(str(row.get(c) or "") for c in ("plan", "status", "started_at", "completed_at", "error_message")))
    console.print(log_table)

    console.rule("Relationship coverage (core)")
    report = DataStoreService(supabase).validate_integrity(SYNC_PLANS["core"].resources)
    coverage_table = Table(box=box.SIMPLE_HEAVY)
    coverage_table.add_column("Resource")
    coverage_table.add_column("Relationship")
    coverage_table.add_column("Rows", justify="right")
    coverage_table.add_column("Total", justify="right")
    coverage_table.add_column("Coverage", justify="right")
    for name, entry in report.items():
        for relationship, stats in entry["relationships"].items():
            coverage_table.add_row(
                name,
                relationship,
                _fmt(stats["count"]),
                _fmt(entry["total"]),
                f"{stats['percentage']:.2f}%",
            )
    console.print(coverage_table)
    return 0


if __name__ == "__main__":
    try:
        sys.exit(run_report())
    except Exception as exc:  # noqa: BLE001
        console.print(f"[red]Status report failed:[/red] {exc}")
        sys.exit(1)
