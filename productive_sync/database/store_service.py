import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

from ..config import SYNC_BATCH_SIZE, table_name
from ..core.errors import StorageError
from ..core.resources import ResourceSpec, get_resource
from .supabase_client import SupabaseClient

logger = logging.getLogger(__name__)


@dataclass
class StoreStats:
    """Rows written for one resource."""

    resource: str
    stored: int = 0
    failed: int = 0


def flatten_resource(resource: Dict[str, Any], spec: ResourceSpec) -> Dict[str, Any]:
    """
    Turn a JSON:API resource into a mirror table row.

    Attributes become columns; each to-one relationship of ``spec`` becomes a
    ``<relationship>_id`` column (``None`` when unset). To-many relationships
    and merged ``included`` entities are not stored.
    """
    row: Dict[str, Any] = {}
    attributes = resource.get("attributes") or {}
    for key, value in attributes.items():
        if key in ("id", "type"):
            continue
        row[key] = value

    relationships = resource.get("relationships") or {}
    for name in spec.to_one:
        data = (relationships.get(name) or {}).get("data")
        row[f"{name}_id"] = data.get("id") if isinstance(data, dict) else None

    row["id"] = resource.get("id")
    row["type"] = resource.get("type")
    return row


class DataStoreService:
    """Persists fetched resources into ``productive_*`` mirror tables."""

    def __init__(
        self,
        supabase_client: Optional[SupabaseClient] = None,
        batch_size: int = SYNC_BATCH_SIZE,
        *,
        logger: Optional[logging.Logger] = None,
    ):
        self.supabase_client = supabase_client or SupabaseClient()
        self.batch_size = batch_size
        self.logger = logger or logging.getLogger(f"{__name__}.store")

    def store(self, data: Mapping[str, List[Dict[str, Any]]]) -> Dict[str, StoreStats]:
        """
        Upsert every fetched resource collection.

        Args:
            data: Resource name -> fetched resources, in the order they were fetched

        Returns:
            StoreStats per resource

        Raises:
            StorageError: If there was data to store and not a single row was written
        """
        results: Dict[str, StoreStats] = {}
        for name, resources in data.items():
            results[name] = self.store_resource(get_resource(name), resources)

        stored = sum(s.stored for s in results.values())
        failed = sum(s.failed for s in results.values())
        if failed and not stored:
            raise StorageError(f"Error storing data: all {failed} rows failed")
        return results

    def store_resource(self, spec: ResourceSpec, resources: List[Dict[str, Any]]) -> StoreStats:
        """Batch upsert one resource; failing batches are retried row by row."""
        stats = StoreStats(resource=spec.name)
        if not resources:
            return stats

        table = table_name(spec.name)
        rows = [flatten_resource(resource, spec) for resource in resources]
        self.logger.info(f"Storing {len(rows)} {spec.name} into {table}...")

        for i in range(0, len(rows), self.batch_size):
            batch = rows[i:i + self.batch_size]
            result = self.supabase_client.upsert_rows(table, batch)
            if result["success"]:
                stats.stored += len(batch)
                continue

            self.logger.warning(
                f"[upsert {spec.name}] batch={i // self.batch_size + 1} failed ({result.get('error')}); "
                "retrying row by row"
            )
            for row in batch:
                single = self.supabase_client.upsert_rows(table, [row])
                if single["success"]:
                    stats.stored += 1
                else:
                    stats.failed += 1
                    self.logger.error(f"Failed to store {spec.name} (ID: {row.get('id')}): {single.get('error')}")

        self.logger.info(f"{spec.name}: {stats.stored} stored successfully, {stats.failed} failed")
        return stats

    def validate_integrity(self, resource_names: Iterable[str]) -> Dict[str, Dict[str, Any]]:
        """
        Count mirror rows and populated foreign keys per resource.

        Returns:
            ``{resource: {"total": n, "relationships": {rel: {"count": c, "percentage": p}}}}``
        """
        report: Dict[str, Dict[str, Any]] = {}
        for name in resource_names:
            spec = get_resource(name)
            table = table_name(name)
            total = self.supabase_client.count_rows(table)
            entry: Dict[str, Any] = {"total": total, "relationships": {}}

            if total:
                for relationship in spec.to_one:
                    count = self.supabase_client.count_not_null(table, f"{relationship}_id")
                    if count is None:
                        continue
                    percentage = round(count / total * 100, 2)
                    entry["relationships"][relationship] = {"count": count, "percentage": percentage}
                    self.logger.info(
                        f"{name} with {relationship} relationship: {count}/{total} ({percentage}%)"
                    )
            else:
                self.logger.info(f"{name}: no rows to validate")

            report[name] = entry
        return report
