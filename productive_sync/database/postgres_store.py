# productive_sync/database/postgres_store.py
import logging
from typing import Any, Dict, List, Optional

import psycopg
from psycopg import sql
from psycopg.rows import dict_row

from ..config import CUSTOM_FIELD_VALUES_TABLE, SUPABASE_DB_URL, table_name
from ..core.models import CustomFieldValue

logger = logging.getLogger(__name__)

ENTITY_TABLES = {
    "project": table_name("projects"),
    "deal": table_name("deals"),
}


class PostgresCustomFieldStore:
    """Direct Postgres access for the transactional custom field value pass."""

    def __init__(self, dsn: Optional[str] = None):
        self.dsn = dsn or SUPABASE_DB_URL
        if not self.dsn:
            raise RuntimeError("SUPABASE_DB_URL environment variable is required for custom field values")
        self._conn: Optional[psycopg.Connection] = None

    @property
    def conn(self) -> psycopg.Connection:
        if self._conn is None or self._conn.closed:
            # autocommit so that every transaction() block is a real transaction
            self._conn = psycopg.connect(self.dsn, autocommit=True, row_factory=dict_row)
        return self._conn

    def close(self) -> None:
        if self._conn is not None and not self._conn.closed:
            self._conn.close()
        self._conn = None

    def __enter__(self) -> "PostgresCustomFieldStore":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def transaction(self):
        return self.conn.transaction()

    def load_entities(self, entity_type: str) -> List[Dict[str, Any]]:
        """Projects or deals whose ``custom_fields`` column is set."""
        query = sql.SQL("SELECT id, custom_fields FROM {table} WHERE custom_fields IS NOT NULL ORDER BY id").format(
            table=sql.Identifier(ENTITY_TABLES[entity_type])
        )
        with self.conn.cursor() as cur:
            cur.execute(query)
            return cur.fetchall()

    def delete_values(self, entity_id: Any, entity_type: str) -> int:
        query = sql.SQL("DELETE FROM {table} WHERE entity_id = %s AND entity_type = %s").format(
            table=sql.Identifier(CUSTOM_FIELD_VALUES_TABLE)
        )
        with self.conn.cursor() as cur:
            cur.execute(query, (entity_id, entity_type))
            return cur.rowcount

    def find_field(self, field_id: Any) -> Optional[Dict[str, Any]]:
        return self._find_by_id(table_name("custom_fields"), field_id)

    def find_option(self, option_id: Any) -> Optional[Dict[str, Any]]:
        return self._find_by_id(table_name("custom_field_options"), option_id)

    def insert_value(self, value: CustomFieldValue) -> None:
        row = value.to_row()
        columns = list(row)
        query = sql.SQL("INSERT INTO {table} ({columns}) VALUES ({values})").format(
            table=sql.Identifier(CUSTOM_FIELD_VALUES_TABLE),
            columns=sql.SQL(", ").join(sql.Identifier(c) for c in columns),
            values=sql.SQL(", ").join(sql.Placeholder() for _ in columns),
        )
        with self.conn.cursor() as cur:
            cur.execute(query, [row[c] for c in columns])

    def _find_by_id(self, table: str, row_id: Any) -> Optional[Dict[str, Any]]:
        query = sql.SQL("SELECT id, name FROM {table} WHERE id = %s LIMIT 1").format(
            table=sql.Identifier(table)
        )
        with self.conn.cursor() as cur:
            cur.execute(query, (str(row_id),))
            return cur.fetchone()
