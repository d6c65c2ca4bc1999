import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from supabase import Client, create_client

from ..config import SUPABASE_SERVICE_KEY, SUPABASE_URL, SYNC_LOG_TABLE

logger = logging.getLogger(__name__)


class SupabaseClient:
    """Supabase client for mirror table operations"""

    def __init__(self, url: Optional[str] = None, key: Optional[str] = None):
        """Initialize Supabase client"""
        self.url = url or SUPABASE_URL
        self.key = key or SUPABASE_SERVICE_KEY  # Use service key for admin operations

        if not self.url or not self.key:
            raise ValueError("Supabase URL and key must be set in environment variables")

        self.client: Client = create_client(self.url, self.key)
        logger.info("Supabase client initialized")

    def upsert_rows(self, table: str, rows: List[Dict], on_conflict: str = "id") -> Dict:
        """Upsert rows into a mirror table"""
        try:
            result = self.client.table(table).upsert(
                rows,
                on_conflict=on_conflict
            ).execute()
            return {"success": True, "count": len(result.data or [])}
        except Exception as e:
            logger.error(f"Failed to upsert into {table}: {e}")
            return {"success": False, "error": str(e)}

    def count_rows(self, table: str) -> Optional[int]:
        """Exact row count for a table"""
        try:
            return self.client.table(table)\
                .select('*', count='exact', head=True)\
                .execute().count
        except Exception as e:
            logger.error(f"Failed to count rows in {table}: {e}")
            return None

    def count_not_null(self, table: str, column: str) -> Optional[int]:
        """Rows of ``table`` where ``column`` is set"""
        try:
            return self.client.table(table)\
                .select('*', count='exact', head=True)\
                .not_.is_(column, 'null')\
                .execute().count
        except Exception as e:
            logger.error(f"Failed to count {table}.{column}: {e}")
            return None

    def log_sync_operation(self, sync_type: str, plan: str) -> Optional[str]:
        """Create a sync log entry"""
        try:
            payload = {
                'sync_type': sync_type,
                'plan': plan,
                'status': 'started',
                'started_at': datetime.now().isoformat()
            }
            result = self.client.table(SYNC_LOG_TABLE).insert(payload).execute()
            return result.data[0]['id']
        except Exception as e:
            logger.error(f"Failed to create sync log: {e}")
            return None

    def update_sync_log(
        self,
        log_id: Optional[str],
        status: str,
        stats: Dict = None,
        error: str = None
    ):
        """Update sync log with results"""
        if not log_id:
            return
        try:
            update_data = {
                'status': status,
                'completed_at': datetime.now().isoformat()
            }
            if stats:
                update_data['metadata'] = stats
            if error:
                update_data['error_message'] = error
            self.client.table(SYNC_LOG_TABLE)\
                .update(update_data)\
                .eq('id', log_id)\
                .execute()
        except Exception as e:
            logger.error(f"Failed to update sync log: {e}")

    def get_last_sync(self, status: str = 'completed') -> Optional[Dict[str, Any]]:
        """Most recent sync log row with the given status"""
        try:
            result = self.client.table(SYNC_LOG_TABLE)\
                .select('*')\
                .eq('status', status)\
                .order('started_at', desc=True)\
                .limit(1)\
                .execute()
            return result.data[0] if result.data else None
        except Exception as e:
            logger.error(f"Failed to get last sync: {e}")
            return None

    def select_rows(
        self,
        table: str,
        filters: Dict = None,
        order: Optional[str] = None,
        desc: bool = False,
        limit: Optional[int] = None,
        ranges: Dict = None,
    ) -> List[Dict]:
        """Read mirror rows with equality filters and ``{column: (gte, lte)}`` ranges"""
        try:
            query = self.client.table(table).select('*')

            if filters:
                for key, value in filters.items():
                    if value is not None:
                        query = query.eq(key, value)
            if ranges:
                for key, (low, high) in ranges.items():
                    if low is not None:
                        query = query.gte(key, low)
                    if high is not None:
                        query = query.lte(key, high)
            if order:
                query = query.order(order, desc=desc)
            if limit:
                query = query.limit(limit)

            return query.execute().data or []
        except Exception as e:
            logger.error(f"Failed to read {table}: {e}")
            raise

    def get_row(self, table: str, row_id: str) -> Optional[Dict]:
        """Single mirror row by id, None when missing"""
        rows = self.select_rows(table, filters={'id': row_id}, limit=1)
        return rows[0] if rows else None
