"""
Storage helpers for the bol.com sync
Tenants, export jobs, snapshots, analyses and enrichment rows in Supabase

Every write is a single insert or a single update-by-id, so a run cut off
by the execution window never leaves anything half-committed. Export
snapshots carry the bol.com entity id so a re-processed export finds them.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from supabase import Client

from bolsync.core.circuit_breakers import with_retry
from bolsync.models.schemas.bol import BolCustomer, ExportJob, ExportJobStatus
from bolsync.services.analysis import AnalysisResult

logger = logging.getLogger(__name__)

CUSTOMER_COLUMNS = (
    "id, seller_name, bol_client_id, bol_client_secret, ads_client_id, ads_client_secret, "
    "active, sync_interval_hours, last_sync_at"
)
JOB_COLUMNS = (
    "id, bol_customer_id, data_type, process_status_id, status, attempts, "
    "started_at, completed_at, error, entity_id"
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BolRepository:
    """
    Supabase-backed storage for the sync core.

    Args:
        supabase: Supabase client (service role)
    """

    def __init__(self, supabase: Client):
        self.supabase = supabase

    # ========================================================================
    # TENANTS
    # ========================================================================

    @with_retry(max_attempts=3, min_wait=1, max_wait=5)
    def list_active_customers(self) -> List[BolCustomer]:
        result = self.supabase.table("bol_customers")\
            .select(CUSTOMER_COLUMNS)\
            .eq("active", True)\
            .execute()
        return [BolCustomer(**row) for row in result.data or []]

    def get_customer(self, customer_id: str) -> Optional[BolCustomer]:
        result = self.supabase.table("bol_customers")\
            .select(CUSTOMER_COLUMNS)\
            .eq("id", customer_id)\
            .limit(1)\
            .execute()
        if not result.data:
            return None
        return BolCustomer(**result.data[0])

    def get_customers(self, customer_ids: Iterable[str]) -> Dict[str, BolCustomer]:
        ids = list(dict.fromkeys(customer_ids))
        if not ids:
            return {}
        result = self.supabase.table("bol_customers")\
            .select(CUSTOMER_COLUMNS)\
            .in_("id", ids)\
            .execute()
        return {str(row["id"]): BolCustomer(**row) for row in result.data or []}

    def mark_synced(self, customer_id: str) -> None:
        self.supabase.table("bol_customers")\
            .update({"last_sync_at": utcnow().isoformat()})\
            .eq("id", customer_id)\
            .execute()

    # ========================================================================
    # EXPORT JOBS
    # ========================================================================

    def create_export_job(self, customer_id: str, process_status_id: str, data_type: str = "listings") -> ExportJob:
        result = self.supabase.table("bol_sync_jobs").insert({
            "bol_customer_id": customer_id,
            "data_type": data_type,
            "process_status_id": process_status_id,
            "status": ExportJobStatus.PENDING.value,
            "attempts": 0,
            "started_at": utcnow().isoformat(),
        }).execute()
        return ExportJob.from_row(result.data[0])

    def list_pending_jobs(self, customer_id: Optional[str] = None) -> List[ExportJob]:
        """Pending jobs only (terminal jobs are never swept), oldest first."""
        query = self.supabase.table("bol_sync_jobs")\
            .select(JOB_COLUMNS)\
            .eq("status", ExportJobStatus.PENDING.value)

        if customer_id:
            query = query.eq("bol_customer_id", customer_id)

        result = query.order("started_at", desc=False).execute()
        return [ExportJob.from_row(row) for row in result.data or []]

    def update_job(self, job_id: str, **fields: Any) -> None:
        payload = {
            key: (value.isoformat() if isinstance(value, datetime) else value)
            for key, value in fields.items()
        }
        if isinstance(payload.get("status"), ExportJobStatus):
            payload["status"] = payload["status"].value
        self.supabase.table("bol_sync_jobs").update(payload).eq("id", job_id).execute()

    # ========================================================================
    # SNAPSHOTS + ANALYSES
    # ========================================================================

    def insert_snapshot(
        self,
        customer_id: str,
        data_type: str,
        raw_data: Dict[str, Any],
        record_count: int,
        quality_score: float = 1.0
    ) -> Optional[str]:
        result = self.supabase.table("bol_raw_snapshots").insert({
            "bol_customer_id": customer_id,
            "data_type": data_type,
            "raw_data": raw_data,
            "record_count": record_count,
            "quality_score": quality_score,
        }).execute()
        return str(result.data[0]["id"]) if result.data else None

    def insert_analysis(
        self,
        customer_id: str,
        category: str,
        analysis: AnalysisResult,
        snapshot_id: Optional[str] = None
    ) -> None:
        self.supabase.table("bol_analyses").insert({
            "bol_customer_id": customer_id,
            "snapshot_id": snapshot_id,
            "category": category,
            "score": analysis.score,
            "findings": analysis.findings,
            "recommendations": [r.model_dump() for r in analysis.recommendations],
        }).execute()

    def find_export_snapshot(self, customer_id: str, data_type: str, entity_id: str) -> Optional[str]:
        """Id of the snapshot already stored for an offers export, if any."""
        result = self.supabase.table("bol_raw_snapshots")\
            .select("id")\
            .eq("bol_customer_id", customer_id)\
            .eq("data_type", data_type)\
            .eq("raw_data->>entity_id", entity_id)\
            .limit(1)\
            .execute()
        return str(result.data[0]["id"]) if result.data else None

    def has_analysis(self, snapshot_id: str, category: str) -> bool:
        result = self.supabase.table("bol_analyses")\
            .select("id")\
            .eq("snapshot_id", snapshot_id)\
            .eq("category", category)\
            .limit(1)\
            .execute()
        return bool(result.data)

    def latest_offers(self, customer_id: str, lookback: int = 10) -> List[Dict[str, str]]:
        """
        Offer records from the newest listings snapshot that has any, or [].

        Catalog/forecast enrichment is also stored as a listings snapshot
        (without offers), hence the lookback window.
        """
        result = self.supabase.table("bol_raw_snapshots")\
            .select("raw_data")\
            .eq("bol_customer_id", customer_id)\
            .eq("data_type", "listings")\
            .order("fetched_at", desc=True)\
            .limit(lookback)\
            .execute()
        for row in result.data or []:
            offers = (row.get("raw_data") or {}).get("offers")
            if offers:
                return offers
        return []

    # ========================================================================
    # ENRICHMENT
    # ========================================================================

    def insert_competitor_snapshot(self, row: Dict[str, Any]) -> None:
        self.supabase.table("bol_competitor_snapshots").insert(row).execute()

    def insert_keyword_rankings(self, rows: List[Dict[str, Any]]) -> None:
        if rows:
            self.supabase.table("bol_keyword_rankings").insert(rows).execute()
