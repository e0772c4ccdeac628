"""
bol.com Domain Schemas
Tenants (bol customers) and async export jobs as stored in Supabase
"""
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel


class BolCustomer(BaseModel):
    """
    Tenant credential row (bol_customers).
    The sync core only reads it, apart from stamping last_sync_at.
    """
    id: str
    seller_name: str = ""
    bol_client_id: str
    bol_client_secret: str
    ads_client_id: Optional[str] = None
    ads_client_secret: Optional[str] = None
    active: bool = True
    sync_interval_hours: int = 24
    last_sync_at: Optional[datetime] = None

    @property
    def has_ads_credentials(self) -> bool:
        return bool(self.ads_client_id and self.ads_client_secret)


class ExportJobStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class ExportJob(BaseModel):
    """Async export job row (bol_sync_jobs)."""
    id: str
    tenant_id: str
    data_type: str = "listings"
    process_status_id: str
    status: ExportJobStatus = ExportJobStatus.PENDING
    attempts: int = 0
    started_at: datetime
    completed_at: Optional[datetime] = None
    error: Optional[str] = None
    entity_id: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status != ExportJobStatus.PENDING

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "ExportJob":
        """Map a bol_sync_jobs row (bol_customer_id column) onto the model."""
        return cls(
            id=str(row["id"]),
            tenant_id=str(row["bol_customer_id"]),
            data_type=row.get("data_type") or "listings",
            process_status_id=str(row["process_status_id"]),
            status=row.get("status") or ExportJobStatus.PENDING,
            attempts=row.get("attempts") or 0,
            started_at=row["started_at"],
            completed_at=row.get("completed_at"),
            error=row.get("error"),
            entity_id=row.get("entity_id"),
        )
