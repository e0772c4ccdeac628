"""
Sync Schemas
Run reports and trigger requests for the bol.com sync passes
"""
from enum import Enum
from typing import Any, Dict, List, Union

from pydantic import AliasChoices, BaseModel, Field


class SyncType(str, Enum):
    MAIN = "main"
    COMPLETE = "complete"
    EXTENDED = "extended"


class SyncTriggerRequest(BaseModel):
    """Dashboard-initiated sync for one tenant."""
    customer_id: str = Field(min_length=1)
    sync_type: SyncType


class ManualSyncRequest(BaseModel):
    """Operator-initiated main pass for one tenant (accepts customerId too)."""
    customer_id: str = Field(min_length=1, validation_alias=AliasChoices("customer_id", "customerId"))


class RunEntry(BaseModel):
    """
    Outcome of one unit of work (a tenant or an export job).
    status: "ok", "error", "skipped" for tenants; "completed", "pending",
    "failed", "error" for jobs.
    """
    id: str
    status: str
    detail: Union[str, Dict[str, Any]] = ""
    seller_name: str = ""


class RunReport(BaseModel):
    """Per-invocation aggregate. Built fresh each run, never persisted."""
    sync_type: SyncType
    processed: int = 0
    duration_ms: int = 0
    results: List[RunEntry] = []
    message: str = ""

    def add(self, entry: RunEntry) -> RunEntry:
        self.results.append(entry)
        self.processed = len(self.results)
        return entry

    def count(self, status: str) -> int:
        return sum(1 for r in self.results if r.status == status)

    def summary(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for r in self.results:
            counts[r.status] = counts.get(r.status, 0) + 1
        return counts
