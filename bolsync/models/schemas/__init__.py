"""
Pydantic Schemas
Domain rows and request/response models
"""

# bol.com domain schemas
from .bol import BolCustomer, ExportJob, ExportJobStatus

# Sync schemas
from .sync import ManualSyncRequest, RunEntry, RunReport, SyncTriggerRequest, SyncType

__all__ = [
    # bol.com
    "BolCustomer",
    "ExportJob",
    "ExportJobStatus",
    # Sync
    "ManualSyncRequest",
    "RunEntry",
    "RunReport",
    "SyncTriggerRequest",
    "SyncType",
]
