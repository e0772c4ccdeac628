"""
Data Sync System
bol.com sync passes, export job state machine and Supabase storage
"""
from bolsync.services.sync.context import SyncContext
from bolsync.services.sync.database import BolRepository
from bolsync.services.sync.export_jobs import (
    Completed,
    ExportJobMachine,
    StillPending,
    Terminal,
    TerminalReason,
    Transient,
)
from bolsync.services.sync.orchestration import (
    run_complete_sync,
    run_extended_sync,
    run_main_sync,
    run_sync,
)

__all__ = [
    "SyncContext",
    "BolRepository",
    "ExportJobMachine",
    "Completed",
    "StillPending",
    "Transient",
    "Terminal",
    "TerminalReason",
    "run_sync",
    "run_main_sync",
    "run_complete_sync",
    "run_extended_sync",
]
