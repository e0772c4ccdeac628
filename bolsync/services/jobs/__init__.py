"""
Background Job Queue
Dramatiq-based async task processing
"""
from bolsync.services.jobs.broker import broker
from bolsync.services.jobs.tasks import SYNC_ACTORS, sync_complete_task, sync_extended_task, sync_main_task

__all__ = ["broker", "SYNC_ACTORS", "sync_main_task", "sync_complete_task", "sync_extended_task"]
