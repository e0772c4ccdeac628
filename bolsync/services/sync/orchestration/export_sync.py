"""
Complete pass
Sweeps pending offers-export jobs (every few minutes on the cron)
"""
import logging
from typing import Optional

from bolsync.models.schemas.sync import RunReport
from bolsync.services.sync.context import SyncContext
from bolsync.services.sync.export_jobs import ExportJobMachine

logger = logging.getLogger(__name__)


async def run_complete_sync(ctx: SyncContext, customer_id: Optional[str] = None) -> RunReport:
    """Sweep pending export jobs for all tenants, or for one when customer_id is given."""
    return await ExportJobMachine(ctx).sweep(customer_id)
