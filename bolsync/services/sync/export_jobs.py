"""
Async Export Job State Machine
Submit → poll → download for bol.com offers exports

States: pending → completed | failed. Terminal jobs never move again.

Each sweep checks every pending job, oldest first:
1. Older than the max age          → failed ("Expired after 24h")
2. Tenant no longer exists         → failed ("Customer not found")
3. attempts >= max attempts        → failed, without asking bol.com
4. Otherwise ask bol.com, then attempts += 1 whatever the answer
   SUCCESS + entityId → download, decode, persist, analyse → completed
   FAILURE            → failed
   anything else      → still pending

An exception while resolving a job is Transient: the message is stored on
the job and it stays pending for the next sweep. Only bol.com itself (or
the age/attempt bounds) can fail a job.
"""
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Dict, List, Optional, Union

from bolsync.models.schemas.bol import BolCustomer, ExportJob, ExportJobStatus
from bolsync.models.schemas.sync import RunEntry, RunReport, SyncType
from bolsync.services.analysis import OfferInsightsMap, analyze_content
from bolsync.services.bol.client import OFFER_INSIGHTS_BATCH
from bolsync.services.bol.csv_decoder import Record
from bolsync.services.bol.errors import UpstreamFailure
from bolsync.services.sync.context import SyncContext
from bolsync.services.sync.database import utcnow

logger = logging.getLogger(__name__)


# ============================================================================
# POLL OUTCOMES
# ============================================================================

class TerminalReason(str, Enum):
    UPSTREAM_FAILURE = "upstream_failure"
    NOT_FOUND = "not_found"
    MAX_ATTEMPTS = "max_attempts"
    EXPIRED = "expired"


@dataclass(frozen=True)
class Completed:
    entity_id: str
    detail: str


@dataclass(frozen=True)
class StillPending:
    upstream_status: str


@dataclass(frozen=True)
class Transient:
    message: str


@dataclass(frozen=True)
class Terminal:
    reason: TerminalReason
    message: str


PollOutcome = Union[Completed, StillPending, Transient, Terminal]


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _offer_id(record: Record) -> str:
    return record.get("Offer Id") or record.get("offer_id") or ""


def parse_offer_insights(raw_list: List[dict]) -> OfferInsightsMap:
    """Flatten /retailer/insights/offer entries into per-offer metrics."""
    insights: OfferInsightsMap = {}
    for raw in raw_list:
        offer_id = raw.get("offerId")
        if not offer_id:
            continue

        values: Dict[str, float] = {}
        for metric in raw.get("offerInsightData") or []:
            periods = metric.get("periods") or []
            if metric.get("name") and periods:
                values[metric["name"]] = periods[0].get("value") or 0

        insights[offer_id] = {
            "buy_box_pct": values.get("BUY_BOX_PERCENTAGE") or None,
            "visits": values.get("PRODUCT_VISITS", 0),
            "impressions": values.get("IMPRESSIONS", 0),
            "clicks": values.get("CLICKS", 0),
            "conversions": values.get("CONVERSIONS", 0),
        }
    return insights


class ExportJobMachine:
    """
    Drives bol_sync_jobs rows through their lifecycle.

    Args:
        ctx: Shared sync collaborators
        clock: Returns the current aware UTC datetime
    """

    def __init__(self, ctx: SyncContext, clock: Callable[[], datetime] = utcnow):
        self.ctx = ctx
        self.repository = ctx.repository
        self.clock = clock
        self.max_attempts = ctx.settings.export_max_attempts
        self.max_age = timedelta(hours=ctx.settings.export_max_age_hours)

    # ========================================================================
    # SUBMIT
    # ========================================================================

    async def submit(self, customer: BolCustomer, token: str) -> ExportJob:
        """Request an offers export and record it as a pending job."""
        process_status_id = await self.ctx.client.start_offers_export(token)
        job = self.repository.create_export_job(customer.id, process_status_id, data_type="listings")
        logger.info(f"📤 Offers export submitted for {customer.seller_name or customer.id} (processStatusId: {process_status_id})")
        return job

    # ========================================================================
    # POLL
    # ========================================================================

    def check_bounds(self, job: ExportJob, customer: Optional[BolCustomer]) -> Optional[Terminal]:
        """Age, tenant and attempt checks, in that order. None when the job may be polled."""
        if self.clock() - _as_utc(job.started_at) >= self.max_age:
            return Terminal(TerminalReason.EXPIRED, f"Expired after {int(self.max_age.total_seconds() // 3600)}h")

        if customer is None:
            return Terminal(TerminalReason.NOT_FOUND, "Customer not found")

        if job.attempts >= self.max_attempts:
            return Terminal(TerminalReason.MAX_ATTEMPTS, f"Exceeded max attempts ({self.max_attempts})")

        return None

    async def poll(self, job: ExportJob, customer: Optional[BolCustomer]) -> PollOutcome:
        bounded = self.check_bounds(job, customer)
        if bounded:
            return bounded

        try:
            token = await self.ctx.token_cache.get_retailer_token(customer.bol_client_id, customer.bol_client_secret)
            status = await self.ctx.client.check_process_status(token, job.process_status_id)

            job.attempts += 1
            self.repository.update_job(job.id, attempts=job.attempts)

            if status.status == "SUCCESS" and status.entity_id:
                detail = await self._process_export(job, customer, token, status.entity_id)
                return Completed(entity_id=status.entity_id, detail=detail)

            if status.status == "FAILURE":
                raise UpstreamFailure("Bol.com reported FAILURE status")

            return StillPending(upstream_status=status.status)

        except UpstreamFailure as e:
            return Terminal(TerminalReason.UPSTREAM_FAILURE, str(e))
        except Exception as e:
            logger.warning(f"⚠️  Export job {job.id} poll failed, staying pending: {e}")
            return Transient(message=str(e))

    async def _process_export(self, job: ExportJob, customer: BolCustomer, token: str, entity_id: str) -> str:
        # A previous sweep may have stored part of this export and then failed
        # before the job was marked completed
        snapshot_id = self.repository.find_export_snapshot(customer.id, "listings", entity_id)
        if snapshot_id and self.repository.has_analysis(snapshot_id, "content"):
            logger.info(f"Export {entity_id} for job {job.id} already stored, completing")
            return f"export {entity_id} already stored"

        offers = await self.ctx.client.download_offers_export(token, entity_id)
        insights = await self._collect_insights(token, offers)

        if insights and not self.repository.find_export_snapshot(customer.id, "offer_insights", entity_id):
            self.repository.insert_snapshot(
                customer.id,
                "offer_insights",
                {"insights": insights, "entity_id": entity_id},
                record_count=len(insights),
            )

        analysis = analyze_content(offers, insights or None)
        if not snapshot_id:
            snapshot_id = self.repository.insert_snapshot(
                customer.id,
                "listings",
                {"offers": offers, "entity_id": entity_id},
                record_count=len(offers),
                quality_score=1.0 if offers else 0.5,
            )
        self.repository.insert_analysis(customer.id, "content", analysis, snapshot_id=snapshot_id)

        return f"{len(offers)} offers, content score {analysis.score}"

    async def _collect_insights(self, token: str, offers: List[Record]) -> OfferInsightsMap:
        """Best-effort: a failed batch is skipped, the rest still count."""
        offer_ids = [oid for oid in (_offer_id(o) for o in offers) if oid]
        insights: OfferInsightsMap = {}

        for start in range(0, len(offer_ids), OFFER_INSIGHTS_BATCH):
            batch = offer_ids[start:start + OFFER_INSIGHTS_BATCH]
            try:
                insights.update(parse_offer_insights(await self.ctx.client.get_offer_insights(token, batch)))
            except Exception as e:
                logger.debug(f"Offer insights batch at {start} skipped: {e}")
            if start + OFFER_INSIGHTS_BATCH < len(offer_ids):
                await self.ctx.sleep(self.ctx.settings.insights_delay_seconds)

        return insights

    # ========================================================================
    # APPLY
    # ========================================================================

    def apply(self, job: ExportJob, outcome: PollOutcome) -> RunEntry:
        """Persist the transition implied by outcome (one write at most)."""
        if job.is_terminal:
            logger.warning(f"Export job {job.id} is already {job.status.value}, ignoring {type(outcome).__name__}")
            return RunEntry(id=job.id, status=job.status.value, detail="already terminal")

        if isinstance(outcome, Completed):
            now = self.clock()
            self.repository.update_job(
                job.id, status=ExportJobStatus.COMPLETED, entity_id=outcome.entity_id, completed_at=now, error=None
            )
            job.status, job.entity_id, job.completed_at = ExportJobStatus.COMPLETED, outcome.entity_id, now
            return RunEntry(id=job.id, status="completed", detail=outcome.detail)

        if isinstance(outcome, Terminal):
            now = self.clock()
            self.repository.update_job(job.id, status=ExportJobStatus.FAILED, error=outcome.message, completed_at=now)
            job.status, job.error, job.completed_at = ExportJobStatus.FAILED, outcome.message, now
            return RunEntry(id=job.id, status="failed", detail=outcome.message)

        if isinstance(outcome, Transient):
            self.repository.update_job(job.id, error=outcome.message)
            job.error = outcome.message
            return RunEntry(id=job.id, status="error", detail=outcome.message)

        return RunEntry(id=job.id, status="pending", detail=f"bol.com status: {outcome.upstream_status}")

    # ========================================================================
    # SWEEP
    # ========================================================================

    async def sweep(self, customer_id: Optional[str] = None) -> RunReport:
        """
        One pass over all pending jobs (optionally for one tenant).

        Returns:
            RunReport with one entry per job
        """
        started = time.monotonic()
        report = RunReport(sync_type=SyncType.COMPLETE)

        jobs = self.repository.list_pending_jobs(customer_id)
        if not jobs:
            report.message = "No pending jobs"
            report.duration_ms = int((time.monotonic() - started) * 1000)
            return report

        customers = self.repository.get_customers(job.tenant_id for job in jobs)

        for job in jobs:
            try:
                outcome = await self.poll(job, customers.get(job.tenant_id))
                report.add(self.apply(job, outcome))
            except Exception as e:
                # Storage write failed; the job row is untouched and retried next sweep
                logger.error(f"❌ Export job {job.id} could not be updated: {e}")
                report.add(RunEntry(id=job.id, status="error", detail=str(e)))

        report.duration_ms = int((time.monotonic() - started) * 1000)
        logger.info(
            f"[bol-sync-complete] checked {len(jobs)} jobs: {report.count('completed')} completed, "
            f"{report.count('pending')} still pending, {report.count('failed')} failed ({report.duration_ms}ms)"
        )
        return report
