"""
Pytest configuration and shared fixtures for bolsync tests.

This file is automatically loaded by pytest and makes fixtures available
to all test files without explicit imports.
"""
import os
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

# IMPORTANT: Set environment variables BEFORE any bolsync import
# Settings() is instantiated at import time and needs these
os.environ["ENVIRONMENT"] = "test"
os.environ["SUPABASE_URL"] = "https://test-project.supabase.co"
os.environ["SUPABASE_SERVICE_KEY"] = "test-service-key"
os.environ["CRON_SECRET"] = "test-cron-secret"
os.environ["BOL_WEBHOOK_SECRET"] = "test-webhook-secret"
os.environ.pop("REDIS_URL", None)
os.environ.pop("SENTRY_DSN", None)

import httpx
import pytest

from bolsync.core.config import settings
from bolsync.models.schemas.bol import BolCustomer, ExportJob, ExportJobStatus
from bolsync.services.analysis import AnalysisResult
from bolsync.services.bol.client import BolClient
from bolsync.services.bol.token_cache import TokenCache
from bolsync.services.sync.context import SyncContext

NOW = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)


# =============================================================================
# In-memory storage
# =============================================================================

class FakeRepository:
    """Dict-backed stand-in for BolRepository with the same method surface."""

    def __init__(self):
        self.customers: Dict[str, BolCustomer] = {}
        self.jobs: Dict[str, ExportJob] = {}
        self.snapshots: List[Dict[str, Any]] = []
        self.analyses: List[Dict[str, Any]] = []
        self.competitor_rows: List[Dict[str, Any]] = []
        self.keyword_rows: List[Dict[str, Any]] = []
        self.synced: List[str] = []
        self.job_updates: List[Dict[str, Any]] = []

    # tenants
    def list_active_customers(self) -> List[BolCustomer]:
        return [c for c in self.customers.values() if c.active]

    def get_customer(self, customer_id: str) -> Optional[BolCustomer]:
        return self.customers.get(customer_id)

    def get_customers(self, customer_ids) -> Dict[str, BolCustomer]:
        return {cid: self.customers[cid] for cid in customer_ids if cid in self.customers}

    def mark_synced(self, customer_id: str) -> None:
        self.synced.append(customer_id)

    # export jobs
    def create_export_job(self, customer_id: str, process_status_id: str, data_type: str = "listings") -> ExportJob:
        job = ExportJob(
            id=f"job-{len(self.jobs) + 1}",
            tenant_id=customer_id,
            data_type=data_type,
            process_status_id=process_status_id,
            started_at=NOW,
        )
        self.jobs[job.id] = job
        return job.model_copy()

    def list_pending_jobs(self, customer_id: Optional[str] = None) -> List[ExportJob]:
        jobs = [
            j.model_copy() for j in self.jobs.values()
            if j.status == ExportJobStatus.PENDING and (customer_id is None or j.tenant_id == customer_id)
        ]
        return sorted(jobs, key=lambda j: j.started_at)

    def update_job(self, job_id: str, **fields: Any) -> None:
        self.job_updates.append({"id": job_id, **fields})
        job = self.jobs[job_id]
        for key, value in fields.items():
            setattr(job, key, value)

    # snapshots + analyses
    def insert_snapshot(self, customer_id, data_type, raw_data, record_count, quality_score=1.0) -> str:
        snapshot_id = f"snap-{len(self.snapshots) + 1}"
        self.snapshots.append({
            "id": snapshot_id,
            "bol_customer_id": customer_id,
            "data_type": data_type,
            "raw_data": raw_data,
            "record_count": record_count,
            "quality_score": quality_score,
        })
        return snapshot_id

    def insert_analysis(self, customer_id: str, category: str, analysis: AnalysisResult, snapshot_id=None) -> None:
        self.analyses.append({
            "bol_customer_id": customer_id,
            "category": category,
            "score": analysis.score,
            "snapshot_id": snapshot_id,
        })

    def find_export_snapshot(self, customer_id: str, data_type: str, entity_id: str) -> Optional[str]:
        for snapshot in self.snapshots:
            if (snapshot["bol_customer_id"] == customer_id and snapshot["data_type"] == data_type
                    and snapshot["raw_data"].get("entity_id") == entity_id):
                return snapshot["id"]
        return None

    def has_analysis(self, snapshot_id: str, category: str) -> bool:
        return any(a["snapshot_id"] == snapshot_id and a["category"] == category for a in self.analyses)

    def latest_offers(self, customer_id: str, lookback: int = 10) -> List[Dict[str, str]]:
        listings = [
            s for s in self.snapshots
            if s["bol_customer_id"] == customer_id and s["data_type"] == "listings"
        ]
        for snapshot in reversed(listings[-lookback:]):
            if snapshot["raw_data"].get("offers"):
                return snapshot["raw_data"]["offers"]
        return []

    # enrichment
    def insert_competitor_snapshot(self, row: Dict[str, Any]) -> None:
        self.competitor_rows.append(row)

    def insert_keyword_rankings(self, rows: List[Dict[str, Any]]) -> None:
        self.keyword_rows.extend(rows)

    # helpers
    def add_customer(self, customer_id: str, **overrides) -> BolCustomer:
        fields = {
            "id": customer_id,
            "seller_name": f"Seller {customer_id}",
            "bol_client_id": f"client-{customer_id}",
            "bol_client_secret": f"secret-{customer_id}",
        }
        fields.update(overrides)
        customer = BolCustomer(**fields)
        self.customers[customer_id] = customer
        return customer

    def add_job(self, job_id: str, tenant_id: str, age: timedelta = timedelta(minutes=5), **overrides) -> ExportJob:
        fields = {
            "id": job_id,
            "tenant_id": tenant_id,
            "process_status_id": f"ps-{job_id}",
            "started_at": NOW - age,
        }
        fields.update(overrides)
        job = ExportJob(**fields)
        self.jobs[job_id] = job
        return job


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def repo() -> FakeRepository:
    return FakeRepository()


@pytest.fixture
def bol_client() -> MagicMock:
    """BolClient with every endpoint replaced by an AsyncMock."""
    return MagicMock(spec=BolClient)


@pytest.fixture
def token_cache() -> MagicMock:
    cache = MagicMock(spec=TokenCache)
    cache.get_retailer_token = AsyncMock(return_value="retailer-token")
    cache.get_ads_token = AsyncMock(return_value="ads-token")
    return cache


@pytest.fixture
def sleep() -> AsyncMock:
    return AsyncMock()


@pytest.fixture
def ctx(repo, bol_client, token_cache, sleep) -> SyncContext:
    return SyncContext(
        repository=repo,
        client=bol_client,
        token_cache=token_cache,
        settings=settings,
        sleep=sleep,
    )


@pytest.fixture
def mock_http():
    """
    Build an httpx.AsyncClient backed by a handler function.

    Usage:
        client = mock_http(lambda request: httpx.Response(200, json={...}))
    """
    clients: List[httpx.AsyncClient] = []

    def factory(handler) -> httpx.AsyncClient:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    return factory


@pytest.fixture
def now() -> datetime:
    """Fixed 'current time' used by the fake repository and job clocks."""
    return NOW
