"""
Sync Context
Everything one sync invocation needs, built once per process/worker
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable

from bolsync.core.config import Settings, settings as default_settings
from bolsync.services.bol.client import BolClient
from bolsync.services.bol.token_cache import TokenCache
from bolsync.services.sync.database import BolRepository

logger = logging.getLogger(__name__)


@dataclass
class SyncContext:
    """
    Collaborators shared by the sync passes.

    sleep is injectable so tests can run the throttled passes without
    waiting.
    """
    repository: BolRepository
    client: BolClient
    token_cache: TokenCache
    settings: Settings = field(default_factory=lambda: default_settings)
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
