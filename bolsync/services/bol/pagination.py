"""
Page-by-page collection for bol.com list endpoints

bol.com returns at most 50 items per page; a shorter page is the last one.
Pages are fetched strictly one after another.
"""
import logging
from typing import Any, AsyncIterator, Callable, List, Optional

from bolsync.core.config import settings
from bolsync.services.bol.transport import BolTransport

logger = logging.getLogger(__name__)

EndpointBuilder = Callable[[int], str]


async def paginate(
    transport: BolTransport,
    token: str,
    endpoint_builder: EndpointBuilder,
    page_key: str,
    page_size: Optional[int] = None
) -> AsyncIterator[Any]:
    """
    Yield items from page 1, 2, 3, ... until a page fails, is empty, or is short.

    A failed page ends iteration quietly; callers that need completeness can
    compare what they received against expectations.
    """
    page_size = page_size or settings.bol_page_size
    page = 1

    while True:
        path = endpoint_builder(page)
        response = await transport.request(token, path)
        if not response.ok:
            logger.warning(f"Page {page} of {path} failed ({response.status}), stopping")
            return

        body = response.body if isinstance(response.body, dict) else {}
        items = body.get(page_key) or []
        if not items:
            return

        for item in items:
            yield item

        if len(items) < page_size:
            return
        page += 1


async def collect_all(
    transport: BolTransport,
    token: str,
    endpoint_builder: EndpointBuilder,
    page_key: str,
    page_size: Optional[int] = None
) -> List[Any]:
    """Materialise paginate(); partial results are valid output."""
    return [item async for item in paginate(transport, token, endpoint_builder, page_key, page_size)]
