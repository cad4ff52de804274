import asyncio
import time
from typing import List

from loguru import logger

from rat.clients import HttpClient
from rat.config import REQUEST_TIMEOUT
from rat.decode import decode_inspection_rows
from rat.errors import DecodeFailure, TransportFailure
from rat.models import FeedQuery, InspectionRow


async def fetch_inspection_rows(client: HttpClient, query: FeedQuery, log=logger) -> List[InspectionRow]:
    """
    Run one inspection feed query.

    Transport failures, timeouts and undecodable responses all count as the
    stage returning zero rows; nothing is raised to the caller.

    Args:
        client (HttpClient): Shared fetch capability.
        query (FeedQuery): Query to run.
        log: Request-scoped logger.

    Returns:
        List[InspectionRow]: Decoded rows in feed order, or [] on any failure.
    """
    start = time.perf_counter()
    log.debug(f"▶️ START feed query [{query.stage.value}]")
    try:
        payload = await asyncio.wait_for(client.get_json(query.url), timeout=REQUEST_TIMEOUT)
        rows = decode_inspection_rows(payload)
    except asyncio.TimeoutError:
        log.debug(f"⏱️ TIMEOUT feed query [{query.stage.value}] after {REQUEST_TIMEOUT}s")
        return []
    except TransportFailure as e:
        log.debug(f"⚠️ Transport failure for [{query.stage.value}]: {e}")
        return []
    except DecodeFailure as e:
        log.debug(f"⚠️ Decode failure for [{query.stage.value}]: {e}")
        return []

    duration = time.perf_counter() - start
    log.debug(f"✅ Feed query [{query.stage.value}] returned {len(rows)} rows in {duration:.2f}s")
    return rows
