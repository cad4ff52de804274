import asyncio
from typing import List, Optional

from loguru import logger

from rat.clients import HttpClient
from rat.config import REQUEST_TIMEOUT
from rat.decode import decode_nearby_places, decode_place_details, decode_place_id
from rat.errors import DecodeFailure, TransportFailure
from rat.models import NearbyPlace, PlaceDetails
from rat.query_builder import find_place_url, nearby_search_url, photo_url, place_details_url


async def _get_json(client: HttpClient, url: str):
    return await asyncio.wait_for(client.get_json(url), timeout=REQUEST_TIMEOUT)


async def fetch_place_details(client: HttpClient, place_id: str, log=logger) -> Optional[PlaceDetails]:
    """
    Fetch rating, opening hours, photo reference and address for a place.

    Args:
        client (HttpClient): Shared fetch capability.
        place_id (str): Places directory identifier.
        log: Request-scoped logger.

    Returns:
        Optional[PlaceDetails]: Decoded details, or None on any failure.
    """
    url = place_details_url(place_id, log=log)
    if url is None:
        return None
    try:
        payload = await _get_json(client, url)
        details = decode_place_details(place_id, payload)
    except asyncio.TimeoutError:
        log.debug(f"⏱️ TIMEOUT place details for {place_id}")
        return None
    except (TransportFailure, DecodeFailure) as e:
        log.debug(f"⚠️ Place details failed for {place_id}: {e}")
        return None
    log.debug(f"🏁 Place details for {place_id}: {details.formatted_address}")
    return details


async def find_place_id(client: HttpClient, text: str, log=logger) -> Optional[str]:
    """Resolve free text to the first matching place_id."""
    url = find_place_url(text, log=log)
    if url is None:
        return None
    try:
        return decode_place_id(await _get_json(client, url))
    except asyncio.TimeoutError:
        log.debug(f"⏱️ TIMEOUT find place for '{text}'")
        return None
    except (TransportFailure, DecodeFailure) as e:
        log.debug(f"⚠️ Find place failed for '{text}': {e}")
        return None


async def fetch_nearby_restaurants(
    client: HttpClient,
    lat: float,
    lng: float,
    radius_m: int,
    log=logger,
) -> List[NearbyPlace]:
    """Restaurants within `radius_m` meters of a point, for map pins."""
    url = nearby_search_url(lat, lng, radius_m)
    try:
        return decode_nearby_places(await _get_json(client, url))
    except asyncio.TimeoutError:
        log.debug(f"⏱️ TIMEOUT nearby search at {lat},{lng}")
        return []
    except (TransportFailure, DecodeFailure) as e:
        log.debug(f"⚠️ Nearby search failed at {lat},{lng}: {e}")
        return []


async def fetch_photo(client: HttpClient, reference: Optional[str], log=logger) -> Optional[bytes]:
    """Download the photo behind a place's photo reference."""
    if not reference:
        return None
    url = photo_url(reference, log=log)
    if url is None:
        return None
    try:
        return await asyncio.wait_for(client.get_bytes(url), timeout=REQUEST_TIMEOUT)
    except asyncio.TimeoutError:
        log.debug("⏱️ TIMEOUT photo download")
        return None
    except TransportFailure as e:
        log.debug(f"⚠️ Photo download failed: {e}")
        return None
