"""
Lookup pipelines: places directory -> inspection feed cascade -> resolver ->
projection.

Each pipeline returns one composed RestaurantLookup. A lookup that finds no
inspection data still returns normally, with `match` set to None.
"""
import asyncio
from typing import List, Optional
from uuid import uuid4

from loguru import logger

from rat.clients import HttpClient
from rat.inspection_fetcher import fetch_inspection_rows
from rat.matchers.matching_orchestrator import resolve_stage
from rat.models import FavoriteRestaurant, FeedQuery, MatchCandidate, RestaurantLookup, Stage
from rat.places_fetcher import fetch_photo, fetch_place_details
from rat.projector import display_grade, project
from rat.query_builder import build_camis_cascade, build_map_cascade, build_search_cascade
from rat.store import RecentsFavoritesStore


def _lookup_logger(kind: str, subject: str):
    return logger.bind(lookup=uuid4().hex[:8], kind=kind, subject=subject)


async def run_cascade(
    client: HttpClient,
    queries: List[FeedQuery],
    name: str,
    zipcode: Optional[str] = None,
    log=logger,
) -> Optional[MatchCandidate]:
    """
    Run cascade stages one after another until one resolves.

    Each stage waits for the previous one, since it only runs when the
    previous stage produced nothing usable.

    Returns:
        Optional[MatchCandidate]: The first stage's match, or None when every stage came up empty.
    """
    for query in queries:
        rows = await fetch_inspection_rows(client, query, log)
        match = resolve_stage(query, rows, name, zipcode)
        if match is not None:
            log.info(f"🎯 Matched '{name}' to {match.name} (camis={match.camis}) at stage {query.stage.value}")
            return match
        log.debug(f"↪️ Stage {query.stage.value} gave no match for '{name}' ({len(rows)} rows)")
    log.info(f"🚫 No inspection data for '{name}'")
    return None


def favorite_entry(lookup: RestaurantLookup) -> Optional[FavoriteRestaurant]:
    """Favorite/recent entry for a resolved lookup; None when nothing matched."""
    match = lookup.match
    if match is None or not match.camis:
        return None
    place = lookup.place
    # building-only matches may be a different business than the place the user picked
    if match.stage is Stage.BUILDING_ONLY or place is None or not place.formatted_address:
        address = match.address
    else:
        address = place.formatted_address
    return FavoriteRestaurant(
        name=lookup.query_name,
        camis=match.camis,
        grade=display_grade(match.grade),
        rating=place.rating if place else None,
        address=address,
        place_id=place.place_id if place else None,
    )


async def search_restaurant(
    name: str,
    place_id: Optional[str] = None,
    building: Optional[str] = None,
    zipcode: Optional[str] = None,
    store: Optional[RecentsFavoritesStore] = None,
    client: Optional[HttpClient] = None,
) -> RestaurantLookup:
    """
    Search flow: a restaurant picked by name, optionally with its place_id.

    Street number and postal code come from the places directory when not
    given. A successful match is recorded in recents.

    Args:
        name (str): Restaurant name as the user picked it.
        place_id (Optional[str]): Places directory identifier.
        building (Optional[str]): Street number, overrides the places directory.
        zipcode (Optional[str]): Postal code, overrides the places directory.
        store (Optional[RecentsFavoritesStore]): Where to record the view.
        client (Optional[HttpClient]): Fetch capability; the shared singleton by default.

    Returns:
        RestaurantLookup: Place details, match, projected view and photo.
    """
    client = client or HttpClient()
    log = _lookup_logger("search", name)

    place = await fetch_place_details(client, place_id, log) if place_id else None
    if place is not None:
        building = building or place.street_number
        zipcode = zipcode or place.postal_code

    queries = build_search_cascade(name, building, zipcode, log=log)
    match, photo = await asyncio.gather(
        run_cascade(client, queries, name, zipcode, log),
        fetch_photo(client, place.photo_reference if place else None, log),
    )

    lookup = RestaurantLookup(
        query_name=name,
        place=place,
        match=match,
        view=project(match) if match else None,
        photo=photo,
    )
    entry = favorite_entry(lookup)
    if store is not None and entry is not None:
        # file-backed stores block on disk I/O
        await asyncio.to_thread(store.record_view, entry)
    return lookup


async def _place_with_photo(client: HttpClient, place_id: Optional[str], log):
    if not place_id:
        return None, None
    place = await fetch_place_details(client, place_id, log)
    photo = await fetch_photo(client, place.photo_reference, log) if place else None
    return place, photo


async def lookup_from_map(
    name: str,
    place_id: Optional[str] = None,
    building: Optional[str] = None,
    client: Optional[HttpClient] = None,
) -> RestaurantLookup:
    """
    Map flow: a tapped pin, where only the name is reliably known.

    Does not touch recents.
    """
    client = client or HttpClient()
    log = _lookup_logger("map", name)

    match, (place, photo) = await asyncio.gather(
        run_cascade(client, build_map_cascade(name, building, log=log), name, log=log),
        _place_with_photo(client, place_id, log),
    )
    return RestaurantLookup(
        query_name=name,
        place=place,
        match=match,
        view=project(match) if match else None,
        photo=photo,
    )


async def refresh_restaurant(
    camis: str,
    name: Optional[str] = None,
    place_id: Optional[str] = None,
    client: Optional[HttpClient] = None,
) -> RestaurantLookup:
    """
    Detail refresh of an already identified restaurant, e.g. opened from favorites.

    Does not touch recents.
    """
    client = client or HttpClient()
    log = _lookup_logger("camis", camis)

    match, (place, photo) = await asyncio.gather(
        run_cascade(client, build_camis_cascade(camis, log=log), name or camis, log=log),
        _place_with_photo(client, place_id, log),
    )
    return RestaurantLookup(
        query_name=name or (match.name if match else None) or camis,
        place=place,
        match=match,
        view=project(match) if match else None,
        photo=photo,
    )
