"""
URL builders for the inspection feed and the places directory.

The inspection feed has no join key shared with the places directory, so a
lookup runs a cascade of progressively looser feed queries. Builders return
None when a parameter cannot be percent-encoded; the cascade then skips that
stage.
"""
from typing import List, Optional
from urllib.parse import quote

from loguru import logger

from rat.config import GOOGLE_API_KEY, INSPECTION_FEED_URL, NYC_APP_TOKEN, PLACES_BASE_URL
from rat.errors import EncodingFailure
from rat.models import FeedQuery, Stage

# RFC 3986 query characters, minus "&" and "+" which the feed would read as
# parameter separators and spaces.
_QUERY_SAFE = "!$'()*,-./:;=?@_~"

PLACE_DETAILS_FIELDS = "formatted_address,rating,opening_hours,photos,address_components"


def _encode(value: str) -> str:
    try:
        return quote(value, safe=_QUERY_SAFE, encoding="utf-8", errors="strict")
    except UnicodeEncodeError as e:
        raise EncodingFailure(f"cannot percent-encode {value!r}: {e}") from e


def normalize_feed_name(name: str) -> str:
    """Uppercase a name and fold the typographic apostrophe, as the feed stores DBA names."""
    return name.replace("’", "'").upper()


def _with_token(url: str) -> str:
    return f"{url}&$$app_token={_encode(NYC_APP_TOKEN)}"


def inspection_search_url(
    name: Optional[str],
    building: str,
    zipcode: Optional[str] = None,
    log=logger,
) -> Optional[str]:
    """
    Name+building query. Dropping the name gives the building-only query.

    Args:
        name (Optional[str]): Restaurant name; omitted from the query when empty.
        building (str): Street number.
        zipcode (Optional[str]): Postal code filter.

    Returns:
        Optional[str]: Query URL, or None if a field cannot be encoded.
    """
    try:
        url = f"{INSPECTION_FEED_URL}?building={_encode(building or '')}"
        cleaned = normalize_feed_name(name or "")
        if cleaned:
            url += f"&dba={_encode(cleaned)}"
        if zipcode:
            url += f"&zipcode={_encode(zipcode)}"
        return _with_token(url)
    except EncodingFailure as e:
        log.debug(f"⚠️ Skipping name+building query: {e}")
        return None


def inspection_map_url(name: str, building: Optional[str] = None, log=logger) -> Optional[str]:
    """Name-first query used for map-initiated lookups."""
    try:
        url = f"{INSPECTION_FEED_URL}?dba={_encode(normalize_feed_name(name))}"
        if building:
            url += f"&building={_encode(building)}"
        return _with_token(url)
    except EncodingFailure as e:
        log.debug(f"⚠️ Skipping name-only query: {e}")
        return None


def inspection_camis_url(camis: str, log=logger) -> Optional[str]:
    """Exact lookup of one restaurant's full inspection history."""
    try:
        return _with_token(f"{INSPECTION_FEED_URL}?camis={_encode(camis)}")
    except EncodingFailure as e:
        log.debug(f"⚠️ Skipping camis query: {e}")
        return None


def build_search_cascade(
    name: str,
    building: Optional[str],
    zipcode: Optional[str] = None,
    log=logger,
) -> List[FeedQuery]:
    """
    Queries for the search flow, in the order they should be tried.

    With a street number the cascade is name+building, then building-only.
    Without one, only the name-only query is possible. The postal code is
    not sent to the feed here; the resolver uses it to filter rows instead.
    """
    if not building:
        return build_map_cascade(name, log=log)

    queries = []
    first = inspection_search_url(name, building, log=log)
    if first:
        queries.append(FeedQuery(Stage.NAME_BUILDING, first))
    second = inspection_search_url(None, building, log=log)
    if second:
        queries.append(FeedQuery(Stage.BUILDING_ONLY, second))
    return queries


def build_map_cascade(name: str, building: Optional[str] = None, log=logger) -> List[FeedQuery]:
    url = inspection_map_url(name, building, log=log)
    return [FeedQuery(Stage.NAME_ONLY, url)] if url else []


def build_camis_cascade(camis: str, log=logger) -> List[FeedQuery]:
    url = inspection_camis_url(camis, log=log)
    return [FeedQuery(Stage.CAMIS, url)] if url else []


# Places directory

def place_details_url(place_id: str, log=logger) -> Optional[str]:
    try:
        return (
            f"{PLACES_BASE_URL}/details/json?place_id={_encode(place_id)}"
            f"&fields={PLACE_DETAILS_FIELDS}&key={_encode(GOOGLE_API_KEY)}"
        )
    except EncodingFailure as e:
        log.debug(f"⚠️ Skipping place details query: {e}")
        return None


def find_place_url(text: str, log=logger) -> Optional[str]:
    try:
        return (
            f"{PLACES_BASE_URL}/findplacefromtext/json?input={_encode(text)}"
            f"&inputtype=textquery&fields=place_id&key={_encode(GOOGLE_API_KEY)}"
        )
    except EncodingFailure as e:
        log.debug(f"⚠️ Skipping find place query: {e}")
        return None


def nearby_search_url(lat: float, lng: float, radius: int) -> str:
    return (
        f"{PLACES_BASE_URL}/nearbysearch/json?location={lat},{lng}"
        f"&radius={int(radius)}&type=restaurant&key={quote(GOOGLE_API_KEY, safe='')}"
    )


def photo_url(reference: str, max_width: int = 400, log=logger) -> Optional[str]:
    try:
        return (
            f"{PLACES_BASE_URL}/photo?maxwidth={max_width}"
            f"&photoreference={_encode(reference)}&key={_encode(GOOGLE_API_KEY)}"
        )
    except EncodingFailure as e:
        log.debug(f"⚠️ Skipping photo query: {e}")
        return None
