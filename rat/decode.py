"""
Typed decoding of feed and places directory payloads.

Decoding fails closed: an absent or wrong-typed field becomes None instead of
raising. Only a payload whose top-level shape is wrong raises DecodeFailure,
which fetchers treat the same as a failed request.
"""
from dataclasses import fields
from typing import Any, List, Optional

from rat.errors import DecodeFailure
from rat.models import InspectionRow, NearbyPlace, PlaceDetails

_ROW_FIELDS = [f.name for f in fields(InspectionRow)]


def _str_or_none(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _float_or_none(value: Any) -> Optional[float]:
    # bool is an int subclass; a boolean rating is malformed
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _dict_or_empty(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def decode_inspection_row(item: Any) -> Optional[InspectionRow]:
    if not isinstance(item, dict):
        return None
    return InspectionRow(**{name: _str_or_none(item.get(name)) for name in _ROW_FIELDS})


def decode_inspection_rows(payload: Any) -> List[InspectionRow]:
    """
    Decode an inspection feed response.

    Args:
        payload (Any): Parsed JSON body.

    Returns:
        List[InspectionRow]: One row per well-formed element; malformed elements are skipped.

    Raises:
        DecodeFailure: If the payload is not a JSON array (the feed reports errors as objects).
    """
    if not isinstance(payload, list):
        raise DecodeFailure(f"expected a list of rows, got {type(payload).__name__}")
    rows = []
    for item in payload:
        row = decode_inspection_row(item)
        if row is not None:
            rows.append(row)
    return rows


def _address_component(components: Any, type_tag: str) -> Optional[str]:
    if not isinstance(components, list):
        return None
    for component in components:
        if not isinstance(component, dict):
            continue
        types = component.get("types")
        if isinstance(types, list) and type_tag in types:
            return _str_or_none(component.get("long_name")) or _str_or_none(component.get("short_name"))
    return None


def _pick_photo_reference(photos: Any) -> Optional[str]:
    """First landscape photo (width > height), else the first photo."""
    if not isinstance(photos, list):
        return None
    candidates = [p for p in photos if isinstance(p, dict) and _str_or_none(p.get("photo_reference"))]
    for photo in candidates:
        width, height = photo.get("width"), photo.get("height")
        if isinstance(width, int) and isinstance(height, int) and width > height:
            return photo["photo_reference"]
    return candidates[0]["photo_reference"] if candidates else None


def decode_place_details(place_id: str, payload: Any) -> PlaceDetails:
    """
    Decode a place details response.

    Raises:
        DecodeFailure: If the payload has no "result" object.
    """
    result = _dict_or_empty(payload).get("result")
    if not isinstance(result, dict):
        raise DecodeFailure(f"place details for {place_id} carry no result object")

    opening_hours = _dict_or_empty(result.get("opening_hours"))
    open_now = opening_hours.get("open_now")
    weekday_text = opening_hours.get("weekday_text")
    if isinstance(weekday_text, list):
        weekday_text = [line for line in weekday_text if isinstance(line, str)]
    else:
        weekday_text = None

    components = result.get("address_components")
    return PlaceDetails(
        place_id=place_id,
        rating=_float_or_none(result.get("rating")),
        open_now=open_now if isinstance(open_now, bool) else None,
        weekday_text=weekday_text,
        photo_reference=_pick_photo_reference(result.get("photos")),
        formatted_address=_str_or_none(result.get("formatted_address")),
        street_number=_address_component(components, "street_number"),
        postal_code=_address_component(components, "postal_code"),
    )


def decode_place_id(payload: Any) -> Optional[str]:
    """First place_id from a find-place response."""
    candidates = _dict_or_empty(payload).get("candidates")
    if not isinstance(candidates, list):
        raise DecodeFailure("find place response carries no candidates list")
    for candidate in candidates:
        place_id = _str_or_none(_dict_or_empty(candidate).get("place_id"))
        if place_id:
            return place_id
    return None


def decode_nearby_places(payload: Any) -> List[NearbyPlace]:
    results = _dict_or_empty(payload).get("results")
    if not isinstance(results, list):
        raise DecodeFailure("nearby search response carries no results list")
    places = []
    for result in results:
        result = _dict_or_empty(result)
        location = _dict_or_empty(_dict_or_empty(result.get("geometry")).get("location"))
        name = _str_or_none(result.get("name"))
        place_id = _str_or_none(result.get("place_id"))
        lat = _float_or_none(location.get("lat"))
        lng = _float_or_none(location.get("lng"))
        if name is None or place_id is None or lat is None or lng is None:
            continue
        places.append(NearbyPlace(name=name, place_id=place_id, lat=lat, lng=lng))
    return places
