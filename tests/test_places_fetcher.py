import asyncio

import pytest
from unittest.mock import AsyncMock, MagicMock

from rat.errors import TransportFailure
from rat.places_fetcher import fetch_nearby_restaurants, fetch_photo, fetch_place_details, find_place_id


def make_client(get_json=None, get_bytes=None):
    client = MagicMock()
    client.get_json = AsyncMock(side_effect=get_json)
    client.get_bytes = AsyncMock(side_effect=get_bytes)
    return client


@pytest.mark.asyncio
async def test_find_place_id_returns_first_candidate():
    client = make_client(get_json=[{"candidates": [{"place_id": "p1"}, {"place_id": "p2"}]}])
    assert await find_place_id(client, "Joe's Pizza Carmine St") == "p1"
    assert "input=Joe's%20Pizza%20Carmine%20St" in client.get_json.call_args.args[0]


@pytest.mark.asyncio
async def test_nearby_restaurants_become_map_pins():
    client = make_client(get_json=[{"results": [
        {"name": "Joe's Pizza", "place_id": "p1", "geometry": {"location": {"lat": 40.73, "lng": -74.0}}},
    ]}])

    pins = await fetch_nearby_restaurants(client, 40.73, -74.0, 402)

    assert [(p.name, p.place_id) for p in pins] == [("Joe's Pizza", "p1")]


@pytest.mark.asyncio
async def test_failures_yield_empty_results():
    client = make_client(
        get_json=[TransportFailure("down"), asyncio.TimeoutError(), {"status": "ZERO_RESULTS"}],
        get_bytes=[TransportFailure("down")],
    )

    assert await fetch_place_details(client, "p1") is None
    assert await find_place_id(client, "Joe's") is None
    assert await fetch_nearby_restaurants(client, 40.73, -74.0, 402) == []
    assert await fetch_photo(client, "ref") is None


@pytest.mark.asyncio
async def test_no_photo_reference_skips_download():
    client = make_client()
    assert await fetch_photo(client, None) is None
    client.get_bytes.assert_not_awaited()
