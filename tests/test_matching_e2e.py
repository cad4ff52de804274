import asyncio
import threading

import pytest
from unittest.mock import AsyncMock, MagicMock

from rat.errors import TransportFailure
from rat.lookup import lookup_from_map, refresh_restaurant, search_restaurant
from rat.models import RestaurantLookup, Stage
from rat.store import JsonFileKeyValueStore, RecentsFavoritesStore

PLACE_DETAILS = {
    "result": {
        "rating": 4.6,
        "formatted_address": "7 Carmine St, New York, NY 10014, USA",
        "opening_hours": {"open_now": True, "weekday_text": ["Monday: 10AM-2AM"]},
        "photos": [{"photo_reference": "ref-1", "width": 800, "height": 600}],
        "address_components": [
            {"long_name": "7", "types": ["street_number"]},
            {"long_name": "10014", "types": ["postal_code"]},
        ],
    }
}


def feed_row(dba, camis, grade="A", date="2024-03-04T00:00:00.000", score="12", **kwargs):
    row = {
        "camis": camis,
        "dba": dba,
        "building": "7",
        "street": "CARMINE STREET",
        "zipcode": "10014",
        "inspection_date": date,
        "violation_description": "Hot food item not held at or above 140º F.",
        "critical_flag": "Critical",
        "score": score,
    }
    if grade:
        row["grade"] = grade
        row["grade_date"] = date
    row.update(kwargs)
    return row


def make_client(json_responses, photo=b"jpeg-bytes"):
    """
    Client double. A list answers get_json in call order (exceptions in it are
    raised); a callable answers by URL.
    """
    client = MagicMock()
    client.get_json = AsyncMock(side_effect=json_responses)
    client.get_bytes = AsyncMock(return_value=photo)
    return client


@pytest.mark.asyncio
async def test_search_resolves_at_name_building_stage():
    """
    Place details supply street number and postal code; the first feed query matches.
    """
    store = RecentsFavoritesStore()
    client = make_client([
        PLACE_DETAILS,
        [feed_row("JOE'S PIZZA", "41234567"), feed_row("JOE'S PIZZA", "41234567", date="2023-01-05T00:00:00.000")],
    ])

    result = await search_restaurant("Joe's Pizza", place_id="place-1", store=store, client=client)

    assert isinstance(result, RestaurantLookup)
    assert result.matched
    assert result.match.stage is Stage.NAME_BUILDING
    assert result.view.display_grade == "A"
    assert result.view.color_class == "green"
    assert len(result.view.violations) == 2
    assert result.photo == b"jpeg-bytes"

    feed_url = client.get_json.call_args_list[1].args[0]
    assert "building=7" in feed_url and "dba=JOE'S%20PIZZA" in feed_url

    recents = store.list_recents()
    assert [r.camis for r in recents] == ["41234567"]
    assert recents[0].address == "7 Carmine St, New York, NY 10014, USA"
    assert recents[0].rating == 4.6


@pytest.mark.asyncio
async def test_search_falls_back_to_building_only_token_match():
    store = RecentsFavoritesStore()
    client = make_client([
        PLACE_DETAILS,
        [],
        [feed_row("PIZZA HUT", "1"), feed_row("JOE PIZZA NYC", "2", grade="B")],
    ])

    result = await search_restaurant("Joe's Pizza", place_id="place-1", store=store, client=client)

    assert result.match.camis == "2"
    assert result.match.stage is Stage.BUILDING_ONLY
    assert result.view.display_grade == "B"
    assert "dba=" not in client.get_json.call_args_list[2].args[0]
    assert store.list_recents()[0].address == "7 CARMINE STREET, 10014"


@pytest.mark.asyncio
async def test_empty_cascade_is_no_match_not_an_error():
    store = RecentsFavoritesStore()
    client = make_client([[], []])

    result = await search_restaurant("Joe's Pizza", building="7", zipcode="10014", store=store, client=client)

    assert not result.matched
    assert result.view is None
    assert client.get_json.await_count == 2
    assert store.list_recents() == []


@pytest.mark.asyncio
async def test_transport_and_decode_failures_count_as_zero_rows():
    client = make_client([
        TransportFailure("connection reset"),
        {"error": True, "message": "bad token"},
    ])

    result = await search_restaurant("Joe's Pizza", building="7", client=client)

    assert not result.matched
    assert client.get_json.await_count == 2


@pytest.mark.asyncio
async def test_feed_timeout_counts_as_zero_rows():
    store = RecentsFavoritesStore()
    client = make_client([
        asyncio.TimeoutError(),
        [feed_row("PIZZA HUT", "1"), feed_row("JOE PIZZA NYC", "2", grade="B")],
    ])

    result = await search_restaurant("Joe's Pizza", building="7", store=store, client=client)

    assert client.get_json.await_count == 2
    assert result.match.stage is Stage.BUILDING_ONLY
    assert result.match.camis == "2"
    assert [r.camis for r in store.list_recents()] == ["2"]


@pytest.mark.asyncio
async def test_recents_are_written_off_the_event_loop(tmp_path):
    path = str(tmp_path / "store.json")
    store = RecentsFavoritesStore(JsonFileKeyValueStore(path))
    writer_threads = []
    record_view = store.record_view

    def recording(entry):
        writer_threads.append(threading.get_ident())
        return record_view(entry)

    store.record_view = recording
    client = make_client([[feed_row("JOE'S PIZZA", "41234567")]])

    await search_restaurant("Joe's Pizza", building="7", store=store, client=client)

    assert len(writer_threads) == 1
    assert writer_threads[0] != threading.get_ident()
    reopened = RecentsFavoritesStore(JsonFileKeyValueStore(path))
    assert [r.camis for r in reopened.list_recents()] == ["41234567"]


@pytest.mark.asyncio
async def test_ungraded_name_building_result_moves_to_next_stage():
    client = make_client([
        [feed_row("JOE'S PIZZA", "1", grade=None)],
        [feed_row("JOE'S PIZZA", "1", grade=None), feed_row("JOES PIZZA", "3", grade="C")],
    ])

    result = await search_restaurant("Joe's Pizza", building="7", client=client)

    assert result.match.camis == "3"
    assert result.view.color_class == "red"


@pytest.mark.asyncio
async def test_map_lookup_matches_name_only_and_clamps_grade():
    client = make_client([
        [feed_row("SUSHI", "9"), feed_row("JOE'S PIZZA", "4", grade="Z")],
    ])

    result = await lookup_from_map("Joe’s Pizza", client=client)

    assert result.match.camis == "4"
    assert result.match.stage is Stage.NAME_ONLY
    assert result.view.display_grade == "N/A"
    assert result.view.color_class == "gray"
    assert result.place is None
    client.get_bytes.assert_not_awaited()


@pytest.mark.asyncio
async def test_refresh_by_camis_loads_full_history_and_place():
    history = [
        feed_row("JOE'S PIZZA", "41234567", date="2024-03-04T00:00:00.000", score="10"),
        feed_row("JOE'S PIZZA", "41234567", grade=None, date="2024-03-04T00:00:00.000", score="21"),
        feed_row("JOE'S PIZZA", "41234567", date="2022-08-10T00:00:00.000"),
    ]
    # feed and place details run concurrently, so answer by URL rather than call order
    client = make_client(lambda url: PLACE_DETAILS if "/place/details/" in url else history)

    result = await refresh_restaurant("41234567", place_id="place-1", client=client)

    assert result.query_name == "JOE'S PIZZA"
    assert result.match.stage is Stage.CAMIS
    assert [v.display_score for v in result.view.violations] == [79, 88]
    assert result.place.rating == 4.6
    assert result.photo == b"jpeg-bytes"
