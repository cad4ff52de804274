import json
from concurrent.futures import ThreadPoolExecutor

from rat.config import FAVORITES_KEY, RECENTS_KEY
from rat.models import FavoriteRestaurant
from rat.store import InMemoryKeyValueStore, JsonFileKeyValueStore, RecentsFavoritesStore


def entry(camis, name=None, grade="A"):
    return FavoriteRestaurant(
        name=name or f"Restaurant {camis}",
        camis=camis,
        grade=grade,
        rating=4.5,
        address="1 Main St",
        place_id=f"place-{camis}",
    )


def test_toggle_twice_restores_original_state():
    store = RecentsFavoritesStore()
    store.toggle_favorite(entry("1"))
    before = store.list_favorites()

    assert store.toggle_favorite(entry("2")) is True
    assert store.is_favorite("2")
    assert store.toggle_favorite(entry("2")) is False

    assert store.list_favorites() == before
    assert not store.is_favorite("2")


def test_favorites_hold_one_entry_per_camis():
    store = RecentsFavoritesStore()
    store.toggle_favorite(entry("1", name="First"))
    store.toggle_favorite(entry("1", name="Renamed"))
    assert store.list_favorites() == []


def test_remove_favorite():
    store = RecentsFavoritesStore()
    store.toggle_favorite(entry("1"))
    assert store.remove_favorite("1") is True
    assert store.remove_favorite("1") is False


def test_listed_grades_are_normalized():
    store = RecentsFavoritesStore()
    store.toggle_favorite(entry("1", grade="Z"))
    assert store.list_favorites()[0].grade == "N/A"


def test_sixth_recent_evicts_oldest():
    store = RecentsFavoritesStore()
    for i in range(1, 7):
        store.record_view(entry(str(i)), viewed_at=float(i))

    recents = store.list_recents()

    assert [r.camis for r in recents] == ["6", "5", "4", "3", "2"]


def test_reinserting_moves_to_front_without_growing():
    store = RecentsFavoritesStore()
    for i in range(1, 6):
        store.record_view(entry(str(i)), viewed_at=float(i))

    store.record_view(entry("2"), viewed_at=10.0)
    recents = store.list_recents()

    assert [r.camis for r in recents] == ["2", "5", "4", "3", "1"]
    assert len(recents) == 5


def test_clock_stepping_back_keeps_latest_view_first():
    store = RecentsFavoritesStore()
    for i in range(1, 6):
        store.record_view(entry(str(i)), viewed_at=100.0 + i)

    recent = store.record_view(entry("7"), viewed_at=50.0)
    recents = store.list_recents()

    assert [r.camis for r in recents] == ["7", "5", "4", "3", "2"]
    assert recent.viewed_at >= 105.0
    assert recents[0].viewed_at == max(r.viewed_at for r in recents)


def test_lists_are_stored_under_well_known_keys():
    backend = InMemoryKeyValueStore()
    store = RecentsFavoritesStore(backend)
    store.toggle_favorite(entry("1"))
    store.record_view(entry("1"), viewed_at=1.0)

    assert json.loads(backend.get(FAVORITES_KEY))[0]["camis"] == "1"
    assert json.loads(backend.get(RECENTS_KEY))[0]["viewed_at"] == 1.0


def test_corrupt_stored_list_reads_as_empty():
    backend = InMemoryKeyValueStore()
    backend.set(FAVORITES_KEY, "{not json")
    backend.set(RECENTS_KEY, json.dumps([{"name": "x"}, "junk"]))
    store = RecentsFavoritesStore(backend)

    assert store.list_favorites() == []
    assert store.list_recents() == []


def test_json_file_store_persists_across_instances(tmp_path):
    path = str(tmp_path / "store.json")
    RecentsFavoritesStore(JsonFileKeyValueStore(path)).toggle_favorite(entry("9"))

    reopened = RecentsFavoritesStore(JsonFileKeyValueStore(path))

    assert [f.camis for f in reopened.list_favorites()] == ["9"]


def test_concurrent_writers_do_not_lose_updates():
    store = RecentsFavoritesStore()

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(lambda i: store.toggle_favorite(entry(str(i))), range(50)))

    assert {f.camis for f in store.list_favorites()} == {str(i) for i in range(50)}
