"""
Favorites and recents, persisted as JSON arrays in a simple keyed store.

Favorites behave as a set keyed by camis. Recents are a ring buffer of the
last RECENTS_LIMIT searched restaurants, newest first. Every read-modify-write
of a stored list holds the store's lock so concurrent lookups finishing
together cannot drop each other's update.
"""
import json
import os
import threading
import time
from dataclasses import asdict, fields, replace
from typing import Dict, List, Optional, Protocol

from loguru import logger

from rat.config import FAVORITES_KEY, RECENTS_KEY, RECENTS_LIMIT
from rat.models import FavoriteRestaurant, RecentRestaurant
from rat.projector import display_grade


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


class InMemoryKeyValueStore:
    """Process-local store; contents are lost when the process exits."""

    def __init__(self):
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class JsonFileKeyValueStore:
    """Keyed store backed by a single JSON object on disk."""

    def __init__(self, path: str):
        self.path = path

    def _load(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"⚠️ Ignoring unreadable store file {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str) -> Optional[str]:
        value = self._load().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f)
        os.replace(tmp_path, self.path)


def _decode_entries(raw: Optional[str], cls) -> list:
    """Decode a stored JSON array into dataclass entries, skipping malformed ones."""
    if not raw:
        return []
    try:
        items = json.loads(raw)
    except ValueError as e:
        logger.warning(f"⚠️ Discarding corrupt {cls.__name__} list: {e}")
        return []
    if not isinstance(items, list):
        return []
    names = {f.name for f in fields(cls)}
    entries = []
    for item in items:
        if not isinstance(item, dict):
            continue
        try:
            entries.append(cls(**{k: v for k, v in item.items() if k in names}))
        except TypeError:
            continue
    return entries


class RecentsFavoritesStore:
    """
    Favorites and recents on top of a KeyValueStore.

    Args:
        backend (KeyValueStore): Where the serialized lists live.
        recents_limit (int): Ring buffer size for recents.
    """

    def __init__(self, backend: Optional[KeyValueStore] = None, recents_limit: int = RECENTS_LIMIT):
        self.backend = backend if backend is not None else InMemoryKeyValueStore()
        self.recents_limit = recents_limit
        self._lock = threading.RLock()

    def _read(self, key: str, cls) -> list:
        return _decode_entries(self.backend.get(key), cls)

    def _write(self, key: str, entries: list) -> None:
        self.backend.set(key, json.dumps([asdict(e) for e in entries]))

    # Favorites

    def list_favorites(self) -> List[FavoriteRestaurant]:
        """Favorites in the order they were added, one per camis, grades normalized."""
        with self._lock:
            favorites = self._read(FAVORITES_KEY, FavoriteRestaurant)
        return [replace(f, grade=display_grade(f.grade)) for f in favorites]

    def is_favorite(self, camis: str) -> bool:
        with self._lock:
            return any(f.camis == camis for f in self._read(FAVORITES_KEY, FavoriteRestaurant))

    def toggle_favorite(self, entry: FavoriteRestaurant) -> bool:
        """
        Add `entry`, or remove the favorite with the same camis if present.

        Returns:
            bool: True if the restaurant is a favorite after the call.
        """
        with self._lock:
            favorites = self._read(FAVORITES_KEY, FavoriteRestaurant)
            kept = [f for f in favorites if f.camis != entry.camis]
            added = len(kept) == len(favorites)
            if added:
                kept.append(entry)
            self._write(FAVORITES_KEY, kept)
        logger.debug(f"⭐ {'Added' if added else 'Removed'} favorite {entry.camis} ({entry.name})")
        return added

    def remove_favorite(self, camis: str) -> bool:
        with self._lock:
            favorites = self._read(FAVORITES_KEY, FavoriteRestaurant)
            kept = [f for f in favorites if f.camis != camis]
            if len(kept) == len(favorites):
                return False
            self._write(FAVORITES_KEY, kept)
        return True

    # Recents

    def list_recents(self) -> List[RecentRestaurant]:
        """Recently searched restaurants, newest first."""
        with self._lock:
            recents = self._read(RECENTS_KEY, RecentRestaurant)
        # stored order is newest first; viewed_at is informational
        return [replace(r, grade=display_grade(r.grade)) for r in recents[: self.recents_limit]]

    def record_view(self, entry: FavoriteRestaurant, viewed_at: Optional[float] = None) -> RecentRestaurant:
        """
        Move `entry` to the front of recents, dropping entries past the limit.

        The timestamp never goes behind the newest stored entry, so a wall
        clock stepping backwards cannot reorder the list.

        Args:
            entry (FavoriteRestaurant): Restaurant that was just resolved.
            viewed_at (Optional[float]): Epoch seconds; defaults to now.

        Returns:
            RecentRestaurant: The stored entry.
        """
        with self._lock:
            stored = self._read(RECENTS_KEY, RecentRestaurant)
            now = viewed_at if viewed_at is not None else time.time()
            newest = max((r.viewed_at for r in stored if isinstance(r.viewed_at, (int, float))), default=now)
            recent = RecentRestaurant(viewed_at=max(now, newest), **asdict(entry))
            recents = [recent] + [r for r in stored if r.camis != entry.camis]
            self._write(RECENTS_KEY, recents[: self.recents_limit])
        return recent
