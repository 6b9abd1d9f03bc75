# src/xmusic/db/persistence.py
"""
Library and playlist state in the settings key-value table.

  "musicLibrary" -> JSON array of absolute file paths
  "playlists"    -> JSON array of {id, name, trackIDs, createdAt}

Tracks are stored by location only and re-extracted on load; playlists
keep track ids, which are stable for a given location.
"""
from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime, timezone
from typing import Callable, Iterable, List, Tuple

from PySide6.QtCore import QUrl

from xmusic.core.errors import PersistenceReadFailure, PersistenceWriteFailure
from xmusic.core.models import Playlist, Track
from xmusic.db.database import get_setting, set_setting

logger = logging.getLogger(__name__)

LIBRARY_KEY = "musicLibrary"
PLAYLISTS_KEY = "playlists"

# -------------------------------
# WRITE
# -------------------------------
def save_library(db: sqlite3.Connection, tracks: Iterable[Track]) -> None:
    _write(db, LIBRARY_KEY, [t.file_path for t in tracks])


def save_playlists(db: sqlite3.Connection, playlists: Iterable[Playlist]) -> None:
    _write(db, PLAYLISTS_KEY, [playlist_to_dict(p) for p in playlists])


def save(db: sqlite3.Connection, tracks: Iterable[Track], playlists: Iterable[Playlist]) -> None:
    save_library(db, tracks)
    save_playlists(db, playlists)


def _write(db: sqlite3.Connection, key: str, payload) -> None:
    try:
        set_setting(db, key, json.dumps(payload, ensure_ascii=False))
    except (sqlite3.Error, TypeError, ValueError) as e:
        raise PersistenceWriteFailure(f"Failed to write {key!r}: {e}") from e


def playlist_to_dict(playlist: Playlist) -> dict:
    return {
        "id": playlist.id,
        "name": playlist.name,
        "trackIDs": list(playlist.track_ids),
        "createdAt": playlist.created_at.isoformat(),
    }

# -------------------------------
# READ
# -------------------------------
def load_locations(db: sqlite3.Connection) -> List[str]:
    data = _read(db, LIBRARY_KEY)
    if data is None:
        return []
    if not isinstance(data, list):
        raise PersistenceReadFailure(f"{LIBRARY_KEY!r} is not a list")
    locations = []
    for entry in data:
        if isinstance(entry, str) and entry:
            locations.append(_to_local_path(entry))
    return locations


def load_playlist_records(db: sqlite3.Connection) -> List[Playlist]:
    data = _read(db, PLAYLISTS_KEY)
    if data is None:
        return []
    if not isinstance(data, list):
        raise PersistenceReadFailure(f"{PLAYLISTS_KEY!r} is not a list")

    playlists = []
    for entry in data:
        try:
            playlists.append(playlist_from_dict(entry))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Skipping malformed playlist entry: %s", e)
    return playlists


def load(
    db: sqlite3.Connection,
    extract_all: Callable[[List[str]], List[Track]],
) -> Tuple[List[Track], List[Playlist]]:
    """
    Rebuild (tracks, playlists) from storage.

    Tracks come from re-extracting the stored locations. Playlists keep only
    ids that match a live track. Unreadable state becomes empty state.
    """
    locations, stored = load_state(db)
    tracks = extract_all(locations) if locations else []
    return tracks, rehydrate_playlists(stored, tracks)


def load_state(db: sqlite3.Connection) -> Tuple[List[str], List[Playlist]]:
    """Stored locations and raw playlist records. Never raises."""
    try:
        locations = load_locations(db)
    except PersistenceReadFailure as e:
        logger.warning("Library state unreadable, starting empty: %s", e)
        locations = []

    try:
        stored = load_playlist_records(db)
    except PersistenceReadFailure as e:
        logger.warning("Playlist state unreadable, starting empty: %s", e)
        stored = []
    return locations, stored


def rehydrate_playlists(stored: Iterable[Playlist], tracks: Iterable[Track]) -> List[Playlist]:
    live_ids = {t.id for t in tracks}
    return [
        Playlist(
            id=p.id,
            name=p.name,
            track_ids=tuple(i for i in p.track_ids if i in live_ids),
            created_at=p.created_at,
        )
        for p in stored
    ]


def _read(db: sqlite3.Connection, key: str):
    try:
        raw = get_setting(db, key)
    except sqlite3.Error as e:
        raise PersistenceReadFailure(f"Failed to read {key!r}: {e}") from e
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except ValueError as e:
        raise PersistenceReadFailure(f"Failed to parse {key!r}: {e}") from e


def playlist_from_dict(entry: dict) -> Playlist:
    if not isinstance(entry, dict):
        raise TypeError(f"playlist entry is {type(entry).__name__}, not an object")
    track_ids = entry.get("trackIDs") or []
    if not isinstance(track_ids, list):
        raise TypeError("trackIDs is not a list")
    return Playlist(
        id=str(entry["id"]),
        name=str(entry["name"]),
        track_ids=tuple(dict.fromkeys(str(i) for i in track_ids)),
        created_at=parse_timestamp(entry["createdAt"]),
    )


def parse_timestamp(value) -> datetime:
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError) as e:
            raise ValueError(f"timestamp out of range: {value!r}") from e
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _to_local_path(entry: str) -> str:
    if entry.startswith("file:"):
        return QUrl(entry).toLocalFile()
    return entry
