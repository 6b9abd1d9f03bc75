# src/xmusic/library/index.py
from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional

from PySide6.QtCore import QObject, Signal

from xmusic.core.models import Album, Artist, Track
from xmusic.core.utils import contains_folded
from xmusic.library.heuristics import find_artist_image

logger = logging.getLogger(__name__)


class LibraryIndex(QObject):
    """
    Canonical track set plus the Album/Artist groupings derived from it.

    Groupings are rebuilt from scratch after every change. Mutate from the
    thread that owns the index only.
    """

    tracks_changed = Signal()

    def __init__(self, artist_image_resolver: Optional[Callable[[str, str], Optional[str]]] = None):
        super().__init__()
        self._tracks: list[Track] = []
        self._albums: tuple[Album, ...] = ()
        self._artists: tuple[Artist, ...] = ()
        self._resolve_artist_image = artist_image_resolver or find_artist_image
        # artist name -> image path, resolved once per artist
        self._artist_images: dict[str, Optional[str]] = {}

    # ----------------------------
    # Read-only views
    # ----------------------------

    @property
    def tracks(self) -> tuple[Track, ...]:
        return tuple(self._tracks)

    @property
    def albums(self) -> tuple[Album, ...]:
        return self._albums

    @property
    def artists(self) -> tuple[Artist, ...]:
        return self._artists

    def __len__(self) -> int:
        return len(self._tracks)

    def __contains__(self, track_id: str) -> bool:
        return any(t.id == track_id for t in self._tracks)

    def track_by_id(self, track_id: str) -> Track | None:
        for t in self._tracks:
            if t.id == track_id:
                return t
        return None

    def tracks_by_ids(self, track_ids: Iterable[str]) -> list[Track]:
        """Live tracks for `track_ids`, in that order; unknown ids are dropped."""
        by_id = {t.id: t for t in self._tracks}
        return [by_id[i] for i in track_ids if i in by_id]

    def locations(self) -> list[str]:
        return [t.file_path for t in self._tracks]

    # ----------------------------
    # Mutations
    # ----------------------------

    def add_tracks(
        self,
        tracks: Iterable[Track],
        artist_images: Optional[dict[str, Optional[str]]] = None,
    ) -> int:
        """
        Merge `tracks` into the index, skipping any whose file location is
        already present. Returns the number of tracks added.

        `artist_images` holds images already looked up off-thread; names it
        covers are not resolved again. Names resolved earlier keep their image.
        """
        for name, image_path in (artist_images or {}).items():
            self._artist_images.setdefault(name, image_path)

        known = {t.file_path for t in self._tracks}
        added: list[Track] = []
        for track in tracks:
            if track.file_path in known:
                continue
            known.add(track.file_path)
            added.append(track)

        if not added:
            return 0

        self._tracks = self._tracks + added
        logger.debug("Added %d tracks (%d total)", len(added), len(self._tracks))
        self._changed()
        return len(added)

    def remove_track(self, track_id: str) -> bool:
        remaining = [t for t in self._tracks if t.id != track_id]
        if len(remaining) == len(self._tracks):
            return False
        self._tracks = remaining
        self._changed()
        return True

    def clear(self) -> None:
        self._tracks = []
        self._changed()

    def _changed(self) -> None:
        self.rebuild_groupings()
        self.tracks_changed.emit()

    # ----------------------------
    # Groupings
    # ----------------------------

    def rebuild_groupings(self) -> None:
        # pass 1: tracks -> albums by (artist, album title)
        album_members: dict[tuple[str, str], list[Track]] = {}
        for track in self._tracks:
            album_members.setdefault((track.artist, track.album), []).append(track)

        albums = [
            Album(title=title, artist=artist, artwork=members[0].artwork, tracks=tuple(members))
            for (artist, title), members in album_members.items()
        ]
        # sorted() is stable: ties keep insertion order
        albums = sorted(albums, key=lambda a: a.title)

        # pass 2: albums -> artists by artist name
        artist_albums: dict[str, list[Album]] = {}
        for album in albums:
            if album.artist not in artist_albums:
                artist_albums[album.artist] = []
                self._ensure_artist_image(album.artist, album.tracks[0])
            artist_albums[album.artist].append(album)

        artists = [
            Artist(name=name, albums=tuple(members), image_path=self._artist_images.get(name))
            for name, members in artist_albums.items()
        ]
        artists = sorted(artists, key=lambda a: a.name)

        self._albums = tuple(albums)
        self._artists = tuple(artists)

    def _ensure_artist_image(self, name: str, first_track: Track) -> None:
        if name in self._artist_images:
            return
        try:
            self._artist_images[name] = self._resolve_artist_image(first_track.file_path, name)
        except OSError as e:
            logger.debug("Artist image lookup failed for %s: %s", name, e)
            self._artist_images[name] = None

    # ----------------------------
    # Query
    # ----------------------------

    def search(self, query: str) -> list[Track]:
        """
        Case-insensitive substring match on title, artist and album.
        An empty query returns every track. Canonical order is kept.
        """
        if not query:
            return list(self._tracks)
        needle = query.lower()
        return [
            t for t in self._tracks
            if contains_folded(t.title, needle)
            or contains_folded(t.artist, needle)
            or contains_folded(t.album, needle)
        ]
