# src/xmusic/library/playlists.py
from __future__ import annotations

import dataclasses
import logging
from typing import Callable, Iterable, Optional

from PySide6.QtCore import QObject, Signal

from xmusic.core.errors import PlaylistNotFound
from xmusic.core.models import Playlist

logger = logging.getLogger(__name__)


class PlaylistStore(QObject):
    """
    Named, ordered track-id collections.

    Every mutation swaps in a new tuple of Playlist values and then calls
    `on_change` with it, so readers never see a half-applied edit and each
    edit is persisted right away.
    """

    playlists_changed = Signal()

    def __init__(self, on_change: Optional[Callable[[tuple[Playlist, ...]], None]] = None):
        super().__init__()
        self._playlists: tuple[Playlist, ...] = ()
        self._on_change = on_change

    @property
    def playlists(self) -> tuple[Playlist, ...]:
        return self._playlists

    def __len__(self) -> int:
        return len(self._playlists)

    def get(self, playlist_id: str) -> Playlist:
        for p in self._playlists:
            if p.id == playlist_id:
                return p
        raise PlaylistNotFound(playlist_id)

    def replace_all(self, playlists: Iterable[Playlist]) -> None:
        """Install playlists read from storage. Does not persist."""
        self._playlists = tuple(playlists)
        self.playlists_changed.emit()

    # ----------------------------
    # Mutations
    # ----------------------------

    def create(self, name: str, track_ids: Iterable[str] = ()) -> Playlist:
        playlist = Playlist.new(name, track_ids)
        self._commit(self._playlists + (playlist,))
        logger.info("Created playlist %r (%s)", name, playlist.id)
        return playlist

    def delete(self, playlist_id: str) -> None:
        self.get(playlist_id)
        self._commit(tuple(p for p in self._playlists if p.id != playlist_id))

    def rename(self, playlist_id: str, name: str) -> Playlist:
        playlist = self.get(playlist_id)
        if playlist.name == name:
            return playlist
        return self._replace(dataclasses.replace(playlist, name=name))

    def add_track(self, playlist_id: str, track_id: str) -> Playlist:
        playlist = self.get(playlist_id)
        if track_id in playlist:
            return playlist
        return self._replace(
            dataclasses.replace(playlist, track_ids=playlist.track_ids + (track_id,))
        )

    def remove_track(self, playlist_id: str, track_id: str) -> Playlist:
        playlist = self.get(playlist_id)
        if track_id not in playlist:
            return playlist
        return self._replace(
            dataclasses.replace(
                playlist,
                track_ids=tuple(t for t in playlist.track_ids if t != track_id),
            )
        )

    def _replace(self, updated: Playlist) -> Playlist:
        self._commit(tuple(updated if p.id == updated.id else p for p in self._playlists))
        return updated

    def _commit(self, playlists: tuple[Playlist, ...]) -> None:
        self._playlists = playlists
        if self._on_change is not None:
            self._on_change(playlists)
        self.playlists_changed.emit()
