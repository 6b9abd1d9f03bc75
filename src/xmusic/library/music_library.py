# src/xmusic/library/music_library.py
from __future__ import annotations

import logging
import os
import sqlite3
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional

from PySide6.QtCore import QObject, Signal, Slot

from xmusic.core.errors import PersistenceWriteFailure
from xmusic.core.models import Playlist, Track
from xmusic.core.state import Notify
from xmusic.db import persistence
from xmusic.db.database import add_directory, get_directories
from xmusic.db.models import Config
from xmusic.library.index import LibraryIndex
from xmusic.library.playlists import PlaylistStore
from xmusic.library.scan_library import ScanResult, is_audio_file
from xmusic.workers.library_scanner import LibraryScanner

logger = logging.getLogger(__name__)


@dataclass
class _Job:
    """One run of the scanner: either directory roots or explicit files."""
    directories: list[str] = field(default_factory=list)
    paths: Optional[list[str]] = None
    persist: bool = True
    on_merged: Optional[Callable[[int], None]] = None


class MusicLibrary(QObject):
    """
    Entry point for the presentation layer.

    Owns the LibraryIndex and PlaylistStore and persists after every change.
    Startup load, file imports and directory scans all extract on a
    LibraryScanner thread, one at a time; later requests wait in a queue.
    Must be used from the thread it was created on.
    """

    scan_started = Signal()
    scan_progress_changed = Signal(float)   # 0.0 - 1.0
    scan_finished = Signal(int)             # tracks added by a scan or import
    loaded = Signal()                       # stored state restored
    notification = Signal(object)           # Notify

    def __init__(
        self,
        db: sqlite3.Connection,
        config: Optional[Config] = None,
        scanner_factory: Callable[..., LibraryScanner] = LibraryScanner,
        artist_image_resolver=None,
    ):
        super().__init__()
        self.db = db
        self.config = config or Config()
        self._scanner_factory = scanner_factory

        self.index = LibraryIndex(artist_image_resolver=artist_image_resolver)
        self.playlists = PlaylistStore(on_change=self._save_playlists)

        self.is_scanning = False
        self.scan_progress = 0.0
        self._scanners: set = set()
        self._current_job: Optional[_Job] = None
        self._pending_jobs: list[_Job] = []

    # ----------------------------
    # Read side
    # ----------------------------

    @property
    def tracks(self):
        return self.index.tracks

    @property
    def albums(self):
        return self.index.albums

    @property
    def artists(self):
        return self.index.artists

    def search(self, query: str) -> list[Track]:
        return self.index.search(query)

    def playlist_tracks(self, playlist_id: str) -> list[Track]:
        return self.index.tracks_by_ids(self.playlists.get(playlist_id).track_ids)

    # ----------------------------
    # Startup
    # ----------------------------

    def load(self) -> None:
        """
        Restore stored state. Tracks are re-extracted on the scanner thread;
        playlists are restored once they are merged, and `loaded` fires.
        """
        locations, stored = persistence.load_state(self.db)
        if len(self.index):
            self.index.clear()

        def restore_playlists(_added: int) -> None:
            playlists = persistence.rehydrate_playlists(stored, self.index.tracks)
            self.playlists.replace_all(playlists)
            logger.info("Loaded %d tracks and %d playlists", len(self.index), len(playlists))
            self.loaded.emit()

        if not locations:
            restore_playlists(0)
            return
        self._submit(_Job(paths=locations, persist=False, on_merged=restore_playlists))

    # ----------------------------
    # Library commands
    # ----------------------------

    def add_files(self, paths: Iterable[str]) -> int:
        """
        Import audio files in the background. Returns how many were queued;
        `scan_finished` reports how many were added.
        """
        audio_paths = [os.path.abspath(p) for p in paths if is_audio_file(p)]
        if audio_paths:
            self._submit(_Job(paths=audio_paths, on_merged=self.scan_finished.emit))
        return len(audio_paths)

    def remove_track(self, track_id: str) -> bool:
        removed = self.index.remove_track(track_id)
        if removed:
            self._save_library()
        return removed

    def scan_directory(self, path: str) -> None:
        path = os.path.abspath(path)
        try:
            add_directory(self.db, path)
        except sqlite3.Error as e:
            logger.warning("Could not remember music folder %s: %s", path, e)
        self._submit_scan([path])

    def rescan(self) -> None:
        directories = get_directories(self.db)
        if directories:
            self._submit_scan(directories)

    def _submit_scan(self, directories: list[str]) -> None:
        # queued directory scans collapse into one
        last = self._pending_jobs[-1] if self._pending_jobs else None
        if last is not None and last.paths is None:
            last.directories = list(dict.fromkeys(last.directories + directories))
            logger.info("Scan in progress, queueing %s", ", ".join(directories))
            return
        self._submit(_Job(directories=list(directories), on_merged=self.scan_finished.emit))

    def _submit(self, job: _Job) -> None:
        if self.is_scanning:
            logger.info("Scan in progress, queueing job")
            self._pending_jobs.append(job)
            return
        self._start_job(job)

    def _start_job(self, job: _Job) -> None:
        self._current_job = job
        self.is_scanning = True
        self.scan_progress = 0.0
        self.scan_started.emit()

        scanner = self._scanner_factory(
            job.directories,
            skip_hidden=self.config.skip_hidden_files,
            paths=job.paths,
        )
        scanner.progress_signal.connect(self._on_scan_progress)
        scanner.finished_signal.connect(self._on_scan_finished)
        scanner.failed_signal.connect(self._on_scan_failed)
        scanner.finished.connect(self._release_scanner)
        self._scanners.add(scanner)
        scanner.start()

    @Slot(int, int)
    def _on_scan_progress(self, scanned: int, total: int) -> None:
        self.scan_progress = scanned / total if total > 0 else 0.0
        self.scan_progress_changed.emit(self.scan_progress)

    @Slot()
    def _release_scanner(self) -> None:
        # the QThread object must outlive its run()
        scanner = self.sender()
        self._scanners.discard(scanner)
        if scanner is not None:
            scanner.deleteLater()

    @Slot(str)
    def _on_scan_failed(self, message: str) -> None:
        self._notify(message, "error")

    @Slot(object)
    def _on_scan_finished(self, result: ScanResult) -> None:
        # single merge point for everything a worker extracted
        job = self._current_job or _Job()
        self._current_job = None
        added = self._merge(result.tracks, result.artist_images, persist=job.persist)
        self.is_scanning = False
        self.scan_progress = 1.0
        self.scan_progress_changed.emit(self.scan_progress)

        # queued jobs start before listeners hear about this one
        if self._pending_jobs:
            self._start_job(self._pending_jobs.pop(0))

        if job.on_merged is not None:
            job.on_merged(added)

    def _merge(self, tracks: List[Track], artist_images=None, persist: bool = True) -> int:
        added = self.index.add_tracks(tracks, artist_images)
        if added and persist:
            self._save_library()
        return added

    # ----------------------------
    # Playlist commands
    # ----------------------------

    def create_playlist(self, name: str, track_ids: Iterable[str] = ()) -> Playlist:
        return self.playlists.create(name, track_ids)

    def delete_playlist(self, playlist_id: str) -> None:
        self.playlists.delete(playlist_id)

    def rename_playlist(self, playlist_id: str, name: str) -> Playlist:
        return self.playlists.rename(playlist_id, name)

    def add_track_to_playlist(self, playlist_id: str, track_id: str) -> Playlist:
        return self.playlists.add_track(playlist_id, track_id)

    def remove_track_from_playlist(self, playlist_id: str, track_id: str) -> Playlist:
        return self.playlists.remove_track(playlist_id, track_id)

    # ----------------------------
    # Persistence
    # ----------------------------

    def _save_library(self) -> None:
        try:
            persistence.save_library(self.db, self.index.tracks)
        except PersistenceWriteFailure as e:
            logger.error("%s", e)
            self._notify(f"Could not save library: {e}", "error")

    def _save_playlists(self, playlists: tuple[Playlist, ...]) -> None:
        try:
            persistence.save_playlists(self.db, playlists)
        except PersistenceWriteFailure as e:
            logger.error("%s", e)
            self._notify(f"Could not save playlists: {e}", "error")

    def _notify(self, message: str, notify_type: str = "info") -> None:
        self.notification.emit(Notify(message=message, notify_type=notify_type))
