# src/xmusic/player/queue.py
from __future__ import annotations

import logging
import random
from typing import Optional, Sequence

from PySide6.QtCore import QObject, Signal

from xmusic.core.models import Track
from xmusic.player.status import PlayerStatus

logger = logging.getLogger(__name__)


class PlayQueue(QObject):
    """
    Ordered tracks being played plus the current position in them.

    Drives a transport (Player or anything with the same methods and
    signals) and moves to the next entry when the transport reports the end
    of a track.
    """

    current_track_changed = Signal(object)  # Track | None
    position_changed = Signal(float)        # seconds
    playing_changed = Signal(bool)

    def __init__(self, transport, auto_advance: bool = True):
        super().__init__()
        self.transport = transport
        self.auto_advance = auto_advance

        self._tracks: list[Track] = []
        self._index: int = 0
        self.current_track: Optional[Track] = None
        self.is_playing: bool = False
        self.current_time: float = 0.0

        transport.ended.connect(self._on_ended)
        transport.positionChanged.connect(self._on_position)
        transport.statusChanged.connect(self._on_status)

    @property
    def tracks(self) -> tuple[Track, ...]:
        return tuple(self._tracks)

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def can_go_next(self) -> bool:
        return self._index < len(self._tracks) - 1

    @property
    def can_go_previous(self) -> bool:
        return self._index > 0

    @property
    def playback_progress(self) -> float:
        if self.current_track is None or self.current_track.duration <= 0:
            return 0.0
        return min(1.0, self.current_time / self.current_track.duration)

    # ----------------------------
    # Queue control
    # ----------------------------

    def load(self, track: Track, tracks: Sequence[Track] = ()) -> None:
        self._tracks = list(tracks) if tracks else [track]
        self._index = next((i for i, t in enumerate(self._tracks) if t.id == track.id), 0)
        self._load_current()

    def play_all(self, tracks: Sequence[Track], shuffle: bool = False) -> None:
        tracks = list(tracks)
        if not tracks:
            return
        if shuffle:
            random.shuffle(tracks)
        self.load(tracks[0], tracks)
        self.play()

    def next_track(self) -> None:
        if not self.can_go_next:
            return
        self._index += 1
        self._load_current()
        self.play()

    def previous_track(self) -> None:
        if not self.can_go_previous:
            return
        self._index -= 1
        self._load_current()
        self.play()

    def _load_current(self) -> None:
        track = self._tracks[self._index]
        self.current_track = track
        self.current_time = 0.0
        logger.debug("Loading %s", track.file_path)
        self.transport.play_file(track.file_path)
        self.current_track_changed.emit(track)

    # ----------------------------
    # Transport passthrough
    # ----------------------------

    def play(self) -> None:
        if self.current_track is None:
            return
        self.transport.play()
        self._set_playing(True)

    def pause(self) -> None:
        self.transport.pause()
        self._set_playing(False)

    def toggle_play_pause(self) -> None:
        if self.is_playing:
            self.pause()
        else:
            self.play()

    def stop(self) -> None:
        self.transport.stop()
        self.current_time = 0.0
        self._set_playing(False)

    def seek(self, progress: float) -> None:
        if self.current_track is None:
            return
        progress = min(1.0, max(0.0, float(progress)))
        seconds = progress * self.current_track.duration
        self.transport.seek_ms(int(seconds * 1000))
        self.current_time = seconds
        self.position_changed.emit(seconds)

    def set_volume(self, volume: float) -> None:
        self.transport.set_volume(volume)

    # ----------------------------
    # Transport signals
    # ----------------------------

    def _on_position(self, ms: int) -> None:
        self.current_time = max(0, ms) / 1000.0
        self.position_changed.emit(self.current_time)

    def _on_status(self, status) -> None:
        self._set_playing(status == PlayerStatus.PLAYING)

    def _on_ended(self) -> None:
        self._set_playing(False)
        if self.auto_advance and self.can_go_next:
            self.next_track()

    def _set_playing(self, playing: bool) -> None:
        if self.is_playing != playing:
            self.is_playing = playing
            self.playing_changed.emit(playing)
