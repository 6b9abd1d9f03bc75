# core/models.py
from __future__ import annotations

import os
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from xmusic.core.identity import identify
from xmusic.core.utils import format_duration, format_long_duration

UNKNOWN_ARTIST = "Unknown Artist"
UNKNOWN_ALBUM = "Unknown Album"


@dataclass(frozen=True, eq=False)
class Track:
    file_path: str      # absolute path to the audio file
    title: str
    artist: str
    album: str
    duration: float     # seconds, always finite and >= 0
    artwork: bytes | None = field(default=None, repr=False)
    year: str | None = None
    genre: str | None = None
    track_number: int | None = None
    id: str = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, "id", identify(self.file_path))

    # identity is the id, never the metadata
    def __eq__(self, other) -> bool:
        if not isinstance(other, Track):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    @property
    def file_name(self) -> str:
        return os.path.splitext(os.path.basename(self.file_path))[0]

    @property
    def file_extension(self) -> str:
        return os.path.splitext(self.file_path)[1].lstrip(".").lower()

    @property
    def formatted_duration(self) -> str:
        return format_duration(self.duration)


@dataclass(frozen=True)
class Album:
    title: str
    artist: str
    artwork: bytes | None = field(default=None, repr=False)
    tracks: tuple[Track, ...] = ()

    @property
    def key(self) -> tuple[str, str]:
        return self.artist, self.title

    @property
    def duration(self) -> float:
        return sum(t.duration for t in self.tracks)

    @property
    def formatted_duration(self) -> str:
        return format_long_duration(self.duration)


@dataclass(frozen=True)
class Artist:
    name: str
    albums: tuple[Album, ...] = ()
    image_path: str | None = None

    @property
    def tracks(self) -> list[Track]:
        return [t for album in self.albums for t in album.tracks]

    @property
    def duration(self) -> float:
        return sum(album.duration for album in self.albums)


@dataclass(frozen=True)
class Playlist:
    id: str
    name: str
    track_ids: tuple[str, ...] = ()
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @staticmethod
    def new(name: str, track_ids=()) -> "Playlist":
        # keep first occurrence of each id
        unique = tuple(dict.fromkeys(track_ids))
        return Playlist(id=str(uuid.uuid4()), name=name, track_ids=unique)

    def __contains__(self, track_id: str) -> bool:
        return track_id in self.track_ids
