# src/xmusic/library/tags.py
from __future__ import annotations

import base64
import logging
import re
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from mutagen import File as MutagenFile
from mutagen._util import MutagenError
from mutagen._vorbis import VComment
from mutagen.flac import Picture
from mutagen.id3 import ID3
from mutagen.mp4 import MP4Tags

from xmusic.core.models import UNKNOWN_ALBUM, UNKNOWN_ARTIST
from xmusic.core.utils import sanitize_duration

logger = logging.getLogger(__name__)

# Values that count as "not set" and may be overridden by a later step
PLACEHOLDERS = {"artist": UNKNOWN_ARTIST, "album": UNKNOWN_ALBUM}

# Standard tag vocabulary per field: ID3 frame, Vorbis comment, MP4 atom.
STANDARD_KEYS: dict[str, tuple[str, ...]] = {
    "title": ("TIT2", "title", "\xa9nam"),
    "artist": ("TPE1", "artist", "\xa9ART"),
    "album": ("TALB", "album", "\xa9alb"),
    "year": ("TDRC", "TYER", "date", "year", "\xa9day"),
    "genre": ("TCON", "genre", "\xa9gen"),
    "track_number": ("TRCK", "tracknumber", "trkn"),
}

_STANDARD_LOOKUP = {
    key.lower(): name for name, keys in STANDARD_KEYS.items() for key in keys
}

# Keys carrying binary artwork, never read as text
_BINARY_KEYS = {"covr", "metadata_block_picture"}


@dataclass
class TagInfo:
    title: Optional[str] = None
    artist: Optional[str] = None
    album: Optional[str] = None
    year: Optional[str] = None
    genre: Optional[str] = None
    track_number: Optional[int] = None
    artwork: Optional[bytes] = None
    duration: float = 0.0

    def is_missing(self, name: str) -> bool:
        value = getattr(self, name)
        if value is None:
            return True
        if isinstance(value, str):
            stripped = value.strip()
            return not stripped or stripped == PLACEHOLDERS.get(name)
        return False

    def fill(self, name: str, raw: str) -> bool:
        """Set `name` from a raw tag string if it is still missing."""
        if not self.is_missing(name):
            return False
        value = _convert(name, raw)
        if value is None:
            return False
        setattr(self, name, value)
        return True


def _key_contains(*needles: str) -> Callable[[str], bool]:
    def predicate(key: str) -> bool:
        lowered = key.lower()
        return any(n in lowered for n in needles)
    return predicate


def _key_contains_or_is(needles: Iterable[str], aliases: Iterable[str]) -> Callable[[str], bool]:
    contains = _key_contains(*needles)
    exact = set(aliases)

    def predicate(key: str) -> bool:
        return contains(key) or key in exact or key.split(":")[-1] in exact
    return predicate


# Evaluated top to bottom for every tag key outside the standard vocabulary.
# Each rule only fills a field that is still missing.
FUZZY_KEY_RULES: tuple[tuple[Callable[[str], bool], str], ...] = (
    (_key_contains("title", "name"), "title"),
    (_key_contains_or_is(("artist", "author"), ("作者", "Authors", "Author")), "artist"),
    (_key_contains_or_is(("album",), ("Album", "专辑")), "album"),
    (_key_contains("year", "date"), "year"),
    (_key_contains("genre"), "genre"),
)


def apply_fuzzy_rules(info: TagInfo, items: list[tuple[str, str]]) -> None:
    for key, value in items:
        for predicate, name in FUZZY_KEY_RULES:
            if predicate(key):
                info.fill(name, value)


def read_tags(path: str) -> TagInfo:
    """
    Read embedded metadata, artwork and duration.

    Never raises for unreadable or untagged files; whatever cannot be read
    stays missing on the returned TagInfo.
    """
    info = TagInfo()
    try:
        audio = MutagenFile(path)
    except (MutagenError, Exception) as e:
        # unreadable media is treated as untagged
        logger.debug("Cannot parse %s: %s", path, e)
        return info
    if audio is None:
        logger.debug("Unsupported or untagged media: %s", path)
        return info

    info.duration = sanitize_duration(getattr(getattr(audio, "info", None), "length", 0.0))

    items = _tag_items(getattr(audio, "tags", None))
    leftovers: list[tuple[str, str]] = []
    for key, value in items:
        name = _STANDARD_LOOKUP.get(key.lower())
        if name is None:
            leftovers.append((key, value))
        else:
            info.fill(name, value)

    apply_fuzzy_rules(info, leftovers)

    try:
        info.artwork = embedded_artwork(audio)
    except (MutagenError, ValueError, TypeError) as e:
        logger.debug("Cannot read embedded artwork from %s: %s", path, e)
    return info


def embedded_artwork(audio) -> Optional[bytes]:
    # FLAC picture blocks
    pictures = getattr(audio, "pictures", None)
    if pictures:
        return bytes(pictures[0].data) or None

    tags = getattr(audio, "tags", None)
    if tags is None:
        return None

    if isinstance(tags, ID3):
        frames = tags.getall("APIC")
        if not frames:
            return None
        # prefer the front cover
        front = [f for f in frames if getattr(f, "type", None) == 3]
        return bytes((front or frames)[0].data) or None

    if isinstance(tags, MP4Tags):
        covers = tags.get("covr")
        return bytes(covers[0]) if covers else None

    if isinstance(tags, VComment):
        for key, value in tags:
            if key.lower() == "metadata_block_picture":
                picture = Picture(base64.b64decode(value))
                return bytes(picture.data) or None
    return None


def _tag_items(tags) -> list[tuple[str, str]]:
    """Flatten any mutagen tag container into (key, text) pairs."""
    if tags is None:
        return []

    items: list[tuple[str, str]] = []
    if isinstance(tags, VComment):
        for key, value in tags:
            if key.lower() in _BINARY_KEYS:
                continue
            text = _as_text(value)
            if text:
                items.append((key, text))
        return items

    try:
        pairs = list(tags.items())
    except (AttributeError, TypeError):
        return items

    for key, value in pairs:
        if str(key).lower() in _BINARY_KEYS:
            continue
        text = _as_text(value)
        if text:
            items.append((str(key), text))
    return items


def _as_text(value) -> Optional[str]:
    # ID3 frames keep their values in .text; APIC and friends have none
    if hasattr(value, "FrameID"):
        value = getattr(value, "text", None)
        if value is None:
            return None

    if isinstance(value, (list, tuple)) and value and not _is_number_pair(value):
        value = value[0]

    if _is_number_pair(value):
        number, total = value
        return f"{number}/{total}" if total else str(number)

    if isinstance(value, (bytes, bytearray)):
        value = bytes(value).decode("utf-8", errors="replace")

    if value is None:
        return None
    s = str(value).strip()
    return s or None


def _is_number_pair(value) -> bool:
    return (
        isinstance(value, tuple)
        and len(value) == 2
        and all(isinstance(v, int) for v in value)
    )


def _convert(name: str, raw: str):
    raw = raw.strip()
    if not raw:
        return None
    if name == "track_number":
        return parse_track_number(raw)
    if name == "year":
        return parse_year(raw)
    return raw


def parse_track_number(raw: str | None) -> int | None:
    if not raw:
        return None
    try:
        head = str(raw).split("/")[0].strip()
        return int(head)
    except ValueError:
        return None


def parse_year(raw: str) -> str:
    match = re.search(r"\b(\d{4})\b", raw)
    return match.group(1) if match else raw
