# src/xmusic/library/extract.py
from __future__ import annotations

import logging
import os

from xmusic.core.errors import FileNotFound
from xmusic.core.models import UNKNOWN_ALBUM, UNKNOWN_ARTIST, Track
from xmusic.library.heuristics import (
    album_from_path,
    artist_from_filename,
    find_cover_image,
)
from xmusic.library.tags import read_tags

logger = logging.getLogger(__name__)


def extract(path: str) -> Track:
    """
    Build a Track for the audio file at `path`.

    Embedded tags first, then the fuzzy tag-key table, then the file name and
    directory heuristics, then cover images on disk. Only a missing file is
    an error; every metadata problem falls back to a default.
    """
    path = os.path.abspath(path)
    if not os.path.isfile(path):
        raise FileNotFound(path)

    info = read_tags(path)

    if info.is_missing("artist"):
        info.artist = artist_from_filename(path)

    if info.is_missing("album"):
        info.album = album_from_path(path)

    if info.artwork is None:
        info.artwork = find_cover_image(path)

    title = info.title if not info.is_missing("title") else os.path.splitext(os.path.basename(path))[0]
    artist = info.artist if not info.is_missing("artist") else UNKNOWN_ARTIST
    album = info.album if not info.is_missing("album") else UNKNOWN_ALBUM

    return Track(
        file_path=path,
        title=title,
        artist=artist,
        album=album,
        duration=info.duration,
        artwork=info.artwork,
        year=info.year,
        genre=info.genre,
        track_number=info.track_number,
    )


def try_extract(path: str) -> Track | None:
    """extract() for batch use: failures are logged and yield None."""
    try:
        return extract(path)
    except FileNotFound:
        logger.info("Skipping missing file: %s", path)
    except OSError as e:
        logger.warning("Cannot read %s: %s", path, e)
    return None
