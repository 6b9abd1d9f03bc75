# src/xmusic/library/heuristics.py
"""
Filesystem fallbacks for metadata that the tags do not provide.

- artist from a "<artist> - <title>" file name
- album from the directory layout (skipping "CD n" disc folders)
- cover art from image files next to the track or in its ancestors
"""
from __future__ import annotations

import logging
import os
import re
from typing import Optional

logger = logging.getLogger(__name__)

IMAGE_EXTS = ("jpg", "jpeg", "png", "gif", "webp")
COVER_NAMES = ("cover", "folder", "front", "album")

# directories examined: the track's own plus its ancestors
MAX_SEARCH_LEVELS = 5

DISC_FOLDER_PREFIX = "CD "

_ARTIST_SONG_RE = re.compile(r"^(.+?)\s*-\s*(.+)$")
_NUMBER_PREFIX_RE = re.compile(r"^\d+\.\s*")


def artist_from_filename(path: str) -> Optional[str]:
    """
    "01. Richard Clayderman - Ballade Pour Adeline.mp3" -> "Richard Clayderman"
    """
    stem = os.path.splitext(os.path.basename(path))[0]
    match = _ARTIST_SONG_RE.match(stem)
    if not match:
        return None

    artist = match.group(1).strip()
    artist = _NUMBER_PREFIX_RE.sub("", artist, count=1).strip()
    return artist or None


def album_from_path(path: str) -> Optional[str]:
    """
    Parent directory name, or the grandparent when the parent is a disc
    folder such as "CD 1".
    """
    current_dir = os.path.dirname(os.path.abspath(path))
    parent = os.path.basename(current_dir)
    grandparent = os.path.basename(os.path.dirname(current_dir))

    if parent and not parent.startswith(DISC_FOLDER_PREFIX):
        return parent
    if grandparent:
        return grandparent
    return parent or None


def _ancestors(path: str, levels: int = MAX_SEARCH_LEVELS):
    directory = os.path.dirname(os.path.abspath(path))
    for _ in range(levels):
        yield directory
        parent = os.path.dirname(directory)
        if parent == directory:
            break
        directory = parent


def _image_files(directory: str) -> dict[str, str]:
    """lower-cased file name -> full path, for image files in `directory`."""
    try:
        names = sorted(os.listdir(directory))
    except OSError:
        return {}
    images: dict[str, str] = {}
    for name in names:
        ext = os.path.splitext(name)[1].lstrip(".").lower()
        if ext not in IMAGE_EXTS:
            continue
        full = os.path.join(directory, name)
        if os.path.isfile(full):
            images.setdefault(name.lower(), full)
    return images


def _read_bytes(path: str) -> Optional[bytes]:
    try:
        with open(path, "rb") as f:
            data = f.read()
    except OSError as e:
        logger.debug("Cannot read image %s: %s", path, e)
        return None
    return data or None


def find_cover_image(path: str) -> Optional[bytes]:
    """
    Artwork for a track without an embedded picture.

    In each directory from the track's up to MAX_SEARCH_LEVELS ancestors:
    a cover/folder/front/album image first, then any image at all.
    """
    for directory in _ancestors(path):
        images = _image_files(directory)
        if not images:
            continue

        for name in COVER_NAMES:
            for ext in IMAGE_EXTS:
                candidate = images.get(f"{name}.{ext}")
                if candidate:
                    data = _read_bytes(candidate)
                    if data:
                        return data

        for candidate in images.values():
            data = _read_bytes(candidate)
            if data:
                return data
    return None


def find_artist_image(path: str, artist: str) -> Optional[str]:
    """Path of an image named after `artist` near the track at `path`."""
    if not artist:
        return None
    wanted = artist.lower()
    for directory in _ancestors(path):
        images = _image_files(directory)
        for ext in IMAGE_EXTS:
            candidate = images.get(f"{wanted}.{ext}")
            if candidate:
                return candidate
    return None
