# src/xmusic/library/scan_library.py
from __future__ import annotations

import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional

from xmusic.core.models import Track
from xmusic.library.extract import try_extract
from xmusic.library.heuristics import find_artist_image

logger = logging.getLogger(__name__)

# Same list for directory scans and single-file imports
AUDIO_EXTS = {
    ".mp3", ".wav", ".wave", ".flac", ".m4a", ".aac",
    ".aiff", ".au", ".snd", ".sd2", ".caf",
    ".ogg", ".opus",
}

BATCH_SIZE = 100


@dataclass
class ScanProgress:
    files_scanned: int
    files_count: int

    @property
    def progress(self) -> float:
        if self.files_count <= 0:
            return 1.0
        return self.files_scanned / self.files_count


def is_audio_file(path: str) -> bool:
    return os.path.splitext(path)[1].lower() in AUDIO_EXTS


def _is_hidden(name: str) -> bool:
    return name.startswith(".")


def iter_audio_paths(directories: Iterable[str], skip_hidden: bool = True) -> list[str]:
    paths: list[str] = []
    for root in directories:
        if not root or not os.path.isdir(root):
            logger.warning("Not a directory, skipping: %s", root)
            continue
        for dirpath, dirnames, filenames in os.walk(os.path.abspath(root)):
            if skip_hidden:
                dirnames[:] = [d for d in dirnames if not _is_hidden(d)]
            dirnames.sort()
            for fn in sorted(filenames):
                if skip_hidden and _is_hidden(fn):
                    continue
                if is_audio_file(fn):
                    paths.append(os.path.join(dirpath, fn))
    return paths


def load_tracks_from_entry_batch(entry_batch: List[str]) -> List[Track]:
    # map() keeps input order, so results stay in walk order
    with ThreadPoolExecutor() as executor:
        return [t for t in executor.map(try_extract, entry_batch) if t is not None]


def load_tracks(
    paths: List[str],
    emit_progress_callback: Optional[Callable[[ScanProgress], None]] = None,
) -> List[Track]:
    """
    Extract every path in batches of BATCH_SIZE.

    Files that fail extraction are skipped. `emit_progress_callback` is
    called after each batch.
    """
    start_time = time.time()
    files_count = len(paths)
    tracks: List[Track] = []

    for start in range(0, files_count, BATCH_SIZE):
        entry_batch = paths[start:start + BATCH_SIZE]
        tracks.extend(load_tracks_from_entry_batch(entry_batch))
        if emit_progress_callback is not None:
            emit_progress_callback(ScanProgress(start + len(entry_batch), files_count))

    logger.info(
        "Extracted %d/%d tracks in %dms",
        len(tracks), files_count, int((time.time() - start_time) * 1000),
    )
    return tracks


@dataclass
class ScanResult:
    tracks: List[Track] = field(default_factory=list)
    artist_images: Dict[str, Optional[str]] = field(default_factory=dict)


def resolve_artist_images(
    tracks: Iterable[Track],
    resolver: Callable[[str, str], Optional[str]] = find_artist_image,
) -> Dict[str, Optional[str]]:
    """Look up one image per artist, starting from that artist's first track."""
    images: Dict[str, Optional[str]] = {}
    for track in tracks:
        if track.artist not in images:
            images[track.artist] = resolver(track.file_path, track.artist)
    return images
