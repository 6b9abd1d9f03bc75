import logging
from typing import Optional

from PySide6.QtCore import QThread, Signal

from xmusic.library.scan_library import (
    ScanProgress,
    ScanResult,
    iter_audio_paths,
    load_tracks,
    resolve_artist_images,
)

logger = logging.getLogger(__name__)


class LibraryScanner(QThread):
    """
    Walks and extracts off the GUI thread. Found tracks and their artist
    images are handed back in one finished_signal so the receiver can merge
    them in a single step.

    With `paths` set, those files are extracted as given and `directories`
    is not walked.
    """

    progress_signal = Signal(int, int)     # scanned, total
    finished_signal = Signal(object)       # ScanResult
    failed_signal = Signal(str)            # message

    def __init__(
        self,
        directories: list[str],
        skip_hidden: bool = True,
        paths: Optional[list[str]] = None,
    ):
        super().__init__()
        self.directories = list(directories)
        self.skip_hidden = skip_hidden
        self.paths = list(paths) if paths is not None else None

    def run(self):
        try:
            if self.paths is not None:
                paths = self.paths
                logger.info("Extracting %d audio files", len(paths))
            else:
                paths = iter_audio_paths(self.directories, skip_hidden=self.skip_hidden)
                logger.info("Scanning %d audio files under %s", len(paths), ", ".join(self.directories))
            self.progress_signal.emit(0, len(paths))

            tracks = load_tracks(paths, self._emit_progress)
            result = ScanResult(tracks=tracks, artist_images=resolve_artist_images(tracks))
        except Exception as e:
            logger.exception("Scan failed")
            self.failed_signal.emit(f"Scan failed: {e}")
            self.finished_signal.emit(ScanResult())
            return

        self.finished_signal.emit(result)

    def _emit_progress(self, progress: ScanProgress) -> None:
        self.progress_signal.emit(progress.files_scanned, progress.files_count)
