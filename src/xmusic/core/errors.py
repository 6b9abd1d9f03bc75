# core/errors.py
from __future__ import annotations


class XMusicError(Exception):
    pass


class ExtractionFailure(XMusicError):
    """A file could not be turned into a Track."""


class FileNotFound(ExtractionFailure, FileNotFoundError):
    def __init__(self, path: str):
        super().__init__(f"File not found: {path}")
        self.path = path


class PersistenceError(XMusicError):
    pass


class PersistenceReadFailure(PersistenceError):
    pass


class PersistenceWriteFailure(PersistenceError):
    pass


class PlaylistNotFound(XMusicError, KeyError):
    def __init__(self, playlist_id: str):
        super().__init__(f"Playlist not found: {playlist_id}")
        self.playlist_id = playlist_id

    def __str__(self) -> str:
        return self.args[0]
