import os
import wave

import pytest
from mutagen.id3 import APIC, TALB, TCON, TDRC, TIT2, TPE1, TRCK, TXXX
from mutagen.wave import WAVE
from PySide6.QtCore import QCoreApplication

from xmusic.core.models import Track
from xmusic.db.migrations import open_database

FAKE_JPEG = b"\xff\xd8\xff\xe0" + b"cover-bytes" * 8


@pytest.fixture(scope="session", autouse=True)
def qt_app():
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


@pytest.fixture
def db(tmp_path):
    conn = open_database(str(tmp_path / "db.sqlite3"))
    yield conn
    conn.close()


def write_wav(path, seconds=1.0, rate=8000):
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with wave.open(str(path), "wb") as w:
        w.setnchannels(1)
        w.setsampwidth(2)
        w.setframerate(rate)
        w.writeframes(b"\x00\x00" * int(rate * seconds))
    return str(path)


def tag_wav(path, title=None, artist=None, album=None, date=None, genre=None,
            track=None, artwork=None, extra=None):
    audio = WAVE(path)
    if audio.tags is None:
        audio.add_tags()
    tags = audio.tags
    if title:
        tags.add(TIT2(encoding=3, text=[title]))
    if artist:
        tags.add(TPE1(encoding=3, text=[artist]))
    if album:
        tags.add(TALB(encoding=3, text=[album]))
    if date:
        tags.add(TDRC(encoding=3, text=[date]))
    if genre:
        tags.add(TCON(encoding=3, text=[genre]))
    if track:
        tags.add(TRCK(encoding=3, text=[track]))
    if artwork:
        tags.add(APIC(encoding=3, mime="image/jpeg", type=3, desc="Cover", data=artwork))
    for desc, value in (extra or {}).items():
        tags.add(TXXX(encoding=3, desc=desc, text=[value]))
    audio.save()
    return path


def touch(path, content=b"not really audio"):
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "wb") as f:
        f.write(content)
    return str(path)


def make_track(path, title="Song", artist="Artist", album="Album", duration=60.0, artwork=None):
    return Track(
        file_path=path,
        title=title,
        artist=artist,
        album=album,
        duration=duration,
        artwork=artwork,
    )
