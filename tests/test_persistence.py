import json
import os
from datetime import datetime, timezone

import pytest

from xmusic.core.errors import PersistenceReadFailure, PersistenceWriteFailure
from xmusic.core.models import Playlist
from xmusic.db import persistence
from xmusic.db.database import get_setting, set_setting
from xmusic.library.scan_library import load_tracks
from tests.conftest import FAKE_JPEG, make_track, tag_wav, touch, write_wav


def build_files(root):
    return [
        touch(str(root / "Artist" / "Album" / "01. Artist - One.mp3")),
        touch(str(root / "Artist" / "Album" / "02. Artist - Two.mp3")),
        touch(str(root / "Artist" / "Album" / "03. Artist - Three.mp3")),
    ]


class TestStoredFormat:
    def test_library_is_a_list_of_locations(self, db):
        tracks = [make_track("/m/a.mp3"), make_track("/m/b.mp3")]
        persistence.save_library(db, tracks)
        assert json.loads(get_setting(db, persistence.LIBRARY_KEY)) == ["/m/a.mp3", "/m/b.mp3"]

    def test_playlist_record(self, db):
        created = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        p = Playlist(id="p-1", name="Mix", track_ids=("t1", "t2"), created_at=created)
        persistence.save_playlists(db, [p])
        assert json.loads(get_setting(db, persistence.PLAYLISTS_KEY)) == [{
            "id": "p-1",
            "name": "Mix",
            "trackIDs": ["t1", "t2"],
            "createdAt": "2024-01-02T03:04:05+00:00",
        }]

    def test_write_failure_is_wrapped(self, db):
        db.close()
        with pytest.raises(PersistenceWriteFailure):
            persistence.save_library(db, [make_track("/m/a.mp3")])


class TestReading:
    def test_empty_store(self, db):
        assert persistence.load(db, load_tracks) == ([], [])

    def test_corrupt_blobs_fall_back_to_empty(self, db):
        set_setting(db, persistence.LIBRARY_KEY, "{not json")
        set_setting(db, persistence.PLAYLISTS_KEY, json.dumps({"not": "a list"}))
        with pytest.raises(PersistenceReadFailure):
            persistence.load_locations(db)
        assert persistence.load(db, load_tracks) == ([], [])

    def test_malformed_playlist_entries_are_skipped(self, db):
        set_setting(db, persistence.PLAYLISTS_KEY, json.dumps([
            {"id": "ok", "name": "Fine", "trackIDs": [], "createdAt": "2024-01-01T00:00:00Z"},
            {"name": "no id"},
            {"id": "bad-date", "name": "x", "trackIDs": [], "createdAt": "yesterday"},
            {"id": "far-future", "name": "x", "trackIDs": [], "createdAt": 1e20},
            "oops",
            None,
            ["id", "name"],
            {"id": "epoch", "name": "Numeric", "trackIDs": [], "createdAt": 0},
        ]))
        records = persistence.load_playlist_records(db)
        assert [p.id for p in records] == ["ok", "epoch"]
        assert records[0].created_at == datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert records[1].created_at == datetime(1970, 1, 1, tzinfo=timezone.utc)

    def test_load_survives_non_object_playlist_entries(self, db):
        set_setting(db, persistence.PLAYLISTS_KEY, json.dumps([None, "oops", 3]))
        assert persistence.load(db, load_tracks) == ([], [])

    def test_out_of_range_timestamp_is_a_value_error(self):
        with pytest.raises(ValueError):
            persistence.parse_timestamp(1e20)

    def test_non_object_entry_is_a_type_error(self):
        with pytest.raises(TypeError):
            persistence.playlist_from_dict("oops")

    def test_file_urls_are_accepted(self, db, tmp_path):
        path = touch(str(tmp_path / "Album" / "song.mp3"))
        set_setting(db, persistence.LIBRARY_KEY, json.dumps(["file://" + path]))
        assert persistence.load_locations(db) == [path]


class TestRoundTrip:
    def test_tracks_and_playlists_survive(self, db, tmp_path):
        paths = build_files(tmp_path)
        tracks = load_tracks(paths)
        p = Playlist.new("Mix", [tracks[2].id, tracks[0].id])
        persistence.save(db, tracks, [p])

        loaded_tracks, loaded_playlists = persistence.load(db, load_tracks)
        assert [t.file_path for t in loaded_tracks] == paths
        assert [t.id for t in loaded_tracks] == [t.id for t in tracks]
        assert loaded_playlists == [p]

    def test_missing_files_drop_out_of_playlists(self, db, tmp_path):
        paths = build_files(tmp_path)
        tracks = load_tracks(paths)
        p = Playlist.new("Mix", [t.id for t in tracks])
        persistence.save(db, tracks, [p])

        os.remove(paths[1])
        loaded_tracks, (loaded,) = persistence.load(db, load_tracks)
        assert [t.file_path for t in loaded_tracks] == [paths[0], paths[2]]
        assert loaded.track_ids == (tracks[0].id, tracks[2].id)
        assert loaded.name == "Mix"
        assert loaded.created_at == p.created_at
        # storage still carries the dangling id until the next write
        stored = json.loads(get_setting(db, persistence.PLAYLISTS_KEY))
        assert stored[0]["trackIDs"] == [t.id for t in tracks]

    def test_embedded_artwork_is_re_extracted(self, db, tmp_path):
        path = write_wav(tmp_path / "x" / "y" / "z" / "w" / "art.wav")
        tag_wav(path, title="Art", artwork=FAKE_JPEG)
        persistence.save(db, load_tracks([path]), [])
        (track,), _ = persistence.load(db, load_tracks)
        assert track.artwork


class TestRehydrate:
    def test_keeps_only_live_ids_in_stored_order(self):
        live = [make_track("/m/a.mp3"), make_track("/m/b.mp3")]
        stored = Playlist.new("Mix", ["gone", live[1].id, live[0].id])
        (p,) = persistence.rehydrate_playlists([stored], live)
        assert p.track_ids == (live[1].id, live[0].id)
        assert (p.id, p.name, p.created_at) == (stored.id, stored.name, stored.created_at)

    def test_load_state_never_raises(self, db):
        set_setting(db, persistence.LIBRARY_KEY, "{not json")
        set_setting(db, persistence.PLAYLISTS_KEY, "[null, \"oops\"]")
        assert persistence.load_state(db) == ([], [])
