import os

import pytest

from xmusic.library.heuristics import (
    album_from_path,
    artist_from_filename,
    find_artist_image,
    find_cover_image,
)
from tests.conftest import FAKE_JPEG, touch


class TestArtistFromFilename:
    def test_numeric_prefix_is_stripped(self):
        path = "/Music/01. Richard Clayderman - Ballade Pour Adeline.mp3"
        assert artist_from_filename(path) == "Richard Clayderman"

    def test_splits_on_first_hyphen(self):
        assert artist_from_filename("/m/A-ha - Take On Me.mp3") == "A"

    def test_whitespace_around_hyphen_is_trimmed(self):
        assert artist_from_filename("/m/Daft Punk-Around the World.flac") == "Daft Punk"

    @pytest.mark.parametrize("name", ["01. Airbag.flac", "Airbag.flac", "- Airbag.mp3"])
    def test_no_artist_segment(self, name):
        assert artist_from_filename(f"/m/{name}") is None


class TestAlbumFromPath:
    def test_parent_directory(self):
        assert album_from_path("/Music/Radiohead/OK Computer/01. Airbag.flac") == "OK Computer"

    def test_disc_folder_uses_grandparent(self):
        path = "/Music/Radiohead/OK Computer/CD 1/01. Airbag.flac"
        assert album_from_path(path) == "OK Computer"

    def test_cd_without_space_is_a_normal_folder(self):
        assert album_from_path("/Music/CDs/track.mp3") == "CDs"


class TestFindCoverImage:
    def test_named_cover_beats_other_images(self, tmp_path):
        album = tmp_path / "Artist" / "Album"
        track = touch(str(album / "01.mp3"))
        touch(str(album / "aaa.png"), b"other image")
        touch(str(album / "folder.jpg"), FAKE_JPEG)
        assert find_cover_image(track) == FAKE_JPEG

    def test_name_match_is_case_insensitive(self, tmp_path):
        track = touch(str(tmp_path / "Album" / "01.mp3"))
        touch(str(tmp_path / "Album" / "Cover.JPG"), FAKE_JPEG)
        assert find_cover_image(track) == FAKE_JPEG

    def test_any_image_in_directory(self, tmp_path):
        track = touch(str(tmp_path / "Album" / "01.mp3"))
        touch(str(tmp_path / "Album" / "scan.webp"), b"webp-bytes")
        assert find_cover_image(track) == b"webp-bytes"

    def test_walks_up_from_disc_folder(self, tmp_path):
        track = touch(str(tmp_path / "Album" / "CD 2" / "01.mp3"))
        touch(str(tmp_path / "Album" / "front.png"), b"png-bytes")
        assert find_cover_image(track) == b"png-bytes"

    def test_search_depth_is_capped(self, tmp_path):
        deep = tmp_path / "1" / "2" / "3" / "4" / "5"
        track = touch(str(deep / "01.mp3"))
        touch(str(tmp_path / "cover.jpg"), FAKE_JPEG)
        # tmp_path is the sixth directory up from the track
        assert find_cover_image(track) is None
        assert find_cover_image(str(tmp_path / "1" / "2" / "3" / "4" / "t.mp3")) == FAKE_JPEG

    def test_no_images(self, tmp_path):
        track = touch(str(tmp_path / "a" / "b" / "c" / "d" / "e" / "01.mp3"))
        assert find_cover_image(track) is None

    def test_non_image_files_ignored(self, tmp_path):
        album = tmp_path / "x" / "y" / "z" / "Album"
        track = touch(str(album / "01.mp3"))
        touch(str(album / "cover.txt"), b"text")
        os.makedirs(str(album / "cover.jpg"))
        assert find_cover_image(track) is None


class TestFindArtistImage:
    def test_image_named_after_artist(self, tmp_path):
        track = touch(str(tmp_path / "Radiohead" / "OK Computer" / "01.mp3"))
        image = touch(str(tmp_path / "Radiohead" / "radiohead.jpg"), FAKE_JPEG)
        assert find_artist_image(track, "Radiohead") == image

    def test_missing(self, tmp_path):
        track = touch(str(tmp_path / "Radiohead" / "01.mp3"))
        assert find_artist_image(track, "Radiohead") is None
        assert find_artist_image(track, "") is None
