# tests/test_containers.py
"""Test FLAC and MP3 container adapters"""

import pytest
from mutagen.flac import FLAC
from mutagen.id3 import ID3

from ncm_tagfix.core.exceptions import ContainerIOError, UnsupportedFormatError
from ncm_tagfix.tagging.containers import (
    FLACContainer,
    MP3Container,
    is_supported,
    open_container,
)


class TestDispatch:
    """Test suffix based adapter selection"""

    def test_supported_suffixes(self, temp_dir):
        """Test only .flac and .mp3 are supported"""
        assert is_supported(temp_dir / "a.flac")
        assert is_supported(temp_dir / "a.MP3")
        assert not is_supported(temp_dir / "a.ncm")
        assert not is_supported(temp_dir / "a.m4a")

    def test_open_container(self, temp_dir, make_flac, make_mp3):
        """Test adapters are chosen by suffix"""
        assert isinstance(open_container(make_flac(temp_dir / "a.flac")), FLACContainer)
        assert isinstance(open_container(make_mp3(temp_dir / "a.mp3")), MP3Container)

    def test_unsupported(self, temp_dir):
        """Test other suffixes raise UnsupportedFormatError"""
        path = temp_dir / "cover.jpg"
        path.write_bytes(b"\xff\xd8")
        with pytest.raises(UnsupportedFormatError):
            open_container(path)


class TestFLACContainer:
    """Test the FLAC adapter"""

    def test_read_state(self, temp_dir, make_flac):
        """Test existing tags are reported"""
        path = make_flac(temp_dir / "a.flac", title="T", artists=["A", "B"], picture=True)
        state = open_container(path).read_state()
        assert state.title == ("T",)
        assert state.album == ()
        assert state.artists == ("A", "B")
        assert state.has_embedded_picture

    def test_set_comment_appends(self, temp_dir, make_flac):
        """Test set_comment keeps existing values and saves"""
        path = make_flac(temp_dir / "a.flac")
        container = open_container(path)
        container.set_comment("artist", "A")
        container.set_comment("artist", "B")
        container.set_comment("title", "T")
        container.save()

        audio = FLAC(path)
        assert audio.tags["ARTIST"] == ["A", "B"]
        assert audio.tags["TITLE"] == ["T"]

    def test_add_picture_block(self, temp_dir, make_flac):
        """Test picture blocks are written with type and description"""
        path = make_flac(temp_dir / "a.flac")
        container = open_container(path)
        assert not container.has_picture_block()
        container.add_picture_block(3, "-->", "Front cover", b"https://example.com/a.jpg")
        container.save()

        picture = FLAC(path).pictures[0]
        assert picture.type == 3
        assert picture.mime == "-->"
        assert picture.desc == "Front cover"
        assert picture.data == b"https://example.com/a.jpg"

    def test_unknown_key(self, temp_dir, make_flac):
        """Test non-canonical keys are rejected"""
        container = open_container(make_flac(temp_dir / "a.flac"))
        with pytest.raises(KeyError):
            container.get_comment("genre")

    def test_corrupt_file(self, temp_dir):
        """Test unreadable FLAC raises ContainerIOError"""
        path = temp_dir / "broken.flac"
        path.write_bytes(b"this is not a flac stream")
        with pytest.raises(ContainerIOError):
            open_container(path)


class TestMP3Container:
    """Test the MP3 adapter"""

    def test_file_without_tag(self, temp_dir):
        """Test a file with no ID3 header starts empty and gains one on save"""
        path = temp_dir / "bare.mp3"
        path.write_bytes(b"\xff\xfb\x90\x00" + b"\x00" * 64)
        container = open_container(path)
        assert container.read_state().title == ()

        container.set_comment("title", "T")
        container.save()
        assert str(ID3(path)["TIT2"]) == "T"

    def test_artists_are_multi_value(self, temp_dir, make_mp3):
        """Test artists are stored as one multi-value TPE1 frame"""
        path = make_mp3(temp_dir / "a.mp3")
        container = open_container(path)
        container.set_comment("artist", "A")
        container.set_comment("artist", "B")
        container.save()

        frames = ID3(path).getall("TPE1")
        assert len(frames) == 1
        assert frames[0].text == ["A", "B"]

    def test_description_reads_all_comments(self, temp_dir, make_mp3):
        """Test every COMM frame is visible through 'description'"""
        path = make_mp3(temp_dir / "a.mp3", comment="first")
        container = open_container(path)
        container.set_comment("description", "second")
        assert container.get_comment("description") == ["first", "second"]

    def test_picture(self, temp_dir, make_mp3):
        """Test APIC frames are detected and written"""
        assert open_container(make_mp3(temp_dir / "p.mp3", picture=True)).has_picture_block()

        path = make_mp3(temp_dir / "a.mp3")
        container = open_container(path)
        container.add_picture_block(3, "image/png", "Front cover", b"\x89PNG")
        container.save()

        apic = ID3(path).getall("APIC")[0]
        assert apic.type == 3
        assert apic.mime == "image/png"
        assert apic.desc == "Front cover"
        assert apic.data == b"\x89PNG"
