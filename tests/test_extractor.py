# tests/test_extractor.py
"""Test metadata recovery from comments"""

import pytest

from ncm_tagfix.core.exceptions import DecodeError, FormatError, NotFoundError
from ncm_tagfix.recovery.extractor import (
    RECOVERY_PREFIX,
    extract,
    find_recovery_comment,
    parse_payload,
    project_metadata,
)
from ncm_tagfix.recovery.models import NormalizedMetadata


class TestFindRecoveryComment:
    """Test comment selection"""

    def test_first_marked_comment_wins(self):
        """Test only comments starting with the marker are considered"""
        comments = ["ripped by me", "163 key(Don't modify):AAA", "163 key(Don't modify):BBB"]
        assert find_recovery_comment(comments) == "163 key(Don't modify):AAA"

    def test_marker_must_be_a_prefix(self):
        """Test the marker in the middle of a comment does not count"""
        assert find_recovery_comment(["note: 163 key inside"]) is None
        assert find_recovery_comment([]) is None


class TestParsePayload:
    """Test header skipping and JSON parsing"""

    def test_header_is_skipped(self):
        """Test the first 6 bytes are ignored whatever they are"""
        assert parse_payload(b"music:{\"a\": 1}") == {"a": 1}
        assert parse_payload(b"dj-xx:{}") == {}

    def test_too_short(self):
        """Test plaintext shorter than the header"""
        with pytest.raises(FormatError):
            parse_payload(b"music")

    def test_invalid_json(self):
        """Test broken JSON and invalid UTF-8"""
        with pytest.raises(FormatError):
            parse_payload(b"music:{not json")
        with pytest.raises(FormatError):
            parse_payload(b"music:\xff\xfe")

    def test_top_level_must_be_object(self):
        """Test arrays and scalars are rejected"""
        with pytest.raises(FormatError):
            parse_payload(b"music:[1, 2]")
        with pytest.raises(FormatError):
            parse_payload(b"music:\"text\"")


class TestProjectMetadata:
    """Test JSON to NormalizedMetadata projection"""

    def test_full_document(self, sample_document):
        """Test every known key is mapped and the rest ignored"""
        meta = project_metadata(sample_document)
        assert meta == NormalizedMetadata(
            title="晴天",
            album="叶惠美",
            artists=("周杰伦", "Guest"),
            cover_art_url="https://p1.music.126.net/cover.jpg",
        )

    def test_missing_keys_are_absent(self):
        """Test an empty document yields empty metadata"""
        meta = project_metadata({})
        assert meta.is_empty
        assert meta.artists == ()

    def test_empty_strings_are_absent(self):
        """Test empty strings are treated like missing keys"""
        meta = project_metadata({"musicName": "", "album": "", "albumPic": "", "artist": []})
        assert meta.title is None
        assert meta.album is None
        assert meta.cover_art_url is None
        assert meta.is_empty

    def test_wrong_types(self):
        """Test known keys with the wrong JSON type"""
        with pytest.raises(FormatError):
            project_metadata({"musicName": 42})
        with pytest.raises(FormatError):
            project_metadata({"artist": "Someone"})

    @pytest.mark.parametrize("entry", [
        ["Only Name"],
        "Someone",
        [None, 1],
        ["", 1],
        [],
    ])
    def test_malformed_artist_entry(self, entry):
        """Test artist entries must be [name, id] pairs with a name"""
        with pytest.raises(FormatError):
            project_metadata({"artist": [["Good", 1], entry]})

    def test_artist_order_is_kept(self):
        """Test names keep source order"""
        meta = project_metadata({"artist": [["B", 2], ["A", 1], ["C", "3"]]})
        assert meta.artists == ("B", "A", "C")


class TestNormalizedMetadata:
    """Test the metadata record"""

    def test_rejects_empty_strings(self):
        """Test empty strings cannot be stored"""
        with pytest.raises(ValueError):
            NormalizedMetadata(title="")
        with pytest.raises(ValueError):
            NormalizedMetadata(artists=("A", ""))


class TestExtract:
    """Test extraction from real files"""

    def test_flac(self, temp_dir, make_flac, make_recovery_comment, sample_document):
        """Test recovery from a FLAC DESCRIPTION comment"""
        path = make_flac(temp_dir / "song.flac", comment=make_recovery_comment(sample_document))
        meta = extract(path)
        assert meta.title == "晴天"
        assert meta.artists == ("周杰伦", "Guest")

    def test_mp3(self, temp_dir, make_mp3, make_recovery_comment, sample_document):
        """Test recovery from an ID3 COMM frame"""
        path = make_mp3(temp_dir / "song.mp3", comment=make_recovery_comment(sample_document))
        meta = extract(path)
        assert meta.album == "叶惠美"
        assert meta.cover_art_url == "https://p1.music.126.net/cover.jpg"

    def test_no_comment(self, temp_dir, make_flac, make_mp3):
        """Test files without a recovery comment"""
        with pytest.raises(NotFoundError):
            extract(make_flac(temp_dir / "plain.flac", comment="just a comment"))
        with pytest.raises(NotFoundError):
            extract(make_mp3(temp_dir / "plain.mp3"))

    def test_corrupt_blob(self, temp_dir, make_flac):
        """Test a marked comment with an undecodable blob"""
        path = make_flac(temp_dir / "bad.flac", comment=RECOVERY_PREFIX + "%%%")
        with pytest.raises(DecodeError):
            extract(path)

    def test_wrong_structure(self, temp_dir, make_flac, make_recovery_comment):
        """Test a blob that decrypts to a non-object payload"""
        path = make_flac(temp_dir / "list.flac", comment=make_recovery_comment(["not", "a", "dict"]))
        with pytest.raises(FormatError):
            extract(path)
