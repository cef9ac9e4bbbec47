"""Test configuration and fixtures"""

import base64
import json
import logging
import struct
import tempfile
from pathlib import Path
from unittest.mock import Mock

import pytest
from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from mutagen.flac import FLAC, Picture
from mutagen.id3 import APIC, COMM, ID3, TALB, TIT2, TPE1

from ncm_tagfix.recovery.decryptor import META_KEY
from ncm_tagfix.recovery.extractor import RECOVERY_PREFIX
from ncm_tagfix.tagging.artwork import CoverArt, FetchOutcome


PNG_BYTES = bytes([137, 80, 78, 71, 13, 10, 26, 10]) + b"\x00\x00\x00\rIHDR fake png"
JPEG_BYTES = b"\xff\xd8\xff\xe0\x00\x10JFIF fake jpeg"


def _encrypt_blob(plaintext: bytes) -> bytes:
    """PKCS#7-pad and AES-128-ECB encrypt with the recovery key"""
    padder = padding.PKCS7(128).padder()
    padded = padder.update(plaintext) + padder.finalize()
    return _encrypt_raw(padded)


def _encrypt_raw(data: bytes) -> bytes:
    """AES-128-ECB encrypt without padding (data must be block aligned)"""
    encryptor = Cipher(algorithms.AES(META_KEY), modes.ECB()).encryptor()
    return encryptor.update(data) + encryptor.finalize()


def _streaminfo_block() -> bytes:
    """A last-block STREAMINFO header: 44.1 kHz, stereo, 16 bit, no samples"""
    packed = (44100 << 44) | (1 << 41) | (15 << 36) | 0
    body = (
        struct.pack(">HH", 4096, 4096)
        + b"\x00\x00\x00\x00\x00\x00"
        + struct.pack(">Q", packed)
        + b"\x00" * 16
    )
    return bytes([0x80]) + len(body).to_bytes(3, "big") + body


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests"""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def sample_document():
    """Decrypted recovery payload as written by the upstream client"""
    return {
        "musicId": 186016,
        "musicName": "晴天",
        "artist": [["周杰伦", 6452], ["Guest", 1234]],
        "albumId": 18905,
        "album": "叶惠美",
        "albumPic": "https://p1.music.126.net/cover.jpg",
        "bitrate": 320000,
        "duration": 269000,
        "format": "flac",
    }


@pytest.fixture
def encrypt_blob():
    """Encrypt with the recovery key after PKCS#7 padding"""
    return _encrypt_blob


@pytest.fixture
def encrypt_raw():
    """Encrypt with the recovery key, no padding added"""
    return _encrypt_raw


@pytest.fixture
def make_recovery_comment():
    """Factory building a '163 key' comment from a payload document"""
    def _make(document, header: bytes = b"music:") -> str:
        plaintext = header + json.dumps(document, ensure_ascii=False).encode("utf-8")
        return RECOVERY_PREFIX + base64.b64encode(_encrypt_blob(plaintext)).decode("ascii")
    return _make


@pytest.fixture
def make_flac():
    """Factory writing a minimal valid FLAC file with optional tags"""
    def _make(
        path: Path,
        comment: str | None = None,
        title: str | None = None,
        album: str | None = None,
        artists: list[str] | None = None,
        picture: bool = False
    ) -> Path:
        path.write_bytes(b"fLaC" + _streaminfo_block())
        audio = FLAC(path)
        audio.add_tags()
        if comment is not None:
            audio.tags["DESCRIPTION"] = [comment]
        if title is not None:
            audio.tags["TITLE"] = [title]
        if album is not None:
            audio.tags["ALBUM"] = [album]
        if artists:
            audio.tags["ARTIST"] = artists
        if picture:
            existing = Picture()
            existing.type = 3
            existing.mime = "image/jpeg"
            existing.desc = "Existing"
            existing.data = JPEG_BYTES
            audio.add_picture(existing)
        audio.save()
        return path
    return _make


@pytest.fixture
def make_mp3():
    """Factory writing a fake MP3 file with an ID3v2.4 tag"""
    def _make(
        path: Path,
        comment: str | None = None,
        title: str | None = None,
        album: str | None = None,
        artists: list[str] | None = None,
        picture: bool = False
    ) -> Path:
        path.write_bytes(b"\xff\xfb\x90\x00" + b"\x00" * 256)
        tags = ID3()
        if comment is not None:
            tags.add(COMM(encoding=3, lang="eng", desc="", text=[comment]))
        if title is not None:
            tags.add(TIT2(encoding=3, text=[title]))
        if album is not None:
            tags.add(TALB(encoding=3, text=[album]))
        if artists:
            tags.add(TPE1(encoding=3, text=artists))
        if picture:
            tags.add(APIC(encoding=0, mime="image/jpeg", type=3, desc="Existing", data=JPEG_BYTES))
        tags.save(path, v2_version=4)
        return path
    return _make


@pytest.fixture
def png_fetcher():
    """Fetcher double that always returns a PNG cover"""
    fetcher = Mock()
    fetcher.fetch.return_value = CoverArt(
        data=PNG_BYTES,
        mime="image/png",
        outcome=FetchOutcome.FETCHED
    )
    return fetcher


@pytest.fixture
def restore_root_logging():
    """Restore root logger handlers and level after tests that call setup_logging"""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)
