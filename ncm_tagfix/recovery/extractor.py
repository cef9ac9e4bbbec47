"""
Metadata extraction from recovery comments.

A file decrypted from the upstream container keeps a comment of the form

    163 key(Don't modify):<base64 AES blob>

in its Vorbis DESCRIPTION field (FLAC) or in an ID3 COMM frame (MP3).
The decrypted blob is a 6-byte header ("music:") followed by a JSON
object with the original track metadata.

Recovered JSON keys:
    JSON Key     -> NormalizedMetadata field
    ----------      ------------------------
    musicName    -> title
    album        -> album
    artist       -> artists  (list of [name, id] pairs, names kept in order)
    albumPic     -> cover_art_url

All other keys (musicId, bitrate, duration, alias, ...) are ignored.

Usage:
    from ncm_tagfix.recovery.extractor import extract

    meta = extract(Path("song.flac"))
    print(meta.title, meta.artists)
"""

import json
from pathlib import Path
from typing import Any, Iterable

from ncm_tagfix.core.exceptions import FormatError, NotFoundError
from ncm_tagfix.core.logger import get_logger
from ncm_tagfix.recovery.decryptor import decrypt
from ncm_tagfix.recovery.models import NormalizedMetadata
from ncm_tagfix.tagging.containers import AudioContainer, open_container

logger = get_logger(__name__)


RECOVERY_MARKER = "163 key"
RECOVERY_PREFIX = "163 key(Don't modify):"

# Length of the "music:" header in front of the JSON document
PAYLOAD_HEADER_LENGTH = 6


def extract(path: Path | str) -> NormalizedMetadata:
    """
    Recover metadata from the comment fields of an audio file.

    Args:
        path: FLAC or MP3 file.

    Returns:
        NormalizedMetadata built from the recovery blob.

    Raises:
        NotFoundError: No comment starts with the recovery marker.
        DecodeError, CipherError: The blob cannot be decrypted.
        FormatError: The decrypted payload has the wrong structure.
        ContainerIOError: The file cannot be read.
        UnsupportedFormatError: The suffix is neither .flac nor .mp3.
    """
    return extract_from_container(open_container(path))


def extract_from_container(container: AudioContainer) -> NormalizedMetadata:
    """
    Recover metadata from an already opened container.

    See extract() for the error contract.
    """
    comment = find_recovery_comment(container.get_comment("description"))
    if comment is None:
        raise NotFoundError(
            "No recovery metadata found",
            details={"file_path": str(container.path)}
        )

    plaintext = decode_recovery_comment(comment)
    meta = project_metadata(parse_payload(plaintext))
    logger.debug(f"{container.path.name}: recovered {meta}")
    return meta


def find_recovery_comment(comments: Iterable[str]) -> str | None:
    """Return the first comment starting with the recovery marker, or None."""
    for comment in comments:
        if comment.startswith(RECOVERY_MARKER):
            return comment
    return None


def decode_recovery_comment(comment: str) -> bytes:
    """
    Strip the recovery prefix and decrypt the remaining blob.

    Raises:
        DecodeError, CipherError: From the decryptor.
    """
    return decrypt(comment.removeprefix(RECOVERY_PREFIX))


def parse_payload(plaintext: bytes) -> dict[str, Any]:
    """
    Skip the fixed header and parse the JSON document.

    Args:
        plaintext: Decrypted, unpadded blob.

    Returns:
        The raw JSON object. Callers should pass it straight to
        project_metadata() and not keep it around.

    Raises:
        FormatError: Plaintext shorter than the header, invalid UTF-8 or
                     JSON, or a top-level value that is not an object.
    """
    if len(plaintext) < PAYLOAD_HEADER_LENGTH:
        raise FormatError(
            f"Recovered payload is only {len(plaintext)} bytes long",
            details={"length": len(plaintext)}
        )

    try:
        document = json.loads(plaintext[PAYLOAD_HEADER_LENGTH:].decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise FormatError(
            f"Recovered payload is not valid JSON: {e}",
            details={"original_error": str(e)}
        ) from e

    if not isinstance(document, dict):
        raise FormatError(
            f"Recovered payload is a JSON {type(document).__name__}, expected an object"
        )

    return document


def project_metadata(document: dict[str, Any]) -> NormalizedMetadata:
    """
    Project the known keys of a payload document into NormalizedMetadata.

    Raises:
        FormatError: If a known key holds a value of the wrong type, or an
                     artist entry is not a [name, id] pair with a non-empty
                     string name.
    """
    return NormalizedMetadata(
        title=_optional_string(document, "musicName"),
        album=_optional_string(document, "album"),
        artists=_artist_names(document.get("artist")),
        cover_art_url=_optional_string(document, "albumPic"),
    )


def _optional_string(document: dict[str, Any], key: str) -> str | None:
    value = document.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise FormatError(
            f"'{key}' must be a string, got {type(value).__name__}",
            details={"key": key}
        )
    return value or None


def _artist_names(raw: Any) -> tuple[str, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise FormatError(
            f"'artist' must be a list, got {type(raw).__name__}",
            details={"key": "artist"}
        )

    names = []
    for index, entry in enumerate(raw):
        if not isinstance(entry, list) or len(entry) < 2:
            raise FormatError(
                f"Artist entry {index} is not a [name, id] pair",
                details={"entry": entry}
            )
        name = entry[0]
        if not isinstance(name, str) or not name:
            raise FormatError(
                f"Artist entry {index} has no name",
                details={"entry": entry}
            )
        names.append(name)

    return tuple(names)
