"""
Audio container adapters for ncm-tagfix.

The engine never touches container bytes. It talks to an AudioContainer,
which exposes a small capability set over mutagen:

    get_comment(key)       -> list of non-empty values
    set_comment(key, value)   append one value
    has_picture_block()    -> bool
    add_picture_block(type, mime, description, data)
    save()

Two adapters exist, one per supported format. All file-format knowledge
lives in them:

    Canonical key   FLAC (Vorbis comment)   MP3 (ID3v2.4 frame)
    -------------   ---------------------   -------------------
    title           TITLE                   TIT2
    album           ALBUM                   TALB
    artist          ARTIST                  TPE1 (multi-value)
    description     DESCRIPTION             COMM (all frames)

Pictures map to FLAC METADATA_BLOCK_PICTURE and ID3 APIC frames.

Usage:
    from ncm_tagfix.tagging.containers import open_container

    container = open_container(Path("song.flac"))
    if not container.get_comment("title"):
        container.set_comment("title", "Song")
        container.save()
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar

from mutagen import MutagenError
from mutagen.flac import FLAC, Picture
from mutagen.id3 import APIC, COMM, ID3, ID3NoHeaderError, TALB, TIT2, TPE1

from ncm_tagfix.core.exceptions import ContainerIOError, UnsupportedFormatError


PICTURE_TYPE_FRONT_COVER = 3

COMMENT_KEYS = ("title", "album", "artist", "description")


@dataclass(frozen=True)
class ContainerTagState:
    """
    Snapshot of a container's existing tags, read before any write decision.

    Attributes:
        title: Non-empty title values.
        album: Non-empty album values.
        artists: Non-empty artist values, in tag order.
        has_embedded_picture: Whether any picture block/frame is present.
    """

    title: tuple[str, ...] = ()
    album: tuple[str, ...] = ()
    artists: tuple[str, ...] = ()
    has_embedded_picture: bool = False


class AudioContainer(ABC):
    """
    Format-agnostic view of one audio file's tag block.

    An instance is owned by a single worker for the duration of one
    file's processing and must not be shared between threads.

    Attributes:
        path: The audio file.
        kind: Short format name ("flac" or "mp3").
    """

    kind: ClassVar[str] = ""

    def __init__(self, path: Path) -> None:
        self.path = path

    def read_state(self) -> ContainerTagState:
        """Read the current tag state through the capability interface."""
        return ContainerTagState(
            title=tuple(self.get_comment("title")),
            album=tuple(self.get_comment("album")),
            artists=tuple(self.get_comment("artist")),
            has_embedded_picture=self.has_picture_block(),
        )

    @abstractmethod
    def get_comment(self, key: str) -> list[str]:
        """Return the non-empty values stored under a canonical key."""

    @abstractmethod
    def set_comment(self, key: str, value: str) -> None:
        """Append a value under a canonical key, keeping existing values."""

    @abstractmethod
    def has_picture_block(self) -> bool:
        """Return True if the file carries a picture of any type."""

    @abstractmethod
    def add_picture_block(
        self,
        picture_type: int,
        mime: str,
        description: str,
        data: bytes
    ) -> None:
        """Attach a picture. mime may be a URL-reference sentinel."""

    @abstractmethod
    def save(self) -> None:
        """
        Write the tag block back to disk.

        Raises:
            ContainerIOError: If the file cannot be written.
        """

    @staticmethod
    def _check_key(key: str) -> None:
        if key not in COMMENT_KEYS:
            raise KeyError(f"Unknown comment key: {key!r}")


class FLACContainer(AudioContainer):
    """FLAC adapter: Vorbis comments plus METADATA_BLOCK_PICTURE blocks."""

    kind = "flac"

    VORBIS_FIELDS = {
        "title": "TITLE",
        "album": "ALBUM",
        "artist": "ARTIST",
        "description": "DESCRIPTION",
    }

    def __init__(self, path: Path) -> None:
        super().__init__(path)
        try:
            self._audio = FLAC(path)
        except (MutagenError, OSError) as e:
            raise ContainerIOError(
                f"Failed to read FLAC file: {e}",
                details={"file_path": str(path), "original_error": str(e)}
            ) from e

    def get_comment(self, key: str) -> list[str]:
        self._check_key(key)
        if self._audio.tags is None:
            return []
        # VCommentDict lookups are case-insensitive
        return [value for value in self._audio.tags.get(self.VORBIS_FIELDS[key], []) if value]

    def set_comment(self, key: str, value: str) -> None:
        self._check_key(key)
        if self._audio.tags is None:
            self._audio.add_tags()
        field = self.VORBIS_FIELDS[key]
        self._audio.tags[field] = self.get_comment(key) + [value]

    def has_picture_block(self) -> bool:
        return bool(self._audio.pictures)

    def add_picture_block(
        self,
        picture_type: int,
        mime: str,
        description: str,
        data: bytes
    ) -> None:
        picture = Picture()
        picture.type = picture_type
        picture.mime = mime
        picture.desc = description
        picture.data = data
        self._audio.add_picture(picture)

    def save(self) -> None:
        try:
            self._audio.save()
        except (MutagenError, OSError) as e:
            raise ContainerIOError(
                f"Failed to save FLAC tags: {e}",
                details={"file_path": str(self.path), "original_error": str(e)}
            ) from e


class MP3Container(AudioContainer):
    """
    MP3 adapter: ID3v2 text, comment and APIC frames.

    A file without an ID3 header starts from an empty tag, which is
    prepended on save.
    """

    kind = "mp3"

    TEXT_FRAMES = {
        "title": TIT2,
        "album": TALB,
        "artist": TPE1,
    }

    def __init__(self, path: Path) -> None:
        super().__init__(path)
        try:
            self._tags = ID3(path)
        except ID3NoHeaderError:
            self._tags = ID3()
        except (MutagenError, OSError) as e:
            raise ContainerIOError(
                f"Failed to read ID3 tag: {e}",
                details={"file_path": str(path), "original_error": str(e)}
            ) from e

    def get_comment(self, key: str) -> list[str]:
        self._check_key(key)
        if key == "description":
            return [str(text) for frame in self._tags.getall("COMM") for text in frame.text if text]

        frame = self._tags.get(self.TEXT_FRAMES[key].__name__)
        if frame is None:
            return []
        return [str(text) for text in frame.text if text]

    def set_comment(self, key: str, value: str) -> None:
        self._check_key(key)
        if key == "description":
            # frames are keyed by desc and lang, so append to the existing one
            frame = self._tags.get("COMM::eng")
            if frame is None:
                self._tags.add(COMM(encoding=3, lang="eng", desc="", text=[value]))
            else:
                frame.text.append(value)
            return

        frame_class = self.TEXT_FRAMES[key]
        self._tags.setall(
            frame_class.__name__,
            [frame_class(encoding=3, text=self.get_comment(key) + [value])]
        )

    def has_picture_block(self) -> bool:
        return bool(self._tags.getall("APIC"))

    def add_picture_block(
        self,
        picture_type: int,
        mime: str,
        description: str,
        data: bytes
    ) -> None:
        self._tags.add(APIC(
            encoding=0,  # Latin-1
            mime=mime,
            type=picture_type,
            desc=description,
            data=data
        ))

    def save(self) -> None:
        try:
            self._tags.save(self.path, v2_version=4)
        except (MutagenError, OSError) as e:
            raise ContainerIOError(
                f"Failed to save ID3 tag: {e}",
                details={"file_path": str(self.path), "original_error": str(e)}
            ) from e


CONTAINER_TYPES: dict[str, type[AudioContainer]] = {
    ".flac": FLACContainer,
    ".mp3": MP3Container,
}


def is_supported(path: Path) -> bool:
    """Return True if a container adapter exists for the file's suffix."""
    return path.suffix.lower() in CONTAINER_TYPES


def open_container(path: Path | str) -> AudioContainer:
    """
    Open an audio file with the adapter matching its suffix.

    Raises:
        UnsupportedFormatError: If the suffix is neither .flac nor .mp3.
        ContainerIOError: If the file cannot be read.
    """
    path = Path(path)
    container_type = CONTAINER_TYPES.get(path.suffix.lower())
    if container_type is None:
        raise UnsupportedFormatError(
            f"Unsupported file type: {path.suffix or '(none)'}",
            details={"file_path": str(path)}
        )
    return container_type(path)
