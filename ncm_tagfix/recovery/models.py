"""
Data model for recovered metadata.

NormalizedMetadata is the strongly-typed record built from a decrypted
recovery blob. It is constructed once per file, consumed by the backfill
policy and discarded; it is never cached or shared across files.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class NormalizedMetadata:
    """
    Canonical metadata recovered from a file's embedded blob.

    Every field is either absent (None / empty tuple) or non-empty.
    An empty string never stands in for "not recovered".

    Attributes:
        title: Track title (from 'musicName').
        album: Album name (from 'album').
        artists: Artist names in source order (from 'artist' [name, id] pairs).
        cover_art_url: Remote cover image URL (from 'albumPic').

    Raises:
        ValueError: On construction with an empty string in any field.
    """

    title: str | None = None
    album: str | None = None
    artists: tuple[str, ...] = ()
    cover_art_url: str | None = None

    def __post_init__(self) -> None:
        for name in ("title", "album", "cover_art_url"):
            if getattr(self, name) == "":
                raise ValueError(f"{name} must be None or a non-empty string")
        if any(not artist for artist in self.artists):
            raise ValueError("artist names must be non-empty strings")

    @property
    def is_empty(self) -> bool:
        """True when no field was recovered at all."""
        return (
            self.title is None
            and self.album is None
            and not self.artists
            and self.cover_art_url is None
        )
