"""
Tag backfill policy for ncm-tagfix.

Writes recovered metadata into a file's tags, but only into fields that
are currently empty. A field that already has a value is never touched,
so running the policy twice on the same file is a no-op the second time.

Per-field rules:
    title     set if the file has no title and one was recovered
    album     set if the file has no album and one was recovered
    artists   appended in order if the file has no artist and some were recovered
    picture   set if the file has no picture of any kind and a cover URL
              was recovered; a failed download stores a URL-only picture

The file is saved only if at least one field changed.

Usage:
    from ncm_tagfix.tagging.backfill import TagBackfiller

    backfiller = TagBackfiller(CoverArtFetcher())
    result = backfiller.backfill(path, meta)
    if result.saved:
        print(f"Added {', '.join(result.added)}")
"""

from dataclasses import dataclass, field
from pathlib import Path

from ncm_tagfix.core.logger import get_logger
from ncm_tagfix.recovery.models import NormalizedMetadata
from ncm_tagfix.tagging.artwork import CoverArtFetcher, FetchOutcome
from ncm_tagfix.tagging.containers import (
    PICTURE_TYPE_FRONT_COVER,
    AudioContainer,
    ContainerTagState,
    open_container,
)

logger = get_logger(__name__)


PICTURE_DESCRIPTION = "Front cover"


@dataclass
class BackfillResult:
    """
    Outcome of backfilling one file.

    Attributes:
        path: The processed file.
        added: Fields written, in decision order ("title", "album",
               "artist", "picture").
        saved: Whether the file was written to disk.
        picture_outcome: Fetch outcome if a picture was fetched.
    """

    path: Path
    added: list[str] = field(default_factory=list)
    saved: bool = False
    picture_outcome: FetchOutcome | None = None

    @property
    def changed(self) -> bool:
        """True if at least one field was (or, in a dry run, would be) set."""
        return bool(self.added)


class TagBackfiller:
    """
    Applies the backfill policy to audio files.

    Thread Safety:
        The backfiller holds no per-file state. Each backfill() call opens
        its own container, so one instance can serve every worker thread.
    """

    def __init__(
        self,
        fetcher: CoverArtFetcher | None = None,
        artwork_enabled: bool = True,
        dry_run: bool = False
    ) -> None:
        """
        Initialize the backfiller.

        Args:
            fetcher: Cover art fetcher. A default one is created if None.
            artwork_enabled: Fetch and embed cover art when missing.
            dry_run: Decide and log, but never save.
        """
        self.fetcher = fetcher if fetcher is not None else CoverArtFetcher()
        self.artwork_enabled = artwork_enabled
        self.dry_run = dry_run

    def backfill(self, path: Path | str, meta: NormalizedMetadata) -> BackfillResult:
        """
        Open a file and fill its empty tag fields from recovered metadata.

        Args:
            path: FLAC or MP3 file.
            meta: Metadata recovered from the same file.

        Returns:
            BackfillResult listing the fields that were set.

        Raises:
            ContainerIOError: If the file cannot be read or saved.
            UnsupportedFormatError: If the suffix has no adapter.
        """
        return self.backfill_container(open_container(path), meta)

    def backfill_container(
        self,
        container: AudioContainer,
        meta: NormalizedMetadata
    ) -> BackfillResult:
        """
        Fill empty fields of an open container and save it if anything changed.

        See backfill() for the error contract.
        """
        state = container.read_state()
        result = BackfillResult(path=container.path)
        name = container.path.name

        if self._backfill_title(container, state, meta):
            logger.info(f"{name}: Adding title")
            result.added.append("title")

        if self._backfill_album(container, state, meta):
            logger.info(f"{name}: Adding album")
            result.added.append("album")

        if self._backfill_artists(container, state, meta):
            logger.info(f"{name}: Adding artist")
            result.added.append("artist")

        if self._backfill_picture(container, state, meta, result):
            result.added.append("picture")

        if not result.changed:
            logger.debug(f"{name}: nothing to add")
            return result

        if self.dry_run:
            logger.info(f"{name}: dry run, not saving ({', '.join(result.added)})")
            return result

        container.save()
        result.saved = True
        return result

    @staticmethod
    def _backfill_title(
        container: AudioContainer,
        state: ContainerTagState,
        meta: NormalizedMetadata
    ) -> bool:
        if state.title or meta.title is None:
            return False
        container.set_comment("title", meta.title)
        return True

    @staticmethod
    def _backfill_album(
        container: AudioContainer,
        state: ContainerTagState,
        meta: NormalizedMetadata
    ) -> bool:
        if state.album or meta.album is None:
            return False
        container.set_comment("album", meta.album)
        return True

    @staticmethod
    def _backfill_artists(
        container: AudioContainer,
        state: ContainerTagState,
        meta: NormalizedMetadata
    ) -> bool:
        if state.artists or not meta.artists:
            return False
        for artist in meta.artists:
            container.set_comment("artist", artist)
        return True

    def _backfill_picture(
        self,
        container: AudioContainer,
        state: ContainerTagState,
        meta: NormalizedMetadata,
        result: BackfillResult
    ) -> bool:
        """
        Fetch and attach cover art if the file has none.

        A download failure still attaches a URL-only picture and counts as
        a change. Any other error is logged and the picture is skipped,
        the rest of the file is unaffected.
        """
        if not self.artwork_enabled or state.has_embedded_picture or meta.cover_art_url is None:
            return False

        name = container.path.name
        try:
            art = self.fetcher.fetch(meta.cover_art_url)
            container.add_picture_block(
                PICTURE_TYPE_FRONT_COVER,
                art.mime,
                PICTURE_DESCRIPTION,
                art.data
            )
        except Exception as e:
            logger.warning(f"{name}: skipping cover art: {e}")
            return False

        result.picture_outcome = art.outcome
        if art.outcome is FetchOutcome.FETCHED:
            logger.info(f"{name}: Adding image")
        else:
            logger.info(f"{name}: Adding image URL")
        return True


def backfill_file(
    path: Path | str,
    meta: NormalizedMetadata,
    fetcher: CoverArtFetcher | None = None,
    artwork_enabled: bool = True,
    dry_run: bool = False
) -> BackfillResult:
    """
    Convenience function to backfill one file without keeping a backfiller.

    Raises:
        ContainerIOError: If the file cannot be read or saved.
    """
    backfiller = TagBackfiller(fetcher, artwork_enabled=artwork_enabled, dry_run=dry_run)
    return backfiller.backfill(path, meta)
