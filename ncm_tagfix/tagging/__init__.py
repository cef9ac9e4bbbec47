"""
Tagging module for ncm-tagfix.

This module provides functionality for:
    - containers: FLAC / MP3 adapters over mutagen
    - artwork: cover art download with URL-only fallback
    - backfill: the write-only-if-empty tag policy

Usage:
    from ncm_tagfix.tagging import (
        open_container,
        CoverArtFetcher,
        TagBackfiller,
        BackfillResult,
    )
"""

# containers must load first, recovery.extractor depends on it
from ncm_tagfix.tagging.containers import (
    PICTURE_TYPE_FRONT_COVER,
    AudioContainer,
    ContainerTagState,
    FLACContainer,
    MP3Container,
    is_supported,
    open_container,
)
from ncm_tagfix.tagging.artwork import (
    URL_MIME_SENTINEL,
    CoverArt,
    CoverArtFetcher,
    FetchOutcome,
    detect_image_mime,
    has_png_signature,
)
from ncm_tagfix.tagging.backfill import (
    BackfillResult,
    TagBackfiller,
    backfill_file,
)

__all__ = [
    # Containers
    "PICTURE_TYPE_FRONT_COVER",
    "AudioContainer",
    "ContainerTagState",
    "FLACContainer",
    "MP3Container",
    "is_supported",
    "open_container",
    # Artwork
    "URL_MIME_SENTINEL",
    "CoverArt",
    "CoverArtFetcher",
    "FetchOutcome",
    "detect_image_mime",
    "has_png_signature",
    # Backfill
    "BackfillResult",
    "TagBackfiller",
    "backfill_file",
]
