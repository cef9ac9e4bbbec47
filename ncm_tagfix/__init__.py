"""
ncm-tagfix: Restore missing tags of audio files decrypted from NCM containers.

Files converted out of the NCM container keep the original track metadata
as an AES-encrypted comment ("163 key(Don't modify):..."), while their
regular tags are often empty. This package decrypts that comment and
backfills title, album, artists and cover art, never overwriting a tag
that already has a value.

Architecture:
    recovery/: Find, decrypt and parse the recovery comment
        - base64 + AES-128-ECB with the fixed public key
        - "music:" header + JSON payload
        - NormalizedMetadata (title, album, artists, cover URL)

    tagging/: Write recovered metadata into the file
        - FLAC (Vorbis comments) and MP3 (ID3v2.4) adapters over mutagen
        - Cover art download with a URL-only fallback picture
        - Write-only-if-empty backfill policy

    batch/: Run many files at once
        - Path expansion and ".ncm" skip markers
        - Fixed-size thread pool, per-file error isolation
        - Run statistics

Modules:
    cli: Command-line interface (ncm-tagfix)
    core: Configuration, logging, exceptions, progress bar
    recovery: Metadata recovery
    tagging: Tag containers, cover art and backfill
    batch: Batch scheduler

Usage:
    from ncm_tagfix import run

    stats = run([Path("~/Music/Downloads").expanduser()])
"""

__version__ = "0.1.0"
__author__ = "ncm-tagfix contributors"

from ncm_tagfix.recovery import NormalizedMetadata, extract
from ncm_tagfix.tagging import TagBackfiller, backfill_file, open_container
from ncm_tagfix.batch import BatchRepairer, RepairStats, run

__all__ = [
    "__version__",
    "NormalizedMetadata",
    "extract",
    "TagBackfiller",
    "backfill_file",
    "open_container",
    "BatchRepairer",
    "RepairStats",
    "run",
]
