"""
Recovery module for ncm-tagfix.

This module turns the encrypted comment left in a decrypted audio file
back into usable metadata:
    - decryptor: base64 + AES-128-ECB decoding with the fixed public key
    - extractor: finds the recovery comment and parses its JSON payload
    - models: NormalizedMetadata, the typed result

Usage:
    from ncm_tagfix.recovery import extract, NormalizedMetadata

    meta = extract(Path("song.flac"))
"""

from ncm_tagfix.recovery.decryptor import META_KEY, decrypt, strip_pkcs7_padding
from ncm_tagfix.recovery.extractor import (
    RECOVERY_MARKER,
    RECOVERY_PREFIX,
    decode_recovery_comment,
    extract,
    extract_from_container,
    find_recovery_comment,
    parse_payload,
    project_metadata,
)
from ncm_tagfix.recovery.models import NormalizedMetadata

__all__ = [
    # Decryptor
    "META_KEY",
    "decrypt",
    "strip_pkcs7_padding",
    # Extractor
    "RECOVERY_MARKER",
    "RECOVERY_PREFIX",
    "extract",
    "extract_from_container",
    "find_recovery_comment",
    "decode_recovery_comment",
    "parse_payload",
    "project_metadata",
    # Models
    "NormalizedMetadata",
]
