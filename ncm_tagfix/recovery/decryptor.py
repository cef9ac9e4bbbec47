"""
Blob decryptor for recovery comments.

The recovery comment left in a decrypted file is base64 text wrapping an
AES-128-ECB ciphertext. The key below is a well-known public constant used
only to obfuscate the comment; it provides no confidentiality and is not
a secret. It is a module-level immutable bytes object, so every worker
thread can use it without locking.

Usage:
    from ncm_tagfix.recovery.decryptor import decrypt

    plaintext = decrypt("L64FU3W4YxX3ZFTmbZ+8/...")
"""

import base64
import binascii

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from ncm_tagfix.core.exceptions import CipherError, DecodeError


META_KEY = bytes.fromhex("2331346C6A6B5F215C5D2630553C2728")

BLOCK_SIZE = 16


def decrypt(base64_text: str | bytes) -> bytes:
    """
    Decode and decrypt a recovery blob.

    Args:
        base64_text: Standard base64 text. Line breaks are ignored.

    Returns:
        The plaintext with padding removed.

    Raises:
        DecodeError: If the text is not valid base64, or the ciphertext is
                     empty or not a whole number of 16-byte blocks.
        CipherError: If the decrypted buffer does not end in valid padding.
    """
    if isinstance(base64_text, str):
        try:
            base64_text = base64_text.encode("ascii")
        except UnicodeEncodeError as e:
            raise DecodeError(
                "Recovery blob contains non-ASCII characters",
                details={"original_error": str(e)}
            ) from e

    cleaned = base64_text.replace(b"\r", b"").replace(b"\n", b"")
    try:
        ciphertext = base64.b64decode(cleaned, validate=True)
    except binascii.Error as e:
        raise DecodeError(
            f"Recovery blob is not valid base64: {e}",
            details={"original_error": str(e)}
        ) from e

    if not ciphertext or len(ciphertext) % BLOCK_SIZE:
        raise DecodeError(
            f"Ciphertext length {len(ciphertext)} is not a positive multiple of {BLOCK_SIZE}",
            details={"length": len(ciphertext)}
        )

    # ECB: each block is decrypted independently, output keeps input order
    decryptor = Cipher(algorithms.AES(META_KEY), modes.ECB()).decryptor()
    plaintext = decryptor.update(ciphertext) + decryptor.finalize()

    return strip_pkcs7_padding(plaintext)


def strip_pkcs7_padding(data: bytes) -> bytes:
    """
    Remove PKCS#7 padding by trusting the final byte as the pad length.

    Args:
        data: Decrypted buffer.

    Returns:
        data without its last n bytes, where n is the value of the last byte.

    Raises:
        CipherError: If the buffer is empty, n is zero, or n exceeds the
                     buffer length.
    """
    if not data:
        raise CipherError("Cannot strip padding from an empty buffer")

    pad_length = data[-1]
    if pad_length == 0 or pad_length > len(data):
        raise CipherError(
            f"Invalid padding length {pad_length} for a {len(data)}-byte buffer",
            details={"pad_length": pad_length, "length": len(data)}
        )

    return data[:-pad_length]
