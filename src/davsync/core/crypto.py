"""Cryptographic functions for davsync.

This module provides:
- Reveal/obscure of rclone-style obscured secrets using AES-CTR
- File hashing with MD5 (compared against WebDAV entity tags)
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import os
from dataclasses import dataclass
from pathlib import Path

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

# Default rclone obscure key
DEFAULT_OBSCURE_KEY_HEX = "9c935b48730a554d6bfd7c63c886a92bd390198eb8128afbf4de162b8b95f638"
DEFAULT_OBSCURE_KEY = bytes.fromhex(DEFAULT_OBSCURE_KEY_HEX)

IV_SIZE = 16  # One AES block
COUNTER_BITS = 64
HASH_BLOCK_SIZE = 8192


@dataclass(frozen=True)
class RevealedSecret:
    """Result of revealing an obscured secret.

    Attributes:
        value: The plaintext secret, or the original input on fallback.
        decrypted: True if the value was actually decrypted.
    """

    value: str
    decrypted: bool


def _ctr_transform(data: bytes, key: bytes, iv: bytes) -> bytes:
    """Apply AES-CTR with a 64-bit counter in the low half of the IV.

    The high half of the IV is fixed; when the low half wraps around it
    restarts at zero without carrying.
    """
    prefix = iv[: IV_SIZE // 2]
    counter = int.from_bytes(iv[IV_SIZE // 2 :], "big")
    blocks_before_wrap = (1 << COUNTER_BITS) - counter

    head_len = min(len(data), blocks_before_wrap * algorithms.AES.block_size // 8)
    head = Cipher(algorithms.AES(key), modes.CTR(iv)).encryptor()
    out = head.update(data[:head_len]) + head.finalize()

    if head_len < len(data):
        wrapped_iv = prefix + bytes(IV_SIZE // 2)
        tail = Cipher(algorithms.AES(key), modes.CTR(wrapped_iv)).encryptor()
        out += tail.update(data[head_len:]) + tail.finalize()
    return out


def reveal_secret(obscured: str, key: bytes = DEFAULT_OBSCURE_KEY) -> RevealedSecret:
    """Decrypt an obscured secret.

    Never raises: any decoding or decryption failure returns the input
    unchanged with ``decrypted=False``.

    Args:
        obscured: URL-safe base64 of IV (16 bytes) || ciphertext.
        key: AES key (16, 24 or 32 bytes).

    Returns:
        RevealedSecret with the plaintext or the original string.
    """
    if not obscured:
        return RevealedSecret(value="", decrypted=False)

    try:
        text = obscured.replace("-", "+").replace("_", "/")
        text += "=" * (-len(text) % 4)
        raw = base64.b64decode(text, validate=True)
        if len(raw) < IV_SIZE:
            return RevealedSecret(value=obscured, decrypted=False)

        plaintext = _ctr_transform(raw[IV_SIZE:], key, raw[:IV_SIZE])
        return RevealedSecret(value=plaintext.decode("utf-8"), decrypted=True)
    except (binascii.Error, ValueError, TypeError):
        # UnicodeDecodeError is a ValueError; so are bad key sizes
        return RevealedSecret(value=obscured, decrypted=False)


def reveal(obscured: str, key: bytes = DEFAULT_OBSCURE_KEY) -> str:
    """Decrypt an obscured secret, falling back to the input on failure."""
    return reveal_secret(obscured, key).value


def obscure(plaintext: str, key: bytes = DEFAULT_OBSCURE_KEY, iv: bytes | None = None) -> str:
    """Obscure a secret so that reveal() can recover it.

    Args:
        plaintext: Secret to obscure.
        key: AES key (16, 24 or 32 bytes).
        iv: Optional 16-byte IV (random if omitted).

    Returns:
        Unpadded URL-safe base64 string.
    """
    if iv is None:
        iv = os.urandom(IV_SIZE)
    if len(iv) != IV_SIZE:
        raise ValueError(f"IV must be {IV_SIZE} bytes, got {len(iv)}")

    ciphertext = _ctr_transform(plaintext.encode("utf-8"), key, iv)
    return base64.urlsafe_b64encode(iv + ciphertext).decode("ascii").rstrip("=")


def compute_file_md5(path: Path) -> str:
    """Compute MD5 hash of a file.

    Reads the file in chunks to handle large files efficiently.

    Args:
        path: Path to the file to hash.

    Returns:
        Lowercase hexadecimal MD5 string.
    """
    hasher = hashlib.md5(usedforsecurity=False)
    with open(path, "rb") as f:
        for block in iter(lambda: f.read(HASH_BLOCK_SIZE), b""):
            hasher.update(block)
    return hasher.hexdigest()
