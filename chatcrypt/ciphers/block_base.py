"""
Shared machinery for the from-scratch block ciphers: key normalisation,
padding, and the block-by-block loop.

Padding: every pad byte holds the number of pad bytes added. An input
that is already block-aligned still gets a full block of padding, so
the last byte of a decrypted message always says how much to strip.
"""

import logging
from abc import abstractmethod

from ..contract import ByteCipher
from ..errors import DecryptionFailure

logger = logging.getLogger(__name__)

KEY_PAD_BYTE = b"0"


def normalize_block_key(key, width: int, fallback: str) -> bytes:
    """
    Turn user key input into exactly `width` bytes.

    Empty / None -> the fallback string. Otherwise UTF-8 encode, then cut
    to `width` or right-pad with ASCII '0'.
    """
    if isinstance(key, (bytes, bytearray)):
        raw = bytes(key)
    else:
        raw = (key or "").encode("utf-8")
    if not raw:
        raw = fallback.encode("utf-8")
    return raw[:width].ljust(width, KEY_PAD_BYTE)


def pad(data: bytes, block_size: int) -> bytes:
    n = block_size - (len(data) % block_size)
    return data + bytes([n]) * n


def unpad(data: bytes, block_size: int) -> bytes:
    if not data:
        raise DecryptionFailure("Decrypted data is empty; padding missing.")
    n = data[-1]
    if not 1 <= n <= block_size or data[-n:] != bytes([n]) * n:
        raise DecryptionFailure("Bad padding: wrong key or corrupted ciphertext.")
    return data[:-n]


class BlockEngine(ByteCipher):
    """Encrypts a padded message one fixed-size block at a time."""

    BLOCK_SIZE = 16
    KEY_SIZE   = 16

    @abstractmethod
    def encrypt_block(self, block: bytes) -> bytes:
        ...

    @abstractmethod
    def decrypt_block(self, block: bytes) -> bytes:
        ...

    def encrypt_bytes(self, data: bytes) -> bytes:
        padded = pad(data, self.BLOCK_SIZE)
        out = bytearray()
        for i in range(0, len(padded), self.BLOCK_SIZE):
            out += self.encrypt_block(padded[i:i + self.BLOCK_SIZE])
        logger.debug(f"{self.name}: {len(data)}B plaintext -> {len(out)}B ciphertext")
        return bytes(out)

    def decrypt_bytes(self, data: bytes) -> bytes:
        if not data or len(data) % self.BLOCK_SIZE:
            raise DecryptionFailure(
                f"{self.name}: ciphertext length {len(data)} is not a positive "
                f"multiple of the {self.BLOCK_SIZE}-byte block.")
        out = bytearray()
        for i in range(0, len(data), self.BLOCK_SIZE):
            out += self.decrypt_block(data[i:i + self.BLOCK_SIZE])
        return unpad(bytes(out), self.BLOCK_SIZE)
