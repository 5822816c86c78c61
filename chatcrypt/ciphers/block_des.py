"""
Block Cipher Engine — DES, from scratch
=======================================
The 64-bit sibling of ManualAES: 8-byte block, 8-byte key (56 effective
bits, the parity bits are ignored), 16-round Feistel network.

Same contract as ManualAES: self-describing padding, block-by-block
(ECB), base64 text form. Matches FIPS 46-3 DES on every block.

The permutation and S-box tables below are the ones DES is defined by;
the final permutation is derived as the inverse of the initial one.
"""

from typing import List

from ..config import get_settings
from .block_base import BlockEngine, normalize_block_key


ROUNDS = 16

PC1 = (
    57, 49, 41, 33, 25, 17,  9,  1, 58, 50, 42, 34, 26, 18,
    10,  2, 59, 51, 43, 35, 27, 19, 11,  3, 60, 52, 44, 36,
    63, 55, 47, 39, 31, 23, 15,  7, 62, 54, 46, 38, 30, 22,
    14,  6, 61, 53, 45, 37, 29, 21, 13,  5, 28, 20, 12,  4,
)

PC2 = (
    14, 17, 11, 24,  1,  5,  3, 28, 15,  6, 21, 10,
    23, 19, 12,  4, 26,  8, 16,  7, 27, 20, 13,  2,
    41, 52, 31, 37, 47, 55, 30, 40, 51, 45, 33, 48,
    44, 49, 39, 56, 34, 53, 46, 42, 50, 36, 29, 32,
)

KEY_SHIFTS = (1, 1, 2, 2, 2, 2, 2, 2, 1, 2, 2, 2, 2, 2, 2, 1)

IP = (
    58, 50, 42, 34, 26, 18, 10, 2, 60, 52, 44, 36, 28, 20, 12, 4,
    62, 54, 46, 38, 30, 22, 14, 6, 64, 56, 48, 40, 32, 24, 16, 8,
    57, 49, 41, 33, 25, 17,  9, 1, 59, 51, 43, 35, 27, 19, 11, 3,
    61, 53, 45, 37, 29, 21, 13, 5, 63, 55, 47, 39, 31, 23, 15, 7,
)

E = (
    32,  1,  2,  3,  4,  5,  4,  5,  6,  7,  8,  9,
     8,  9, 10, 11, 12, 13, 12, 13, 14, 15, 16, 17,
    16, 17, 18, 19, 20, 21, 20, 21, 22, 23, 24, 25,
    24, 25, 26, 27, 28, 29, 28, 29, 30, 31, 32,  1,
)

P = (
    16,  7, 20, 21, 29, 12, 28, 17,  1, 15, 23, 26,  5, 18, 31, 10,
     2,  8, 24, 14, 32, 27,  3,  9, 19, 13, 30,  6, 22, 11,  4, 25,
)

SBOXES = (
    (14,  4, 13,  1,  2, 15, 11,  8,  3, 10,  6, 12,  5,  9,  0,  7,
      0, 15,  7,  4, 14,  2, 13,  1, 10,  6, 12, 11,  9,  5,  3,  8,
      4,  1, 14,  8, 13,  6,  2, 11, 15, 12,  9,  7,  3, 10,  5,  0,
     15, 12,  8,  2,  4,  9,  1,  7,  5, 11,  3, 14, 10,  0,  6, 13),
    (15,  1,  8, 14,  6, 11,  3,  4,  9,  7,  2, 13, 12,  0,  5, 10,
      3, 13,  4,  7, 15,  2,  8, 14, 12,  0,  1, 10,  6,  9, 11,  5,
      0, 14,  7, 11, 10,  4, 13,  1,  5,  8, 12,  6,  9,  3,  2, 15,
     13,  8, 10,  1,  3, 15,  4,  2, 11,  6,  7, 12,  0,  5, 14,  9),
    (10,  0,  9, 14,  6,  3, 15,  5,  1, 13, 12,  7, 11,  4,  2,  8,
     13,  7,  0,  9,  3,  4,  6, 10,  2,  8,  5, 14, 12, 11, 15,  1,
     13,  6,  4,  9,  8, 15,  3,  0, 11,  1,  2, 12,  5, 10, 14,  7,
      1, 10, 13,  0,  6,  9,  8,  7,  4, 15, 14,  3, 11,  5,  2, 12),
    ( 7, 13, 14,  3,  0,  6,  9, 10,  1,  2,  8,  5, 11, 12,  4, 15,
     13,  8, 11,  5,  6, 15,  0,  3,  4,  7,  2, 12,  1, 10, 14,  9,
     10,  6,  9,  0, 12, 11,  7, 13, 15,  1,  3, 14,  5,  2,  8,  4,
      3, 15,  0,  6, 10,  1, 13,  8,  9,  4,  5, 11, 12,  7,  2, 14),
    ( 2, 12,  4,  1,  7, 10, 11,  6,  8,  5,  3, 15, 13,  0, 14,  9,
     14, 11,  2, 12,  4,  7, 13,  1,  5,  0, 15, 10,  3,  9,  8,  6,
      4,  2,  1, 11, 10, 13,  7,  8, 15,  9, 12,  5,  6,  3,  0, 14,
     11,  8, 12,  7,  1, 14,  2, 13,  6, 15,  0,  9, 10,  4,  5,  3),
    (12,  1, 10, 15,  9,  2,  6,  8,  0, 13,  3,  4, 14,  7,  5, 11,
     10, 15,  4,  2,  7, 12,  9,  5,  6,  1, 13, 14,  0, 11,  3,  8,
      9, 14, 15,  5,  2,  8, 12,  3,  7,  0,  4, 10,  1, 13, 11,  6,
      4,  3,  2, 12,  9,  5, 15, 10, 11, 14,  1,  7,  6,  0,  8, 13),
    ( 4, 11,  2, 14, 15,  0,  8, 13,  3, 12,  9,  7,  5, 10,  6,  1,
     13,  0, 11,  7,  4,  9,  1, 10, 14,  3,  5, 12,  2, 15,  8,  6,
      1,  4, 11, 13, 12,  3,  7, 14, 10, 15,  6,  8,  0,  5,  9,  2,
      6, 11, 13,  8,  1,  4, 10,  7,  9,  5,  0, 15, 14,  2,  3, 12),
    (13,  2,  8,  4,  6, 15, 11,  1, 10,  9,  3, 14,  5,  0, 12,  7,
      1, 15, 13,  8, 10,  3,  7,  4, 12,  5,  6, 11,  0, 14,  9,  2,
      7, 11,  4,  1,  9, 12, 14,  2,  0,  6, 10, 13, 15,  3,  5,  8,
      2,  1, 14,  7,  4, 10,  8, 13, 15, 12,  9,  0,  3,  5,  6, 11),
)


def inverse_permutation(table: tuple) -> tuple:
    inv = [0] * len(table)
    for out_pos, in_pos in enumerate(table, start=1):
        inv[in_pos - 1] = out_pos
    return tuple(inv)


FP = inverse_permutation(IP)


def permute(value: int, table: tuple, in_bits: int) -> int:
    """Bit permutation, 1-based positions counted from the MSB."""
    out = 0
    for pos in table:
        out = (out << 1) | ((value >> (in_bits - pos)) & 1)
    return out


def _rotl28(v: int, n: int) -> int:
    return ((v << n) | (v >> (28 - n))) & 0x0FFFFFFF


def key_schedule(key: bytes) -> List[int]:
    """8-byte key -> sixteen 48-bit subkeys."""
    k56 = permute(int.from_bytes(key, "big"), PC1, 64)
    c, d = k56 >> 28, k56 & 0x0FFFFFFF
    subkeys = []
    for shift in KEY_SHIFTS:
        c, d = _rotl28(c, shift), _rotl28(d, shift)
        subkeys.append(permute((c << 28) | d, PC2, 56))
    return subkeys


def feistel(right: int, subkey: int) -> int:
    x = permute(right, E, 32) ^ subkey
    out = 0
    for i, box in enumerate(SBOXES):
        six = (x >> (42 - 6 * i)) & 0x3F
        row = ((six & 0x20) >> 4) | (six & 0x01)
        col = (six >> 1) & 0x0F
        out = (out << 4) | box[row * 16 + col]
    return permute(out, P, 32)


class ManualDES(BlockEngine):
    """DES implemented by hand. Text API: base64 of the ciphertext."""

    name       = "des"
    BLOCK_SIZE = 8
    KEY_SIZE   = 8

    def __init__(self, key=None, fallback: str = None):
        fallback = fallback or get_settings().des_default_key
        self._key     = normalize_block_key(key, self.KEY_SIZE, fallback)
        self._subkeys = key_schedule(self._key)

    @property
    def key(self) -> bytes:
        return self._key

    def _crypt(self, block: bytes, subkeys) -> bytes:
        x = permute(int.from_bytes(block, "big"), IP, 64)
        left, right = x >> 32, x & 0xFFFFFFFF
        for k in subkeys:
            left, right = right, left ^ feistel(right, k)
        # halves swap before the final permutation
        return permute((right << 32) | left, FP, 64).to_bytes(8, "big")

    def encrypt_block(self, block: bytes) -> bytes:
        return self._crypt(block, self._subkeys)

    def decrypt_block(self, block: bytes) -> bytes:
        return self._crypt(block, reversed(self._subkeys))
