"""
Transposition Family
====================
Ciphers that keep every character but move it.

Route     Write the message row by row into `key` columns, read it back
          column by column.
Columnar  Same grid idea, but the column read order comes from sorting
          the letters of a keyword. Duplicate keyword letters are taken
          in the order they first appear; any other tie-break gives a
          different, incompatible permutation.
"""

import math
import re

from ..config import get_settings
from ..contract import CipherContract
from ..errors import KeyFormatError


class RouteCipher(CipherContract):
    """Column-major route through a grid `key` columns wide."""

    name = "route"

    def __init__(self, key: int):
        if key <= 0:
            raise KeyFormatError(f"Route key must be a positive integer, got {key}.")
        self._key = key

    def encrypt(self, plaintext: str) -> str:
        # columns past the message length are empty
        cols = min(self._key, len(plaintext))
        return "".join(plaintext[col::self._key] for col in range(cols))

    def decrypt(self, ciphertext: str) -> str:
        n = len(ciphertext)
        full, extra = divmod(n, self._key)
        result = [""] * n
        pos = 0
        for col in range(min(self._key, n)):
            length = full + (1 if col < extra else 0)
            for row in range(length):
                result[row * self._key + col] = ciphertext[pos]
                pos += 1
        return "".join(result)

    def __repr__(self):
        return f"RouteCipher(key={self._key})"


def column_order(key: str) -> list:
    """
    Column indices in read order: ascending by key letter, ties broken by
    first occurrence. ZEBRA -> [4, 2, 1, 3, 0].
    """
    return sorted(range(len(key)), key=lambda i: key[i])


class ColumnarTranspositionCipher(CipherContract):
    """
    Keyed columnar transposition.

    Whitespace is removed before encryption and short final rows are
    filled with the filler letter (X by default). decrypt() strips
    trailing filler, so a message that itself ends in the filler letter
    loses those letters.
    """

    name = "columnar"

    def __init__(self, key: str, filler: str = None):
        key = key.strip().upper()
        if not key:
            raise KeyFormatError("Columnar key must not be empty.")
        self._key    = key
        self._order  = column_order(key)
        self._filler = (filler or get_settings().filler).upper()

    def encrypt(self, plaintext: str) -> str:
        text = re.sub(r"\s+", "", plaintext)
        cols = len(self._key)
        rows = math.ceil(len(text) / cols)
        padded = text.ljust(rows * cols, self._filler)
        grid = [padded[r * cols:(r + 1) * cols] for r in range(rows)]
        return "".join(
            "".join(grid[r][col] for r in range(rows))
            for col in self._order
        )

    def decrypt(self, ciphertext: str) -> str:
        cols = len(self._key)
        rows = math.ceil(len(ciphertext) / cols)
        grid = [[""] * cols for _ in range(rows)]
        index = 0
        for col in self._order:
            for r in range(rows):
                if index < len(ciphertext):
                    grid[r][col] = ciphertext[index]
                    index += 1
        plain = "".join("".join(row) for row in grid)
        return plain.rstrip(self._filler)

    def __repr__(self):
        return f"ColumnarTranspositionCipher(key={self._key!r})"
