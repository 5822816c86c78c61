"""
Matrix Cipher — Hill
====================
Encrypts blocks of n letters by multiplying them with an n x n key
matrix mod 26. Decryption needs the modular inverse of that matrix,
which exists only when det(K) is coprime with 26.

Key formats:
    letters   "GYBNQKURP"                 -> 3x3
    integers  "6 24 1 13 16 10 20 17 15"  -> 3x3 (commas also accepted)

Plaintext is reduced to upper-case letters and padded with the filler
letter to a multiple of n; decrypt() returns that padded form.
"""

import math
import re
from typing import List

from ..config import get_settings
from ..contract import ALPHA, M, CipherContract, mod_inverse
from ..errors import KeyFormatError, UninvertibleKeyError

Matrix = List[List[int]]


def _minor(matrix: Matrix, row: int, col: int) -> Matrix:
    return [
        [v for j, v in enumerate(r) if j != col]
        for i, r in enumerate(matrix) if i != row
    ]


def determinant(matrix: Matrix) -> int:
    """Integer determinant by cofactor expansion along the first row."""
    n = len(matrix)
    if n == 1:
        return matrix[0][0]
    if n == 2:
        return matrix[0][0] * matrix[1][1] - matrix[0][1] * matrix[1][0]
    det = 0
    for c in range(n):
        sign = 1 if c % 2 == 0 else -1
        det += sign * matrix[0][c] * determinant(_minor(matrix, 0, c))
    return det


def adjugate(matrix: Matrix) -> Matrix:
    """Transpose of the cofactor matrix."""
    n = len(matrix)
    if n == 1:
        return [[1]]
    adj = [[0] * n for _ in range(n)]
    for i in range(n):
        for j in range(n):
            sign = 1 if (i + j) % 2 == 0 else -1
            adj[j][i] = sign * determinant(_minor(matrix, i, j))
    return adj


def matrix_inverse_mod(matrix: Matrix, m: int = M) -> Matrix:
    det = determinant(matrix)
    det_inv = mod_inverse(det, m)
    if det_inv is None:
        raise UninvertibleKeyError(
            f"Hill key matrix is not invertible mod {m}: det = {det % m}, "
            f"gcd(det, {m}) = {math.gcd(det, m)}.")
    return [[(det_inv * v) % m for v in row] for row in adjugate(matrix)]


def parse_hill_key(key: str) -> List[int]:
    key = key.strip()
    if not key:
        raise KeyFormatError("Hill key must not be empty.")
    if re.fullmatch(r"-?\d+([\s,]+-?\d+)*", key):
        return [int(tok) % M for tok in re.split(r"[\s,]+", key)]
    if re.fullmatch(r"[A-Za-z]+", key):
        return [ALPHA.index(ch) for ch in key.upper()]
    raise KeyFormatError(
        "Hill key must be letters (e.g. GYBNQKURP) or integers "
        "separated by spaces (e.g. 6 24 1 13 16 10 20 17 15).")


class HillCipher(CipherContract):
    """Hill cipher with an n x n key, n = sqrt(len(key))."""

    name = "hill"

    def __init__(self, key: str, filler: str = None):
        numbers = parse_hill_key(key)
        n = math.isqrt(len(numbers))
        if n * n != len(numbers):
            raise KeyFormatError(
                f"Hill key needs a square number of entries (4, 9, 16, ...), "
                f"got {len(numbers)}.")
        self._size = n
        self._key  = [numbers[r * n:(r + 1) * n] for r in range(n)]
        self._inv  = matrix_inverse_mod(self._key)
        self._filler = (filler or get_settings().filler).upper()

    @property
    def size(self) -> int:
        return self._size

    @property
    def key_matrix(self) -> Matrix:
        return [row[:] for row in self._key]

    @property
    def inverse_matrix(self) -> Matrix:
        return [row[:] for row in self._inv]

    def _prepare(self, text: str) -> str:
        letters = "".join(ch for ch in text.upper() if "A" <= ch <= "Z")
        remainder = len(letters) % self._size
        if remainder:
            letters += self._filler * (self._size - remainder)
        return letters

    def _transform(self, text: str, matrix: Matrix) -> str:
        letters = self._prepare(text)
        n = self._size
        out = []
        for i in range(0, len(letters), n):
            vec = [ALPHA.index(ch) for ch in letters[i:i + n]]
            for row in matrix:
                out.append(ALPHA[sum(k * v for k, v in zip(row, vec)) % M])
        return "".join(out)

    def encrypt(self, plaintext: str) -> str:
        return self._transform(plaintext, self._key)

    def decrypt(self, ciphertext: str) -> str:
        return self._transform(ciphertext, self._inv)

    def __repr__(self):
        return f"HillCipher(size={self._size})"
