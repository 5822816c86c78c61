"""
Substitution Family
===================
Monoalphabetic and polyalphabetic letter substitution over A-Z:

    Caesar        shift every letter by k
    Affine        E(x) = (a*x + b) mod 26
    Substitution  26-letter permutation key
    Vigenere      repeating key stream
    GCD-shift     Caesar shift by gcd(a, b), annotated output
    Polybius      5x5 coordinate square (I/J share a cell)

Case is preserved and anything that is not an ASCII letter passes
through untouched (Polybius excepted, see its docstring). None of these
can fail at transform time: every string has some decoding.
"""

import math
import re

from ..contract import (ALPHA, M, CipherContract, is_ascii_letter,
                        letter_index, mod_inverse, shift_letter, with_case)
from ..errors import KeyFormatError, UninvertibleKeyError


class CaesarCipher(CipherContract):
    """Shift cipher. Decrypt shifts by -k."""

    name = "caesar"

    def __init__(self, shift: int):
        self._shift = shift % M

    @property
    def shift(self) -> int:
        return self._shift

    def encrypt(self, plaintext: str) -> str:
        return "".join(shift_letter(ch, self._shift) for ch in plaintext)

    def decrypt(self, ciphertext: str) -> str:
        return "".join(shift_letter(ch, -self._shift) for ch in ciphertext)

    def __repr__(self):
        return f"CaesarCipher(shift={self._shift})"


class AffineCipher(CipherContract):
    """
    Affine cipher. `a` must be coprime with 26, otherwise two letters
    would encrypt to the same output and decryption would be lossy.
    """

    name = "affine"

    def __init__(self, a: int, b: int):
        a_inv = mod_inverse(a, M)
        if a_inv is None:
            raise UninvertibleKeyError(
                f"Affine multiplier a={a} has no inverse mod {M} "
                f"(gcd(a, {M}) = {math.gcd(a, M)}).")
        self._a     = a % M
        self._b     = b % M
        self._a_inv = a_inv

    def encrypt(self, plaintext: str) -> str:
        out = []
        for ch in plaintext:
            if is_ascii_letter(ch):
                x = letter_index(ch)
                out.append(with_case(ch, ALPHA[(self._a * x + self._b) % M]))
            else:
                out.append(ch)
        return "".join(out)

    def decrypt(self, ciphertext: str) -> str:
        out = []
        for ch in ciphertext:
            if is_ascii_letter(ch):
                y = letter_index(ch)
                out.append(with_case(ch, ALPHA[(self._a_inv * (y - self._b)) % M]))
            else:
                out.append(ch)
        return "".join(out)

    def __repr__(self):
        return f"AffineCipher(a={self._a}, b={self._b})"


class SubstitutionCipher(CipherContract):
    """Plain substitution. Key is a permutation of all 26 letters."""

    name = "substitution"

    def __init__(self, key: str):
        key = key.strip().upper()
        if len(key) != M:
            raise KeyFormatError(
                f"Substitution key must be {M} letters, got {len(key)}.")
        if not all("A" <= ch <= "Z" for ch in key):
            raise KeyFormatError("Substitution key must contain only letters A-Z.")
        if len(set(key)) != M:
            repeated = sorted({ch for ch in key if key.count(ch) > 1})
            raise KeyFormatError(
                f"Substitution key must use every letter once; "
                f"repeated: {''.join(repeated)}.")
        self._key = key

    def encrypt(self, plaintext: str) -> str:
        return "".join(
            with_case(ch, self._key[letter_index(ch)]) if is_ascii_letter(ch) else ch
            for ch in plaintext
        )

    def decrypt(self, ciphertext: str) -> str:
        return "".join(
            with_case(ch, ALPHA[self._key.index(ch.upper())]) if is_ascii_letter(ch) else ch
            for ch in ciphertext
        )


class VigenereCipher(CipherContract):
    """
    Vigenere with a plain repeating key. Non-letters are stripped from the
    key; the key position only advances on letters of the message, so
    spaces and punctuation do not consume key stream.
    """

    name = "vigenere"

    def __init__(self, key: str):
        cleaned = "".join(ch for ch in key.upper() if "A" <= ch <= "Z")
        if not cleaned:
            raise KeyFormatError("Vigenere key must contain at least one letter.")
        self._shifts = [letter_index(ch) for ch in cleaned]

    def _apply(self, text: str, sign: int) -> str:
        out = []
        k_idx = 0
        for ch in text:
            if is_ascii_letter(ch):
                shift = self._shifts[k_idx % len(self._shifts)]
                out.append(shift_letter(ch, sign * shift))
                k_idx += 1
            else:
                out.append(ch)
        return "".join(out)

    def encrypt(self, plaintext: str) -> str:
        return self._apply(plaintext, 1)

    def decrypt(self, ciphertext: str) -> str:
        return self._apply(ciphertext, -1)


def euclid_gcd(x: int, y: int) -> int:
    while y != 0:
        x, y = y, x % y
    return abs(x)


class GCDCipher(CipherContract):
    """
    Caesar shift by gcd(a, b).

    The ciphertext carries a readable header:

        GCD(12, 18) = 6 -> Encrypted: Nkrru

    and that whole annotated string is the unit that travels. decrypt()
    strips the header before shifting back; a string without the header
    is shifted back as a whole.
    """

    name = "gcd"

    _HEADER = re.compile(r"^GCD\((-?\d+), (-?\d+)\) = (\d+) -> Encrypted: ", re.DOTALL)

    def __init__(self, a: int, b: int):
        self._a   = a
        self._b   = b
        self._gcd = euclid_gcd(a, b)

    @property
    def gcd(self) -> int:
        return self._gcd

    def header(self) -> str:
        return f"GCD({self._a}, {self._b}) = {self._gcd} -> Encrypted: "

    def encrypt(self, plaintext: str) -> str:
        shifted = "".join(shift_letter(ch, self._gcd) for ch in plaintext)
        return self.header() + shifted

    def decrypt(self, ciphertext: str) -> str:
        match = self._HEADER.match(ciphertext)
        body = ciphertext[match.end():] if match else ciphertext
        return "".join(shift_letter(ch, -self._gcd) for ch in body)

    def __repr__(self):
        return f"GCDCipher(a={self._a}, b={self._b}, gcd={self._gcd})"


class PolybiusCipher(CipherContract):
    """
    Polybius square. Keyless.

    Each letter becomes its row/column pair ("HI" -> "23 24"); a space in
    the plaintext becomes an extra space, so words come back separated.
    J is folded into I and other characters are dropped, so the output
    of decrypt() is the upper-cased, letters-and-spaces form of the input.
    """

    name = "polybius"

    SQUARE = ("ABCDE", "FGHIK", "LMNOP", "QRSTU", "VWXYZ")

    def __init__(self):
        self._coords = {}
        for r, row in enumerate(self.SQUARE):
            for c, letter in enumerate(row):
                self._coords[letter] = f"{r + 1}{c + 1}"

    def encrypt(self, plaintext: str) -> str:
        out = []
        for ch in plaintext.upper().replace("J", "I"):
            if ch in self._coords:
                out.append(self._coords[ch] + " ")
            elif ch == " ":
                out.append(" ")
        return "".join(out).strip()

    def decrypt(self, ciphertext: str) -> str:
        words = []
        for chunk in re.split(r"\s{2,}", ciphertext.strip()):
            digits = [d for d in chunk if d in "12345"]
            letters = []
            for i in range(0, len(digits) - 1, 2):
                r, c = int(digits[i]) - 1, int(digits[i + 1]) - 1
                letters.append(self.SQUARE[r][c])
            words.append("".join(letters))
        return " ".join(w for w in words if w)
