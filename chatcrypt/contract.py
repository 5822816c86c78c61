"""
Cipher Contract
===============
Every algorithm in chatcrypt exposes the same two calls:

    encrypt(plaintext: str) -> str
    decrypt(ciphertext: str) -> str

Classic and transposition ciphers work on letters directly. Byte-level
engines (block ciphers, RSA) implement encrypt_bytes / decrypt_bytes and
get the text form for free: UTF-8 in, base64 out.

Instances hold only key material fixed at construction, so one instance
can be shared by the sending and receiving threads without locking.
"""

import base64
import binascii
from abc import ABC, abstractmethod

from .errors import DecryptionFailure

ALPHA = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
M = 26


class CipherContract(ABC):
    """Common encrypt / decrypt pair."""

    name = "cipher"

    @abstractmethod
    def encrypt(self, plaintext: str) -> str:
        ...

    @abstractmethod
    def decrypt(self, ciphertext: str) -> str:
        ...

    def __repr__(self):
        return f"{type(self).__name__}()"


class ByteCipher(CipherContract):
    """A cipher whose real work happens on bytes."""

    @abstractmethod
    def encrypt_bytes(self, data: bytes) -> bytes:
        ...

    @abstractmethod
    def decrypt_bytes(self, data: bytes) -> bytes:
        ...

    def encrypt(self, plaintext: str) -> str:
        """UTF-8 encode, encrypt, base64 the result."""
        ct = self.encrypt_bytes(plaintext.encode("utf-8"))
        return base64.b64encode(ct).decode("ascii")

    def decrypt(self, ciphertext: str) -> str:
        """Reverse of encrypt(). Raises DecryptionFailure on any bad input."""
        raw = b64decode_strict(ciphertext)
        pt  = self.decrypt_bytes(raw)
        try:
            return pt.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecryptionFailure(
                f"{self.name}: decrypted bytes are not valid UTF-8.") from exc


def b64decode_strict(text: str) -> bytes:
    try:
        return base64.b64decode(text.strip(), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise DecryptionFailure("Ciphertext is not valid base64.") from exc


# ── letter helpers ──────────────────────────────────────────────────────────

def is_ascii_letter(ch: str) -> bool:
    return ("A" <= ch <= "Z") or ("a" <= ch <= "z")


def shift_letter(ch: str, k: int) -> str:
    """Shift an ASCII letter by k, keeping its case. Anything else passes."""
    if not is_ascii_letter(ch):
        return ch
    base = ord("A") if ch.isupper() else ord("a")
    return chr((ord(ch) - base + k) % M + base)


def letter_index(ch: str) -> int:
    return ord(ch.upper()) - ord("A")


def with_case(template: str, letter: str) -> str:
    """Return `letter` in the case of `template`."""
    return letter.upper() if template.isupper() else letter.lower()


def mod_inverse(a: int, m: int = M):
    """Exhaustive search for y with (a*y) % m == 1. None if there is none."""
    a %= m
    for y in range(m + 1):
        if (a * y) % m == 1:
            return y
    return None
