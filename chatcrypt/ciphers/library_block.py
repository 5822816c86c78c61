"""
Library Block Ciphers — AES-128-CBC / DES-CBC
=============================================
The same jobs as ManualAES / ManualDES, done by `cryptography`.
Useful as the "known good" counterpart of the hand-written engines.

A fresh random IV is generated per message and travels in front of the
ciphertext:

    Bundle format: iv(block) || ciphertext (PKCS7 padded)

Keys go through the same normalisation as the manual engines (fallback
string when empty, truncate or '0'-pad to width). DES is single-key DES,
reached through TripleDES keyed K1 = K2 = K3.

Dependencies: cryptography >= 43.0
"""

import os
from abc import abstractmethod

from cryptography.hazmat.decrepit.ciphers.algorithms import TripleDES
from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from ..config import get_settings
from ..contract import ByteCipher
from ..errors import DecryptionFailure
from .block_base import normalize_block_key


class _LibraryCBC(ByteCipher):

    BLOCK_SIZE = 16
    KEY_SIZE   = 16

    @abstractmethod
    def _algorithm(self):
        ...

    @property
    def key(self) -> bytes:
        return self._key

    def encrypt_bytes(self, data: bytes) -> bytes:
        iv = os.urandom(self.BLOCK_SIZE)
        padder = padding.PKCS7(self.BLOCK_SIZE * 8).padder()
        padded = padder.update(data) + padder.finalize()
        enc = Cipher(self._algorithm(), modes.CBC(iv)).encryptor()
        return iv + enc.update(padded) + enc.finalize()

    def decrypt_bytes(self, bundle: bytes) -> bytes:
        if len(bundle) < 2 * self.BLOCK_SIZE or len(bundle) % self.BLOCK_SIZE:
            raise DecryptionFailure(f"{self.name}: bundle too short or misaligned.")
        iv, ct = bundle[:self.BLOCK_SIZE], bundle[self.BLOCK_SIZE:]
        dec = Cipher(self._algorithm(), modes.CBC(iv)).decryptor()
        padded = dec.update(ct) + dec.finalize()
        unpadder = padding.PKCS7(self.BLOCK_SIZE * 8).unpadder()
        try:
            return unpadder.update(padded) + unpadder.finalize()
        except ValueError as exc:
            raise DecryptionFailure(
                f"{self.name}: bad padding, wrong key or corrupted data.") from exc


class LibraryAESCipher(_LibraryCBC):
    """AES-128-CBC via cryptography."""

    name       = "library-aes"
    BLOCK_SIZE = 16
    KEY_SIZE   = 16

    def __init__(self, key=None, fallback: str = None):
        fallback  = fallback or get_settings().library_aes_default_key
        self._key = normalize_block_key(key, self.KEY_SIZE, fallback)

    def _algorithm(self):
        return algorithms.AES(self._key)


class LibraryDESCipher(_LibraryCBC):
    """Single DES in CBC mode via cryptography's TripleDES."""

    name       = "library-des"
    BLOCK_SIZE = 8
    KEY_SIZE   = 8

    def __init__(self, key=None, fallback: str = None):
        fallback  = fallback or get_settings().library_des_default_key
        self._key = normalize_block_key(key, self.KEY_SIZE, fallback)

    def _algorithm(self):
        # K1 = K2 = K3 is single DES
        return TripleDES(self._key * 3)
