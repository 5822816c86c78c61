"""
Block Cipher Engine — AES-128, from scratch
===========================================
128-bit block, 16-byte key, 10 rounds. Byte-for-byte compatible with
FIPS-197 AES-128 applied block by block (ECB), with self-describing
padding (see block_base).

Nothing here is a lookup table typed in from the standard. The S-box is
computed from its definition:

    S(x) = A(x^-1) + 0x63        x^-1 in GF(2^8) mod x^8+x^4+x^3+x+1
                                  A = fixed bitwise affine map

and the inverse S-box undoes the affine step first, then inverts in the
field. Round constants are successive powers of 2 in the same field.

State layout: 16 bytes, column-major, index = row + 4*col, the same
order the bytes arrive in a block.
"""

from functools import lru_cache
from typing import List

from ..config import get_settings
from .block_base import BlockEngine, normalize_block_key


AES_POLY = 0x11B     # x^8 + x^4 + x^3 + x + 1
ROUNDS   = 10


# ── GF(2^8) ──────────────────────────────────────────────────────────────────

def xtime(a: int) -> int:
    """Multiply by x (i.e. 2) in GF(2^8)."""
    a <<= 1
    return (a ^ AES_POLY) if a & 0x100 else a


def gf_mul(a: int, b: int) -> int:
    p = 0
    while b:
        if b & 1:
            p ^= a
        a = xtime(a)
        b >>= 1
    return p


def gf_inverse(a: int) -> int:
    """a^254 == a^-1 for a != 0 (the multiplicative group has order 255)."""
    if a == 0:
        return 0
    result, base, e = 1, a, 254
    while e:
        if e & 1:
            result = gf_mul(result, base)
        base = gf_mul(base, base)
        e >>= 1
    return result


def _rotl8(b: int, n: int) -> int:
    return ((b << n) | (b >> (8 - n))) & 0xFF


def affine(b: int) -> int:
    return b ^ _rotl8(b, 1) ^ _rotl8(b, 2) ^ _rotl8(b, 3) ^ _rotl8(b, 4) ^ 0x63


def inverse_affine(b: int) -> int:
    return _rotl8(b, 1) ^ _rotl8(b, 3) ^ _rotl8(b, 6) ^ 0x05


@lru_cache(maxsize=None)
def derive_sbox() -> tuple:
    return tuple(affine(gf_inverse(x)) for x in range(256))


@lru_cache(maxsize=None)
def derive_inv_sbox() -> tuple:
    return tuple(gf_inverse(inverse_affine(x)) for x in range(256))


@lru_cache(maxsize=None)
def round_constants(count: int = ROUNDS) -> tuple:
    rcon, value = [], 1
    for _ in range(count):
        rcon.append(value)
        value = xtime(value)
    return tuple(rcon)


@lru_cache(maxsize=None)
def _mul_table(k: int) -> tuple:
    return tuple(gf_mul(x, k) for x in range(256))


# ── key schedule ─────────────────────────────────────────────────────────────

def expand_key(key: bytes, sbox=None) -> List[bytes]:
    """16-byte key -> 11 round keys of 16 bytes (44 words)."""
    if len(key) != 16:
        raise ValueError("AES-128 key must be 16 bytes.")
    sbox = sbox or derive_sbox()
    rcon = round_constants()
    words = [list(key[4 * i:4 * i + 4]) for i in range(4)]
    for i in range(4, 4 * (ROUNDS + 1)):
        temp = words[i - 1][:]
        if i % 4 == 0:
            temp = temp[1:] + temp[:1]                 # RotWord
            temp = [sbox[b] for b in temp]             # SubWord
            temp[0] ^= rcon[i // 4 - 1]
        words.append([w ^ t for w, t in zip(words[i - 4], temp)])
    return [
        bytes(b for w in words[4 * r:4 * r + 4] for b in w)
        for r in range(ROUNDS + 1)
    ]


# ── round transforms (operate on a 16-element list) ──────────────────────────

def _add_round_key(state: list, round_key: bytes) -> list:
    return [s ^ k for s, k in zip(state, round_key)]


def _shift_rows(state: list) -> list:
    # row r rotates left by r
    return [state[r + 4 * ((c + r) % 4)] for c in range(4) for r in range(4)]


def _inv_shift_rows(state: list) -> list:
    return [state[r + 4 * ((c - r) % 4)] for c in range(4) for r in range(4)]


def _mix(state: list, coeffs: tuple) -> list:
    tables = [_mul_table(k) for k in coeffs]
    out = []
    for c in range(4):
        col = state[4 * c:4 * c + 4]
        for r in range(4):
            # circulant matrix: row r is coeffs rotated right by r
            v = 0
            for i in range(4):
                v ^= tables[(i - r) % 4][col[i]]
            out.append(v)
    return out


MIX     = (2, 3, 1, 1)
INV_MIX = (14, 11, 13, 9)


class ManualAES(BlockEngine):
    """AES-128 implemented by hand. Text API: base64 of the ciphertext."""

    name       = "aes"
    BLOCK_SIZE = 16
    KEY_SIZE   = 16

    def __init__(self, key=None, fallback: str = None):
        fallback = fallback or get_settings().aes_default_key
        self._key        = normalize_block_key(key, self.KEY_SIZE, fallback)
        self._sbox       = derive_sbox()
        self._inv_sbox   = derive_inv_sbox()
        self._round_keys = expand_key(self._key, self._sbox)

    @property
    def key(self) -> bytes:
        return self._key

    @property
    def round_keys(self) -> List[bytes]:
        return list(self._round_keys)

    def encrypt_block(self, block: bytes) -> bytes:
        sbox, rk = self._sbox, self._round_keys
        state = _add_round_key(list(block), rk[0])
        for rnd in range(1, ROUNDS):
            state = [sbox[b] for b in state]
            state = _shift_rows(state)
            state = _mix(state, MIX)
            state = _add_round_key(state, rk[rnd])
        state = [sbox[b] for b in state]
        state = _shift_rows(state)
        state = _add_round_key(state, rk[ROUNDS])
        return bytes(state)

    def decrypt_block(self, block: bytes) -> bytes:
        inv, rk = self._inv_sbox, self._round_keys
        state = _add_round_key(list(block), rk[ROUNDS])
        for rnd in range(ROUNDS - 1, 0, -1):
            state = _inv_shift_rows(state)
            state = [inv[b] for b in state]
            state = _add_round_key(state, rk[rnd])
            state = _mix(state, INV_MIX)
        state = _inv_shift_rows(state)
        state = [inv[b] for b in state]
        state = _add_round_key(state, rk[0])
        return bytes(state)
