"""
Algorithm selection.

Turns "which algorithm" + "what the user typed in the key box" into a
ready cipher, or a readable reason why not.

    build_cipher(...)     raises KeyFormatError / UninvertibleKeyError /
                          PeerKeyUnavailable
    CipherSelector.select never raises; returns a Selection (with the
                          exception attached on failure) and clears
                          the active cipher on failure

Key formats:
    caesar        one integer                         3
    affine, gcd   two comma-separated integers        5,8
    substitution  26-letter permutation               QWERTYUIOPASDFGHJKLZXCVBNM
    vigenere      any text with at least one letter   LEMON
    polybius      ignored
    route         one positive integer                4
    columnar      non-empty text                      ZEBRA
    hill          letters or integers, square count   GYBNQKURP
    aes, des, library-aes, library-des
                  any text; empty -> configured fallback,
                  else truncated / '0'-padded to 16 or 8 bytes
    rsa           ignored; needs a completed handshake
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional, Tuple

from .ciphers import (AffineCipher, CaesarCipher, ColumnarTranspositionCipher,
                      GCDCipher, HillCipher, LibraryAESCipher, LibraryDESCipher,
                      ManualAES, ManualDES, PolybiusCipher, RouteCipher,
                      SubstitutionCipher, VigenereCipher)
from .config import Settings, get_settings
from .contract import CipherContract
from .errors import (ChatCryptError, KeyFormatError, PeerKeyUnavailable,
                     UninvertibleKeyError)

logger = logging.getLogger(__name__)


class Algorithm(Enum):
    CAESAR       = "caesar"
    AFFINE       = "affine"
    SUBSTITUTION = "substitution"
    VIGENERE     = "vigenere"
    GCD          = "gcd"
    POLYBIUS     = "polybius"
    ROUTE        = "route"
    COLUMNAR     = "columnar"
    HILL         = "hill"
    AES          = "aes"
    DES          = "des"
    LIBRARY_AES  = "library-aes"
    LIBRARY_DES  = "library-des"
    RSA          = "rsa"

    @classmethod
    def parse(cls, name) -> "Algorithm":
        """Accept an Algorithm, its value ("library-aes") or name ("LIBRARY_AES")."""
        if isinstance(name, cls):
            return name
        text = str(name).strip()
        for member in cls:
            if text.lower() == member.value or text.upper() == member.name:
                return member
        raise KeyFormatError(f"Unknown algorithm: {name!r}.")


# ── key parsing ──────────────────────────────────────────────────────────────

def _parse_int(text: str, what: str) -> int:
    text = text.strip()
    if not re.fullmatch(r"[+-]?\d+", text):
        raise KeyFormatError(f"{what} must be an integer, got {text!r}.")
    return int(text)


def _parse_int_pair(key: str, algo: str) -> Tuple[int, int]:
    parts = key.split(",")
    if len(parts) != 2:
        raise KeyFormatError(f"{algo} key format: a,b (two comma-separated integers).")
    return _parse_int(parts[0], f"{algo} a"), _parse_int(parts[1], f"{algo} b")


# ── one factory per algorithm ────────────────────────────────────────────────

def _caesar(key, session, settings):
    return CaesarCipher(_parse_int(key, "Caesar shift"))


def _affine(key, session, settings):
    return AffineCipher(*_parse_int_pair(key, "Affine"))


def _substitution(key, session, settings):
    return SubstitutionCipher(key)


def _vigenere(key, session, settings):
    return VigenereCipher(key)


def _gcd(key, session, settings):
    return GCDCipher(*_parse_int_pair(key, "GCD"))


def _polybius(key, session, settings):
    return PolybiusCipher()


def _route(key, session, settings):
    return RouteCipher(_parse_int(key, "Route key"))


def _columnar(key, session, settings):
    return ColumnarTranspositionCipher(key, filler=settings.filler)


def _hill(key, session, settings):
    return HillCipher(key, filler=settings.filler)


def _aes(key, session, settings):
    return ManualAES(key, fallback=settings.aes_default_key)


def _des(key, session, settings):
    return ManualDES(key, fallback=settings.des_default_key)


def _library_aes(key, session, settings):
    return LibraryAESCipher(key, fallback=settings.library_aes_default_key)


def _library_des(key, session, settings):
    return LibraryDESCipher(key, fallback=settings.library_des_default_key)


def _rsa(key, session, settings):
    if session is None:
        raise PeerKeyUnavailable("RSA needs a connected session with a completed handshake.")
    return session.encrypt_instance


FACTORIES: Dict[Algorithm, Callable] = {
    Algorithm.CAESAR:       _caesar,
    Algorithm.AFFINE:       _affine,
    Algorithm.SUBSTITUTION: _substitution,
    Algorithm.VIGENERE:     _vigenere,
    Algorithm.GCD:          _gcd,
    Algorithm.POLYBIUS:     _polybius,
    Algorithm.ROUTE:        _route,
    Algorithm.COLUMNAR:     _columnar,
    Algorithm.HILL:         _hill,
    Algorithm.AES:          _aes,
    Algorithm.DES:          _des,
    Algorithm.LIBRARY_AES:  _library_aes,
    Algorithm.LIBRARY_DES:  _library_des,
    Algorithm.RSA:          _rsa,
}


def build_cipher(algorithm, key: str = "", session=None,
                 settings: Settings = None) -> CipherContract:
    """Validate `key` for `algorithm` and construct the cipher."""
    algorithm = Algorithm.parse(algorithm)
    settings  = settings or get_settings()
    return FACTORIES[algorithm]((key or "").strip(), session, settings)


@dataclass(frozen=True)
class Selection:
    """
    Outcome of one select() call. On failure `exception` says why:
    KeyFormatError / UninvertibleKeyError mean "fix the key",
    PeerKeyUnavailable means "wait for the handshake".
    """
    algorithm: Optional[Algorithm]
    cipher:    Optional[CipherContract] = None
    error:     Optional[str] = None
    exception: Optional[ChatCryptError] = None

    @property
    def ok(self) -> bool:
        return self.cipher is not None


NO_SELECTION = Selection(algorithm=None)


def _describe_failure(label: str, exc: ChatCryptError) -> str:
    if isinstance(exc, (KeyFormatError, UninvertibleKeyError)):
        return f"Invalid key for {label}: {exc}"
    return f"{label} is not available yet: {exc}"


class CipherSelector:
    """
    Holds the active cipher. A failed selection leaves none active.

    The current Selection is swapped as one object, so a reader on
    another thread sees algorithm and cipher from the same select().
    """

    def __init__(self, session=None, settings: Settings = None):
        self._session  = session
        self._settings = settings or get_settings()
        self._current  = NO_SELECTION

    @property
    def current(self) -> Selection:
        return self._current

    @property
    def active(self) -> Optional[CipherContract]:
        return self._current.cipher

    @property
    def algorithm(self) -> Optional[Algorithm]:
        return self._current.algorithm

    def select(self, algorithm, key: str = "") -> Selection:
        try:
            algo = Algorithm.parse(algorithm)
        except KeyFormatError as exc:
            self.clear()
            return Selection(algorithm=None, error=str(exc), exception=exc)
        try:
            cipher = build_cipher(algo, key, self._session, self._settings)
        except ChatCryptError as exc:
            self.clear()
            logger.info(f"Cipher selection failed for {algo.value}: {type(exc).__name__}")
            return Selection(algorithm=None, error=_describe_failure(algo.value, exc),
                             exception=exc)
        self._current = Selection(algorithm=algo, cipher=cipher)
        logger.info(f"Active cipher: {algo.value}")
        return self._current

    def clear(self):
        self._current = NO_SELECTION
