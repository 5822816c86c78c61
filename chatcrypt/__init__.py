"""
chatcrypt — pluggable ciphers for a line-based chat
===================================================
Interchangeable encrypt/decrypt algorithms behind one contract, plus a
one-shot RSA public-key handshake carried in the chat stream itself.

Families:
    SUBSTITUTION   Caesar, Affine, Substitution, Vigenere, GCD-shift, Polybius
    TRANSPOSITION  Route, Columnar
    MATRIX         Hill (mod-26 matrix inverse)
    BLOCK          AES-128 and DES written from scratch, plus
                   cryptography-backed AES-CBC / DES-CBC
    ASYMMETRIC     RSA-2048 OAEP with an RSA_PUBKEY handshake

Pick an algorithm with CipherSelector / build_cipher, drive a connection
with ChatChannel.
"""

__version__ = "1.0.0"

from .errors     import (ChatCryptError, KeyFormatError, UninvertibleKeyError,
                         PeerKeyUnavailable, DecryptionFailure, KeyMissing,
                         PayloadTooLarge, ProtocolError, TransportError)
from .config     import Settings, get_settings
from .contract   import CipherContract, ByteCipher
from .ciphers    import (CaesarCipher, AffineCipher, SubstitutionCipher,
                         VigenereCipher, GCDCipher, PolybiusCipher,
                         RouteCipher, ColumnarTranspositionCipher, HillCipher,
                         ManualAES, ManualDES, LibraryAESCipher,
                         LibraryDESCipher, RSACipher)
from .handshake  import HandshakeState, PeerSession
from .selector   import Algorithm, CipherSelector, Selection, build_cipher
from .transport  import LineTransport, MemoryTransport, SocketLineTransport
from .channel    import ChatChannel, EventKind, InboundEvent

__all__ = [
    "ChatCryptError",
    "KeyFormatError",
    "UninvertibleKeyError",
    "PeerKeyUnavailable",
    "DecryptionFailure",
    "KeyMissing",
    "PayloadTooLarge",
    "ProtocolError",
    "TransportError",
    "Settings",
    "get_settings",
    "CipherContract",
    "ByteCipher",
    "CaesarCipher",
    "AffineCipher",
    "SubstitutionCipher",
    "VigenereCipher",
    "GCDCipher",
    "PolybiusCipher",
    "RouteCipher",
    "ColumnarTranspositionCipher",
    "HillCipher",
    "ManualAES",
    "ManualDES",
    "LibraryAESCipher",
    "LibraryDESCipher",
    "RSACipher",
    "HandshakeState",
    "PeerSession",
    "Algorithm",
    "CipherSelector",
    "Selection",
    "build_cipher",
    "LineTransport",
    "MemoryTransport",
    "SocketLineTransport",
    "ChatChannel",
    "EventKind",
    "InboundEvent",
]
