"""
Exceptions raised by chatcrypt.

Every error here is recoverable: a bad key means "ask the user again",
a failed decrypt means "drop this one message", a missing peer key means
"wait for the handshake". None of them should take down a chat session.
"""


class ChatCryptError(Exception):
    """Base exception for chatcrypt errors."""
    pass


class KeyFormatError(ChatCryptError, ValueError):
    """Key is malformed for the selected algorithm."""
    pass


class UninvertibleKeyError(ChatCryptError, ValueError):
    """Key has no inverse mod 26 (Affine multiplier or Hill determinant)."""
    pass


class PeerKeyUnavailable(ChatCryptError):
    """RSA selected before the peer's public key arrived."""
    pass


class DecryptionFailure(ChatCryptError):
    """Ciphertext is corrupt, truncated or was made with another key."""
    pass


class KeyMissing(ChatCryptError):
    """Decrypt attempted on an RSA instance that only holds a public key."""
    pass


class PayloadTooLarge(ChatCryptError):
    """Plaintext exceeds what a single RSA block can carry."""
    pass


class ProtocolError(ChatCryptError):
    """Protocol line is malformed."""
    pass


class TransportError(ChatCryptError):
    """Transport refused or failed to send a line."""
    pass
