"""
Asymmetric — RSA-2048 + OAEP
============================
RSA public-key encryption with OAEP padding (SHA-256, MGF1-SHA-256).

Encrypt with the *recipient's* public key, decrypt with your own private
key. An instance built from a peer's public key alone can encrypt but
not decrypt; asking it to decrypt raises KeyMissing instead of quietly
returning nothing.

One OAEP block is all there is: no chunking, no session keys.

    capacity = 256 - 2*32 - 2 = 190 bytes of plaintext

Longer messages raise PayloadTooLarge; callers must keep them short.
Ciphertext is always 256 bytes; the text form is its base64 (344 chars).

Public keys travel as base64 of the DER SubjectPublicKeyInfo (X.509)
encoding.

Dependencies: cryptography >= 43.0
"""

import base64
import logging

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from ..contract import ByteCipher, b64decode_strict
from ..errors import DecryptionFailure, KeyMissing, PayloadTooLarge, ProtocolError

logger = logging.getLogger(__name__)


class RSACipher(ByteCipher):
    """RSA-2048 OAEP encryption / decryption."""

    name            = "rsa"
    KEY_SIZE        = 2048
    PUBLIC_EXPONENT = 65537
    HASH_SIZE       = 32        # SHA-256

    def __init__(self, private_key=None, public_key=None):
        """
        Pass existing keys, or call generate_keypair() to create new ones.
        """
        if private_key is not None and public_key is None:
            public_key = private_key.public_key()
        if public_key is None:
            raise KeyMissing("RSACipher needs at least a public key.")
        self._private_key = private_key
        self._public_key  = public_key

    @classmethod
    def generate_keypair(cls) -> "RSACipher":
        """Generate a fresh RSA-2048 keypair."""
        private_key = rsa.generate_private_key(
            public_exponent=cls.PUBLIC_EXPONENT,
            key_size=cls.KEY_SIZE,
        )
        logger.info(f"Generated RSA-{cls.KEY_SIZE} keypair")
        return cls(private_key=private_key)

    @classmethod
    def from_public_der(cls, der: bytes) -> "RSACipher":
        """Encrypt-only instance from DER SubjectPublicKeyInfo bytes."""
        try:
            key = serialization.load_der_public_key(der)
        except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
            raise ProtocolError("Could not parse RSA public key.") from exc
        if not isinstance(key, rsa.RSAPublicKey):
            raise ProtocolError("Public key is not an RSA key.")
        return cls(public_key=key)

    @classmethod
    def from_public_base64(cls, text: str) -> "RSACipher":
        try:
            der = b64decode_strict(text)
        except DecryptionFailure as exc:
            raise ProtocolError("RSA public key is not valid base64.") from exc
        return cls.from_public_der(der)

    @classmethod
    def from_pem(cls, private_pem: bytes = None,
                 public_pem: bytes = None) -> "RSACipher":
        """Load keys from PEM bytes."""
        priv = (serialization.load_pem_private_key(private_pem, password=None)
                if private_pem else None)
        pub  = (serialization.load_pem_public_key(public_pem)
                if public_pem else None)
        return cls(private_key=priv, public_key=pub)

    @property
    def has_private_key(self) -> bool:
        return self._private_key is not None

    @property
    def capacity(self) -> int:
        """Largest plaintext, in bytes, one OAEP block can carry."""
        return self._public_key.key_size // 8 - 2 * self.HASH_SIZE - 2

    def public_only(self) -> "RSACipher":
        return RSACipher(public_key=self._public_key)

    def export_public_der(self) -> bytes:
        return self._public_key.public_bytes(
            serialization.Encoding.DER,
            serialization.PublicFormat.SubjectPublicKeyInfo
        )

    def export_public_base64(self) -> str:
        return base64.b64encode(self.export_public_der()).decode("ascii")

    def export_public_pem(self) -> bytes:
        return self._public_key.public_bytes(
            serialization.Encoding.PEM,
            serialization.PublicFormat.SubjectPublicKeyInfo
        )

    def export_private_pem(self) -> bytes:
        if self._private_key is None:
            raise KeyMissing("No private key loaded.")
        return self._private_key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption()
        )

    def _oaep(self):
        return padding.OAEP(
            mgf=padding.MGF1(algorithm=hashes.SHA256()),
            algorithm=hashes.SHA256(),
            label=None
        )

    def encrypt_bytes(self, plaintext: bytes) -> bytes:
        """Encrypt with the public key. At most `capacity` bytes."""
        if len(plaintext) > self.capacity:
            raise PayloadTooLarge(
                f"RSA-{self.KEY_SIZE} OAEP carries at most {self.capacity} bytes, "
                f"got {len(plaintext)}.")
        return self._public_key.encrypt(plaintext, self._oaep())

    def decrypt(self, ciphertext: str) -> str:
        self._require_private_key()
        return super().decrypt(ciphertext)

    def _require_private_key(self):
        if self._private_key is None:
            raise KeyMissing("RSA decryption needs a private key; this instance "
                             "only holds a public key.")

    def decrypt_bytes(self, ciphertext: bytes) -> bytes:
        """Decrypt with the private key."""
        self._require_private_key()
        try:
            return self._private_key.decrypt(ciphertext, self._oaep())
        except ValueError as exc:
            raise DecryptionFailure("RSA decryption failed.") from exc

    def __repr__(self):
        role = "keypair" if self.has_private_key else "public-only"
        return f"RSACipher({self._public_key.key_size}-bit, {role})"
