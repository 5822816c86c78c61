"""
RSA HANDSHAKE
=============
One-shot public-key exchange carried inside the chat line stream.

    1. Each endpoint generates an RSA-2048 keypair when its session is
       created, before any network traffic.
    2. As soon as a connection is up, each side sends

           RSA_PUBKEY:<base64 DER SubjectPublicKeyInfo>

    3. When the peer's line arrives the session moves
       AWAITING_PEER_KEY -> READY and can encrypt to the peer.

There is no way back from READY, no timeout and no re-keying; a second
key line is ignored. Decrypting works from the start because it only
needs the local private key.
"""

import logging
import threading
from enum import Enum

from .ciphers.asymmetric import RSACipher
from .errors import PeerKeyUnavailable, ProtocolError, TransportError

logger = logging.getLogger(__name__)

HANDSHAKE_PREFIX = "RSA_PUBKEY:"


class HandshakeState(Enum):
    AWAITING_PEER_KEY = "awaiting_peer_key"
    READY             = "ready"


def is_handshake_line(line: str) -> bool:
    return line.startswith(HANDSHAKE_PREFIX)


def format_handshake_line(cipher: RSACipher) -> str:
    return HANDSHAKE_PREFIX + cipher.export_public_base64()


def parse_handshake_line(line: str) -> RSACipher:
    """Peer's handshake line -> encrypt-only RSACipher."""
    if not is_handshake_line(line):
        raise ProtocolError("Not an RSA_PUBKEY line.")
    return RSACipher.from_public_base64(line[len(HANDSHAKE_PREFIX):])


class PeerSession:
    """
    Per-connection key state.

    Owned by one connection. The peer key is written once, under a lock,
    and only read afterwards, so the sending thread and the receive loop
    can both use the session.
    """

    def __init__(self, local: RSACipher = None):
        self._local = local or RSACipher.generate_keypair()
        self._peer  = None
        self._state = HandshakeState.AWAITING_PEER_KEY
        self._lock  = threading.Lock()

    @property
    def state(self) -> HandshakeState:
        return self._state

    @property
    def ready(self) -> bool:
        return self._state is HandshakeState.READY

    @property
    def local_key(self) -> RSACipher:
        return self._local

    @property
    def decrypt_instance(self) -> RSACipher:
        """Local keypair; decrypts anything sent to us."""
        return self._local

    @property
    def encrypt_instance(self) -> RSACipher:
        """Peer's public key; only valid once the handshake is READY."""
        peer = self._peer
        if peer is None:
            raise PeerKeyUnavailable(
                "Peer public key has not arrived yet; RSA is not available. "
                "Try again once the handshake completes.")
        return peer

    def handshake_line(self) -> str:
        return format_handshake_line(self._local)

    def send_handshake(self, transport) -> None:
        line = self.handshake_line()
        if not transport.send(line):
            raise TransportError("Could not send RSA public key.")
        logger.info("Sent RSA public key")
        logger.debug(f"Handshake line: {len(line)} chars")

    def accept_handshake_line(self, line: str) -> bool:
        """
        Consume the peer's RSA_PUBKEY line. Returns True if this call
        completed the handshake, False if it was already complete.
        """
        peer = parse_handshake_line(line)
        with self._lock:
            if self._state is HandshakeState.READY:
                logger.warning("Ignoring repeated RSA_PUBKEY line; handshake already complete")
                return False
            self._peer  = peer
            self._state = HandshakeState.READY
        logger.info("Peer RSA public key received; handshake READY")
        return True

    def __repr__(self):
        return f"PeerSession(state={self._state.value})"


if __name__ == "__main__":
    from .transport import MemoryTransport

    logging.basicConfig(level=logging.INFO, format=' %(message)s')

    left_t, right_t = MemoryTransport.pair()
    alice, bob = PeerSession(), PeerSession()
    alice.send_handshake(left_t)
    bob.send_handshake(right_t)
    bob.accept_handshake_line(right_t.next_line())
    alice.accept_handshake_line(left_t.next_line())

    ct = alice.encrypt_instance.encrypt("hello bob")
    print(f"CT: {ct[:64]}...")
    print(f"PT: {bob.decrypt_instance.decrypt(ct)}")
