"""
Chat channel: the glue between a line transport, the active cipher and
the RSA handshake.

Wire format, one UTF-8 line per unit:

    RSA_PUBKEY:<base64 public key>        handshake, never shown to users
    FILE:<name>:<mime-type>:<payload>     payload = cipher(base64(file bytes))
    <anything else>                       a chat message, encrypted with the
                                          active cipher (plain if none)

Inbound handling never raises for a bad message. A line that cannot be
decrypted is handed back raw with the reason attached; the connection
and every other message carry on.
"""

import base64
import binascii
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Tuple

from .config import Settings, get_settings
from .errors import ChatCryptError, DecryptionFailure, ProtocolError, TransportError
from .handshake import PeerSession, is_handshake_line
from .selector import Algorithm, CipherSelector, Selection

logger = logging.getLogger(__name__)

FILE_PREFIX = "FILE:"


def format_file_line(name: str, mime_type: str, payload: str) -> str:
    for label, value in (("file name", name), ("mime type", mime_type)):
        if ":" in value or "\n" in value or "\r" in value:
            raise ProtocolError(f"{label} must not contain ':' or line breaks: {value!r}")
    return f"{FILE_PREFIX}{name}:{mime_type}:{payload}"


def parse_file_line(line: str) -> Tuple[str, str, str]:
    parts = line.split(":", 3)
    if len(parts) != 4 or parts[0] + ":" != FILE_PREFIX:
        raise ProtocolError("Malformed FILE line; expected FILE:<name>:<mime>:<payload>.")
    return parts[1], parts[2], parts[3]


def _decode_file_payload(encoded: str) -> bytes:
    try:
        return base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise DecryptionFailure("Decrypted file payload is not valid base64.") from exc


class EventKind(Enum):
    HANDSHAKE = "handshake"
    MESSAGE   = "message"
    FILE      = "file"


@dataclass
class InboundEvent:
    kind:      EventKind
    raw:       str
    text:      Optional[str] = None      # decrypted message, or raw on failure
    data:      Optional[bytes] = None    # file contents
    name:      Optional[str] = None
    mime_type: Optional[str] = None
    decrypted: bool = False
    error:     Optional[str] = None
    exception: Optional[ChatCryptError] = None   # typed form of `error`


class ChatChannel:
    """
    One chat connection's worth of crypto.

    Call open() once the transport is connected (it sends our public
    key), select() an algorithm, then send_message / send_file. Feed
    inbound lines to handle_line(), or let receive_loop() do it.
    """

    def __init__(self, transport, session: PeerSession = None,
                 settings: Settings = None):
        self._transport = transport
        self._settings  = settings or get_settings()
        self._session   = session or PeerSession()
        self._selector  = CipherSelector(self._session, self._settings)

    @property
    def session(self) -> PeerSession:
        return self._session

    @property
    def selector(self) -> CipherSelector:
        return self._selector

    def open(self):
        self._session.send_handshake(self._transport)

    def select(self, algorithm, key: str = "") -> Selection:
        return self._selector.select(algorithm, key)

    # ── outbound ────────────────────────────────────────────────────────────

    def _send(self, line: str):
        if not self._transport.send(line):
            raise TransportError("Transport failed to send line.")

    def send_message(self, text: str) -> str:
        """Encrypt (if a cipher is active) and send. Returns the wire line."""
        cipher = self._selector.active
        line = cipher.encrypt(text) if cipher is not None else text
        if "\n" in line or "\r" in line:
            raise ProtocolError("Message would span more than one line.")
        self._send(line)
        logger.debug(f"Sent message: {len(line)} chars on the wire")
        return line

    def send_file(self, name: str, mime_type: str, data: bytes) -> str:
        cipher  = self._selector.active
        encoded = base64.b64encode(data).decode("ascii")
        payload = cipher.encrypt(encoded) if cipher is not None else encoded
        line = format_file_line(name, mime_type, payload)
        self._send(line)
        logger.info(f"Sent file {name} ({mime_type}, {len(data)}B)")
        return line

    # ── inbound ─────────────────────────────────────────────────────────────

    def _inbound_cipher(self, selection: Selection):
        if selection.algorithm is Algorithm.RSA:
            return self._session.decrypt_instance
        return selection.cipher

    def _try_rsa(self, line: str) -> Optional[str]:
        try:
            return self._session.decrypt_instance.decrypt(line)
        except DecryptionFailure:
            return None

    def handle_line(self, line: str) -> InboundEvent:
        if is_handshake_line(line):
            return self._handle_handshake(line)
        if line.startswith(FILE_PREFIX):
            return self._handle_file(line)
        return self._handle_message(line)

    def _handle_handshake(self, line: str) -> InboundEvent:
        try:
            self._session.accept_handshake_line(line)
        except ProtocolError as exc:
            logger.warning(f"Bad handshake line: {exc}")
            return InboundEvent(EventKind.HANDSHAKE, raw=line, error=str(exc), exception=exc)
        return InboundEvent(EventKind.HANDSHAKE, raw=line)

    def _decrypt_payload(self, payload: str) -> Tuple[str, bool]:
        """
        (plaintext, decrypted). Long payloads get a local-RSA attempt first,
        since the peer may be sending RSA while we have something else
        selected. Raises ChatCryptError if the active cipher rejects it.
        """
        selection = self._selector.current
        rsa_active = selection.algorithm is Algorithm.RSA
        if len(payload) >= self._settings.rsa_line_threshold and not rsa_active:
            text = self._try_rsa(payload)
            if text is not None:
                return text, True
        cipher = self._inbound_cipher(selection)
        if cipher is None:
            return payload, False
        return cipher.decrypt(payload), True

    def _handle_message(self, line: str) -> InboundEvent:
        try:
            text, decrypted = self._decrypt_payload(line)
        except ChatCryptError as exc:
            logger.warning(f"Could not decrypt inbound message: {exc}")
            return InboundEvent(EventKind.MESSAGE, raw=line, text=line,
                                error=str(exc), exception=exc)
        return InboundEvent(EventKind.MESSAGE, raw=line, text=text, decrypted=decrypted)

    def _handle_file(self, line: str) -> InboundEvent:
        try:
            name, mime_type, payload = parse_file_line(line)
        except ProtocolError as exc:
            return InboundEvent(EventKind.FILE, raw=line, error=str(exc), exception=exc)
        event = InboundEvent(EventKind.FILE, raw=line, name=name, mime_type=mime_type)
        try:
            encoded, event.decrypted = self._decrypt_payload(payload)
            event.data = _decode_file_payload(encoded)
        except ChatCryptError as exc:
            logger.warning(f"Could not decrypt file {name}: {exc}")
            event.error, event.exception = str(exc), exc
            return event
        logger.info(f"Received file {name} ({mime_type}, {len(event.data)}B)")
        return event

    # ── receive loop ────────────────────────────────────────────────────────

    def receive_loop(self, on_event: Callable[[InboundEvent], None]):
        """Handle lines until the transport reports end of stream."""
        while True:
            line = self._transport.next_line()
            if line is None:
                logger.info("Transport closed; receive loop finished")
                return
            on_event(self.handle_line(line))

    def start_receiver(self, on_event: Callable[[InboundEvent], None]) -> threading.Thread:
        thread = threading.Thread(target=self.receive_loop, args=(on_event,),
                                  name="chatcrypt-receive", daemon=True)
        thread.start()
        return thread
