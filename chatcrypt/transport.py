"""
Line transports.

chatcrypt never opens, accepts or re-establishes connections. It needs
exactly two things from whatever carries the chat:

    send(line) -> bool            one line, no trailing newline
    next_line() -> str | None     None once the stream has ended

MemoryTransport wires two endpoints together in-process (tests, demos);
SocketLineTransport frames lines over a socket someone else connected.
"""

import logging
import queue
import socket
import threading
from typing import Optional, Protocol, Tuple

logger = logging.getLogger(__name__)


class LineTransport(Protocol):
    def send(self, line: str) -> bool:
        ...

    def next_line(self) -> Optional[str]:
        ...


class MemoryTransport:
    """One end of an in-process, queue-backed line pipe."""

    _EOF = object()

    def __init__(self, inbox: "queue.Queue", outbox: "queue.Queue"):
        self._inbox  = inbox
        self._outbox = outbox
        self._closed = False

    @classmethod
    def pair(cls) -> Tuple["MemoryTransport", "MemoryTransport"]:
        a_to_b, b_to_a = queue.Queue(), queue.Queue()
        return cls(b_to_a, a_to_b), cls(a_to_b, b_to_a)

    def send(self, line: str) -> bool:
        if self._closed:
            return False
        self._outbox.put(line)
        return True

    def next_line(self, timeout: float = None) -> Optional[str]:
        try:
            item = self._inbox.get(timeout=timeout)
        except queue.Empty:
            return None
        return None if item is self._EOF else item

    def close(self):
        """Stop sending and tell the other end its stream has ended."""
        if not self._closed:
            self._closed = True
            self._outbox.put(self._EOF)


class SocketLineTransport:
    """Newline-framed UTF-8 lines over an already connected socket."""

    def __init__(self, sock: socket.socket):
        self._sock   = sock
        self._reader = sock.makefile("r", encoding="utf-8", newline="\n")
        self._lock   = threading.Lock()

    def send(self, line: str) -> bool:
        data = (line + "\n").encode("utf-8")
        try:
            with self._lock:
                self._sock.sendall(data)
            return True
        except OSError as exc:
            logger.warning(f"Send failed: {exc}")
            return False

    def next_line(self) -> Optional[str]:
        try:
            line = self._reader.readline()
        except OSError as exc:
            logger.warning(f"Receive failed: {exc}")
            return None
        if not line:
            return None
        return line.rstrip("\r\n")
