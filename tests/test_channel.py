"""
chatcrypt — channel / transport tests
=====================================
Two endpoints wired back to back over MemoryTransport (and one over a
real socketpair), exercising the handshake, message and FILE paths.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import socket

import pytest
from chatcrypt.ciphers.asymmetric import RSACipher
from chatcrypt.channel            import (ChatChannel, EventKind, format_file_line,
                                          parse_file_line)
from chatcrypt.config             import Settings
from chatcrypt.handshake          import HANDSHAKE_PREFIX, PeerSession
from chatcrypt.transport          import MemoryTransport, SocketLineTransport
from chatcrypt.errors             import (DecryptionFailure, PayloadTooLarge, ProtocolError,
                                          TransportError)

SETTINGS = Settings()
PHOTO    = bytes(range(120))          # base64 is 160 chars, fits one RSA block


@pytest.fixture(scope="module")
def keys():
    return RSACipher.generate_keypair(), RSACipher.generate_keypair()


@pytest.fixture
def pair(keys):
    """(alice, alice_transport, bob, bob_transport) with the handshake done."""
    alice_t, bob_t = MemoryTransport.pair()
    alice = ChatChannel(alice_t, PeerSession(keys[0]), SETTINGS)
    bob   = ChatChannel(bob_t, PeerSession(keys[1]), SETTINGS)
    alice.open()
    bob.open()
    assert bob.handle_line(bob_t.next_line(timeout=1)).kind is EventKind.HANDSHAKE
    assert alice.handle_line(alice_t.next_line(timeout=1)).kind is EventKind.HANDSHAKE
    return alice, alice_t, bob, bob_t


def deliver(channel, transport):
    return channel.handle_line(transport.next_line(timeout=1))


# ── FILE line format ──────────────────────────────────────────────────────────
def test_file_line_roundtrip():
    line = format_file_line("photo.png", "image/png", "abc:def")
    assert line == "FILE:photo.png:image/png:abc:def"
    assert parse_file_line(line) == ("photo.png", "image/png", "abc:def")

@pytest.mark.parametrize("name, mime", [("a:b.png", "image/png"), ("a.png", "image\npng")])
def test_file_line_rejects_separators(name, mime):
    with pytest.raises(ProtocolError):
        format_file_line(name, mime, "x")

def test_parse_file_line_malformed():
    with pytest.raises(ProtocolError):
        parse_file_line("FILE:only-a-name")

# ── handshake ─────────────────────────────────────────────────────────────────
def test_handshake_completes(pair):
    alice, _, bob, _ = pair
    assert alice.session.ready and bob.session.ready

def test_bad_handshake_line_reported(keys):
    _, bob_t = MemoryTransport.pair()
    bob = ChatChannel(bob_t, PeerSession(keys[1]), SETTINGS)
    event = bob.handle_line(HANDSHAKE_PREFIX + "!!not-a-key!!")
    assert event.kind is EventKind.HANDSHAKE
    assert event.error
    assert isinstance(event.exception, ProtocolError)
    assert not bob.session.ready

def test_rsa_unavailable_before_handshake(keys):
    alice_t, _ = MemoryTransport.pair()
    alice = ChatChannel(alice_t, PeerSession(keys[0]), SETTINGS)
    result = alice.select("rsa")
    assert not result.ok
    assert alice.selector.active is None

# ── messages ──────────────────────────────────────────────────────────────────
def test_plain_message_without_cipher(pair):
    alice, _, bob, bob_t = pair
    assert alice.send_message("hi bob") == "hi bob"
    event = deliver(bob, bob_t)
    assert event.kind is EventKind.MESSAGE
    assert event.text == "hi bob" and not event.decrypted

@pytest.mark.parametrize("algo, key", [
    ("caesar", "3"), ("affine", "5,8"), ("vigenere", "LEMON"), ("gcd", "12,18"),
    ("route", "4"), ("aes", "shared"), ("des", "shared"), ("library-aes", "shared"),
    ("library-des", "shared"),
])
def test_message_with_shared_cipher(pair, algo, key):
    alice, _, bob, bob_t = pair
    assert alice.select(algo, key).ok and bob.select(algo, key).ok
    line = alice.send_message("Meet at noon, bring the map.")
    assert line != "Meet at noon, bring the map."
    event = deliver(bob, bob_t)
    assert event.decrypted and event.error is None
    assert event.text == "Meet at noon, bring the map."

def test_message_under_rsa(pair):
    alice, alice_t, bob, bob_t = pair
    alice.select("rsa")
    bob.select("rsa")
    alice.send_message("to bob")
    assert deliver(bob, bob_t).text == "to bob"
    bob.send_message("to alice")
    assert deliver(alice, alice_t).text == "to alice"

def test_rsa_message_recognised_without_rsa_selected(pair):
    alice, _, bob, bob_t = pair
    alice.select("rsa")
    bob.select("caesar", "3")
    line = alice.send_message("surprise")
    assert len(line) >= SETTINGS.rsa_line_threshold
    event = deliver(bob, bob_t)
    assert event.text == "surprise" and event.decrypted

def test_long_non_rsa_line_falls_through_to_active_cipher(pair):
    alice, _, bob, bob_t = pair
    alice.select("aes", "shared")
    bob.select("aes", "shared")
    text = "long message " * 30
    assert len(alice.send_message(text)) >= SETTINGS.rsa_line_threshold
    assert deliver(bob, bob_t).text == text

def test_undecryptable_message_shown_raw(pair):
    alice, _, bob, bob_t = pair
    alice.select("aes", "alice-key")
    bob.select("aes", "bob-key")
    line = alice.send_message("secret")
    event = deliver(bob, bob_t)
    assert event.error
    assert isinstance(event.exception, DecryptionFailure)
    assert event.text == line and not event.decrypted
    # the channel keeps working
    bob.select("aes", "alice-key")
    alice.send_message("second")
    assert deliver(bob, bob_t).text == "second"

def test_multiline_message_refused(pair):
    alice, _, _, _ = pair
    with pytest.raises(ProtocolError):
        alice.send_message("two\nlines")

def test_send_on_closed_transport(pair):
    alice, alice_t, _, _ = pair
    alice_t.close()
    with pytest.raises(TransportError):
        alice.send_message("anyone there?")

# ── files ─────────────────────────────────────────────────────────────────────
def test_file_under_rsa(pair):
    alice, _, bob, bob_t = pair
    alice.select("rsa")
    bob.select("rsa")
    line = alice.send_file("photo.png", "image/png", PHOTO)
    assert line.startswith("FILE:photo.png:image/png:")
    event = deliver(bob, bob_t)
    assert event.kind is EventKind.FILE
    assert (event.name, event.mime_type) == ("photo.png", "image/png")
    assert event.data == PHOTO and event.error is None

def test_rsa_file_recognised_without_rsa_selected(pair):
    alice, _, bob, bob_t = pair
    alice.select("rsa")
    alice.send_file("photo.png", "image/png", PHOTO)
    event = deliver(bob, bob_t)
    assert event.data == PHOTO and event.decrypted

def test_file_too_large_for_rsa(pair):
    alice, _, _, _ = pair
    alice.select("rsa")
    with pytest.raises(PayloadTooLarge):
        alice.send_file("big.bin", "application/octet-stream", bytes(200))

@pytest.mark.parametrize("algo, key", [
    ("", None), ("aes", "k"), ("des", "k"), ("library-aes", "k"), ("library-des", "k"),
    ("caesar", "7"), ("vigenere", "KEY"), ("gcd", "12,18"), ("route", "5"),
])
def test_file_roundtrip(pair, algo, key):
    alice, _, bob, bob_t = pair
    data = bytes(range(256)) * 8
    if algo:
        alice.select(algo, key)
        bob.select(algo, key)
    alice.send_file("blob.bin", "application/octet-stream", data)
    event = deliver(bob, bob_t)
    assert event.data == data and event.error is None

def test_file_with_wrong_key_reports_error(pair):
    alice, _, bob, bob_t = pair
    alice.select("library-aes", "one")
    bob.select("library-aes", "two")
    alice.send_file("photo.png", "image/png", PHOTO)
    event = deliver(bob, bob_t)
    assert event.kind is EventKind.FILE
    assert event.data is None and event.error
    assert isinstance(event.exception, DecryptionFailure)

def test_malformed_file_line(pair):
    _, _, bob, _ = pair
    event = bob.handle_line("FILE:oops")
    assert event.kind is EventKind.FILE and event.error
    assert isinstance(event.exception, ProtocolError)

# ── receive loop ──────────────────────────────────────────────────────────────
def test_receive_loop_until_close(pair):
    alice, alice_t, bob, _ = pair
    alice.select("vigenere", "LEMON")
    bob.select("vigenere", "LEMON")
    events = []
    thread = bob.start_receiver(events.append)
    alice.send_message("one")
    alice.send_message("two")
    alice_t.close()
    thread.join(timeout=5)
    assert not thread.is_alive()
    assert [e.text for e in events] == ["one", "two"]

# ── sockets ───────────────────────────────────────────────────────────────────
def test_socket_line_transport():
    left_sock, right_sock = socket.socketpair()
    try:
        left, right = SocketLineTransport(left_sock), SocketLineTransport(right_sock)
        assert left.send("hello")
        assert left.send("ünïcode ✓")
        assert right.next_line() == "hello"
        assert right.next_line() == "ünïcode ✓"
        left_sock.shutdown(socket.SHUT_WR)
        assert right.next_line() is None
    finally:
        left_sock.close()
        right_sock.close()

def test_channel_over_sockets(keys):
    left_sock, right_sock = socket.socketpair()
    try:
        alice_t, bob_t = SocketLineTransport(left_sock), SocketLineTransport(right_sock)
        alice = ChatChannel(alice_t, PeerSession(keys[0]), SETTINGS)
        bob   = ChatChannel(bob_t, PeerSession(keys[1]), SETTINGS)
        alice.open()
        bob.open()
        bob.handle_line(bob_t.next_line())
        alice.handle_line(alice_t.next_line())
        alice.select("rsa")
        alice.send_file("photo.png", "image/png", PHOTO)
        assert bob.handle_line(bob_t.next_line()).data == PHOTO
    finally:
        left_sock.close()
        right_sock.close()

# ── selection snapshots ───────────────────────────────────────────────────────
def test_inbound_uses_selection_made_before_the_line(pair):
    alice, _, bob, bob_t = pair
    alice.select("route", "3")
    bob.select("route", "3")
    alice.send_message("switch after this")
    event = deliver(bob, bob_t)
    bob.select("caesar", "1")
    assert event.text == "switch after this" and event.exception is None
    alice.select("caesar", "1")
    alice.send_message("now caesar")
    assert deliver(bob, bob_t).text == "now caesar"

def test_file_payload_not_base64_is_typed(pair):
    alice, _, bob, bob_t = pair
    alice.select("polybius")
    bob.select("polybius")
    # base64 "ABA=" comes back as "ABA"
    alice.send_file("tiny.bin", "application/octet-stream", b"\x00\x10")
    event = deliver(bob, bob_t)
    assert event.data is None
    assert isinstance(event.exception, DecryptionFailure)
