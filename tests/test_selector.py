"""
chatcrypt — algorithm selection and key validation
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from chatcrypt.ciphers  import (AffineCipher, CaesarCipher, ColumnarTranspositionCipher,
                                HillCipher, LibraryAESCipher, ManualAES, ManualDES,
                                PolybiusCipher, RSACipher)
from chatcrypt.config   import Settings
from chatcrypt.handshake import PeerSession
from chatcrypt.selector import FACTORIES, Algorithm, CipherSelector, build_cipher
from chatcrypt.errors   import KeyFormatError, PeerKeyUnavailable, UninvertibleKeyError

SETTINGS = Settings()


@pytest.fixture(scope="module")
def ready_session():
    alice = PeerSession()
    bob   = RSACipher.generate_keypair()
    alice.accept_handshake_line("RSA_PUBKEY:" + bob.export_public_base64())
    return alice


# ── Algorithm names ───────────────────────────────────────────────────────────
def test_every_algorithm_has_a_factory():
    assert set(FACTORIES) == set(Algorithm)

@pytest.mark.parametrize("name, expected", [
    ("caesar",       Algorithm.CAESAR),
    ("CAESAR",       Algorithm.CAESAR),
    (" Hill ",       Algorithm.HILL),
    ("library-aes",  Algorithm.LIBRARY_AES),
    ("LIBRARY_DES",  Algorithm.LIBRARY_DES),
    (Algorithm.RSA,  Algorithm.RSA),
])
def test_algorithm_parse(name, expected):
    assert Algorithm.parse(name) is expected

def test_algorithm_parse_unknown():
    with pytest.raises(KeyFormatError):
        Algorithm.parse("rot13")

# ── build_cipher ──────────────────────────────────────────────────────────────
@pytest.mark.parametrize("algo, key, cls", [
    ("caesar",      " 3 ",        CaesarCipher),
    ("affine",      "5, 8",       AffineCipher),
    ("polybius",    "ignored",    PolybiusCipher),
    ("columnar",    "ZEBRA",      ColumnarTranspositionCipher),
    ("hill",        "GYBNQKURP",  HillCipher),
    ("aes",         "",           ManualAES),
    ("des",         "key",        ManualDES),
    ("library-aes", "key",        LibraryAESCipher),
])
def test_build_cipher_types(algo, key, cls):
    assert isinstance(build_cipher(algo, key, settings=SETTINGS), cls)

@pytest.mark.parametrize("algo, key", [
    ("caesar",       "abc"),
    ("caesar",       ""),
    ("affine",       "5"),
    ("affine",       "5,x"),
    ("gcd",          "1,2,3"),
    ("substitution", "ABC"),
    ("substitution", "AACDEFGHIJKLMNOPQRSTUVWXYZ"),
    ("vigenere",     "123"),
    ("route",        "0"),
    ("route",        "-2"),
    ("route",        "four"),
    ("columnar",     "   "),
    ("hill",         "ABCDE"),
    ("hill",         "AB1"),
])
def test_build_cipher_rejects_bad_keys(algo, key):
    with pytest.raises(KeyFormatError):
        build_cipher(algo, key, settings=SETTINGS)

@pytest.mark.parametrize("algo, key", [("affine", "13,2"), ("affine", "2,0"), ("hill", "2 4 6 8")])
def test_build_cipher_uninvertible(algo, key):
    with pytest.raises(UninvertibleKeyError):
        build_cipher(algo, key, settings=SETTINGS)

def test_block_keys_use_configured_fallback():
    s = Settings(aes_default_key="CONFIGURED_AES_K", des_default_key="CFG_DES!")
    assert build_cipher("aes", "", settings=s).key == b"CONFIGURED_AES_K"
    assert build_cipher("des", "  ", settings=s).key == b"CFG_DES!"

def test_hill_and_columnar_use_configured_filler():
    s = Settings(filler="Q")
    assert build_cipher("columnar", "ABC", settings=s).encrypt("HELLO") == "HLEOLQ"

def test_rsa_without_session():
    with pytest.raises(PeerKeyUnavailable):
        build_cipher("rsa", settings=SETTINGS)

def test_rsa_before_handshake():
    with pytest.raises(PeerKeyUnavailable):
        build_cipher("rsa", session=PeerSession(), settings=SETTINGS)

def test_rsa_after_handshake(ready_session):
    cipher = build_cipher("rsa", session=ready_session, settings=SETTINGS)
    assert cipher is ready_session.encrypt_instance

# ── CipherSelector ────────────────────────────────────────────────────────────
def test_selector_success():
    sel = CipherSelector(settings=SETTINGS)
    result = sel.select("vigenere", "LEMON")
    assert result.ok and result.error is None
    assert sel.algorithm is Algorithm.VIGENERE
    assert sel.active.encrypt("ATTACKATDAWN") == "LXFOPVEFRNHR"

def test_selector_failure_clears_active():
    sel = CipherSelector(settings=SETTINGS)
    assert sel.select("caesar", "3").ok
    result = sel.select("caesar", "three")
    assert not result.ok
    assert isinstance(result.exception, KeyFormatError)
    assert result.error.startswith("Invalid key for caesar:")
    assert sel.active is None and sel.algorithm is None

def test_selector_unknown_algorithm():
    sel = CipherSelector(settings=SETTINGS)
    result = sel.select("enigma", "")
    assert not result.ok
    assert isinstance(result.exception, KeyFormatError)
    assert "enigma" in result.error

def test_selector_rsa_waits_for_handshake(ready_session):
    waiting = CipherSelector(PeerSession(), settings=SETTINGS)
    result = waiting.select(Algorithm.RSA)
    assert not result.ok
    assert isinstance(result.exception, PeerKeyUnavailable)
    assert not result.error.startswith("Invalid key")
    assert waiting.active is None
    ready = CipherSelector(ready_session, settings=SETTINGS)
    assert ready.select(Algorithm.RSA).ok

def test_selector_clear():
    sel = CipherSelector(settings=SETTINGS)
    sel.select("route", "4")
    sel.clear()
    assert sel.active is None

def test_selector_uninvertible_key_is_typed():
    sel = CipherSelector(settings=SETTINGS)
    result = sel.select("affine", "13,2")
    assert isinstance(result.exception, UninvertibleKeyError)
    assert result.error.startswith("Invalid key for affine:")

def test_selection_swapped_as_one_object():
    sel = CipherSelector(settings=SETTINGS)
    chosen = sel.select("columnar", "ZEBRA")
    assert sel.current is chosen
    assert (sel.current.algorithm, sel.current.cipher) == (Algorithm.COLUMNAR, chosen.cipher)
    sel.select("columnar", "")
    assert sel.current.algorithm is None and sel.current.cipher is None

def test_selected_route_key_far_longer_than_message():
    sel = CipherSelector(settings=SETTINGS)
    assert sel.select("route", str(10**9)).ok
    assert sel.active.decrypt(sel.active.encrypt("hi")) == "hi"
