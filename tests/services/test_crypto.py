# tests/services/test_crypto.py
"""Tests for the keystream cipher and envelope handling."""

import base64
import hashlib
import os

import pytest
from nacl.signing import SigningKey

from secure_messaging.core.errors import CryptoError
from secure_messaging.schemas import Envelope
from secure_messaging.services.crypto import CryptoService
from secure_messaging.services.key_derivation import key_label

KEY = hashlib.sha256(b"conversation key").digest()
OTHER_KEY = hashlib.sha256(b"another key").digest()


@pytest.mark.parametrize(
    "payload",
    [
        b"",
        b"hello",
        b"\x00\xff\xfe\x80" * 40,
        os.urandom(31),
        os.urandom(32),
        os.urandom(33),
        os.urandom(4096),
    ],
)
def test_round_trip_arbitrary_bytes(payload: bytes) -> None:
    envelope = CryptoService.encrypt(payload, KEY)
    assert CryptoService.decrypt(envelope, KEY) == payload


def test_round_trip_text() -> None:
    envelope = CryptoService.encrypt("héllo wörld", KEY)
    assert CryptoService.decrypt_text(envelope, KEY) == "héllo wörld"


def test_envelope_shape() -> None:
    envelope = CryptoService.encrypt("hello", KEY)

    assert len(base64.b64decode(envelope.nonce)) == 12
    assert envelope.key_id == key_label(KEY)
    assert envelope.tag is not None
    assert base64.b64decode(envelope.encrypted_content) != b"hello"


def test_nonces_are_fresh_per_call() -> None:
    first = CryptoService.encrypt("same text", KEY)
    second = CryptoService.encrypt("same text", KEY)

    assert first.nonce != second.nonce
    assert first.encrypted_content != second.encrypted_content


def test_explicit_nonce_is_deterministic() -> None:
    nonce = bytes(12)
    assert CryptoService.encrypt("abc", KEY, nonce=nonce) == CryptoService.encrypt(
        "abc", KEY, nonce=nonce
    )


@pytest.mark.parametrize("bad_key", [b"", b"short", KEY + b"x"])
def test_wrong_key_length_rejected(bad_key: bytes) -> None:
    with pytest.raises(CryptoError):
        CryptoService.encrypt("hello", bad_key)

    envelope = CryptoService.encrypt("hello", KEY)
    with pytest.raises(CryptoError):
        CryptoService.decrypt(envelope, bad_key)


def test_explicit_nonce_of_wrong_length_rejected() -> None:
    with pytest.raises(CryptoError):
        CryptoService.encrypt("hello", KEY, nonce=bytes(8))


def test_tampered_ciphertext_fails_tag_check() -> None:
    envelope = CryptoService.encrypt("transfer 10 credits", KEY)
    ciphertext = bytearray(base64.b64decode(envelope.encrypted_content))
    ciphertext[0] ^= 0x01
    tampered = envelope.model_copy(
        update={"encrypted_content": base64.b64encode(bytes(ciphertext)).decode()}
    )

    with pytest.raises(CryptoError):
        CryptoService.decrypt(tampered, KEY)


def test_wrong_key_fails_tag_check() -> None:
    envelope = CryptoService.encrypt("hello", KEY)
    with pytest.raises(CryptoError):
        CryptoService.decrypt(envelope, OTHER_KEY)


def test_untagged_envelope_rejected() -> None:
    envelope = CryptoService.encrypt("pay 100", KEY)
    ciphertext = bytearray(base64.b64decode(envelope.encrypted_content))
    ciphertext[4] ^= ord("1") ^ ord("9")
    stripped = envelope.model_copy(
        update={"encrypted_content": base64.b64encode(bytes(ciphertext)).decode(), "tag": None}
    )

    with pytest.raises(CryptoError, match="authentication failed"):
        CryptoService.decrypt_text(stripped, KEY)


def test_envelope_json_without_tag_is_malformed() -> None:
    untagged = CryptoService.encrypt("hello", KEY).model_dump_json(exclude={"tag"})

    with pytest.raises(CryptoError, match="Malformed"):
        Envelope.from_json(untagged)


def test_bad_nonce_length_rejected() -> None:
    envelope = CryptoService.encrypt("hello", KEY).model_copy(
        update={"nonce": base64.b64encode(bytes(8)).decode()}
    )
    with pytest.raises(CryptoError):
        CryptoService.decrypt(envelope, KEY)


def test_undecodable_base64_rejected() -> None:
    envelope = CryptoService.encrypt("hello", KEY).model_copy(
        update={"encrypted_content": "***not base64***"}
    )
    with pytest.raises(CryptoError):
        CryptoService.decrypt(envelope, KEY)


def test_decrypt_text_requires_utf8() -> None:
    envelope = CryptoService.encrypt(b"\xff\xfe\xfd", KEY)
    assert CryptoService.decrypt(envelope, KEY) == b"\xff\xfe\xfd"
    with pytest.raises(CryptoError):
        CryptoService.decrypt_text(envelope, KEY)


def test_envelope_json_round_trip_and_malformed_input() -> None:
    envelope = CryptoService.encrypt("hello", KEY)
    assert Envelope.from_json(envelope.to_json()) == envelope

    with pytest.raises(CryptoError):
        Envelope.from_json("plain text, not an envelope")
    with pytest.raises(CryptoError):
        Envelope.from_json('{"nonce": "AAAA"}')


def test_validate_and_decode_pubkey_accepts_base64_and_hex() -> None:
    verify_key = SigningKey.generate().verify_key.encode()
    b64 = base64.urlsafe_b64encode(verify_key).decode().rstrip("=")

    assert CryptoService.validate_and_decode_pubkey(b64) == verify_key
    assert CryptoService.validate_and_decode_pubkey(verify_key.hex()) == verify_key


@pytest.mark.parametrize("encoded", ["not-a-key", "abcd", "00" * 16])
def test_validate_and_decode_pubkey_rejects_malformed(encoded: str) -> None:
    with pytest.raises(ValueError):
        CryptoService.validate_and_decode_pubkey(encoded)
