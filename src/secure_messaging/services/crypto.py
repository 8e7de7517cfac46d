# src/secure_messaging/services/crypto.py
"""Cryptographic services for secure messaging.

Payloads are encrypted with a keyed-MAC keystream: HMAC-SHA256 over a random
12-byte nonce yields a 32-byte block that is tiled across the plaintext and
XORed with it. This is not AES-GCM. Integrity comes from a separate
encrypt-then-MAC tag over ``nonce || ciphertext``.
"""

from __future__ import annotations

import base64
import binascii
import secrets
from typing import Final

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, hmac
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey

from secure_messaging.core.errors import CryptoError
from secure_messaging.schemas import Envelope
from secure_messaging.services.key_derivation import key_label

KEY_LENGTH_BYTES: Final[int] = 32
NONCE_LENGTH_BYTES: Final[int] = 12
PUBKEY_LENGTH_BYTES: Final[int] = 32
_TAG_KEY_CONTEXT: Final[bytes] = b"envelope-tag"


def _hmac_sha256(key: bytes, *chunks: bytes) -> bytes:
    mac = hmac.HMAC(key, hashes.SHA256())
    for chunk in chunks:
        mac.update(chunk)
    return mac.finalize()


def _xor_tiled(data: bytes, block: bytes) -> bytes:
    """XOR ``data`` with ``block`` repeated to the same length."""
    if not data:
        return b""
    stream = (block * (len(data) // len(block) + 1))[: len(data)]
    mixed = int.from_bytes(data, "big") ^ int.from_bytes(stream, "big")
    return mixed.to_bytes(len(data), "big")


class CryptoService:
    """Service handling cryptographic operations."""

    @staticmethod
    def _decode_base64(data: str) -> bytes:
        """Decode a URL-safe base64 string, accepting omitted padding."""
        padding = "=" * (-len(data) % 4)
        try:
            return base64.urlsafe_b64decode(data + padding)
        except Exception as err:
            raise ValueError(f"Invalid base64 encoding: {err}") from err

    @staticmethod
    def _decode_hex(data: str) -> bytes:
        try:
            return bytes.fromhex(data)
        except ValueError as err:
            raise ValueError(f"Invalid hex encoding: {err}") from err

    @staticmethod
    def _decode_envelope_field(value: str, field_name: str) -> bytes:
        try:
            return base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError) as err:
            raise CryptoError(f"Failed to decode {field_name}") from err

    @staticmethod
    def _check_key(key: bytes) -> None:
        if len(key) != KEY_LENGTH_BYTES:
            raise CryptoError(f"Invalid key length. Requires {KEY_LENGTH_BYTES} bytes")

    @staticmethod
    def validate_and_decode_pubkey(pubkey_encoded: str) -> bytes:
        """Validate and decode an Ed25519 public key given as base64 or hex."""
        cleaned = pubkey_encoded.strip()
        errors: list[str] = []
        for decoder in (
            CryptoService._decode_base64,
            CryptoService._decode_hex,
        ):
            try:
                result = decoder(cleaned)
            except ValueError as err:
                errors.append(str(err))
                continue
            if len(result) != PUBKEY_LENGTH_BYTES:
                errors.append("Ed25519 public keys must be 32 bytes")
                continue
            try:
                Ed25519PublicKey.from_public_bytes(result)
            except ValueError as err:
                errors.append(str(err))
                continue
            return result
        joined = "; ".join(errors) if errors else "unknown decoding error"
        raise ValueError(f"Invalid public key format: {joined}")

    @staticmethod
    def generate_nonce() -> bytes:
        """Return a fresh 12-byte nonce from the operating system CSPRNG."""
        return secrets.token_bytes(NONCE_LENGTH_BYTES)

    @staticmethod
    def encrypt(plaintext: str | bytes, key: bytes, *, nonce: bytes | None = None) -> Envelope:
        """Encrypt ``plaintext`` under ``key`` and return a tagged envelope.

        Args:
            plaintext: Text (encoded as UTF-8) or raw bytes to protect.
            key: 32-byte conversation key.
            nonce: Optional explicit nonce; a random one is drawn when omitted.

        Raises:
            CryptoError: If the key or nonce has the wrong length.
        """
        CryptoService._check_key(key)
        nonce_bytes = CryptoService.generate_nonce() if nonce is None else nonce
        if len(nonce_bytes) != NONCE_LENGTH_BYTES:
            raise CryptoError("Invalid nonce length")

        data = plaintext.encode("utf-8") if isinstance(plaintext, str) else plaintext
        keystream_block = _hmac_sha256(key, nonce_bytes)
        ciphertext = _xor_tiled(data, keystream_block)
        tag = _hmac_sha256(_hmac_sha256(key, _TAG_KEY_CONTEXT), nonce_bytes, ciphertext)

        return Envelope(
            encrypted_content=base64.b64encode(ciphertext).decode(),
            nonce=base64.b64encode(nonce_bytes).decode(),
            key_id=key_label(key),
            tag=base64.b64encode(tag).decode(),
        )

    @staticmethod
    def decrypt(envelope: Envelope, key: bytes) -> bytes:
        """Verify the tag on ``envelope`` and recover the original bytes.

        Raises:
            CryptoError: On a wrong key length, undecodable fields, a nonce that
                is not 12 bytes, or a tag that is missing or does not verify.
        """
        CryptoService._check_key(key)
        ciphertext = CryptoService._decode_envelope_field(envelope.encrypted_content, "encrypted content")
        nonce_bytes = CryptoService._decode_envelope_field(envelope.nonce, "nonce")
        if len(nonce_bytes) != NONCE_LENGTH_BYTES:
            raise CryptoError("Invalid nonce length")
        if not envelope.tag:
            raise CryptoError("Envelope authentication failed")

        tag = CryptoService._decode_envelope_field(envelope.tag, "tag")
        verifier = hmac.HMAC(_hmac_sha256(key, _TAG_KEY_CONTEXT), hashes.SHA256())
        verifier.update(nonce_bytes)
        verifier.update(ciphertext)
        try:
            verifier.verify(tag)
        except InvalidSignature as err:
            raise CryptoError("Envelope authentication failed") from err

        return _xor_tiled(ciphertext, _hmac_sha256(key, nonce_bytes))

    @staticmethod
    def decrypt_text(envelope: Envelope, key: bytes) -> str:
        """Decrypt ``envelope`` and decode the result as UTF-8 text."""
        plaintext = CryptoService.decrypt(envelope, key)
        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as err:
            raise CryptoError("Failed to convert decrypted data to string") from err
