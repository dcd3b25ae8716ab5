"""
Password fields: reversible AES-256-GCM encryption for stored secrets, and a
one-way hash for login comparisons.

The key is always handed in by the caller (see Settings.secret_key); this module
never looks at the environment.
"""
from __future__ import annotations

import base64
import hashlib
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

NONCE_SIZE = 12


def derive_key(secret_key: str) -> bytes:
    """
    Derive a 32-byte key.

    Args:
        secret_key: 64-char hex string, 44-char base64 string, or any passphrase
    """
    if len(secret_key) == 64:
        try:
            return bytes.fromhex(secret_key)
        except ValueError:
            pass
    if len(secret_key) == 44:
        try:
            key = base64.b64decode(secret_key, validate=True)
            if len(key) == 32:
                return key
        except ValueError:
            pass
    return hashlib.sha256(secret_key.encode("utf-8")).digest()


def hash_password(password: str) -> str:
    """
    Unsalted SHA-256 hex digest, kept only so the legacy login check can compare
    against the ``PasswordHash`` values already stored. Do not use it to store new
    credentials; it offers no salt and no work factor.
    """
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


def generate_secret_key() -> str:
    return os.urandom(32).hex()


class PasswordCipher:
    def __init__(self, secret_key: str):
        if not secret_key:
            raise ValueError("secret_key is required")
        self.aesgcm = AESGCM(derive_key(secret_key))

    def encrypt_password(self, password: str) -> str:
        nonce = os.urandom(NONCE_SIZE)
        ciphertext = self.aesgcm.encrypt(nonce, password.encode("utf-8"), None)
        return base64.b64encode(nonce + ciphertext).decode("ascii")

    def decrypt_password(self, token: str) -> str:
        """
        Raises:
            ValueError: wrong key, tampered or malformed data
        """
        try:
            blob = base64.b64decode(token, validate=True)
        except ValueError as e:
            raise ValueError(f"Decryption failed: {e}")
        if len(blob) <= NONCE_SIZE:
            raise ValueError("Decryption failed: value too short")
        try:
            plain = self.aesgcm.decrypt(blob[:NONCE_SIZE], blob[NONCE_SIZE:], None)
        except InvalidTag:
            raise ValueError("Decryption failed: invalid key or tampered data")
        return plain.decode("utf-8")
