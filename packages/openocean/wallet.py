"""
Local wallet - the signing account used in place of a browser wallet.
Private keys can be kept in a password-encrypted keyfile.
"""

import base64
import json
import logging
import os
import secrets
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from eth_account import Account
from eth_account.signers.local import LocalAccount

logger = logging.getLogger(__name__)


class WalletEncryption:
    """Handle private key encryption/decryption using Fernet (AES-128-CBC)."""

    SALT_SIZE = 16
    ITERATIONS = 480000  # OWASP recommendation for PBKDF2-SHA256

    @classmethod
    def _derive_key(cls, password: str, salt: bytes) -> bytes:
        """Derive encryption key from password using PBKDF2."""
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=32,
            salt=salt,
            iterations=cls.ITERATIONS,
        )
        return base64.urlsafe_b64encode(kdf.derive(password.encode()))

    @classmethod
    def encrypt(cls, private_key: str, password: str) -> bytes:
        """
        Encrypt a private key with a password.

        Returns:
            salt + Fernet token
        """
        salt = secrets.token_bytes(cls.SALT_SIZE)
        fernet = Fernet(cls._derive_key(password, salt))
        pk_clean = private_key.lower().removeprefix("0x")
        return salt + fernet.encrypt(pk_clean.encode())

    @classmethod
    def decrypt(cls, encrypted_data: bytes, password: str) -> str:
        """
        Decrypt an encrypted private key.

        Returns:
            Private key as hex string (without 0x prefix)

        Raises:
            ValueError: If decryption fails (wrong password)
        """
        salt = encrypted_data[:cls.SALT_SIZE]
        fernet = Fernet(cls._derive_key(password, salt))
        try:
            return fernet.decrypt(encrypted_data[cls.SALT_SIZE:]).decode()
        except InvalidToken as e:
            raise ValueError("Decryption failed. Wrong password?") from e


def save_keyfile(path: str, private_key: str, password: str) -> str:
    """
    Store a private key encrypted on disk.

    Returns:
        Address of the stored account
    """
    account = Account.from_key(_with_prefix(private_key))
    encrypted = WalletEncryption.encrypt(private_key, password)
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    with open(path, "w") as f:
        json.dump({
            "address": account.address,
            "encrypted_key": base64.b64encode(encrypted).decode(),
        }, f, indent=2)
    logger.info("Saved encrypted key for %s to %s", account.address, path)
    return account.address


def load_account(
    private_key: Optional[str] = None,
    keyfile: Optional[str] = None,
    password: Optional[str] = None,
) -> LocalAccount:
    """
    Load the signing account from a raw key or an encrypted keyfile.

    Raises:
        ValueError: No key given, bad key, or wrong keyfile password
    """
    if private_key:
        try:
            return Account.from_key(_with_prefix(private_key))
        except Exception as e:
            raise ValueError(f"Invalid private key: {e}") from e

    if keyfile:
        if not password:
            raise ValueError("Keyfile password required")
        with open(keyfile) as f:
            data = json.load(f)
        key = WalletEncryption.decrypt(base64.b64decode(data["encrypted_key"]), password)
        return Account.from_key(_with_prefix(key))

    raise ValueError("No wallet configured: set PRIVATE_KEY or KEYFILE")


def format_address(address: Optional[str]) -> str:
    """0x1234...abcd"""
    if not address:
        return ""
    return f"{address[:6]}...{address[-4:]}"


def _with_prefix(private_key: str) -> str:
    private_key = private_key.strip()
    return private_key if private_key.startswith("0x") else "0x" + private_key
