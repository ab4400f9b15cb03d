# Vault - Encryption Service
#
# Gating secret -> symmetric key (SHA-1 digest, truncated)
# Password encryption (AES-128 or DES, ECB mode, PKCS#7 padding)
# Base64 text encoding for the flat vault file
#
# Known weaknesses of this scheme (kept for on-disk compatibility):
# no salt or work factor in key derivation, no IV in ECB mode.

import base64
import binascii
from enum import Enum
from typing import Dict, Union

from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.decrepit.ciphers.algorithms import TripleDES
from cryptography.hazmat.primitives import hashes, padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from .exceptions import CipherError, UnsupportedCipherError


class CipherChoice(str, Enum):
    """
    Symmetric algorithm used for every password in a vault file.

    The choice fixes both the block transform and the derived key length.
    """
    AES = "AES"
    DES = "DES"

    @classmethod
    def parse(cls, value: Union[str, "CipherChoice"]) -> "CipherChoice":
        """
        Normalize a cipher selection string ("aes", " DES ") to a CipherChoice.

        Raises:
            UnsupportedCipherError: If the selection is not AES or DES
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise UnsupportedCipherError(f"unsupported cipher: {value!r}")

        normalized = value.strip().upper()
        try:
            return cls(normalized)
        except ValueError:
            raise UnsupportedCipherError(f"unsupported cipher: {normalized}") from None

    @property
    def key_length(self) -> int:
        """Derived key length in bytes (16 for AES-128, 8 for DES)."""
        return KEY_LENGTHS[self]

    @property
    def block_size(self) -> int:
        """Block size in bits, used for PKCS#7 padding."""
        return BLOCK_SIZES[self]


KEY_LENGTHS: Dict[CipherChoice, int] = {
    CipherChoice.AES: 16,
    CipherChoice.DES: 8,
}

BLOCK_SIZES: Dict[CipherChoice, int] = {
    CipherChoice.AES: 128,
    CipherChoice.DES: 64,
}


class KeyDeriver:
    """
    Turns the gating secret into a fixed-length symmetric key.

    Flow:
    1. SHA-1 digest of the secret's UTF-8 bytes (20 bytes)
    2. Truncate to the cipher's key length

    Deterministic: the same (secret, cipher) pair always yields the same key.
    """

    @staticmethod
    def derive(secret: str, cipher: Union[str, CipherChoice]) -> bytes:
        """
        Derive the symmetric key for `cipher` from `secret`.

        Args:
            secret: Gating secret
            cipher: AES or DES (strings are normalized)

        Returns:
            16-byte (AES) or 8-byte (DES) key

        Raises:
            UnsupportedCipherError: If cipher is not AES or DES
        """
        choice = CipherChoice.parse(cipher)

        digest = hashes.Hash(hashes.SHA1(), backend=default_backend())
        digest.update(secret.encode("utf-8"))
        key_bytes = digest.finalize()

        return key_bytes[:choice.key_length]


class CipherEngine:
    """
    Encrypts/decrypts single passwords under a derived key.

    Ciphertext leaves this class as base64 text so it can be embedded
    in a `username:ciphertext` vault line.
    """

    @staticmethod
    def _build_cipher(key: bytes, choice: CipherChoice) -> Cipher:
        if len(key) != choice.key_length:
            raise CipherError(
                f"{choice.value} requires a {choice.key_length}-byte key"
            )

        if choice is CipherChoice.AES:
            algorithm = algorithms.AES(key)
        else:
            # K1 = K2 = K3 reduces TripleDES to plain DES
            algorithm = TripleDES(key * 3)

        return Cipher(algorithm, modes.ECB(), backend=default_backend())

    @staticmethod
    def encrypt(plaintext: bytes, key: bytes, cipher: Union[str, CipherChoice]) -> str:
        """
        Encrypt plaintext bytes and return base64 ciphertext text.

        Raises:
            UnsupportedCipherError: Unknown cipher
            CipherError: Key has the wrong length for the cipher
        """
        choice = CipherChoice.parse(cipher)
        engine = CipherEngine._build_cipher(key, choice)

        padder = padding.PKCS7(choice.block_size).padder()
        padded = padder.update(plaintext) + padder.finalize()

        encryptor = engine.encryptor()
        ciphertext = encryptor.update(padded) + encryptor.finalize()

        return base64.b64encode(ciphertext).decode("ascii")

    @staticmethod
    def decrypt(ciphertext: str, key: bytes, cipher: Union[str, CipherChoice]) -> bytes:
        """
        Decode base64 ciphertext text and invert the cipher.

        Raises:
            UnsupportedCipherError: Unknown cipher
            CipherError: Invalid base64, bad block length, bad padding
                         (corrupted data or wrong key)
        """
        choice = CipherChoice.parse(cipher)
        engine = CipherEngine._build_cipher(key, choice)

        try:
            raw = base64.b64decode(ciphertext.encode("ascii"), validate=True)
        except (binascii.Error, UnicodeEncodeError) as e:
            raise CipherError("ciphertext is not valid base64") from e

        try:
            decryptor = engine.decryptor()
            padded = decryptor.update(raw) + decryptor.finalize()

            unpadder = padding.PKCS7(choice.block_size).unpadder()
            return unpadder.update(padded) + unpadder.finalize()
        except ValueError as e:
            # Wrong key and corrupted ciphertext look the same here
            raise CipherError("ciphertext could not be decrypted") from e

    @staticmethod
    def encrypt_text(plaintext: str, key: bytes, cipher: Union[str, CipherChoice]) -> str:
        """Encrypt a password string (UTF-8); unencodable text is a CipherError."""
        try:
            plaintext_bytes = plaintext.encode("utf-8")
        except UnicodeEncodeError as e:
            raise CipherError("password is not valid text") from e
        return CipherEngine.encrypt(plaintext_bytes, key, cipher)

    @staticmethod
    def decrypt_text(ciphertext: str, key: bytes, cipher: Union[str, CipherChoice]) -> str:
        """Decrypt to a password string; undecodable bytes are a CipherError."""
        plaintext_bytes = CipherEngine.decrypt(ciphertext, key, cipher)
        try:
            return plaintext_bytes.decode("utf-8")
        except UnicodeDecodeError as e:
            raise CipherError("decrypted data is not valid text") from e
