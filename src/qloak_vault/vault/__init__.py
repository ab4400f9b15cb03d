# Vault Module - Local Credential Vault
#
# Flat-file password storage encrypted under a key derived from the
# gating secret. AES-128 or DES in ECB mode, base64 text on disk.

from .exceptions import (
    CipherError,
    ConfigurationError,
    RecordFormatError,
    UnsupportedCipherError,
    VaultError,
)
from .encryption import CipherChoice, CipherEngine, KeyDeriver
from .credential_store import CredentialRecord, CredentialStore
from .vault_manager import (
    RecordFailure,
    RetrieveResult,
    RetrieveStatus,
    SaveResult,
    SaveStatus,
    VaultService,
)

__all__ = [
    # Errors
    "VaultError",
    "CipherError",
    "UnsupportedCipherError",
    "RecordFormatError",
    "ConfigurationError",
    # Crypto
    "CipherChoice",
    "KeyDeriver",
    "CipherEngine",
    # Storage
    "CredentialRecord",
    "CredentialStore",
    # Workflows
    "VaultService",
    "SaveResult",
    "SaveStatus",
    "RetrieveResult",
    "RetrieveStatus",
    "RecordFailure",
]
