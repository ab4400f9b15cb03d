"""
Vault Exception Classes
"""


class VaultError(Exception):
    """Base exception for vault operations"""
    pass


class CipherError(VaultError):
    """Raised when a password cannot be encrypted or decrypted"""
    pass


class UnsupportedCipherError(CipherError):
    """Raised when the cipher selection is neither AES nor DES"""
    pass


class RecordFormatError(VaultError):
    """Raised when a credential record cannot be written as a vault line"""
    pass


class ConfigurationError(VaultError):
    """Raised when vault configuration is missing or invalid"""
    pass
