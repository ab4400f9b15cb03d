# Vault Configuration
#
# The gating secret is injected at startup, never compiled in.
# VaultConfig.from_env() is the startup helper that reads it from the
# environment (optionally seeded from a .env file).

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from dotenv import load_dotenv

from ..vault.encryption import CipherChoice
from ..vault.exceptions import ConfigurationError

ENV_GATING_SECRET = "QLOAK_GATING_SECRET"
ENV_DEFAULT_CIPHER = "QLOAK_DEFAULT_CIPHER"
ENV_AUDIT_LOG_DIR = "QLOAK_AUDIT_LOG_DIR"


@dataclass(frozen=True)
class VaultConfig:
    """Settings shared by every VaultService call.

    Args:
        gating_secret: Secret that unlocks plaintext display (kept out of repr)
        default_cipher: Cipher used when the caller does not pick one
        audit_log_dir: Directory for audit logs (None = logger default)
    """
    gating_secret: str = field(repr=False)
    default_cipher: CipherChoice = CipherChoice.AES
    audit_log_dir: Optional[Path] = None

    def __post_init__(self):
        if not self.gating_secret:
            raise ConfigurationError("gating secret must not be empty")
        try:
            self.gating_secret.encode("utf-8")
        except UnicodeEncodeError:
            raise ConfigurationError("gating secret is not valid text") from None

    @classmethod
    def from_env(cls, env_file: Optional[Union[str, Path]] = None) -> "VaultConfig":
        """
        Build a config from environment variables.

        Variables already set in the environment win over the .env file.

        Raises:
            ConfigurationError: QLOAK_GATING_SECRET missing or empty
            UnsupportedCipherError: QLOAK_DEFAULT_CIPHER is not AES or DES
        """
        load_dotenv(dotenv_path=env_file, override=False)

        secret = os.environ.get(ENV_GATING_SECRET, "")
        if not secret:
            raise ConfigurationError(
                f"Environment variable '{ENV_GATING_SECRET}' is not set"
            )

        cipher_name = os.environ.get(ENV_DEFAULT_CIPHER)
        default_cipher = CipherChoice.parse(cipher_name) if cipher_name else CipherChoice.AES

        log_dir = os.environ.get(ENV_AUDIT_LOG_DIR)

        return cls(
            gating_secret=secret,
            default_cipher=default_cipher,
            audit_log_dir=Path(log_dir) if log_dir else None,
        )
