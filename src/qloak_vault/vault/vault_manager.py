# Vault Manager - Save and Retrieve Workflows
#
# Save:     pairs -> key derivation -> cipher -> one atomic file write
# Retrieve: file -> records -> (gating check) -> cipher -> plaintext
#
# Every error is recovered here and turned into a result object. Result
# messages and audit events carry no key material and no plaintext.

import logging
import secrets
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Callable, List, Optional, Sequence, Tuple, Union

from ..core.audit_log import AuditLogger, EventSeverity, EventType, get_audit_logger
from .credential_store import CredentialRecord, CredentialStore, PathLike
from .encryption import CipherChoice, CipherEngine, KeyDeriver
from .exceptions import CipherError, RecordFormatError, UnsupportedCipherError

if TYPE_CHECKING:
    from ..core.config import VaultConfig

logger = logging.getLogger(__name__)


class SaveStatus(str, Enum):
    SAVED = "saved"
    FAILED = "failed"


class RetrieveStatus(str, Enum):
    DISPLAYED_ENCRYPTED_ONLY = "displayed_encrypted_only"
    DISPLAYED_DECRYPTED = "displayed_decrypted"
    GATING_FAILED = "gating_failed"
    FAILED = "failed"


@dataclass
class SaveResult:
    """Outcome of a save call."""
    status: SaveStatus
    message: str
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is SaveStatus.SAVED


@dataclass
class RecordFailure:
    """A record whose ciphertext could not be decrypted."""
    username: str
    reason: str


@dataclass
class RetrieveResult:
    """
    Outcome of a retrieve call.

    `encrypted` is filled whenever the file was read; `decrypted` only
    when the gating secret matched.
    """
    status: RetrieveStatus
    message: str
    encrypted: List[Tuple[str, str]] = field(default_factory=list)
    decrypted: List[Tuple[str, str]] = field(default_factory=list)
    failures: List[RecordFailure] = field(default_factory=list)
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status in (
            RetrieveStatus.DISPLAYED_ENCRYPTED_ONLY,
            RetrieveStatus.DISPLAYED_DECRYPTED,
        )


def describe_os_error(error: OSError) -> str:
    """High-level reason for a file error (no paths, no errno noise)."""
    if isinstance(error, FileNotFoundError):
        return "file not found"
    if isinstance(error, PermissionError):
        return "permission denied"
    if isinstance(error, IsADirectoryError):
        return "path is a directory"
    return "file could not be accessed"


class VaultService:
    """
    Orchestrates saving and retrieving credentials.

    Security:
    - Gating secret is injected through VaultConfig, never hard-coded
    - Candidate secrets are compared in constant time
    - Keys are derived per call and never cached
    - Plaintext is only produced after a successful gating check

    Args:
        config: Vault settings (gating secret, default cipher)
        store: Credential store (default: CredentialStore())
        output: Receives one display line at a time (default: print).
                Pass None to suppress display.
    """

    def __init__(
        self,
        config: "VaultConfig",
        store: Optional[CredentialStore] = None,
        output: Optional[Callable[[str], None]] = print,
    ):
        self.config = config
        self.store = store or CredentialStore()
        self.output = output
        if config.audit_log_dir is not None:
            self.audit = AuditLogger(log_dir=config.audit_log_dir)
        else:
            self.audit = get_audit_logger()

    def _emit(self, line: str) -> None:
        if self.output is not None:
            self.output(line)

    def _check_gating_secret(self, candidate: str) -> bool:
        # Constant-time comparison to prevent timing attacks. A candidate
        # with lone surrogates still encodes and simply never matches.
        return secrets.compare_digest(
            candidate.encode("utf-8", errors="surrogatepass"),
            self.config.gating_secret.encode("utf-8"),
        )

    def save(
        self,
        credentials: Sequence[Tuple[str, str]],
        path: PathLike,
        cipher: Union[str, CipherChoice, None] = None,
    ) -> SaveResult:
        """
        Encrypt every password and write the vault file.

        Args:
            credentials: Ordered (username, password) pairs
            path: Target vault file (overwritten)
            cipher: "AES" or "DES" (default: config.default_cipher)

        Returns:
            SaveResult with status SAVED or FAILED
        """
        try:
            choice = CipherChoice.parse(
                cipher if cipher is not None else self.config.default_cipher
            )
            key = KeyDeriver.derive(self.config.gating_secret, choice)

            records = [
                CredentialRecord(
                    username=username,
                    secret=CipherEngine.encrypt_text(password, key, choice),
                )
                for username, password in credentials
            ]

            self.store.write(records, path)

        except UnsupportedCipherError as e:
            return self._save_failed(str(e), path)
        except CipherError as e:
            return self._save_failed(f"encryption failed: {e}", path)
        except RecordFormatError as e:
            return self._save_failed(f"invalid record: {e}", path)
        except OSError as e:
            return self._save_failed(describe_os_error(e), path)
        except ValueError:
            return self._save_failed("invalid path", path)

        self.audit.log_vault_event(
            EventType.VAULT_SAVED,
            f"Saved {len(records)} credential(s)",
            details={"path": str(path), "cipher": choice.value, "count": len(records)},
        )
        self._emit("Credentials saved successfully!")
        return SaveResult(status=SaveStatus.SAVED, message="Credentials saved successfully!")

    def _save_failed(self, reason: str, path: PathLike) -> SaveResult:
        self.audit.log_vault_event(
            EventType.VAULT_SAVE_FAILED,
            f"Save failed: {reason}",
            details={"path": str(path)},
            severity=EventSeverity.CRITICAL,
        )
        message = f"Error: {reason}"
        self._emit(message)
        return SaveResult(status=SaveStatus.FAILED, message=message, reason=reason)

    def retrieve(
        self,
        path: PathLike,
        cipher: Union[str, CipherChoice, None] = None,
        candidate_secret: Optional[str] = None,
    ) -> RetrieveResult:
        """
        Read a vault file, display its ciphertext and optionally decrypt it.

        Args:
            path: Vault file to read
            cipher: Cipher the file was saved with (default: config.default_cipher)
            candidate_secret: Gating secret offered by the caller; None skips
                              decryption entirely

        Returns:
            RetrieveResult in one of the RetrieveStatus terminal states.
            A record that fails to decrypt is reported in `failures` and
            the remaining records are still decrypted.
        """
        try:
            choice = CipherChoice.parse(
                cipher if cipher is not None else self.config.default_cipher
            )
            records = self.store.read(path)
        except UnsupportedCipherError as e:
            return self._retrieve_failed(str(e), path)
        except OSError as e:
            return self._retrieve_failed(describe_os_error(e), path)
        except UnicodeDecodeError:
            return self._retrieve_failed("file is not a text vault", path)
        except ValueError:
            return self._retrieve_failed("invalid path", path)

        encrypted = [(record.username, record.secret) for record in records]

        self._emit("Stored Credentials:")
        for username, ciphertext in encrypted:
            self._emit(f"{username}:{ciphertext}")

        self.audit.log_vault_event(
            EventType.VAULT_RETRIEVED,
            f"Read {len(records)} credential(s)",
            details={"path": str(path), "cipher": choice.value, "count": len(records)},
        )

        if candidate_secret is None:
            return RetrieveResult(
                status=RetrieveStatus.DISPLAYED_ENCRYPTED_ONLY,
                message="Encrypted credentials displayed",
                encrypted=encrypted,
            )

        if not self._check_gating_secret(candidate_secret):
            self.audit.log_vault_event(
                EventType.VAULT_GATING_FAILED,
                "Incorrect gating secret",
                details={"path": str(path)},
                severity=EventSeverity.ALERT,
            )
            self._emit("Incorrect master password!")
            return RetrieveResult(
                status=RetrieveStatus.GATING_FAILED,
                message="Incorrect master password!",
                encrypted=encrypted,
                reason="gating secret mismatch",
            )

        key = KeyDeriver.derive(self.config.gating_secret, choice)

        decrypted: List[Tuple[str, str]] = []
        failures: List[RecordFailure] = []

        self._emit("Decrypted Passwords:")
        for record in records:
            try:
                plaintext = CipherEngine.decrypt_text(record.secret, key, choice)
            except CipherError as e:
                failures.append(RecordFailure(username=record.username, reason=str(e)))
                self._emit(f"{record.username}: <decryption failed: {e}>")
                continue

            decrypted.append((record.username, plaintext))
            self._emit(f"{record.username}: {plaintext}")

        if failures:
            logger.warning("%d record(s) could not be decrypted", len(failures))
            self.audit.log_vault_event(
                EventType.VAULT_RECORD_DECRYPT_FAILED,
                f"{len(failures)} record(s) could not be decrypted",
                details={
                    "path": str(path),
                    "cipher": choice.value,
                    "usernames": [failure.username for failure in failures],
                },
                severity=EventSeverity.INVESTIGATE,
            )

        self.audit.log_vault_event(
            EventType.VAULT_DECRYPTED,
            f"Decrypted {len(decrypted)} credential(s)",
            details={"path": str(path), "cipher": choice.value, "count": len(decrypted)},
        )

        return RetrieveResult(
            status=RetrieveStatus.DISPLAYED_DECRYPTED,
            message="Decrypted credentials displayed",
            encrypted=encrypted,
            decrypted=decrypted,
            failures=failures,
        )

    def _retrieve_failed(self, reason: str, path: PathLike) -> RetrieveResult:
        self.audit.log_vault_event(
            EventType.VAULT_ERROR,
            f"Retrieve failed: {reason}",
            details={"path": str(path)},
            severity=EventSeverity.CRITICAL,
        )
        message = f"Error: {reason}"
        self._emit(message)
        return RetrieveResult(status=RetrieveStatus.FAILED, message=message, reason=reason)
