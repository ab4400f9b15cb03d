# Qloak Vault - Main Package
#
# Local, single-user credential vault: passwords are encrypted under a key
# derived from the gating secret and stored one per line in a flat file.

__version__ = "0.1.0"
__author__ = "Qloak Team"
__description__ = "Local single-user credential vault"

from .vault import (
    CipherChoice,
    VaultService,
    SaveStatus,
    RetrieveStatus,
)
from .core import (
    VaultConfig,
    EventType,
    EventSeverity,
    get_audit_logger,
)

__all__ = [
    "__version__",
    "CipherChoice",
    "VaultService",
    "VaultConfig",
    "SaveStatus",
    "RetrieveStatus",
    "EventType",
    "EventSeverity",
    "get_audit_logger",
]
