"""
Shared pytest fixtures for the Qloak Vault test suite.

Autouse fixtures below isolate tests from the live environment:
  - Audit logger -> temp directory  (prevents test events in ./audit_logs)
  - Environment  -> no QLOAK_* variables leak in from the shell
"""

import pytest

from qloak_vault.core.config import (
    ENV_AUDIT_LOG_DIR,
    ENV_DEFAULT_CIPHER,
    ENV_GATING_SECRET,
    VaultConfig,
)

GATING_SECRET = "secret123"


@pytest.fixture(autouse=True)
def _isolate_audit_logs(tmp_path, monkeypatch):
    """Redirect the global AuditLogger to a temp directory for every test.

    Without this, any test that (directly or indirectly) calls
    ``get_audit_logger().log_event(...)`` writes into the real
    ``./audit_logs/`` directory.
    """
    import qloak_vault.core.audit_log as audit_mod

    # Reset the singleton so the next call to get_audit_logger() creates
    # a fresh instance pointing at the temp directory.
    old_logger = audit_mod._audit_logger
    audit_mod._audit_logger = None

    orig_init = audit_mod.AuditLogger.__init__

    def patched_init(self, log_dir=None):
        orig_init(self, log_dir=log_dir or tmp_path / "audit_logs")

    monkeypatch.setattr(audit_mod.AuditLogger, "__init__", patched_init)

    yield

    if audit_mod._audit_logger is not None:
        audit_mod._audit_logger.close()
    audit_mod._audit_logger = old_logger


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch):
    """Drop QLOAK_* variables so config tests see a clean environment."""
    for name in (ENV_GATING_SECRET, ENV_DEFAULT_CIPHER, ENV_AUDIT_LOG_DIR):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config():
    return VaultConfig(gating_secret=GATING_SECRET)


@pytest.fixture
def audit_log_file(tmp_path):
    """Path of today's audit log inside the isolated audit directory."""
    from qloak_vault.core.audit_log import get_audit_logger

    return get_audit_logger().log_file
