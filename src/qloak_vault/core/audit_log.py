# Vault - Audit Logging
#
# Structured, append-only audit log for every vault operation.
# Events never carry passwords, ciphertext or key bytes: only paths,
# cipher names, counts and the usernames of records that failed.

import logging
import os
import socket
import sys
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional
from uuid import NAMESPACE_URL, uuid4, uuid5

import structlog


class EventType(str, Enum):
    """Types of vault events that can be logged."""
    VAULT_SAVED = "vault.saved"
    VAULT_SAVE_FAILED = "vault.save.failed"
    VAULT_RETRIEVED = "vault.retrieved"
    VAULT_GATING_FAILED = "vault.gating.failed"
    VAULT_DECRYPTED = "vault.decrypted"
    VAULT_RECORD_DECRYPT_FAILED = "vault.record.decrypt_failed"
    VAULT_ERROR = "vault.error"


class EventSeverity(str, Enum):
    """
    Severity levels for vault events.

    - INFO: Normal activity (logged only)
    - INVESTIGATE: Something unusual, e.g. an unreadable record
    - ALERT: Access denied
    - CRITICAL: Operation failed
    """
    INFO = "info"
    INVESTIGATE = "investigate"
    ALERT = "alert"
    CRITICAL = "critical"


class AuditLogger:
    """
    Append-only audit logger for vault events.

    Features:
    - Structured JSON logging (structlog over stdlib logging)
    - Automatic UTC timestamp and event ID
    - OS user and host context
    - One log file per day
    """

    LOGGER_PREFIX = "qloak_vault.audit"

    def __init__(self, log_dir: Optional[Path] = None):
        """
        Initialize audit logger.

        Args:
            log_dir: Directory for audit logs (default: ./audit_logs)
        """
        self.log_dir = Path(log_dir) if log_dir else Path("./audit_logs")
        self.log_dir.mkdir(parents=True, exist_ok=True)

        structlog.configure(
            processors=[
                structlog.stdlib.add_log_level,
                structlog.stdlib.add_logger_name,
                structlog.processors.TimeStamper(fmt="iso", utc=True),
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer()
            ],
            wrapper_class=structlog.stdlib.BoundLogger,
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )

        self.log_file = self._setup_file_handler()

        self.logger = structlog.get_logger(self.logger_name)

    def _setup_file_handler(self) -> Path:
        """
        Attach a file handler for today's log to this directory's logger.

        Each log file gets its own stdlib logger that does not propagate,
        so two AuditLoggers with different directories never share a sink.
        Loggers for the same file reuse its existing handler.
        """
        today = datetime.now().strftime("%Y-%m-%d")
        log_file = self.log_dir / f"audit_{today}.log"
        log_path = os.path.abspath(log_file)

        self.logger_name = f"{self.LOGGER_PREFIX}.{uuid5(NAMESPACE_URL, log_path).hex[:12]}"
        stdlib_logger = logging.getLogger(self.logger_name)
        stdlib_logger.setLevel(logging.INFO)
        stdlib_logger.propagate = False

        for handler in stdlib_logger.handlers:
            if getattr(handler, "baseFilename", None) == log_path:
                return log_file

        file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(logging.Formatter('%(message)s'))  # structlog handles formatting

        stdlib_logger.addHandler(file_handler)
        return log_file

    def close(self) -> None:
        """Detach and close the file handlers of this log file's logger."""
        stdlib_logger = logging.getLogger(self.logger_name)
        for handler in list(stdlib_logger.handlers):
            stdlib_logger.removeHandler(handler)
            handler.close()

    def log_event(
        self,
        event_type: EventType,
        severity: EventSeverity,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        user_context: Optional[Dict[str, Any]] = None
    ) -> str:
        """
        Log a vault event.

        Args:
            event_type: Type of event (from EventType enum)
            severity: Severity level (from EventSeverity enum)
            message: Human-readable event description
            details: Additional event details (never secret material)
            user_context: User context (defaults to OS user and hostname)

        Returns:
            str: Event ID (UUID) for reference
        """
        event_id = str(uuid4())

        event_data = {
            "event_id": event_id,
            "event_type": event_type.value,
            "severity": severity.value,
            "message": message,
            "details": details or {},
            "user_context": user_context or self._get_default_user_context(),
        }

        self.logger.info("vault_event", **event_data)

        return event_id

    def log_vault_event(
        self,
        event_type: EventType,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        severity: EventSeverity = EventSeverity.INFO
    ) -> str:
        """Log a vault event with a "Vault: " message prefix."""
        return self.log_event(
            event_type=event_type,
            severity=severity,
            message=f"Vault: {message}",
            details=details
        )

    def _get_default_user_context(self) -> Dict[str, Any]:
        """Get default user context (OS user, hostname, etc.)."""
        return {
            "os_user": os.getenv("USERNAME") or os.getenv("USER"),
            "hostname": socket.gethostname(),
            "platform": sys.platform,
        }


# Global logger instance
_audit_logger: Optional[AuditLogger] = None


def get_audit_logger() -> AuditLogger:
    """Get global audit logger (singleton pattern)."""
    global _audit_logger
    if _audit_logger is None:
        _audit_logger = AuditLogger()
    return _audit_logger


def configure_audit_logger(log_dir: Optional[Path] = None) -> AuditLogger:
    """Replace the global audit logger with one writing to `log_dir`."""
    global _audit_logger
    _audit_logger = AuditLogger(log_dir=log_dir)
    return _audit_logger


def log_security_event(
    event_type: EventType,
    severity: EventSeverity,
    message: str,
    **kwargs
) -> str:
    """
    Convenience function for logging vault events.

    Usage:
        log_security_event(
            EventType.VAULT_GATING_FAILED,
            EventSeverity.ALERT,
            "Incorrect gating secret",
            details={"path": "/home/me/vault.txt"}
        )
    """
    return get_audit_logger().log_event(event_type, severity, message, **kwargs)
