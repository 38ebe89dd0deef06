"""
Logging configuration for keytree.

Provides structured JSON logging and an audit logger for verification
decisions.
"""

import json
import logging
import sys
import time
import uuid
from contextvars import ContextVar
from typing import Any, Dict, List, Optional

# Context variable for correlating all log lines of one lookup
lookup_id_var: ContextVar[str] = ContextVar('lookup_id', default='')


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    One JSON object per line, suitable for log aggregation.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": time.strftime('%Y-%m-%dT%H:%M:%SZ', time.gmtime(record.created)),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        lookup_id = lookup_id_var.get()
        if lookup_id:
            log_data["lookup_id"] = lookup_id

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, 'extra_fields'):
            log_data.update(record.extra_fields)

        return json.dumps(log_data, default=str)


class VerificationAuditLogger:
    """
    Logger for verification events.

    Every accept or reject decision is recorded with the name, the
    signers involved and, for rejections, the failing key.
    """

    def __init__(self, name: str = "keytree.audit"):
        self._logger = logging.getLogger(name)

    def _log(self, level: int, event_type: str, **kwargs) -> None:
        extra = {
            "event_type": event_type,
            "lookup_id": lookup_id_var.get(),
            **kwargs
        }

        record = self._logger.makeRecord(
            self._logger.name,
            level,
            "",
            0,
            f"{event_type}: {kwargs.get('message', '')}",
            (),
            None
        )
        record.extra_fields = extra
        self._logger.handle(record)

    def lookup_fetched(self, name: str, server_url: str, signers: int) -> None:
        self._log(
            logging.INFO,
            "LOOKUP_FETCHED",
            name=name,
            server_url=server_url,
            signers=signers,
            message=f"Fetched lookup for {name}"
        )

    def lookup_verified(
        self,
        name: str,
        trusted_signers: List[str],
        threshold: int,
        present: bool
    ) -> None:
        self._log(
            logging.INFO,
            "LOOKUP_VERIFIED",
            name=name,
            trusted_signers=trusted_signers,
            threshold=threshold,
            present=present,
            message=f"Lookup verified for {name}"
        )

    def lookup_rejected(
        self,
        name: str,
        outcome: str,
        reason: str,
        public_key: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        self._log(
            logging.WARNING,
            "LOOKUP_REJECTED",
            name=name,
            outcome=outcome,
            reason=reason,
            public_key=public_key,
            details=details,
            message=f"Lookup rejected: {reason}"
        )


def configure_logging(
    level: str = "INFO",
    json_format: bool = True,
    log_file: Optional[str] = None
) -> None:
    """
    Configure logging for the command line.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON formatting
        log_file: Optional file path for log output
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if json_format:
        formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

    # stdout carries command output
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)


def set_lookup_id(lookup_id: Optional[str] = None) -> str:
    """
    Set the lookup ID for the current context.

    Returns:
        The lookup ID that was set
    """
    if lookup_id is None:
        lookup_id = str(uuid.uuid4())
    lookup_id_var.set(lookup_id)
    return lookup_id


def get_lookup_id() -> str:
    return lookup_id_var.get()


# Global audit logger instance
audit_log = VerificationAuditLogger()
