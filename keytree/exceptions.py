"""
Keytree error types.

Every failure is terminal for the operation in progress. Nothing in this
package retries; callers decide whether to re-fetch fresh data.
"""

from enum import Enum
from typing import Any, Dict, Optional


class KeytreeError(Exception):
    """Base class for all keytree errors."""


class FormatError(KeytreeError, ValueError):
    """Malformed token, wrapper, digest or JSON document."""


class ConfigError(KeytreeError):
    """Invalid trust configuration or settings."""


class RuleError(KeytreeError, ValueError):
    """Name or key binding violates the allowed character rules."""


class DecryptionError(KeytreeError):
    """A box could not be opened with the given keys."""


class TransportError(KeytreeError):
    """Fetching a lookup reply from the server failed."""


class VerificationOutcome(str, Enum):
    """
    Verification outcomes.

    VERIFIED: Entry (or its absence) is committed to by enough trusted keys
    BAD_ROOT_HASH: Audit path does not fold to the signed root
    STALE_SIGNATURE: Root timestamp is older than the freshness window
    BAD_SIGNATURE: Cryptographic signature check failed
    INSUFFICIENT_SIGNATURES: Fewer trusted signers than the threshold
    MALFORMED: Reply could not be decoded
    """
    VERIFIED = "VERIFIED"
    BAD_ROOT_HASH = "BAD_ROOT_HASH"
    STALE_SIGNATURE = "STALE_SIGNATURE"
    BAD_SIGNATURE = "BAD_SIGNATURE"
    INSUFFICIENT_SIGNATURES = "INSUFFICIENT_SIGNATURES"
    MALFORMED = "MALFORMED"


class VerificationError(KeytreeError):
    """A lookup reply was rejected."""

    outcome = VerificationOutcome.MALFORMED

    def __init__(self, reason: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(reason)
        self.reason = reason
        self.details = details or {}


class BadRootHash(VerificationError):
    outcome = VerificationOutcome.BAD_ROOT_HASH


class StaleSignature(VerificationError):
    outcome = VerificationOutcome.STALE_SIGNATURE


class BadSignature(VerificationError):
    outcome = VerificationOutcome.BAD_SIGNATURE


class InsufficientSignatures(VerificationError):
    outcome = VerificationOutcome.INSUFFICIENT_SIGNATURES
