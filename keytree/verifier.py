"""
Keytree Lookup Verification

Decides whether a lookup reply can be trusted without trusting the
server that sent it.

For every signer in the reply:
1. Fold the audit path for hash(name) and hash(entry) up to a root
2. The folded root must equal the signed root hash
3. The signed root must be fresh
4. The signature over the root must verify under the signer's key

Any single failure rejects the whole reply. Afterwards, at least
``threshold`` of the configured trusted keys must be among the signers.

Verification is a pure function of (reply, name, trust, now): no I/O,
no clock reads, no shared state.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from .audit_path import complete_lookup
from .config import MAX_SIGNATURE_AGE, TrustConfig
from .exceptions import (
    BadRootHash,
    BadSignature,
    InsufficientSignatures,
    KeytreeError,
    StaleSignature,
    VerificationError,
    VerificationOutcome,
)
from .hashing import hash_string, hash_to_string
from .logging_config import audit_log
from .records import Entry, LookupReply, entry_hash
from .signing import verify

logger = logging.getLogger(__name__)


@dataclass
class VerificationResult:
    """Result of checking a lookup reply."""
    outcome: VerificationOutcome
    entry: Optional[Entry] = None
    reason: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)

    def is_valid(self) -> bool:
        return self.outcome == VerificationOutcome.VERIFIED

    @classmethod
    def verified(cls, entry: Optional[Entry]) -> 'VerificationResult':
        return cls(outcome=VerificationOutcome.VERIFIED, entry=entry)

    @classmethod
    def from_error(cls, error: KeytreeError) -> 'VerificationResult':
        if isinstance(error, VerificationError):
            return cls(outcome=error.outcome, reason=error.reason, details=error.details)
        return cls(outcome=VerificationOutcome.MALFORMED, reason=str(error))


class LookupVerifier:
    """
    Threshold verifier for lookup replies.

    The trust configuration is injected; the verifier keeps no other
    state, so one instance may serve any number of concurrent lookups.
    """

    def __init__(self, trust: TrustConfig, max_signature_age: int = MAX_SIGNATURE_AGE):
        self.trust = trust
        self.max_signature_age = max_signature_age

    def verify(
        self,
        reply: Union[LookupReply, Dict[str, Any]],
        name: str,
        now: float
    ) -> Optional[Entry]:
        """
        Verify a lookup reply for ``name``.

        Args:
            reply: Parsed reply, or its JSON dict
            name: The name that was looked up
            now: Current Unix time in seconds

        Returns:
            The verified entry, or None for a verified absence

        Raises:
            FormatError: if the reply or a key/signature token is malformed
            VerificationError: BadRootHash, StaleSignature, BadSignature or
                InsufficientSignatures
        """
        if isinstance(reply, dict):
            reply = LookupReply.from_dict(reply)

        try:
            self._check_signers(reply, name, now)
            trusted = self._check_threshold(reply)
        except VerificationError as e:
            audit_log.lookup_rejected(
                name=name,
                outcome=e.outcome.value,
                reason=e.reason,
                public_key=e.details.get("public_key"),
                details=e.details,
            )
            raise

        audit_log.lookup_verified(
            name=name,
            trusted_signers=trusted,
            threshold=self.trust.threshold,
            present=reply.entry is not None,
        )
        return reply.entry

    def check(
        self,
        reply: Union[LookupReply, Dict[str, Any]],
        name: str,
        now: float
    ) -> VerificationResult:
        """Like verify(), but reports failures as a VerificationResult."""
        try:
            return VerificationResult.verified(self.verify(reply, name, now))
        except KeytreeError as e:
            return VerificationResult.from_error(e)

    def _check_signers(self, reply: LookupReply, name: str, now: float) -> None:
        cutoff = now - self.max_signature_age
        key = hash_string(name)
        value = entry_hash(reply.entry)

        for public_key, signed_lookup in reply.signed_trie_lookups.items():
            root = signed_lookup.signed_root.root

            expected_root_hash = complete_lookup(signed_lookup.trie_lookup, key, value)
            if expected_root_hash != root.root_hash:
                raise BadRootHash(
                    "Bad root hash",
                    {
                        "public_key": public_key,
                        "computed": hash_to_string(expected_root_hash),
                        "declared": hash_to_string(root.root_hash),
                    }
                )

            if root.timestamp < cutoff:
                raise StaleSignature(
                    "Signature too old",
                    {"public_key": public_key, "timestamp": root.timestamp, "cutoff": cutoff}
                )

            if not verify(public_key, root, signed_lookup.signed_root.signature):
                raise BadSignature("Bad signature", {"public_key": public_key})

            logger.debug("Signer %s passed for %s", public_key, name)

    def _check_threshold(self, reply: LookupReply) -> List[str]:
        trusted = [k for k in self.trust.keys if k in reply.signed_trie_lookups]
        if len(trusted) < self.trust.threshold:
            raise InsufficientSignatures(
                "Not enough signatures",
                {"trusted_signers": len(trusted), "threshold": self.trust.threshold}
            )
        return trusted


def verify_lookup(
    reply: Union[LookupReply, Dict[str, Any]],
    name: str,
    trust: TrustConfig,
    now: float,
    max_signature_age: int = MAX_SIGNATURE_AGE
) -> Optional[Entry]:
    """
    Convenience function to verify a lookup reply.

    Returns the verified entry (None for a verified absence) or raises a
    VerificationError.
    """
    verifier = LookupVerifier(trust, max_signature_age=max_signature_age)
    return verifier.verify(reply, name, now)
