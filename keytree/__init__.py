"""
Keytree Lookup Verification

Version: 0.4.0

Verifies name-to-key lookups from a keytree server without trusting the
server: the returned entry must be committed to by a threshold of known
root signers, each within a freshness window.

Components:
- encoding: base32 tokens and "<tag>(<token>)" wrappers for key material
- hashing: canonical SHA-512 field hashing and digest bit helpers
- records: Entry, Root and lookup reply records with their hash order
- signing: Ed25519 signatures bound to record type names, plus boxes
- audit_path: sparse Merkle audit-path folding
- verifier: the threshold verification protocol

Usage:
    from keytree import DEFAULT_TRUST_CONFIG, verify_lookup

    entry = verify_lookup(reply_json, "email:alice@example.com",
                          DEFAULT_TRUST_CONFIG, now=time.time())
"""

__version__ = "0.4.0"

# Errors
from .exceptions import (
    KeytreeError,
    FormatError,
    ConfigError,
    RuleError,
    DecryptionError,
    TransportError,
    VerificationError,
    VerificationOutcome,
    BadRootHash,
    StaleSignature,
    BadSignature,
    InsufficientSignatures,
)

# Encoding
from .encoding import encode, decode, wrap, unwrap, unwrap_fixed

# Hashing
from .hashing import (
    HASH_LEN,
    HASH_BITS,
    EMPTY_HASH,
    Hasher,
    hash_string,
    combine_hashes,
    get_bit,
    set_bit,
    first_difference,
    hash_to_string,
    hash_from_string,
)

# Records
from .records import (
    ENTRY_TYPE,
    ROOT_TYPE,
    Entry,
    Root,
    SignedRoot,
    TrieLookup,
    SignedTrieLookup,
    LookupReply,
    entry_hash,
)

# Signing
from .signing import (
    KeyPair,
    Signer,
    generate_signing_keypair,
    generate_keypair_from_secret,
    generate_box_keypair,
    sign,
    verify,
    sign_digest,
    verify_digest,
    encrypt,
    decrypt,
)

# Audit paths
from .audit_path import complete_lookup

# Configuration
from .config import TrustConfig, DEFAULT_TRUST_CONFIG, load_trust_config

# Verification
from .verifier import LookupVerifier, VerificationResult, verify_lookup

# Rules
from .rules import check_key, check_name, normalize_name


__all__ = [
    "__version__",

    # Errors
    "KeytreeError",
    "FormatError",
    "ConfigError",
    "RuleError",
    "DecryptionError",
    "TransportError",
    "VerificationError",
    "VerificationOutcome",
    "BadRootHash",
    "StaleSignature",
    "BadSignature",
    "InsufficientSignatures",

    # Encoding
    "encode",
    "decode",
    "wrap",
    "unwrap",
    "unwrap_fixed",

    # Hashing
    "HASH_LEN",
    "HASH_BITS",
    "EMPTY_HASH",
    "Hasher",
    "hash_string",
    "combine_hashes",
    "get_bit",
    "set_bit",
    "first_difference",
    "hash_to_string",
    "hash_from_string",

    # Records
    "ENTRY_TYPE",
    "ROOT_TYPE",
    "Entry",
    "Root",
    "SignedRoot",
    "TrieLookup",
    "SignedTrieLookup",
    "LookupReply",
    "entry_hash",

    # Signing
    "KeyPair",
    "Signer",
    "generate_signing_keypair",
    "generate_keypair_from_secret",
    "generate_box_keypair",
    "sign",
    "verify",
    "sign_digest",
    "verify_digest",
    "encrypt",
    "decrypt",

    # Audit paths
    "complete_lookup",

    # Configuration
    "TrustConfig",
    "DEFAULT_TRUST_CONFIG",
    "load_trust_config",

    # Verification
    "LookupVerifier",
    "VerificationResult",
    "verify_lookup",

    # Rules
    "check_key",
    "check_name",
    "normalize_name",
]
