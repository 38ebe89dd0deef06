"""
Configuration module for keytree.

Centralizes settings with environment variable support and validates the
trust configuration the verifier is handed. The verifier never reads any
of this implicitly; callers load a TrustConfig and pass it in.
"""

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

from .exceptions import ConfigError, FormatError
from .signing import load_verify_key

# ============================================================
# Environment Configuration
# ============================================================

SERVER_URL = os.getenv("KEYTREE_SERVER_URL", "http://keytree.io")
TRUST_CONFIG_PATH = os.getenv("KEYTREE_TRUST_CONFIG", "")

# Signatures on roots older than this many seconds are rejected
MAX_SIGNATURE_AGE = int(os.getenv("KEYTREE_MAX_SIGNATURE_AGE", "60"))

HTTP_TIMEOUT = float(os.getenv("KEYTREE_HTTP_TIMEOUT", "10"))

LOG_LEVEL = os.getenv("KEYTREE_LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("KEYTREE_LOG_FORMAT", "json")  # json|text


# ============================================================
# Trust Configuration
# ============================================================

@dataclass(frozen=True)
class TrustConfig:
    """
    Trusted root signers and how many of them must agree.

    Keys are ed25519-pub tokens, deduplicated in order.
    """
    keys: Tuple[str, ...]
    threshold: int

    def __post_init__(self):
        if isinstance(self.keys, str):
            raise ConfigError("keys must be a list of public keys, not a string")

        keys = tuple(dict.fromkeys(self.keys))
        object.__setattr__(self, "keys", keys)

        for key in keys:
            try:
                load_verify_key(key)
            except FormatError as e:
                raise ConfigError(f"Invalid trusted key {key!r}: {e}") from e

        if isinstance(self.threshold, bool) or not isinstance(self.threshold, int):
            raise ConfigError("threshold must be an integer")
        if self.threshold < 1:
            raise ConfigError(f"threshold must be at least 1, got {self.threshold}")
        if self.threshold > len(keys):
            raise ConfigError(
                f"threshold {self.threshold} exceeds the {len(keys)} configured keys"
            )

    def is_trusted(self, public_key: str) -> bool:
        return public_key in self.keys

    def to_dict(self) -> Dict[str, Any]:
        return {"keys": list(self.keys), "threshold": self.threshold}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TrustConfig':
        if not isinstance(data, dict):
            raise ConfigError("Trust configuration must be an object")
        missing = [f for f in ("keys", "threshold") if f not in data]
        if missing:
            raise ConfigError(f"Missing required fields: {missing}")
        if not isinstance(data["keys"], list):
            raise ConfigError("keys must be a list")
        return cls(keys=tuple(data["keys"]), threshold=data["threshold"])


KNOWN_KEYS = {
    "keytree.io": "ed25519-pub(26wj522ncyprkc0t9yr1e1cz2szempbddkay02qqqxqkjnkbnygg)",
    "mzero.org": "ed25519-pub(53y84fc8acd8z1t0ckwvtc1nc2srrgrkee5mwtxvtdqytpwrc36g)",
    "thesquareplanet.com": "ed25519-pub(9rr08e8hf82xfkpx944xht4asksasfgnxj8fxkmf3tczeaj1v7q0)",
}

DEFAULT_TRUST_CONFIG = TrustConfig(
    keys=(
        KNOWN_KEYS["keytree.io"],
        KNOWN_KEYS["mzero.org"],
        KNOWN_KEYS["thesquareplanet.com"],
    ),
    threshold=2,
)


# ============================================================
# Loaders
# ============================================================

def load_trust_config(path: Union[str, Path]) -> TrustConfig:
    """
    Load a trust configuration file.

    Expected shape: {"keys": ["ed25519-pub(...)", ...], "threshold": 2}
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Trust configuration {path} is not valid JSON: {e}") from e
    return TrustConfig.from_dict(data)


def resolve_trust_config(path: Optional[Union[str, Path]] = None) -> TrustConfig:
    """
    Pick the trust configuration for a command line or client session.

    An explicit path wins, then KEYTREE_TRUST_CONFIG, then the
    well-known defaults.
    """
    path = path or TRUST_CONFIG_PATH
    if path:
        return load_trust_config(path)
    return DEFAULT_TRUST_CONFIG

