"""
Name and key-binding rules.

Key names are restricted to lowercase identifiers; e-mail names must be a
single well-formed address.
"""

from .exceptions import RuleError

ALLOWED_KEY_NAME_CHARACTERS = frozenset("abcdefghijklmnopqrstuvwxyz1234567890-_:")
ALLOWED_KEY_VALUE_CHARACTERS = frozenset(
    "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ1234567890=-+_.,:@()/\\\"' \r\n"
)

ALLOWED_LOCAL_CHARACTERS = frozenset("abcdefghijklmnopqrstuvwxyz1234567890-_.")
ALLOWED_DOMAIN_CHARACTERS = ALLOWED_LOCAL_CHARACTERS

EMAIL_PREFIX = "email:"
TEST_PREFIX = "test:"

RECOVERY_KEY = "keytree:recovery"


def check_key(name: str, value: str) -> None:
    """Raise RuleError if a key binding uses disallowed characters."""
    if any(c not in ALLOWED_KEY_NAME_CHARACTERS for c in name):
        raise RuleError(f"Bad key name character in {name!r}")
    if any(c not in ALLOWED_KEY_VALUE_CHARACTERS for c in value):
        raise RuleError(f"Bad key value character in value for {name!r}")


def check_email(name: str) -> None:
    if not name.startswith(EMAIL_PREFIX):
        return

    parts = name[len(EMAIL_PREFIX):].split("@")
    if len(parts) != 2:
        raise RuleError("Expected exactly one @")
    local, domain = parts

    if any(c not in ALLOWED_LOCAL_CHARACTERS for c in local):
        raise RuleError("Bad email character")
    if any(c not in ALLOWED_DOMAIN_CHARACTERS for c in domain):
        raise RuleError("Bad domain character")
    if domain.endswith("."):
        raise RuleError("Domain must not end in .")


def check_name(name: str) -> None:
    check_email(name)


def normalize_name(name: str) -> str:
    """Treat bare names as e-mail addresses."""
    if name.startswith(EMAIL_PREFIX) or name.startswith(TEST_PREFIX):
        return name
    return EMAIL_PREFIX + name
