"""
Keytree Cryptographic Signing

Uses Ed25519 (RFC 8032) via PyNaCl for record signatures and
Curve25519/XSalsa20-Poly1305 boxes for encrypted messages.

A signature covers ``hash(record) || utf8(type_name)``. The type suffix
binds each signature to one record kind, so a signature over a Root can
never be replayed as a signature over an Entry with the same digest.
"""

import hashlib
from dataclasses import dataclass
from nacl.exceptions import BadSignatureError, CryptoError
from nacl.public import Box, PrivateKey, PublicKey
from nacl.signing import SigningKey, VerifyKey

from .encoding import (
    BOX_BOX,
    BOX_PRIVATE,
    BOX_PUBLIC,
    ED25519_PRIVATE,
    ED25519_PUBLIC,
    ED25519_SIGNATURE,
    unwrap,
    unwrap_fixed,
    wrap,
)
from .exceptions import DecryptionError, FormatError

PUBLIC_KEY_SIZE = 32
PRIVATE_KEY_SIZE = 64
SIGNATURE_SIZE = 64
SEED_SIZE = 32
BOX_KEY_SIZE = 32
BOX_NONCE_SIZE = Box.NONCE_SIZE

# scrypt parameters for password-derived keys
SCRYPT_N = 1 << 14
SCRYPT_R = 8
SCRYPT_P = 1


@dataclass(frozen=True)
class KeyPair:
    """Wrapped public/private key tokens."""
    public_key: str
    private_key: str


def _wrap_signing_key(signing_key: SigningKey) -> KeyPair:
    verify_key = bytes(signing_key.verify_key)
    return KeyPair(
        public_key=wrap(verify_key, ED25519_PUBLIC),
        private_key=wrap(bytes(signing_key) + verify_key, ED25519_PRIVATE),
    )


def generate_signing_keypair() -> KeyPair:
    """Generate a random Ed25519 key pair."""
    return _wrap_signing_key(SigningKey.generate())


def generate_keypair_from_secret(secret: str, salt: str) -> KeyPair:
    """
    Derive an Ed25519 key pair from a password.

    The seed is scrypt(secret, salt, N=2^14, r=8, p=1, 32 bytes); the
    salt is conventionally the record name.
    """
    seed = hashlib.scrypt(
        secret.encode("utf-8"),
        salt=salt.encode("utf-8"),
        n=SCRYPT_N,
        r=SCRYPT_R,
        p=SCRYPT_P,
        dklen=SEED_SIZE,
    )
    return _wrap_signing_key(SigningKey(seed))


def generate_box_keypair() -> KeyPair:
    """Generate a random Curve25519 box key pair."""
    private_key = PrivateKey.generate()
    return KeyPair(
        public_key=wrap(bytes(private_key.public_key), BOX_PUBLIC),
        private_key=wrap(bytes(private_key), BOX_PRIVATE),
    )


def load_signing_key(private_key: str) -> SigningKey:
    """
    Decode an ed25519-priv token.

    The token holds the 32-byte seed followed by the 32-byte public key;
    a public half that does not belong to the seed is rejected.
    """
    raw = unwrap_fixed(private_key, ED25519_PRIVATE, PRIVATE_KEY_SIZE)
    signing_key = SigningKey(raw[:SEED_SIZE])
    if bytes(signing_key.verify_key) != raw[SEED_SIZE:]:
        raise FormatError("ed25519-priv public half does not match seed")
    return signing_key


def load_verify_key(public_key: str) -> VerifyKey:
    return VerifyKey(unwrap_fixed(public_key, ED25519_PUBLIC, PUBLIC_KEY_SIZE))


def prepare_for_signing(digest: bytes, type_name: str) -> bytes:
    return bytes(digest) + type_name.encode("utf-8")


def sign_digest(private_key: str, digest: bytes, type_name: str) -> str:
    """Sign a record digest bound to ``type_name``; returns an ed25519-sig token."""
    signing_key = load_signing_key(private_key)
    signature = signing_key.sign(prepare_for_signing(digest, type_name)).signature
    return wrap(signature, ED25519_SIGNATURE)


def verify_digest(public_key: str, digest: bytes, type_name: str, signature: str) -> bool:
    """
    Check a signature over a record digest bound to ``type_name``.

    Returns:
        True if the signature is valid, False otherwise

    Raises:
        FormatError: if the key or signature token cannot be decoded
    """
    verify_key = load_verify_key(public_key)
    sig = unwrap_fixed(signature, ED25519_SIGNATURE, SIGNATURE_SIZE)
    try:
        verify_key.verify(prepare_for_signing(digest, type_name), sig)
        return True
    except BadSignatureError:
        return False


def sign(private_key: str, record) -> str:
    """Sign any record exposing ``hash()`` and ``signing_type_name()``."""
    return sign_digest(private_key, record.hash(), record.signing_type_name())


def verify(public_key: str, record, signature: str) -> bool:
    """Verify a signature over any record exposing ``hash()`` and ``signing_type_name()``."""
    return verify_digest(public_key, record.hash(), record.signing_type_name(), signature)


class Signer:
    """
    Signs records with one private key.

    The key is checked once at construction, so later signing cannot
    fail on a malformed token.
    """

    def __init__(self, private_key: str):
        self._signing_key = load_signing_key(private_key)
        self.public_key = wrap(bytes(self._signing_key.verify_key), ED25519_PUBLIC)

    def sign(self, record) -> str:
        message = prepare_for_signing(record.hash(), record.signing_type_name())
        return wrap(self._signing_key.sign(message).signature, ED25519_SIGNATURE)


def _load_box(public_key: str, private_key: str) -> Box:
    pub = PublicKey(unwrap_fixed(public_key, BOX_PUBLIC, BOX_KEY_SIZE))
    priv = PrivateKey(unwrap_fixed(private_key, BOX_PRIVATE, BOX_KEY_SIZE))
    return Box(priv, pub)


def encrypt(message: str, public_key: str, private_key: str) -> str:
    """
    Encrypt a message for ``public_key`` from ``private_key``.

    Returns:
        box-box token holding the random 24-byte nonce followed by the
        ciphertext
    """
    box = _load_box(public_key, private_key)
    encrypted = box.encrypt(message.encode("utf-8"))
    return wrap(bytes(encrypted), BOX_BOX)


def decrypt(wrapped: str, public_key: str, private_key: str) -> str:
    """
    Open a box-box token from ``public_key`` to ``private_key``.

    Raises:
        FormatError: if a token is malformed or the nonce is missing
        DecryptionError: if authentication fails
    """
    nonce_and_sealed = unwrap(wrapped, BOX_BOX)
    if len(nonce_and_sealed) < BOX_NONCE_SIZE:
        raise FormatError("Message missing nonce")

    box = _load_box(public_key, private_key)
    try:
        plaintext = box.decrypt(
            nonce_and_sealed[BOX_NONCE_SIZE:],
            nonce_and_sealed[:BOX_NONCE_SIZE],
        )
    except CryptoError as e:
        raise DecryptionError("Bad box") from e
    return plaintext.decode("utf-8")

