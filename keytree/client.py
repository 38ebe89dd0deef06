"""
Keytree HTTP lookup client.

Fetches a lookup reply over HTTP and hands it to the verifier. The client
is deliberately thin: one GET per lookup, no retries, no caching.
"""

import logging
import time
from typing import Optional

import requests

from .config import HTTP_TIMEOUT, MAX_SIGNATURE_AGE, SERVER_URL, TrustConfig
from .exceptions import FormatError, TransportError
from .logging_config import audit_log, set_lookup_id
from .records import Entry, LookupReply
from .verifier import LookupVerifier

logger = logging.getLogger(__name__)


class KeytreeClient:
    """
    Looks up names on a keytree server and verifies the answers.

    Usage:
        client = KeytreeClient(trust=DEFAULT_TRUST_CONFIG)
        entry = client.lookup("email:alice@example.com")
    """

    def __init__(
        self,
        trust: TrustConfig,
        server_url: str = SERVER_URL,
        timeout: float = HTTP_TIMEOUT,
        max_signature_age: int = MAX_SIGNATURE_AGE,
        session: Optional[requests.Session] = None
    ):
        self.server_url = server_url.rstrip("/")
        self.timeout = timeout
        self.verifier = LookupVerifier(trust, max_signature_age=max_signature_age)
        self._session = session or requests.Session()

    def fetch(self, name: str) -> LookupReply:
        """
        Fetch an unverified lookup reply.

        Raises:
            TransportError: on connection failures or non-2xx responses
            FormatError: if the body is not a well-formed reply
        """
        url = f"{self.server_url}/keytree/lookup"
        try:
            resp = self._session.get(url, params={"name": name}, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as e:
            raise TransportError(f"Lookup request for {name} failed: {e}") from e

        try:
            data = resp.json()
        except ValueError as e:
            raise FormatError(f"Lookup reply for {name} is not JSON") from e

        reply = LookupReply.from_dict(data)
        audit_log.lookup_fetched(name, self.server_url, len(reply.signed_trie_lookups))
        return reply

    def lookup(self, name: str, now: Optional[float] = None) -> Optional[Entry]:
        """
        Fetch and verify the entry for ``name``.

        Returns:
            The verified entry, or None if the server proved absence
        """
        set_lookup_id()
        reply = self.fetch(name)
        if now is None:
            now = time.time()
        logger.debug("Verifying lookup for %s at %s", name, now)
        return self.verifier.verify(reply, name, now)
