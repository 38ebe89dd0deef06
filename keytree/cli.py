#!/usr/bin/env python3
"""
Keytree Command Line Interface

Usage:
    keytree verify --reply <file> --name <name> [--trust <file>] [--now <ts>]
    keytree lookup <name> [--server <url>] [--trust <file>]
    keytree hash (--entry <file> | --root <file> | --name <name>)
    keytree keygen [--box | --secret <password> --salt <name>]
"""

import argparse
import json
import sys
import time

from . import config
from .exceptions import KeytreeError
from .hashing import hash_string, hash_to_string
from .logging_config import configure_logging
from .records import Entry, Root
from .rules import normalize_name


def load_json(path: str):
    """Load JSON from file."""
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


def cmd_verify(args) -> int:
    """Verify a saved lookup reply."""
    from .verifier import LookupVerifier

    trust = config.resolve_trust_config(args.trust)
    verifier = LookupVerifier(trust, max_signature_age=args.max_age)
    now = args.now if args.now is not None else time.time()

    result = verifier.check(load_json(args.reply), args.name, now)

    if result.is_valid():
        entry = result.entry.to_dict() if result.entry is not None else None
        print(json.dumps(entry, indent=2))
        print(f"\n✓ {result.outcome.value}", file=sys.stderr)
        return 0

    print(f"✗ {result.outcome.value}: {result.reason}", file=sys.stderr)
    if result.details:
        print(json.dumps(result.details, indent=2, default=str), file=sys.stderr)
    return 1


def cmd_lookup(args) -> int:
    """Fetch and verify an entry from a server."""
    from .client import KeytreeClient

    trust = config.resolve_trust_config(args.trust)
    client = KeytreeClient(trust, server_url=args.server)
    name = normalize_name(args.name)

    entry = client.lookup(name)
    if entry is None:
        print(f"No entry for {name}", file=sys.stderr)
        return 0

    print(json.dumps(entry.to_dict(), indent=2))
    return 0


def cmd_hash(args) -> int:
    """Compute record hashes."""
    if args.entry:
        entry = Entry.from_dict(load_json(args.entry))
        print(f"entry: {hash_to_string(entry.hash())}")
        print(f"name: {hash_to_string(entry.name_hash())}")
    elif args.root:
        root = Root.from_dict(load_json(args.root))
        print(f"root: {hash_to_string(root.hash())}")
    else:
        print(f"name: {hash_to_string(hash_string(args.name))}")
    return 0


def cmd_keygen(args) -> int:
    """Generate a key pair."""
    from .signing import (
        generate_box_keypair,
        generate_keypair_from_secret,
        generate_signing_keypair,
    )

    if args.box:
        keypair = generate_box_keypair()
    elif args.secret is not None:
        if not args.salt:
            print("--salt is required with --secret", file=sys.stderr)
            return 2
        keypair = generate_keypair_from_secret(args.secret, args.salt)
    else:
        keypair = generate_signing_keypair()

    print(json.dumps({"public_key": keypair.public_key, "private_key": keypair.private_key}, indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="keytree",
        description="Keytree lookup verification CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  keytree verify -r reply.json -n email:alice@example.com
  keytree lookup alice@example.com
  keytree hash -e entry.json
  keytree keygen
        """
    )
    parser.add_argument("--log-level", default=config.LOG_LEVEL, help="Log level")
    parser.add_argument(
        "--log-format", default=config.LOG_FORMAT, choices=["json", "text"], help="Log format"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # verify
    verify_parser = subparsers.add_parser("verify", help="Verify a saved lookup reply")
    verify_parser.add_argument("-r", "--reply", required=True, help="Lookup reply JSON file")
    verify_parser.add_argument("-n", "--name", required=True, help="Name that was looked up")
    verify_parser.add_argument("-t", "--trust", help="Trust configuration JSON file")
    verify_parser.add_argument("--now", type=float, help="Verification time (Unix seconds)")
    verify_parser.add_argument(
        "--max-age", type=int, default=config.MAX_SIGNATURE_AGE, help="Maximum signature age"
    )

    # lookup
    lookup_parser = subparsers.add_parser("lookup", help="Fetch and verify an entry")
    lookup_parser.add_argument("name", help="Name to look up")
    lookup_parser.add_argument("-s", "--server", default=config.SERVER_URL, help="Server URL")
    lookup_parser.add_argument("-t", "--trust", help="Trust configuration JSON file")

    # hash
    hash_parser = subparsers.add_parser("hash", help="Compute record hashes")
    group = hash_parser.add_mutually_exclusive_group(required=True)
    group.add_argument("-e", "--entry", help="Entry JSON file")
    group.add_argument("-R", "--root", help="Root JSON file")
    group.add_argument("-n", "--name", help="Name to hash")

    # keygen
    keygen_parser = subparsers.add_parser("keygen", help="Generate a key pair")
    keygen_parser.add_argument("--box", action="store_true", help="Generate a box key pair")
    keygen_parser.add_argument("--secret", help="Derive the signing key from this password")
    keygen_parser.add_argument("--salt", help="Salt for --secret (the record name)")

    return parser


COMMANDS = {
    "verify": cmd_verify,
    "lookup": cmd_lookup,
    "hash": cmd_hash,
    "keygen": cmd_keygen,
}


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 2

    configure_logging(level=args.log_level, json_format=args.log_format == "json")

    try:
        return COMMANDS[args.command](args)
    except KeytreeError as e:
        print(f"✗ {type(e).__name__}: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
