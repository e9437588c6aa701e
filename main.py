#!/usr/bin/env python3
"""
jaha-api credential tool -- mint tokens, hash and verify passwords.

Usage:
  python main.py token
  python main.py token --length 64 --count 5
  python main.py hash                       # prompts for the password
  python main.py hash --password 'correct horse'
  python main.py verify '$2b$13$...'         # prompts for the password
  python main.py verify '$2b$13$...' --password 'correct horse'

Exit status:
  0  success (verify: password matches)
  1  verify: password does not match
  2  fatal: secure randomness or digest creation unavailable

Environment variables:
  PASSWORD_COST  bcrypt work factor for new digests (default 13)
  TOKEN_LENGTH   default token length in characters (default 32)
  LOG_LEVEL      logging level (default INFO)
"""

from __future__ import annotations

import argparse
import getpass
import logging
import sys
from typing import Optional

from auth.errors import CredentialError
from auth.passwords import get_hasher
from auth.tokens import generate_token
from core.config import get_settings

logger = logging.getLogger("jaha.cli")

EXIT_OK = 0
EXIT_MISMATCH = 1
EXIT_FATAL = 2


def _configure_logging() -> None:
    logging.basicConfig(
        level=get_settings().log_level,
        format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


def _read_password(args: argparse.Namespace) -> str:
    if args.password is not None:
        return args.password
    return getpass.getpass("Password: ")


def _cmd_token(args: argparse.Namespace) -> int:
    for _ in range(args.count):
        print(generate_token(args.length))
    return EXIT_OK


def _cmd_hash(args: argparse.Namespace) -> int:
    print(get_hasher().create(_read_password(args)))
    return EXIT_OK


def _cmd_verify(args: argparse.Namespace) -> int:
    hasher = get_hasher()
    if not hasher.match(args.digest, _read_password(args)):
        print("no match")
        return EXIT_MISMATCH
    print("match")
    if hasher.needs_rehash(args.digest):
        print(f"  [!] Digest cost differs from PASSWORD_COST={hasher.cost}; rehash on next login.")
    return EXIT_OK


def _positive_int(value: str) -> int:
    n = int(value)
    if n < 1:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got {value}")
    return n


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jaha-credentials",
        description="Mint random tokens and manage bcrypt password digests.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    token = sub.add_parser("token", help="Print random alphanumeric tokens")
    token.add_argument(
        "--length",
        type=_positive_int,
        default=None,
        metavar="N",
        help="Token length in characters (default: TOKEN_LENGTH)",
    )
    token.add_argument(
        "--count",
        type=_positive_int,
        default=1,
        metavar="C",
        help="Number of tokens to print (default: 1)",
    )
    token.set_defaults(func=_cmd_token)

    hash_ = sub.add_parser("hash", help="Print a bcrypt digest of a password")
    hash_.add_argument("--password", default=None, help="Password (prompted for when omitted)")
    hash_.set_defaults(func=_cmd_hash)

    verify = sub.add_parser("verify", help="Check a password against a stored digest")
    verify.add_argument("digest", metavar="DIGEST", help="Stored bcrypt digest")
    verify.add_argument("--password", default=None, help="Password (prompted for when omitted)")
    verify.set_defaults(func=_cmd_verify)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return EXIT_OK

    _configure_logging()

    # Fatal credential failures stop here: never continue with weak entropy.
    try:
        return args.func(args)
    except CredentialError as exc:
        logger.critical("Aborting: %s", exc)
        return EXIT_FATAL


if __name__ == "__main__":
    sys.exit(main())
