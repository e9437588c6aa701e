"""
auth/passwords.py -- bcrypt password digests.

Digest format: "$2b$<cost>$<22-char salt><31-char hash>". The digest embeds
its own cost and salt, so verification needs no side-channel metadata and
always uses the cost the digest was created with -- never the current
PASSWORD_COST. Raising PASSWORD_COST therefore only affects new digests;
needs_rehash() reports old ones so the caller can upgrade them at login.

Failure modes:
  create() -- any failure raises PasswordHashError. A credential system must
      never store an empty or weak digest.
  match()  -- never raises. Malformed digest, wrong algorithm, over-long
      secret and plain mismatch are all False, so callers cannot tell which
      check failed.

bcrypt only looks at the first 72 bytes of a secret. bcrypt 4.x truncates
silently and bcrypt 5 raises, so secrets longer than MAX_SECRET_BYTES are
rejected here before bcrypt sees them: create() raises, match() is False.
That keeps "a" * 72 + "b" from verifying against "a" * 72 + "c" on any
bcrypt release.
"""

from __future__ import annotations

import logging
import re
from functools import lru_cache

import bcrypt

from auth.errors import PasswordHashError
from core.config import MAX_PASSWORD_COST, MIN_PASSWORD_COST, get_settings

logger = logging.getLogger("jaha.auth.passwords")

_DIGEST_RE = re.compile(r"\$2[abxy]?\$(?P<cost>\d{2})\$[./A-Za-z0-9]{53}")

# bcrypt input limit, in UTF-8 bytes.
MAX_SECRET_BYTES = 72


def _encode_secret(raw_secret: str) -> bytes:
    secret = raw_secret.encode("utf-8")
    if len(secret) > MAX_SECRET_BYTES:
        raise ValueError(f"secret is {len(secret)} bytes, bcrypt accepts at most {MAX_SECRET_BYTES}")
    return secret


class PasswordHasher:
    """Creates and verifies bcrypt digests at a fixed work factor.

    Usage:
        hasher = PasswordHasher(cost=13)
        digest = hasher.create("correct horse")
        hasher.match(digest, "correct horse")   # True
    """

    def __init__(self, cost: int) -> None:
        if not MIN_PASSWORD_COST <= cost <= MAX_PASSWORD_COST:
            raise ValueError(f"bcrypt cost must be between {MIN_PASSWORD_COST} and {MAX_PASSWORD_COST}, got {cost}")
        self.cost = cost

    def create(self, raw_secret: str) -> str:
        """Return a freshly salted digest of raw_secret.

        Two calls with the same secret return different digests; never
        compare digests with ==, use match().
        """
        try:
            salt = bcrypt.gensalt(rounds=self.cost)
            digest = bcrypt.hashpw(_encode_secret(raw_secret), salt)
        except (ValueError, TypeError, OSError) as exc:
            logger.critical("Password digest creation failed: %s", exc)
            raise PasswordHashError("Unable to create password digest") from exc
        return digest.decode("utf-8")

    def match(self, digest: str, raw_secret: str) -> bool:
        """Return True if raw_secret matches digest, False on any failure."""
        try:
            return bcrypt.checkpw(_encode_secret(raw_secret), digest.encode("utf-8"))
        except Exception:
            return False

    def needs_rehash(self, digest: str) -> bool:
        """True if digest was not made at this hasher's cost (or is unparseable)."""
        cost = digest_cost(digest)
        return cost is None or cost != self.cost


def digest_cost(digest: str) -> int | None:
    """Return the work factor embedded in a bcrypt digest, or None if malformed."""
    m = _DIGEST_RE.fullmatch(digest) if isinstance(digest, str) else None
    if m is None:
        return None
    return int(m.group("cost"))


@lru_cache
def get_hasher() -> PasswordHasher:
    """Return the process-wide hasher built from Settings.password_cost.

    Cached like get_settings(); tests that change PASSWORD_COST must clear
    both caches.
    """
    return PasswordHasher(cost=get_settings().password_cost)


def password_create(raw_secret: str) -> str:
    """Create a digest with the configured cost. Raises PasswordHashError."""
    return get_hasher().create(raw_secret)


def password_match(digest: str, raw_secret: str) -> bool:
    """Verify raw_secret against a stored digest. Never raises."""
    return get_hasher().match(digest, raw_secret)
