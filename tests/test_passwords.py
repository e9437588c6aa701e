"""Unit tests for auth/passwords.py -- bcrypt digests.

Covers:
- Fresh salt per digest; both digests verify; wrong secret rejected
- Malformed or foreign digests return False instead of raising
- Verification reads the cost from the digest, not the hasher
- needs_rehash() cost detection
- PasswordHashError on salt/hash failure
- Module-level helpers follow PASSWORD_COST
"""

import bcrypt
import pytest

from auth.errors import PasswordHashError
from auth.passwords import MAX_SECRET_BYTES, PasswordHasher, digest_cost, get_hasher, password_create, password_match
from core.config import get_settings

# ---------------------------------------------------------------------------
# create / match
# ---------------------------------------------------------------------------


def test_same_secret_gives_different_digests(hasher):
    first = hasher.create("correct horse")
    second = hasher.create("correct horse")
    assert first != second
    for digest in (first, second):
        assert hasher.match(digest, "correct horse") is True
        assert hasher.match(digest, "wrong horse") is False


def test_digest_is_self_describing(hasher):
    digest = hasher.create("correct horse")
    assert digest.startswith("$2b$04$")
    assert len(digest) == 60
    assert digest_cost(digest) == 4


@pytest.mark.parametrize(
    "digest",
    [
        "not-a-real-digest",
        "",
        "$2b$04$",
        "$2b$04$" + "!" * 53,
        "pbkdf2_sha256$200000$c2FsdA==$aGFzaA==",
    ],
)
def test_malformed_digest_is_false(hasher, digest):
    assert hasher.match(digest, "anything") is False


def test_wrong_types_are_false(hasher):
    assert hasher.match(None, "anything") is False
    assert hasher.match(hasher.create("x"), None) is False


def test_match_uses_cost_from_digest(hasher):
    digest = hasher.create("correct horse")
    assert PasswordHasher(cost=5).match(digest, "correct horse") is True


def test_empty_secret_round_trips(hasher):
    digest = hasher.create("")
    assert hasher.match(digest, "") is True
    assert hasher.match(digest, " ") is False


def test_unicode_secret(hasher):
    digest = hasher.create("pässwörd-密码")
    assert hasher.match(digest, "pässwörd-密码") is True
    assert hasher.match(digest, "passwort-密码") is False


# ---------------------------------------------------------------------------
# Cost handling
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("cost", [0, 3, 32])
def test_cost_out_of_range_rejected(cost):
    with pytest.raises(ValueError):
        PasswordHasher(cost=cost)


def test_needs_rehash(hasher):
    digest = hasher.create("correct horse")
    assert hasher.needs_rehash(digest) is False
    assert PasswordHasher(cost=5).needs_rehash(digest) is True
    assert hasher.needs_rehash("not-a-real-digest") is True


def test_digest_cost_malformed():
    assert digest_cost("not-a-real-digest") is None
    assert digest_cost(None) is None


def test_digest_cost_rejects_trailing_newline(hasher):
    digest = hasher.create("correct horse")
    assert digest_cost(digest) == 4
    assert digest_cost(digest + "\n") is None
    assert hasher.needs_rehash(digest + "\n") is True


# ---------------------------------------------------------------------------
# Failure policy
# ---------------------------------------------------------------------------


def test_salt_failure_is_fatal(monkeypatch, hasher):
    def broken(rounds=12, prefix=b"2b"):
        raise OSError("no randomness")

    monkeypatch.setattr(bcrypt, "gensalt", broken)
    with pytest.raises(PasswordHashError):
        hasher.create("correct horse")


def test_hash_failure_is_fatal(monkeypatch, hasher):
    def broken(password, salt):
        raise ValueError("hash failed")

    monkeypatch.setattr(bcrypt, "hashpw", broken)
    with pytest.raises(PasswordHashError):
        hasher.create("correct horse")


# ---------------------------------------------------------------------------
# Module-level helpers
# ---------------------------------------------------------------------------


def test_module_helpers_use_configured_cost(fresh_settings):
    digest = password_create("correct horse")
    assert digest_cost(digest) == get_settings().password_cost
    assert password_match(digest, "correct horse") is True
    assert password_match(digest, "wrong horse") is False
    assert password_match("not-a-real-digest", "anything") is False


def test_get_hasher_is_cached(fresh_settings):
    assert get_hasher() is get_hasher()


def test_get_hasher_follows_password_cost(monkeypatch, fresh_settings):
    monkeypatch.setenv("PASSWORD_COST", "5")
    assert get_hasher().cost == 5


# ---------------------------------------------------------------------------
# bcrypt 72-byte input limit
# ---------------------------------------------------------------------------


def test_secret_at_limit_round_trips(hasher):
    secret = "a" * MAX_SECRET_BYTES
    digest = hasher.create(secret)
    assert hasher.match(digest, secret) is True
    assert hasher.match(digest, "a" * (MAX_SECRET_BYTES - 1)) is False


@pytest.mark.parametrize("secret", ["a" * 72 + "b", "é" * 37])
def test_over_long_secret_cannot_be_hashed(hasher, secret):
    with pytest.raises(PasswordHashError):
        hasher.create(secret)


def test_over_long_candidate_never_matches(hasher):
    # Without the length check bcrypt 4.x compares only the first 72 bytes.
    digest = hasher.create("a" * 72)
    assert hasher.match(digest, "a" * 72 + "b") is False
    assert hasher.match(digest, "a" * 72 + "c") is False


def test_over_long_candidate_against_stored_truncated_digest(hasher):
    # Digest of the 72-byte prefix, as bcrypt 4.x would have stored "a" * 72 + "b".
    digest = bcrypt.hashpw(b"a" * 72, bcrypt.gensalt(rounds=4)).decode("utf-8")
    assert hasher.match(digest, "a" * 72 + "c") is False
