"""
auth/entropy.py -- Cryptographically secure random bytes.

secrets.token_bytes() is a thin wrapper over os.urandom(), which reads the
kernel CSPRNG (getrandom(2) on Linux). It is safe to call from any number of
threads concurrently, so this module keeps no state of its own.

Failure policy: if the platform cannot deliver the full request, raise
EntropyUnavailableError. There is no fallback to the `random`
module or any other non-cryptographic generator.
"""

from __future__ import annotations

import logging
import secrets

from auth.errors import EntropyUnavailableError

logger = logging.getLogger("jaha.auth.entropy")


def secure_random_bytes(length: int) -> bytes:
    """Return exactly `length` bytes from the platform CSPRNG.

    Raises:
        ValueError: length is negative.
        EntropyUnavailableError: the platform source failed or returned a
            short read.
    """
    if length < 0:
        raise ValueError(f"length must be non-negative, got {length}")
    if length == 0:
        return b""

    try:
        data = secrets.token_bytes(length)
    except (OSError, NotImplementedError) as exc:
        logger.critical("Secure random source unavailable: %s", exc)
        raise EntropyUnavailableError("Unable to generate random bytes") from exc

    if len(data) != length:
        logger.critical("Secure random source returned %d of %d bytes", len(data), length)
        raise EntropyUnavailableError(f"Short read from secure random source ({len(data)}/{length} bytes)")
    return data
