"""
auth/tokens.py -- Unbiased random identifiers over a fixed alphabet.

Tokens minted here are opaque identifiers (resource UUIDs, API tokens). They
are not guaranteed unique -- callers that need uniqueness must pick a length
with enough entropy (32 chars over 62 symbols is ~190 bits) or handle
collisions at the storage layer.

Sampling: rejection sampling over a bit-masked byte stream.
  `byte % 62` would favour the first 256 % 62 = 8 symbols, because 62 does not
  divide 256. Instead each byte is masked to the smallest enclosing power of
  two (0..63) and values >= 62 are discarded. Every accepted value is then
  exactly uniform over the alphabet.

  Entropy is fetched in batches rather than one call per character so the
  syscall cost is amortized. A batch of n + n // 3 bytes almost always fills
  the output in one fetch for the default alphabet (acceptance 62/64).

Layer rule: no imports from core/ except config (for the default length).
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable

from auth.entropy import secure_random_bytes
from auth.errors import EntropyUnavailableError
from core.config import get_settings

logger = logging.getLogger("jaha.auth.tokens")

ALPHABET = "abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"

# Below this acceptance rate the n + n // 3 heuristic is scaled up.
_MIN_ACCEPTANCE = 0.75

EntropySource = Callable[[int], bytes]


def bit_length(alphabet_size: int) -> int:
    """Number of bits needed to represent alphabet_size - 1."""
    if alphabet_size < 1:
        raise ValueError("alphabet_size must be at least 1")
    return (alphabet_size - 1).bit_length()


def bit_mask(alphabet_size: int) -> int:
    """Smallest 2**k - 1 such that 2**k >= alphabet_size."""
    return (1 << bit_length(alphabet_size)) - 1


def buffer_size(output_length: int, alphabet_size: int = len(ALPHABET)) -> int:
    """Bytes to request per entropy fetch for an output of output_length chars.

    Never returns less than 1, so the refill loop always makes progress.
    """
    size = output_length + output_length // 3
    acceptance = alphabet_size / (bit_mask(alphabet_size) + 1)
    if acceptance < _MIN_ACCEPTANCE:
        size = math.ceil(size / acceptance)
    return max(size, 1)


def _check_alphabet(alphabet: str) -> None:
    if not alphabet:
        raise ValueError("alphabet must not be empty")
    if len(alphabet) > 256:
        raise ValueError("alphabet cannot be longer than 256 characters")
    if len(set(alphabet)) != len(alphabet):
        raise ValueError("alphabet characters must be distinct")


def random_string(
    output_length: int,
    *,
    alphabet: str = ALPHABET,
    entropy: EntropySource = secure_random_bytes,
) -> str:
    """Return output_length characters drawn uniformly from alphabet.

    Args:
        output_length: Number of characters to produce (>= 0).
        alphabet:      Distinct symbols to draw from, 1..256 of them.
        entropy:       Callable returning n random bytes. Defaults to the
                       platform CSPRNG; tests pass a deterministic stream.

    Raises:
        ValueError: negative output_length or invalid alphabet.
        EntropyUnavailableError: propagated from the entropy source, or the
            source returned fewer bytes than requested.
    """
    if output_length < 0:
        raise ValueError(f"output_length must be non-negative, got {output_length}")
    if output_length == 0:
        return ""
    if alphabet != ALPHABET:
        _check_alphabet(alphabet)

    alphabet_size = len(alphabet)
    mask = bit_mask(alphabet_size)
    size = buffer_size(output_length, alphabet_size)

    chars: list[str] = []
    while len(chars) < output_length:
        batch = entropy(size)
        if len(batch) != size:
            raise EntropyUnavailableError(f"Entropy source returned {len(batch)} of {size} bytes")
        for byte in batch:
            value = byte & mask
            if value < alphabet_size:
                chars.append(alphabet[value])
                if len(chars) == output_length:
                    break
    return "".join(chars)


def generate_token(length: int | None = None) -> str:
    """Mint an opaque identifier, TOKEN_LENGTH characters long by default."""
    if length is None:
        length = get_settings().token_length
    token = random_string(length)
    logger.debug("Minted %d-character token", length)
    return token
