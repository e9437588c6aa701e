"""
auth/errors.py -- Fatal failure types raised by the credential utilities.

These are raised up to the boundary of auth/ instead of exiting the process.
The top-level caller (main.py, or an application lifespan) decides whether to
terminate. They must never be caught and replaced with a weaker result.
"""


class CredentialError(RuntimeError):
    """Base class for unrecoverable credential-layer failures."""


class EntropyUnavailableError(CredentialError):
    """The platform could not supply the requested secure random bytes."""


class PasswordHashError(CredentialError):
    """A password digest could not be produced."""
