"""Password hashing for registry credentials.

Uses bcrypt for hashing and constant-time verification. Hashing runs in
a worker thread so the event loop keeps serving other tenants.
"""

from __future__ import annotations

import asyncio

import bcrypt

# bcrypt only reads the first 72 bytes; newer releases reject longer input
_MAX_PASSWORD_BYTES = 72


def _encode(password: str) -> bytes:
    return password.encode()[:_MAX_PASSWORD_BYTES]


class BcryptPasswordHasher:
    """Opaque hash/verify capability backed by bcrypt."""

    def __init__(self, rounds: int = 12):
        """Initialize the hasher.

        Args:
            rounds: bcrypt work factor (log2 of iterations, minimum 4)
        """
        self._rounds = rounds
        self._dummy_hash: str | None = None

    def hash(self, password: str) -> str:
        """Hash a plaintext password with a fresh salt.

        Returns:
            The bcrypt hash as a string
        """
        return bcrypt.hashpw(_encode(password), bcrypt.gensalt(self._rounds)).decode()

    def verify(self, password: str, password_hash: str) -> bool:
        """Verify a password against its hash using constant-time comparison.

        Returns:
            True if the password matches, False otherwise (including for
            malformed hashes)
        """
        try:
            return bcrypt.checkpw(_encode(password), password_hash.encode())
        except ValueError:
            return False

    def burn(self, password: str) -> None:
        """Spend the same work as a real verification, always failing.

        Called when the email is unknown so response timing does not
        reveal whether an account exists.
        """
        if self._dummy_hash is None:
            self._dummy_hash = self.hash("dummy-password-for-timing")
        self.verify(password, self._dummy_hash)

    async def hash_async(self, password: str) -> str:
        return await asyncio.to_thread(self.hash, password)

    async def verify_async(self, password: str, password_hash: str) -> bool:
        return await asyncio.to_thread(self.verify, password, password_hash)

    async def burn_async(self, password: str) -> None:
        await asyncio.to_thread(self.burn, password)
