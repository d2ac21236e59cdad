"""Password hashing utilities.

Learn: Uses bcrypt for secure password hashing. bcrypt automatically
handles salting and is resistant to rainbow table attacks.
The work factor is fixed per deployment (GATEHOUSE_BCRYPT_ROUNDS,
default 14, roughly a second per hash) so every login is deliberately
slow to brute-force. Tests lower it to keep the suite fast.
"""

from functools import cached_property

import bcrypt

DEFAULT_ROUNDS = 14


class PasswordHasher:
    """One-way password hashing with a fixed bcrypt cost."""

    def __init__(self, rounds: int = DEFAULT_ROUNDS):
        self.rounds = rounds

    def hash(self, password: str) -> str:
        """Hash a password with bcrypt.

        Learn: bcrypt includes a random salt automatically and produces
        hashes starting with "$2b$". Passwords are truncated to 72 bytes
        (bcrypt's limit).
        """
        pw_bytes = password.encode("utf-8")[:72]
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(pw_bytes, salt).decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        """Verify a password against its hash.

        Never raises for bad input — an empty or malformed hash is
        simply a mismatch.
        """
        if not password_hash:
            return False
        try:
            pw_bytes = password.encode("utf-8")[:72]
            hash_bytes = password_hash.encode("utf-8")
            return bcrypt.checkpw(pw_bytes, hash_bytes)
        except (ValueError, TypeError, AttributeError):
            return False

    @cached_property
    def dummy_hash(self) -> str:
        """A hash at the same cost, verified against when the user is unknown.

        Learn: Without it, "no such user" returns in microseconds while
        "wrong password" takes a full bcrypt round — a timing oracle for
        which usernames exist.
        """
        return self.hash("gatehouse-dummy-password")
