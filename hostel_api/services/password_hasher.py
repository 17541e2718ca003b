"""Password hashing capability."""

from typing import Optional

import bcrypt

# bcrypt only looks at the first 72 bytes; longer input is refused upstream.
MAX_PASSWORD_BYTES = 72


class PasswordHasher:
    """Hashes and checks passwords with bcrypt."""

    def __init__(self, rounds: int = 12):
        self.rounds = rounds

    def hash(self, password: str) -> str:
        return bcrypt.hashpw(
            password.encode("utf-8"), bcrypt.gensalt(rounds=self.rounds)
        ).decode("utf-8")

    def verify(self, password: str, digest: Optional[str]) -> bool:
        """Check a password against a stored digest. A missing digest never matches."""
        if not password or not digest:
            return False
        try:
            return bcrypt.checkpw(password.encode("utf-8"), digest.encode("utf-8"))
        except ValueError:
            # over-long password or a digest bcrypt cannot parse
            return False
