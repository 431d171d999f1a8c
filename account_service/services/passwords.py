"""Password hashing with bcrypt."""

import bcrypt

# bcrypt only reads the first 72 bytes of its input.
MAX_PASSWORD_BYTES = 72


class PasswordHasher:
    """Salted, slow one-way hashing for account passwords."""

    def __init__(self, rounds: int = 12):
        self.rounds = rounds
        # Compared against when an email is unknown so both login failures cost the same.
        self._dummy_hash = self.hash("not-a-real-password")

    @staticmethod
    def is_acceptable(password: str) -> bool:
        return bool(password) and len(password.encode("utf-8")) <= MAX_PASSWORD_BYTES

    def hash(self, password: str) -> str:
        """
        Hash a plaintext password.

        Args:
            password: Plain text password, at most 72 bytes once encoded

        Returns:
            bcrypt hash as text
        """
        return bcrypt.hashpw(
            password.encode("utf-8"), bcrypt.gensalt(rounds=self.rounds)
        ).decode("utf-8")

    def verify(self, password: str, password_hash: str) -> bool:
        """Constant-time comparison of ``password`` against a stored hash."""
        if not self.is_acceptable(password):
            return False
        try:
            return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
        except ValueError:
            return False

    def burn(self, password: str) -> None:
        """Spend one verification's worth of time without a real hash."""
        self.verify(password, self._dummy_hash)
