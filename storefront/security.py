"""
Credential codec: one-way password hashing backed by ``bcrypt``.

The digest embeds its own salt and cost factor, so ``verify`` needs
nothing but the plaintext and the stored digest.
"""
import bcrypt

from storefront.config import settings
from storefront.exceptions import InvalidPassword

# bcrypt only reads this many bytes of input; newer releases reject longer ones.
MAX_PASSWORD_BYTES = 72


def password_fits(plaintext: str) -> bool:
    return len(plaintext.encode("utf-8")) <= MAX_PASSWORD_BYTES


class BcryptCodec:
    """Hash and verify plaintext passwords."""

    def __init__(self, rounds: int | None = None) -> None:
        self.rounds = rounds if rounds is not None else settings.BCRYPT_ROUNDS

    def hash(self, plaintext: str) -> str:
        """Raises ``InvalidPassword`` when *plaintext* exceeds the byte limit."""
        if not password_fits(plaintext):
            raise InvalidPassword()
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(plaintext.encode("utf-8"), salt).decode("ascii")

    def verify(self, plaintext: str, digest: str) -> bool:
        """
        Return True when *plaintext* matches *digest*.

        A malformed digest or an over-long plaintext is treated as a
        mismatch rather than an error.
        """
        if not password_fits(plaintext):
            return False
        try:
            return bcrypt.checkpw(plaintext.encode("utf-8"), digest.encode("ascii"))
        except ValueError:
            return False
