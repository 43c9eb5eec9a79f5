import base64
import hashlib

import bcrypt


class PasswordHasher:
    """
    bcrypt password hashing with a SHA-256 pre-hash.
    bcrypt truncates its input at 72 bytes; the pre-hash gives it a fixed-length
    input so long passwords are not silently cut.
    """
    def __init__(self, rounds: int = 12):
        self._rounds = rounds

    @staticmethod
    def _prehash(password: str) -> bytes:
        return base64.b64encode(hashlib.sha256(password.encode("utf-8")).digest())

    def hash(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(self._prehash(password), salt).decode("utf-8")

    def verify(self, password: str, hashed: str) -> bool:
        if not password or not hashed:
            return False
        try:
            return bool(bcrypt.checkpw(self._prehash(password), hashed.encode("utf-8")))
        except (ValueError, TypeError):
            return False
