from __future__ import annotations

from passlib.context import CryptContext

from app.application.ports.password_hasher_port import PasswordHasherPort


class PasswordHasher(PasswordHasherPort):
    """Argon2 for new hashes.

    Accounts imported from the earlier Node deployment carry bcrypt hashes; those still
    verify and come back with an argon2 replacement so sign-in can upgrade them.
    """

    def __init__(self, *, time_cost: int = 3):
        self._ctx = CryptContext(
            schemes=["argon2", "bcrypt"],
            deprecated=["bcrypt"],
            argon2__time_cost=time_cost,
        )

    def hash(self, plain_password: str) -> str:
        return self._ctx.hash(plain_password)

    def verify(self, plain_password: str, password_hash: str) -> bool:
        verified, _ = self.verify_and_update(plain_password, password_hash)
        return verified

    def verify_and_update(self, plain_password: str, password_hash: str) -> tuple[bool, str | None]:
        if not password_hash:
            return False, None
        try:
            verified, replacement_hash = self._ctx.verify_and_update(plain_password, password_hash)
        except (TypeError, ValueError):
            # Unrecognized or malformed hash.
            return False, None
        if not verified:
            return False, None
        return True, replacement_hash
