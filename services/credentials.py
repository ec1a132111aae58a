"""Checks a login/password pair against the stored argon2 digest."""
from __future__ import annotations

from models.user import User
from utils.security import verify_password


class CredentialVerifier:
    def __init__(self, storage):
        self._storage = storage

    def verify(self, login: str, password: str) -> bool:
        session = self._storage.get_session()
        user = session.query(User).filter(User.login == login).first()
        if not user:
            return False
        return verify_password(password, user.password_hash)
