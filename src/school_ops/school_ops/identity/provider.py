from __future__ import annotations

from typing import Protocol

from werkzeug.security import check_password_hash, generate_password_hash


class PasswordProvider(Protocol):
    """External credential provider used by every non-student role."""

    def hash_password(self, password: str) -> str:
        raise NotImplementedError

    def verify_password(self, password_hash: str, password: str) -> bool:
        raise NotImplementedError


class WerkzeugPasswordProvider:
    def hash_password(self, password: str) -> str:
        return generate_password_hash(password)

    def verify_password(self, password_hash: str, password: str) -> bool:
        return check_password_hash(password_hash, password)
