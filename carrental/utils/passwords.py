"""
Argon2 password hashing for user accounts.
Verification happens in the upstream auth service; only hashing is needed here.
"""

from argon2 import PasswordHasher

password_hasher = PasswordHasher(encoding="utf-8")


def hash_password(password: str) -> str:
    return password_hasher.hash(password)
