"""Argon2id hashing for passwords held by the in-process store.

PocketBase hashes its own credentials; only the development store needs
this module.
"""

from __future__ import annotations

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

PASSWORD_HASHER = PasswordHasher(
	time_cost=3,
	memory_cost=65536,
	parallelism=4,
	hash_len=32,
	salt_len=16,
)


def hash_password(password: str) -> str:
	return PASSWORD_HASHER.hash(password)


def verify_password(hashed: str, password: str) -> bool:
	"""True when ``password`` matches ``hashed``; malformed hashes never match."""
	try:
		return PASSWORD_HASHER.verify(hashed, password)
	except (VerificationError, InvalidHashError):
		return False
