from __future__ import annotations

import logging

import bcrypt

LOGGER = logging.getLogger(__name__)

BCRYPT_ROUNDS = 12


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, stored: str | None) -> bool:
    """Check ``password`` against a bcrypt hash; unreadable hashes never match."""
    if not stored or not stored.startswith(("$2a$", "$2b$", "$2y$")):
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), stored.encode("utf-8"))
    except ValueError as exc:
        LOGGER.warning("Unreadable password hash: %s", exc)
        return False
