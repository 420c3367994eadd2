"""
Password hashing for owner and administrator accounts.

New hashes use Argon2id. Hashes produced by werkzeug (PBKDF2/scrypt, e.g. from
accounts imported out of an older deployment) still verify and are flagged for
rehashing on the next successful login.
"""

from argon2 import PasswordHasher
from argon2.exceptions import VerifyMismatchError, InvalidHash, VerificationError
from werkzeug.security import check_password_hash as check_werkzeug_hash
import logging

logger = logging.getLogger(__name__)

# Memory in KiB; low enough for small web workers.
ph = PasswordHasher(
    memory_cost=512,
    time_cost=2,
    parallelism=2,
    hash_len=32,
    salt_len=16,
)

_WERKZEUG_PREFIXES = ('pbkdf2:', 'scrypt:')


def hash_password(password: str) -> str:
    if not password:
        raise ValueError("Password cannot be empty")
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Check ``password`` against an Argon2 or legacy werkzeug hash."""
    if not password or not password_hash:
        return False

    if password_hash.startswith(_WERKZEUG_PREFIXES):
        try:
            return check_werkzeug_hash(password_hash, password)
        except ValueError:
            logger.warning("Unreadable legacy password hash")
            return False

    try:
        return ph.verify(password_hash, password)
    except (VerifyMismatchError, VerificationError, InvalidHash):
        return False


def password_needs_rehash(password_hash: str) -> bool:
    """Legacy hashes and Argon2 hashes with outdated parameters need rehashing."""
    if not password_hash or password_hash.startswith(_WERKZEUG_PREFIXES):
        return True
    try:
        return ph.check_needs_rehash(password_hash)
    except InvalidHash:
        return True
