# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Key derivation for stored credentials.

The algorithm is chosen per credential store by a string tag. argon2id is
the default. pbkdf2 is kept for compatibility. md5 and sha512 are
DEPRECATED: they exist only so old access files keep working and are
refused for new enrollments.
"""

from __future__ import annotations

import enum
import hashlib
import hmac
import secrets
import warnings
from typing import Tuple

from argon2.low_level import Type, hash_secret_raw

from wsfn.errors import AuthConfigError, EntropyError
from wsfn.utils.logging import get_logger

logger = get_logger(__name__)

SALT_SIZE = 32
KEY_SIZE = 32

ARGON2_TIME_COST = 1
ARGON2_MEMORY_COST = 64 * 1024  # KiB
ARGON2_PARALLELISM = 4

PBKDF2_ITERATIONS = 4097


class HashAlgorithm(enum.Enum):
    ARGON2ID = "argon2id"
    PBKDF2 = "pbkdf2"
    MD5 = "md5"
    SHA512 = "sha512"
    UNSUPPORTED = "unsupported"

    @classmethod
    def from_tag(cls, tag: str) -> "HashAlgorithm":
        """Map an encryption tag to a variant; unknown tags become UNSUPPORTED."""
        t = str(tag or "").strip().lower()
        for member in cls:
            if member is not cls.UNSUPPORTED and member.value == t:
                return member
        return cls.UNSUPPORTED

    @property
    def deprecated(self) -> bool:
        return self in (HashAlgorithm.MD5, HashAlgorithm.SHA512)

    @property
    def enrollable(self) -> bool:
        return self in (HashAlgorithm.ARGON2ID, HashAlgorithm.PBKDF2)

    def derive(self, password: str, salt: bytes) -> bytes:
        """Derive the stored key for password.

        Raises AuthConfigError for UNSUPPORTED.
        """
        pw = password.encode("utf-8")
        if self is HashAlgorithm.ARGON2ID:
            return hash_secret_raw(
                secret=pw,
                salt=salt,
                time_cost=ARGON2_TIME_COST,
                memory_cost=ARGON2_MEMORY_COST,
                parallelism=ARGON2_PARALLELISM,
                hash_len=KEY_SIZE,
                type=Type.ID,
            )
        if self is HashAlgorithm.PBKDF2:
            return hashlib.pbkdf2_hmac("sha1", pw, salt, PBKDF2_ITERATIONS, dklen=KEY_SIZE)
        if self is HashAlgorithm.MD5:
            _warn_deprecated(self)
            return hashlib.md5(pw).digest()
        if self is HashAlgorithm.SHA512:
            _warn_deprecated(self)
            # Old files store the password followed by the digest of nothing.
            return pw + hashlib.sha512().digest()
        raise AuthConfigError("unsupported password hash algorithm")


def _warn_deprecated(algorithm: HashAlgorithm) -> None:
    warnings.warn(
        f"{algorithm.value} password hashing is deprecated and insecure; "
        "re-enroll users with argon2id",
        DeprecationWarning,
        stacklevel=3,
    )


def new_salt(size: int = SALT_SIZE) -> bytes:
    try:
        return secrets.token_bytes(size)
    except (OSError, NotImplementedError) as err:
        raise EntropyError(f"could not generate a random salt, {err}") from err


def hash_password(tag: str, password: str) -> Tuple[bytes, bytes]:
    """Return a fresh (salt, key) pair for password using the tagged algorithm.

    Legacy and unknown algorithms raise AuthConfigError.
    """
    algorithm = HashAlgorithm.from_tag(tag)
    if algorithm is HashAlgorithm.UNSUPPORTED:
        raise AuthConfigError(f"unsupported password hash algorithm {tag!r}")
    if not algorithm.enrollable:
        raise AuthConfigError(f"{algorithm.value} is deprecated and cannot be used for new passwords")
    salt = new_salt()
    return salt, algorithm.derive(password, salt)


def verify_password(tag: str, password: str, salt: bytes, key: bytes) -> bool:
    """Re-derive a key from password and salt and compare it to key in constant time."""
    algorithm = HashAlgorithm.from_tag(tag)
    try:
        candidate = algorithm.derive(password, salt)
    except AuthConfigError:
        logger.warning("Login refused, unsupported encryption %r", tag)
        return False
    return hmac.compare_digest(candidate, key)
