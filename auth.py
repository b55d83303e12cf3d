"""Registration and credential checks on top of AccountRepository.

Passwords are hashed with werkzeug (salted, slow, salt embedded in the hash
string). Login never tells "unknown user" apart from "wrong password": both
paths run one hash check and return REJECTED.
"""

from __future__ import annotations

import asyncio
import logging
import secrets
from enum import Enum

from werkzeug.security import check_password_hash, generate_password_hash

from errors import DuplicateAccount, NotFound, UniquenessViolation, ValidationError
from models import is_utf8
from repositories import AccountRepository

logger = logging.getLogger(__name__)

DEFAULT_HASH_METHOD = "scrypt"


class LoginResult(str, Enum):
    VERIFIED = "verified"
    REJECTED = "rejected"


def _require(value, field: str) -> str:
    if not isinstance(value, str) or value == "":
        raise ValidationError(f"{field} is required")
    return value


class AuthService:
    def __init__(self, accounts: AccountRepository, *, hash_method: str = DEFAULT_HASH_METHOD) -> None:
        self._accounts = accounts
        self._hash_method = hash_method
        # Compared against when the username does not exist.
        self._decoy_hash = generate_password_hash(secrets.token_urlsafe(16), method=hash_method)

    async def _hash(self, password: str) -> str:
        return await asyncio.to_thread(generate_password_hash, password, method=self._hash_method)

    async def _check(self, password_hash: str, password: str) -> bool:
        return await asyncio.to_thread(check_password_hash, password_hash, password)

    async def register(self, username, password) -> int:
        """Create an account and return its id.

        Raises ValidationError for empty or non-UTF-8 fields and DuplicateAccount when the
        username is taken. Other store failures propagate as StoreUnavailable.
        """
        username = _require(username, "username")
        password = _require(password, "password")
        if not (is_utf8(username) and is_utf8(password)):
            raise ValidationError("username and password must be valid UTF-8")

        password_hash = await self._hash(password)
        try:
            account_id = await self._accounts.insert(username, password_hash)
        except UniquenessViolation as exc:
            raise DuplicateAccount(f"username {username!r} already exists") from exc

        logger.info("Account registered id=%s username=%s", account_id, username)
        return account_id

    async def login(self, username, password) -> LoginResult:
        """Check credentials. Empty fields raise ValidationError, not REJECTED.

        Credentials that are not valid UTF-8 can never match a stored account
        and are REJECTED after a decoy check.
        """
        username = _require(username, "username")
        password = _require(password, "password")
        if not (is_utf8(username) and is_utf8(password)):
            await self._check(self._decoy_hash, "")
            logger.info("Login rejected: credentials not valid UTF-8")
            return LoginResult.REJECTED

        try:
            account = await self._accounts.find_by_username(username)
        except NotFound:
            await self._check(self._decoy_hash, password)
            logger.info("Login rejected username=%s", username)
            return LoginResult.REJECTED

        if await self._check(account.password_hash, password):
            logger.info("Login verified username=%s", username)
            return LoginResult.VERIFIED

        logger.info("Login rejected username=%s", username)
        return LoginResult.REJECTED
