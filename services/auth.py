#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Bearer token issuance and validation for Videocatalog.

Tokens are Fernet tokens: the payload (subject, issuer, audience) is
encrypted and signed with a key derived from AUTH_SECRET_KEY, and Fernet's
embedded timestamp gives each token a fixed lifetime. Validation needs no
server-side session.
"""

import hmac
import json
import os
from base64 import urlsafe_b64encode
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from config import config
from exceptions import UnauthorizedError
from logging_config import StructuredLogger

logger = StructuredLogger(__name__)


def derive_fernet_key(secret: str, salt: str) -> bytes:
    """Derive a urlsafe base64 Fernet key from a secret and salt with PBKDF2."""
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=32,
        salt=salt.encode(config.DEFAULT_ENCODING),
        iterations=100000,
    )
    return urlsafe_b64encode(kdf.derive(secret.encode(config.DEFAULT_ENCODING)))


class TokenManager:
    """Issues and validates time-boxed bearer tokens for the fixed API user."""

    def __init__(self, secret_key: Optional[str] = None, salt: Optional[str] = None,
                 ttl_seconds: Optional[int] = None, username: Optional[str] = None,
                 password: Optional[str] = None):
        secret = secret_key if secret_key is not None else config.AUTH_SECRET_KEY
        if not secret:
            secret = urlsafe_b64encode(os.urandom(32)).decode("ascii")
            logger.warning(
                "AUTH_SECRET_KEY is not set. Generated a temporary secret; "
                "issued tokens will not survive a restart."
            )

        self._fernet = Fernet(derive_fernet_key(secret, salt or config.AUTH_SECRET_SALT))
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else config.TOKEN_TTL_SECONDS
        self.issuer = config.TOKEN_ISSUER
        self.audience = config.TOKEN_AUDIENCE
        self._username = username if username is not None else config.AUTH_USERNAME
        self._password = password if password is not None else config.AUTH_PASSWORD

    def check_credentials(self, username: str, password: str) -> bool:
        """Compare credentials against the configured user in constant time."""
        user_ok = hmac.compare_digest(username.encode(), self._username.encode())
        password_ok = hmac.compare_digest(password.encode(), self._password.encode())
        return user_ok and password_ok

    def issue_token(self, subject: str) -> str:
        """Return a new token for ``subject``."""
        payload = {"sub": subject, "iss": self.issuer, "aud": self.audience}
        token = self._fernet.encrypt(json.dumps(payload).encode(config.DEFAULT_ENCODING))
        return token.decode("ascii")

    def login(self, username: str, password: str) -> str:
        """Exchange credentials for a token.

        Raises:
            UnauthorizedError: If the credentials are wrong.
        """
        if not self.check_credentials(username, password):
            logger.warning("Rejected login attempt.", username=username)
            raise UnauthorizedError("Invalid credentials.")
        logger.info("Issued access token.", username=username, ttl_seconds=self.ttl_seconds)
        return self.issue_token(username)

    def validate_token(self, token: Optional[str]) -> str:
        """Validate ``token`` and return its subject.

        Raises:
            UnauthorizedError: If the token is missing, tampered with, expired,
                or was issued for another issuer/audience.
        """
        if not token:
            raise UnauthorizedError("Missing bearer token.")

        try:
            raw = self._fernet.decrypt(token.encode("ascii"), ttl=self.ttl_seconds)
            payload = json.loads(raw)
        except (InvalidToken, UnicodeError, ValueError):
            raise UnauthorizedError("Invalid or expired token.") from None

        if payload.get("iss") != self.issuer or payload.get("aud") != self.audience:
            raise UnauthorizedError("Token was not issued for this service.")

        subject = payload.get("sub")
        if not subject:
            raise UnauthorizedError("Token has no subject.")
        return subject
