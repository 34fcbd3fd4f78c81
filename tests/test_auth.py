"""
Tests for the TokenManager class.
"""
import unittest
import sys
import os
import json
import time

# Add the parent directory to the path so we can import the application modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from exceptions import UnauthorizedError
from services.auth import TokenManager


class TestTokenManager(unittest.TestCase):
    """Test cases for bearer token issuance and validation."""

    def setUp(self):
        self.manager = TokenManager(secret_key="test-secret", salt="test-salt", ttl_seconds=60,
                                    username="admin", password="s3cret")

    def test_login_and_validate(self):
        token = self.manager.login("admin", "s3cret")
        self.assertEqual(self.manager.validate_token(token), "admin")

    def test_login_with_bad_credentials(self):
        with self.assertRaises(UnauthorizedError):
            self.manager.login("admin", "wrong")
        with self.assertRaises(UnauthorizedError):
            self.manager.login("someone", "s3cret")

    def test_missing_token(self):
        with self.assertRaises(UnauthorizedError):
            self.manager.validate_token(None)
        with self.assertRaises(UnauthorizedError):
            self.manager.validate_token("")

    def test_garbage_token(self):
        with self.assertRaises(UnauthorizedError):
            self.manager.validate_token("not-a-token")

    def test_expired_token(self):
        payload = json.dumps({"sub": "admin", "iss": self.manager.issuer, "aud": self.manager.audience})
        old = self.manager._fernet.encrypt_at_time(payload.encode(), int(time.time()) - 120)

        with self.assertRaises(UnauthorizedError):
            self.manager.validate_token(old.decode())

    def test_token_from_other_secret_is_rejected(self):
        other = TokenManager(secret_key="other-secret", salt="test-salt", username="admin", password="s3cret")
        token = other.login("admin", "s3cret")

        with self.assertRaises(UnauthorizedError):
            self.manager.validate_token(token)

    def test_wrong_audience_is_rejected(self):
        payload = json.dumps({"sub": "admin", "iss": self.manager.issuer, "aud": "someone-else"})
        token = self.manager._fernet.encrypt(payload.encode()).decode()

        with self.assertRaises(UnauthorizedError):
            self.manager.validate_token(token)

    def test_generated_secret_when_unset(self):
        manager = TokenManager(secret_key="", username="admin", password="s3cret")
        token = manager.login("admin", "s3cret")
        self.assertEqual(manager.validate_token(token), "admin")


if __name__ == '__main__':
    unittest.main()
