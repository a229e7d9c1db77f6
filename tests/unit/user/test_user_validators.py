"""Tests for user input validators."""

import pytest

from finman.core.modules.user.service import check_password, hash_password
from finman.core.modules.user.validators import normalize_email, validate_email, validate_name, validate_password
from finman.errors import ValidationError


class TestEmail:
    def test_normalize(self):
        assert normalize_email("  Jane.Doe@Example.COM ") == "jane.doe@example.com"

    @pytest.mark.parametrize("email", ["jane@example.com", "jane.doe+bills@mail.example.org"])
    def test_valid(self, email):
        validate_email(email)

    @pytest.mark.parametrize("email", ["", "jane", "jane@", "@example.com", "jane@example", "jane doe@example.com"])
    def test_invalid(self, email):
        with pytest.raises(ValidationError, match="valid email"):
            validate_email(email)


class TestName:
    def test_blank_rejected(self):
        with pytest.raises(ValidationError, match="add a name"):
            validate_name("   ")

    def test_too_long_rejected(self):
        with pytest.raises(ValidationError, match="more than 100"):
            validate_name("x" * 101)


class TestPassword:
    """Tests for password rules and hashing."""

    def test_valid(self):
        validate_password("secret1")

    def test_too_short(self):
        with pytest.raises(ValidationError, match="at least 6"):
            validate_password("abc")

    def test_whitespace_rejected(self):
        with pytest.raises(ValidationError, match="whitespace"):
            validate_password("secret 123")

    def test_hash_roundtrip(self):
        hashed = hash_password("secret123")

        assert hashed != "secret123"
        assert check_password("secret123", hashed)
        assert not check_password("wrong-password", hashed)
