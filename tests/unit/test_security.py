"""Tests for password hashing and generation."""

from app.core.security import generate_password, hash_password, verify_password


class TestPasswords:
    """Tests for the password helpers."""

    def test_hash_and_verify(self) -> None:
        hashed = hash_password("s3cret-pass")

        assert hashed != "s3cret-pass"
        assert verify_password("s3cret-pass", hashed)
        assert not verify_password("wrong", hashed)

    def test_generated_passwords_are_unique(self) -> None:
        passwords = {generate_password() for _ in range(50)}

        assert len(passwords) == 50

    def test_generated_password_length(self) -> None:
        assert len(generate_password()) >= 16
