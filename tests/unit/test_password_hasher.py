"""Unit tests for PasswordHasher."""

from identity.services.password_hasher import PasswordHasher


class TestPasswordHashing:
    """Tests for bcrypt hash / verify."""

    def test_hash_returns_bcrypt_string(self, hasher):
        hashed = hasher.hash("my-secret-pw")
        assert hashed.startswith("$2b$") or hashed.startswith("$2a$")
        assert len(hashed) == 60

    def test_hash_never_contains_plaintext(self, hasher):
        assert "my-secret-pw" not in hasher.hash("my-secret-pw")

    def test_same_password_hashes_differently_and_both_verify(self, hasher):
        h1 = hasher.hash("same-password")
        h2 = hasher.hash("same-password")
        assert h1 != h2, "Each call should produce a unique salt"
        assert hasher.verify("same-password", h1) is True
        assert hasher.verify("same-password", h2) is True

    def test_verify_wrong_password(self, hasher):
        hashed = hasher.hash("right-password")
        assert hasher.verify("wrong-password", hashed) is False

    def test_verify_malformed_hash_returns_false(self, hasher):
        assert hasher.verify("anything", "not-a-bcrypt-hash") is False
        assert hasher.verify("anything", "") is False

    def test_rounds_are_encoded_in_hash(self):
        hashed = PasswordHasher(rounds=5).hash("pw-with-cost")
        assert hashed.split("$")[2] == "05"

    def test_dummy_hash_is_stable_and_rejects_passwords(self, hasher):
        assert hasher.dummy_hash == hasher.dummy_hash
        assert hasher.verify("password-123", hasher.dummy_hash) is False
