import pytest

from appbase_backend.auth.credentials import hash_password, validate_new_password, verify_password
from appbase_backend.errors import WeakPasswordError


class TestPasswordHashing:

    def test_correct_password_matches_own_hash(self):
        hashed = hash_password("s3cret-pass")
        assert verify_password("s3cret-pass", hashed) is True

    def test_wrong_password_does_not_match(self):
        hashed = hash_password("s3cret-pass")
        assert verify_password("other-pass", hashed) is False

    def test_password_against_other_users_hash(self):
        alice = hash_password("alice-password")
        bob = hash_password("bob-password")
        assert verify_password("alice-password", bob) is False
        assert verify_password("bob-password", alice) is False

    def test_hashes_are_salted(self):
        assert hash_password("same-password") != hash_password("same-password")

    def test_cost_factor_is_encoded_in_hash(self):
        hashed = hash_password("s3cret-pass", rounds=12)
        assert hashed.startswith("$2b$12$")

    @pytest.mark.parametrize("corrupt", [
        "",
        None,
        "not-a-bcrypt-hash",
        "$2b$12$tooshort",
    ])
    def test_corrupt_hash_returns_false(self, corrupt):
        assert verify_password("s3cret-pass", corrupt) is False

    def test_tampered_hash_returns_false(self):
        hashed = hash_password("s3cret-pass")
        tampered = hashed[:-4] + ("AAAA" if not hashed.endswith("AAAA") else "BBBB")
        assert verify_password("s3cret-pass", tampered) is False

    def test_empty_password_never_matches(self):
        hashed = hash_password("s3cret-pass")
        assert verify_password("", hashed) is False


class TestPasswordPolicy:

    def test_accepts_reasonable_password(self):
        validate_new_password("long-enough")

    def test_rejects_short_password(self):
        with pytest.raises(WeakPasswordError):
            validate_new_password("short", min_length=8)

    def test_rejects_password_beyond_bcrypt_limit(self):
        with pytest.raises(WeakPasswordError):
            validate_new_password("x" * 73)
