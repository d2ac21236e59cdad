"""Credential hasher tests."""

from gatehouse.auth.password import PasswordHasher


def test_hash_and_verify(hasher):
    digest = hasher.hash("correct horse battery staple")
    assert digest.startswith("$2b$04$")
    assert hasher.verify("correct horse battery staple", digest)


def test_hash_is_salted(hasher):
    assert hasher.hash("same") != hasher.hash("same")


def test_wrong_password(hasher):
    digest = hasher.hash("right")
    assert not hasher.verify("wrong", digest)


def test_malformed_or_empty_digest_is_a_mismatch(hasher):
    assert not hasher.verify("anything", "")
    assert not hasher.verify("anything", "not-a-bcrypt-hash")
    assert not hasher.verify("anything", None)


def test_long_passwords_truncate_at_72_bytes(hasher):
    base = "x" * 72
    digest = hasher.hash(base + "tail-one")
    assert hasher.verify(base + "tail-two", digest)


def test_default_cost_is_fourteen():
    assert PasswordHasher().rounds == 14


def test_dummy_hash_uses_configured_cost(hasher):
    assert hasher.dummy_hash.startswith("$2b$04$")
    assert hasher.dummy_hash is hasher.dummy_hash
