"""Settings validation tests."""

import pytest
from pydantic import ValidationError

from gatehouse.config import Settings


@pytest.mark.parametrize("algorithm", ["HS256", "HS384", "HS512"])
def test_hmac_algorithms_accepted(algorithm):
    assert Settings(jwt_algorithm=algorithm).jwt_algorithm == algorithm


@pytest.mark.parametrize("algorithm", ["HS999", "HS", "RS256", "none"])
def test_other_algorithms_rejected(algorithm):
    with pytest.raises(ValidationError, match="HMAC"):
        Settings(jwt_algorithm=algorithm)


def test_default_secret_refused_outside_development():
    with pytest.raises(ValidationError, match="GATEHOUSE_JWT_SECRET"):
        Settings(environment="production", jwt_secret="change-me-in-production")


def test_admin_scope_is_constrained():
    assert Settings(admin_scope="account").admin_scope == "account"
    with pytest.raises(ValidationError):
        Settings(admin_scope="everyone")
