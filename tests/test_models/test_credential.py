from __future__ import annotations

import pytest

from bumpwise.exceptions import ConfigError
from bumpwise.models.credential import (
    Credential,
    CredentialType,
    find_credential,
)

GITHUB = Credential(
    type=CredentialType.GIT_SOURCE,
    username="x-access-token",
    password="s3cret-token",
    host="github.com",
)
FURY = Credential(
    type=CredentialType.COMPOSER_REPOSITORY,
    username="token",
    password="hunter2",
    registry="php.fury.io",
)


@pytest.mark.unit
class TestCredential:
    def test_target(self) -> None:
        assert GITHUB.target == "github.com"
        assert FURY.target == "php.fury.io"

    @pytest.mark.parametrize(
        "candidate, expected",
        [
            ("github.com", True),
            ("GitHub.com", True),
            ("https://github.com/acme/lib.git", True),
            ("gitlab.com", False),
            ("https://gitlab.com/acme/lib.git", False),
        ],
    )
    def test_matches(self, candidate: str, expected: bool) -> None:
        assert GITHUB.matches(candidate) is expected

    def test_matches_without_target(self) -> None:
        credential = Credential(type=CredentialType.GIT_SOURCE, username="u", password="p")
        assert not credential.matches("github.com")

    def test_repr_hides_password(self) -> None:
        text = repr(FURY)

        assert "hunter2" not in text
        assert "php.fury.io" in text

    def test_from_dict(self) -> None:
        data = {
            "type": "composer_repository",
            "registry": "php.fury.io",
            "username": "token",
            "password": "hunter2",
        }
        assert Credential.from_dict(data) == FURY

    @pytest.mark.parametrize(
        "data",
        [{"username": "u"}, {"type": "npm_registry", "username": "u"}],
    )
    def test_from_dict_invalid(self, data) -> None:
        with pytest.raises(ConfigError):
            Credential.from_dict(data)


@pytest.mark.unit
def test_find_credential() -> None:
    credentials = [GITHUB, FURY]

    assert find_credential(credentials, CredentialType.COMPOSER_REPOSITORY, "https://php.fury.io/acme") is FURY
    assert find_credential(credentials, CredentialType.GIT_SOURCE, "php.fury.io") is None
