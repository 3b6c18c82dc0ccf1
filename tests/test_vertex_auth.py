"""Tests for the Application Default Credentials token source."""

from unittest.mock import Mock, patch

from vertex_auth import SCOPES, AccessToken


def _credentials(valid: bool, token: str = "ya29.token") -> Mock:
    creds = Mock()
    creds.valid = valid
    creds.token = token
    return creds


@patch("vertex_auth.google.auth.default")
def test_loads_default_credentials_with_cloud_scope(mock_default):
    creds = _credentials(valid=True)
    mock_default.return_value = (creds, "demo-project")

    token = AccessToken()

    mock_default.assert_called_once_with(scopes=SCOPES)
    assert token.credentials is creds


def test_expired_credentials_are_refreshed():
    creds = _credentials(valid=False)

    assert AccessToken(creds).current() == "ya29.token"
    creds.refresh.assert_called_once()


def test_valid_credentials_are_reused():
    creds = _credentials(valid=True)

    assert AccessToken(creds).current() == "ya29.token"
    creds.refresh.assert_not_called()
