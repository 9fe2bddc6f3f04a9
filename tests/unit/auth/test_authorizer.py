from datetime import datetime
from unittest.mock import Mock, patch

import pytest
from google.auth.exceptions import RefreshError, TransportError

from tasks_extended.auth.authorizer import AuthorizationParams, GoogleAuthorizer, REVOKE_URI
from tasks_extended.auth.credentials import Credential
from tasks_extended.exceptions import AuthError, ConfigurationError, NoSession


@pytest.fixture
def authorizer():
    return GoogleAuthorizer("client-id.apps.googleusercontent.com", "client-secret")


@pytest.fixture
def google_creds():
    creds = Mock()
    creds.token = "ya29.from-consent"
    creds.refresh_token = "1//from-consent"
    creds.expiry = datetime(2025, 1, 15, 11, 0)
    creds.scopes = ["https://www.googleapis.com/auth/tasks"]
    return creds


@pytest.mark.unit
@pytest.mark.auth
class TestGoogleAuthorizerSignIn:
    """Test cases for the interactive consent flow."""

    def test_requires_client(self):
        with pytest.raises(ConfigurationError):
            GoogleAuthorizer("", "secret")

    @pytest.mark.asyncio
    @patch('tasks_extended.auth.authorizer.InstalledAppFlow.from_client_config')
    async def test_sign_in(self, mock_from_config, authorizer, google_creds):
        mock_flow = Mock()
        mock_flow.run_local_server.return_value = google_creds
        mock_from_config.return_value = mock_flow

        credential = await authorizer.sign_in(AuthorizationParams())

        assert credential.access_token == "ya29.from-consent"
        assert credential.refresh_token == "1//from-consent"
        client_config, scopes = mock_from_config.call_args.args
        assert client_config['installed']['client_id'] == "client-id.apps.googleusercontent.com"
        assert scopes == ["https://www.googleapis.com/auth/tasks"]
        kwargs = mock_flow.run_local_server.call_args.kwargs
        assert kwargs['port'] == 0
        assert kwargs['host'] == "127.0.0.1"
        assert kwargs['access_type'] == 'offline'
        assert kwargs['prompt'] == 'consent'
        assert "Signed in successfully" in kwargs['success_message']

    @pytest.mark.asyncio
    @patch('tasks_extended.auth.authorizer.InstalledAppFlow.from_client_config')
    async def test_sign_in_passes_login_hint(self, mock_from_config, authorizer, google_creds):
        mock_from_config.return_value.run_local_server.return_value = google_creds

        await authorizer.sign_in(AuthorizationParams(login_hint="user@example.com"))

        kwargs = mock_from_config.return_value.run_local_server.call_args.kwargs
        assert kwargs['login_hint'] == "user@example.com"

    @pytest.mark.asyncio
    @patch('tasks_extended.auth.authorizer.InstalledAppFlow.from_client_config')
    async def test_sign_in_failure_raises_auth_error(self, mock_from_config, authorizer):
        mock_from_config.return_value.run_local_server.side_effect = Exception("access_denied")

        with pytest.raises(AuthError, match="access_denied"):
            await authorizer.sign_in(AuthorizationParams())

    @pytest.mark.asyncio
    @patch('tasks_extended.auth.authorizer.InstalledAppFlow.from_client_config')
    async def test_sign_in_without_token_raises(self, mock_from_config, authorizer, google_creds):
        google_creds.token = None
        mock_from_config.return_value.run_local_server.return_value = google_creds

        with pytest.raises(AuthError, match="did not return an access token"):
            await authorizer.sign_in(AuthorizationParams())


@pytest.mark.unit
@pytest.mark.auth
class TestGoogleAuthorizerRestore:
    """Test cases for silent renewal."""

    @pytest.mark.asyncio
    async def test_no_refresh_token(self, authorizer):
        with pytest.raises(NoSession):
            await authorizer.restore_silently(Credential("ya29.only-access"))

    @pytest.mark.asyncio
    @patch('tasks_extended.auth.authorizer.Request')
    async def test_restore_keeps_refresh_token(self, mock_request, authorizer, credential):
        refreshed = Mock(token="ya29.renewed", refresh_token=None, expiry=None, scopes=None)

        with patch.object(Credential, 'to_google_credentials', return_value=refreshed) as mock_convert:
            result = await authorizer.restore_silently(credential)

        mock_convert.assert_called_once_with(
            "client-id.apps.googleusercontent.com", "client-secret", token_uri=authorizer.token_uri
        )
        refreshed.refresh.assert_called_once_with(mock_request.return_value)
        assert result.access_token == "ya29.renewed"
        assert result.refresh_token == credential.refresh_token

    @pytest.mark.asyncio
    @patch('tasks_extended.auth.authorizer.Request')
    async def test_revoked_refresh_token_raises_no_session(self, mock_request, authorizer, credential):
        refreshed = Mock()
        refreshed.refresh.side_effect = RefreshError("invalid_grant: Token has been expired or revoked.")

        with patch.object(Credential, 'to_google_credentials', return_value=refreshed):
            with pytest.raises(NoSession):
                await authorizer.restore_silently(credential)

    @pytest.mark.asyncio
    @patch('tasks_extended.auth.authorizer.Request')
    async def test_network_error_raises_auth_error(self, mock_request, authorizer, credential):
        refreshed = Mock()
        refreshed.refresh.side_effect = TransportError("connection refused")

        with patch.object(Credential, 'to_google_credentials', return_value=refreshed):
            with pytest.raises(AuthError, match="Network error"):
                await authorizer.restore_silently(credential)


@pytest.mark.unit
@pytest.mark.auth
class TestGoogleAuthorizerSignOut:
    """Test cases for token revocation."""

    @pytest.mark.asyncio
    @patch('tasks_extended.auth.authorizer.Request')
    async def test_revokes_refresh_token(self, mock_request, authorizer, credential):
        mock_request.return_value.return_value = Mock(status=200)

        await authorizer.sign_out(credential)

        kwargs = mock_request.return_value.call_args.kwargs
        assert kwargs['url'] == REVOKE_URI
        assert kwargs['method'] == "POST"
        assert kwargs['body'] == "token=1%2F%2Frefresh-token"

    @pytest.mark.asyncio
    @patch('tasks_extended.auth.authorizer.Request')
    async def test_revoke_failure_is_swallowed(self, mock_request, authorizer, credential):
        mock_request.return_value.side_effect = TransportError("offline")

        await authorizer.sign_out(credential)

    @pytest.mark.asyncio
    @patch('tasks_extended.auth.authorizer.Request')
    async def test_revoke_error_status_is_logged(self, mock_request, authorizer, credential, caplog):
        mock_request.return_value.return_value = Mock(status=400)

        await authorizer.sign_out(credential)

        assert "HTTP 400" in caplog.text
