"""
TokenRefresher Tests
refresh_token grant 요청, 오류 분류, refresh token 유지
"""

import asyncio
import pytest
from unittest.mock import MagicMock

import aiohttp

import os
import sys
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from auth.token_refresher import TokenRefresher
from core.errors import NetworkError, RefreshDenied, ResponseFormatError


class TestTokenRefresher:
    """TokenRefresher 테스트"""

    @pytest.fixture
    def refresher(self, azure_config, token_store, mock_aiohttp_session):
        return TokenRefresher(azure_config, token_store, session=mock_aiohttp_session)

    @pytest.mark.asyncio
    async def test_refresh_posts_refresh_grant(self, refresher, mock_aiohttp_session, mock_response, make_credential):
        mock_aiohttp_session.post = MagicMock(return_value=mock_response(200, {
            "access_token": "access-new",
            "refresh_token": "refresh-new",
            "expires_in": 3600,
            "scope": "offline_access Mail.Read",
        }))

        new_credential = await refresher.refresh(make_credential(expires_in=-10))

        assert new_credential.access_token == "access-new"
        assert new_credential.refresh_token == "refresh-new"

        args, kwargs = mock_aiohttp_session.post.call_args
        assert args[0] == "https://login.microsoftonline.com/common/oauth2/v2.0/token"
        assert kwargs["data"]["grant_type"] == "refresh_token"
        assert kwargs["data"]["refresh_token"] == "refresh-old"
        assert kwargs["data"]["client_id"] == "test-client-id"
        assert kwargs["data"]["client_secret"] == "test-client-secret"
        assert kwargs["data"]["scope"] == "offline_access Mail.Read"

    @pytest.mark.asyncio
    async def test_refresh_preserves_refresh_token_when_omitted(
        self, refresher, token_store, mock_aiohttp_session, mock_response, make_credential
    ):
        """응답에 refresh_token이 없으면 이전 refresh token 유지"""
        old = make_credential(expires_in=-10)
        token_store.save(old)
        mock_aiohttp_session.post = MagicMock(return_value=mock_response(200, {
            "access_token": "access-new",
            "expires_in": 3600,
        }))

        await refresher.refresh(old)

        stored = token_store.load()
        assert stored.refresh_token == "refresh-old"
        assert stored.access_token == "access-new"
        assert stored.expires_at > old.expires_at
        assert stored.scopes == old.scopes

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload,expected_seconds", [
        ({"access_token": "access-new", "expires_in": 0}, 0),
        ({"access_token": "access-new"}, 3600),
    ])
    async def test_refresh_uses_reported_lifetime(
        self, refresher, mock_aiohttp_session, mock_response, make_credential, payload, expected_seconds
    ):
        """expires_in이 없을 때만 기본 수명 사용 (0은 그대로 반영)"""
        mock_aiohttp_session.post = MagicMock(return_value=mock_response(200, payload))

        new_credential = await refresher.refresh(make_credential(expires_in=-10))

        assert abs(new_credential.seconds_remaining() - expected_seconds) < 5

    @pytest.mark.asyncio
    async def test_invalid_grant_raises_refresh_denied(
        self, refresher, token_store, mock_aiohttp_session, mock_response, make_credential
    ):
        old = make_credential(expires_in=-10)
        token_store.save(old)
        mock_aiohttp_session.post = MagicMock(return_value=mock_response(400, {
            "error": "invalid_grant",
            "error_description": "AADSTS70008: The refresh token has expired",
        }))

        with pytest.raises(RefreshDenied) as exc_info:
            await refresher.refresh(old)

        assert exc_info.value.error_code == "invalid_grant"
        assert "AADSTS70008" in exc_info.value.description
        assert token_store.load() == old

    @pytest.mark.asyncio
    async def test_invalid_client_raises_refresh_denied(self, refresher, mock_aiohttp_session, mock_response, make_credential):
        mock_aiohttp_session.post = MagicMock(return_value=mock_response(401, {"error": "invalid_client"}))

        with pytest.raises(RefreshDenied) as exc_info:
            await refresher.refresh(make_credential())

        assert exc_info.value.error_code == "invalid_client"

    @pytest.mark.asyncio
    async def test_missing_refresh_token_denied_without_network(self, refresher, mock_aiohttp_session, make_credential):
        mock_aiohttp_session.post = MagicMock()

        with pytest.raises(RefreshDenied):
            await refresher.refresh(make_credential(refresh_token=None))

        mock_aiohttp_session.post.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [429, 500, 503])
    async def test_provider_unavailable_raises_network_error(
        self, refresher, mock_aiohttp_session, mock_response, make_credential, status
    ):
        mock_aiohttp_session.post = MagicMock(return_value=mock_response(status, "Service Unavailable"))

        with pytest.raises(NetworkError):
            await refresher.refresh(make_credential())

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [aiohttp.ClientConnectionError("connection reset"), asyncio.TimeoutError()])
    async def test_transport_failure_raises_network_error(self, refresher, mock_aiohttp_session, make_credential, error):
        mock_aiohttp_session.post = MagicMock(side_effect=error)

        with pytest.raises(NetworkError):
            await refresher.refresh(make_credential())

    @pytest.mark.asyncio
    async def test_non_json_response_raises_format_error(self, refresher, mock_aiohttp_session, mock_response, make_credential):
        mock_aiohttp_session.post = MagicMock(return_value=mock_response(200, "<html>gateway</html>"))

        with pytest.raises(ResponseFormatError):
            await refresher.refresh(make_credential())

    @pytest.mark.asyncio
    async def test_missing_access_token_raises_format_error(
        self, refresher, token_store, mock_aiohttp_session, mock_response, make_credential
    ):
        mock_aiohttp_session.post = MagicMock(return_value=mock_response(200, {"token_type": "Bearer"}))

        with pytest.raises(ResponseFormatError):
            await refresher.refresh(make_credential())

        assert token_store.load() is None

    @pytest.mark.asyncio
    async def test_exchange_code_saves_credential(self, refresher, token_store, mock_aiohttp_session, mock_response):
        mock_aiohttp_session.post = MagicMock(return_value=mock_response(200, {
            "access_token": "access-first",
            "refresh_token": "refresh-first",
            "expires_in": 3599,
            "scope": "offline_access Mail.Read",
        }))

        credential = await refresher.exchange_code("auth-code-123")

        data = mock_aiohttp_session.post.call_args.kwargs["data"]
        assert data["grant_type"] == "authorization_code"
        assert data["code"] == "auth-code-123"
        assert data["redirect_uri"] == "http://localhost:5000/callback"
        assert token_store.load() == credential
        assert credential.client_id == "test-client-id"

    @pytest.mark.asyncio
    async def test_close_does_not_close_injected_session(self, refresher, mock_aiohttp_session):
        await refresher.close()

        mock_aiohttp_session.close.assert_not_called()
