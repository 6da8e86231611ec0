"""
인증 모듈 테스트 공통 Fixtures

- 임시 디렉토리의 토큰 파일 / TokenStore
- 만료 시각을 지정할 수 있는 Credential 팩토리
- aiohttp 세션/응답 Mock
"""

import os
import sys
import json
import pytest
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock

# 프로젝트 경로 추가
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from auth.auth_types import Credential
from auth.azure_config import AzureConfig
from auth.time_utils import utc_now
from auth.token_store import TokenStore


@pytest.fixture
def token_path(tmp_path):
    """임시 토큰 파일 경로"""
    return tmp_path / "tokens" / "outlook-tokens.json"


@pytest.fixture
def token_store(token_path):
    """임시 경로의 TokenStore"""
    return TokenStore(token_path)


@pytest.fixture
def azure_config(token_path):
    """테스트용 Azure 설정"""
    return AzureConfig(
        client_id="test-client-id",
        client_secret="test-client-secret",
        tenant_id="common",
        redirect_uri="http://localhost:5000/callback",
        scopes=["offline_access", "Mail.Read"],
        token_store_path=str(token_path),
        expiry_buffer_seconds=60,
        refresh_timeout_seconds=5,
        request_timeout_seconds=10,
    )


@pytest.fixture
def make_credential():
    """만료까지 남은 초를 지정해서 Credential 생성"""

    def _make(expires_in=3600, access_token="access-old", refresh_token="refresh-old"):
        return Credential(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=utc_now() + timedelta(seconds=expires_in),
            scopes=["offline_access", "Mail.Read"],
            client_id="test-client-id",
        )

    return _make


@pytest.fixture
def mock_response():
    """async with로 사용할 수 있는 aiohttp 응답 Mock 팩토리"""

    def _make(status=200, body=None):
        text = body if isinstance(body, str) else json.dumps(body if body is not None else {})
        response = MagicMock()
        response.status = status
        response.text = AsyncMock(return_value=text)

        context = MagicMock()
        context.__aenter__ = AsyncMock(return_value=response)
        context.__aexit__ = AsyncMock(return_value=False)
        return context

    return _make


@pytest.fixture
def mock_aiohttp_session():
    """aiohttp.ClientSession Mock"""
    session = MagicMock()
    session.closed = False
    session.close = AsyncMock()
    return session
