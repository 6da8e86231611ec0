"""
Graph 클라이언트 테스트 공통 Fixtures
"""

import os
import sys
import json
import pytest
from unittest.mock import AsyncMock, MagicMock

# 프로젝트 경로 추가
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

GRAPH_BASE = "https://graph.microsoft.com/v1.0/"


@pytest.fixture
def mock_token_provider():
    """TokenProviderProtocol Mock - get_valid_token / force_refresh"""
    provider = MagicMock()
    provider.get_valid_token = AsyncMock(return_value="token-1")
    provider.force_refresh = AsyncMock(return_value="token-2")
    provider.close = AsyncMock()
    return provider


@pytest.fixture
def mock_response():
    """async with로 사용할 수 있는 aiohttp 응답 Mock 팩토리"""

    def _make(status=200, body=None):
        if body is None:
            text = ""
        elif isinstance(body, str):
            text = body
        else:
            text = json.dumps(body)
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
