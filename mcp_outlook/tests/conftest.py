"""
Outlook 서비스/서버 테스트 공통 Fixtures
"""

import os
import sys
import pytest
from unittest.mock import AsyncMock, MagicMock

# 프로젝트 경로 추가
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from mcp_outlook.outlook_service import OutlookService


@pytest.fixture
def mock_api_client():
    """GraphApiClient Mock"""
    client = MagicMock()
    client.request = AsyncMock(return_value={})
    client.close = AsyncMock()
    return client


@pytest.fixture
def mock_paginator():
    """GraphPaginator Mock"""
    paginator = MagicMock()
    paginator.collect = AsyncMock(return_value=[])
    return paginator


@pytest.fixture
def mock_token_manager():
    """TokenManager Mock"""
    manager = MagicMock()
    manager.get_status = AsyncMock(return_value={"status": "not_found", "authenticated": False})
    manager.close = AsyncMock()
    return manager


@pytest.fixture
def mock_auth_service():
    """AuthService Mock - 고정 로그인 URL"""
    service = MagicMock()
    service.start_auth_flow = MagicMock(return_value={
        "auth_url": "https://login.microsoftonline.com/common/oauth2/v2.0/authorize?state=abc",
        "state": "abc",
    })
    return service


@pytest.fixture
def mock_callback_server():
    """CallbackServer Mock"""
    server = MagicMock()
    server.is_running = MagicMock(return_value=False)
    server.start = AsyncMock()
    server.stop = AsyncMock()
    return server


@pytest.fixture
def outlook_service(mock_api_client, mock_paginator, mock_token_manager, mock_auth_service, mock_callback_server):
    """Mock 컴포넌트를 주입한 OutlookService"""
    return OutlookService(
        mock_api_client,
        mock_paginator,
        mock_token_manager,
        auth_service=mock_auth_service,
        callback_server=mock_callback_server,
    )


@pytest.fixture
def sample_messages():
    """Graph 메일 목록 응답 항목"""
    return [
        {
            "id": f"AAMkAD-{i}",
            "subject": f"테스트 메일 {i}",
            "from": {"emailAddress": {"name": "Test Sender", "address": "sender@example.com"}},
            "receivedDateTime": "2026-10-19T10:30:00Z",
            "bodyPreview": "This is a test email body.",
            "isRead": i % 2 == 0,
            "hasAttachments": False,
            "importance": "normal",
        }
        for i in range(3)
    ]
