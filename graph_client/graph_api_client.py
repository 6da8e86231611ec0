"""
Graph API Client
Microsoft Graph API 인증 요청 처리 (401 시 강제 갱신 후 1회 재시도)
"""

import asyncio
import json
import logging
from enum import Enum
from typing import Optional, Dict, Any, Tuple

import aiohttp

from core.errors import ApiError, AuthenticationRequired, GraphConnectorError, NetworkError, ResponseFormatError
from core.protocols import TokenProviderProtocol
from .graph_url import build_graph_url

logger = logging.getLogger(__name__)

DEFAULT_GRAPH_ENDPOINT = "https://graph.microsoft.com/v1.0/"

# 요청 본문을 전송하는 메서드
BODY_METHODS = ("POST", "PUT", "PATCH")


class Attempt(Enum):
    """한 논리 요청의 시도 단계 - 이 두 단계 이후의 시도는 없음"""

    INITIAL = "initial"
    AFTER_FORCED_REFRESH = "after_forced_refresh"


class GraphApiClient:
    """Graph API 클라이언트"""

    def __init__(
        self,
        token_provider: TokenProviderProtocol,
        base_url: str = DEFAULT_GRAPH_ENDPOINT,
        session: Optional[aiohttp.ClientSession] = None,
        timeout_seconds: int = 60,
    ):
        """
        클라이언트 초기화

        Args:
            token_provider: 유효 토큰 제공자 (프로세스 공유 TokenManager)
            base_url: Graph 기본 엔드포인트
            session: 외부에서 주입한 aiohttp 세션 (없으면 initialize에서 생성)
            timeout_seconds: 요청 타임아웃 (초)
        """
        self.token_provider = token_provider
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.timeout_seconds = timeout_seconds
        self._session = session
        self._owns_session = session is None

    async def initialize(self):
        """세션 생성"""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
            logger.info("GraphApiClient initialized")

    async def close(self):
        """리소스 정리"""
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def request(
        self,
        method: str,
        path: str,
        body: Optional[Dict[str, Any]] = None,
        query_params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Graph API 요청 수행

        Args:
            method: HTTP 메서드 (GET, POST, PUT, PATCH, DELETE)
            path: 상대 경로(예: "me/messages") 또는 완전한 URL(nextLink)
            body: JSON 본문 (POST/PUT/PATCH에서만 전송)
            query_params: 쿼리 파라미터 ($filter는 별도 인코딩)

        Returns:
            파싱된 JSON 객체 (본문이 없으면 빈 dict)

        Raises:
            AuthenticationRequired: 갱신 후에도 401, 401 이후 강제 갱신 실패, 또는 재인증 필요
            ApiError: 401 이외의 non-2xx 응답
            NetworkError: 전송 실패 또는 타임아웃
            ResponseFormatError: 2xx 응답 본문이 JSON 객체가 아님
        """
        method = method.upper()
        url = build_graph_url(self.base_url, path, query_params)
        json_body = body if method in BODY_METHODS else None

        token = await self.token_provider.get_valid_token()

        for attempt in Attempt:
            status, text = await self._send(method, url, token, json_body)

            if status != 401:
                return self._handle_response(status, text)

            if attempt is Attempt.AFTER_FORCED_REFRESH:
                break

            logger.warning(f"401 from Graph for {method} {path}, forcing token refresh and retrying once")
            try:
                token = await self.token_provider.force_refresh(rejected_token=token)
            except AuthenticationRequired:
                raise
            except GraphConnectorError as e:
                logger.error(f"Token refresh after 401 failed: {e!r}")
                raise AuthenticationRequired(
                    f"Token refresh after 401 failed: {e}. Re-authentication required."
                ) from e

        logger.error(f"401 from Graph for {method} {path} after token refresh")
        raise AuthenticationRequired("Graph API rejected the refreshed access token. Re-authentication required.")

    async def _send(
        self,
        method: str,
        url: str,
        token: str,
        json_body: Optional[Dict[str, Any]],
    ) -> Tuple[int, str]:
        """HTTP 요청 1회 전송 - (상태 코드, 본문 텍스트) 반환"""
        await self.initialize()

        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }

        logger.debug(f"Graph request: {method} {url}")

        try:
            async with self._session.request(
                method,
                url,
                headers=headers,
                json=json_body,
                timeout=aiohttp.ClientTimeout(total=self.timeout_seconds),
            ) as response:
                return response.status, await response.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Graph request transport error: {method} {url} - {e!r}")
            raise NetworkError(f"Network error during API call: {e!r}") from e

    @staticmethod
    def _handle_response(status: int, text: str) -> Dict[str, Any]:
        if not 200 <= status < 300:
            logger.error(f"API 요청 실패: {status} - {text}")
            raise ApiError(status, text)

        if status == 204 or not text.strip():
            return {}

        try:
            result = json.loads(text)
        except json.JSONDecodeError as e:
            raise ResponseFormatError(f"Error parsing API response: {e}") from e

        if not isinstance(result, dict):
            raise ResponseFormatError("API response is not a JSON object")

        return result
