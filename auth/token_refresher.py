"""
Token Refresher
OAuth2 토큰 엔드포인트 호출 (refresh_token / authorization_code grant)

갱신 결과는 반환 전에 TokenStore에 저장합니다.
한 번의 호출에서 네트워크 요청은 최대 1회이며 재시도하지 않습니다.
"""

import asyncio
import json
import logging
from typing import Optional, Dict, Any

import aiohttp
from pydantic import ValidationError

from core.errors import NetworkError, RefreshDenied, ResponseFormatError
from .auth_types import Credential
from .azure_config import AzureConfig
from .token_store import TokenStore

logger = logging.getLogger(__name__)

# provider가 grant 자체를 거부할 때의 상태 코드 (invalid_grant, invalid_client 등)
DENIED_STATUSES = (400, 401)


class TokenRefresher:
    """토큰 갱신기 - identity provider 토큰 엔드포인트 클라이언트"""

    def __init__(
        self,
        config: AzureConfig,
        store: TokenStore,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Args:
            config: AzureConfig 인스턴스
            store: 갱신 결과를 저장할 TokenStore
            session: 외부에서 주입한 aiohttp 세션 (없으면 필요할 때 생성)
        """
        self.config = config
        self.store = store
        self.session = session
        self._owns_session = session is None

    async def _get_session(self) -> aiohttp.ClientSession:
        """aiohttp 세션 관리"""
        if not self.session or self.session.closed:
            self.session = aiohttp.ClientSession()
            self._owns_session = True
        return self.session

    def _requested_scopes(self, credential: Optional[Credential] = None) -> str:
        if self.config.default_scopes:
            return self.config.scope_string
        if credential is not None:
            return " ".join(credential.scopes)
        return ""

    async def refresh(self, credential: Credential) -> Credential:
        """
        refresh_token grant로 새 자격 증명 발급

        Args:
            credential: 현재 자격 증명 (refresh token 필요)

        Returns:
            저장까지 완료된 새 Credential

        Raises:
            RefreshDenied: refresh token 없음 또는 provider 거부
            NetworkError: 전송 실패, 타임아웃, provider 장애 (5xx 등)
            ResponseFormatError: 응답 JSON 형식 오류
            StorageError: 저장 실패
        """
        if not credential.can_refresh:
            raise RefreshDenied(
                "No refresh token available. Re-authentication required.",
                error_code="no_refresh_token",
            )

        data = {
            'grant_type': 'refresh_token',
            'refresh_token': credential.refresh_token,
            'client_id': self.config.azure_client_id or credential.client_id or "",
            'client_secret': self.config.azure_client_secret or "",
            'scope': self._requested_scopes(credential),
        }

        logger.info(f"Refreshing access token for account {credential.account_id}")
        token_data = await self._post_token_request(data)

        new_credential = self._build_credential(token_data, previous=credential)
        self.store.save(new_credential)

        logger.info("Token refreshed successfully")
        return new_credential

    async def exchange_code(self, authorization_code: str, redirect_uri: Optional[str] = None) -> Credential:
        """
        Authorization code를 토큰으로 교환하고 저장

        Args:
            authorization_code: Azure AD에서 받은 인증 코드
            redirect_uri: 인증 요청에 사용한 redirect URI

        Returns:
            저장까지 완료된 Credential
        """
        data = {
            'grant_type': 'authorization_code',
            'code': authorization_code,
            'redirect_uri': redirect_uri or self.config.azure_redirect_uri,
            'client_id': self.config.azure_client_id or "",
            'client_secret': self.config.azure_client_secret or "",
            'scope': self._requested_scopes(),
        }

        token_data = await self._post_token_request(data)

        credential = self._build_credential(token_data, previous=None)
        self.store.save(credential)

        logger.info("Authorization code exchanged and token saved")
        return credential

    def _build_credential(self, token_data: Dict[str, Any], previous: Optional[Credential]) -> Credential:
        if not token_data.get('access_token'):
            raise ResponseFormatError("Token response does not contain an access_token")

        try:
            return Credential.from_token_response(
                token_data,
                previous=previous,
                client_id=self.config.azure_client_id,
            )
        except (ValidationError, ValueError, TypeError) as e:
            raise ResponseFormatError(f"Invalid token response: {e}") from e

    async def _post_token_request(self, data: Dict[str, str]) -> Dict[str, Any]:
        """토큰 엔드포인트 POST - 상태 코드별로 예외 분류"""
        session = await self._get_session()
        timeout = aiohttp.ClientTimeout(total=self.config.request_timeout_seconds)

        try:
            async with session.post(self.config.token_endpoint, data=data, timeout=timeout) as response:
                status = response.status
                body = await response.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Token endpoint transport error: {e!r}")
            raise NetworkError(f"Network error calling token endpoint: {e!r}") from e

        if status in DENIED_STATUSES:
            error_code, description = self._parse_error(body)
            logger.error(f"Token request denied: {error_code}")
            raise RefreshDenied(
                f"Token request rejected by identity provider: {error_code or status}",
                error_code=error_code,
                description=description,
            )

        if status != 200:
            logger.error(f"Token endpoint returned status {status}")
            raise NetworkError(f"Token endpoint returned status {status}: {body}")

        try:
            token_data = json.loads(body)
        except json.JSONDecodeError as e:
            raise ResponseFormatError(f"Token response is not valid JSON: {e}") from e

        if not isinstance(token_data, dict):
            raise ResponseFormatError("Token response is not a JSON object")

        return token_data

    @staticmethod
    def _parse_error(body: str):
        """OAuth 오류 응답에서 error / error_description 추출"""
        try:
            payload = json.loads(body)
        except (json.JSONDecodeError, TypeError):
            return None, body or None

        if not isinstance(payload, dict):
            return None, body
        return payload.get('error'), payload.get('error_description')

    async def close(self):
        """리소스 정리"""
        if self._owns_session and self.session and not self.session.closed:
            await self.session.close()
            logger.info("Token refresher session closed")
