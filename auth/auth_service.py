"""
Authentication Service
Authorization code 플로우 - 로그인 URL 생성과 콜백 처리
"""

import logging
import secrets
from datetime import datetime, timezone, timedelta
from typing import Optional, Dict, Any
from urllib.parse import urlencode

from core.errors import AuthenticationRequired
from .auth_types import Credential
from .azure_config import AzureConfig
from .token_refresher import TokenRefresher

logger = logging.getLogger(__name__)

# 발급 후 이 시간이 지난 state는 폐기
STATE_TTL = timedelta(minutes=10)


class AuthService:
    """인증 서비스 - 인증 플로우 시작/완료"""

    def __init__(self, config: AzureConfig, refresher: TokenRefresher):
        """
        인증 서비스 초기화

        Args:
            config: AzureConfig 인스턴스
            refresher: 코드 교환 및 저장을 담당하는 TokenRefresher
        """
        self.config = config
        self.refresher = refresher

        # 인증 상태 저장
        self.auth_states: Dict[str, Dict[str, Any]] = {}

    def start_auth_flow(self) -> Dict[str, str]:
        """
        인증 플로우 시작 - 인증 URL 생성

        Returns:
            Dict: 인증 정보
                - auth_url: Azure AD 인증 URL
                - state: 보안 검증용 state
        """
        self._prune_states()

        state = secrets.token_urlsafe(32)
        self.auth_states[state] = {
            'created_at': datetime.now(timezone.utc),
            'status': 'pending'
        }

        auth_url = self._generate_auth_url(state, self.config.default_scopes)

        logger.info(f"Auth flow started with state: {state[:10]}...")

        return {
            'auth_url': auth_url,
            'state': state
        }

    async def complete_auth_flow(self, authorization_code: str, state: str) -> Credential:
        """
        인증 플로우 완료 - 콜백 처리

        Args:
            authorization_code: Azure AD에서 받은 인증 코드
            state: start_auth_flow에서 발급한 state

        Returns:
            저장된 Credential

        Raises:
            AuthenticationRequired: 알 수 없거나 만료된 state
        """
        self._prune_states()

        if state not in self.auth_states:
            logger.error(f"Unknown or expired auth state: {state[:10]}...")
            raise AuthenticationRequired("Invalid or expired authentication state. Please login again.")

        del self.auth_states[state]

        credential = await self.refresher.exchange_code(authorization_code, self.config.azure_redirect_uri)

        logger.info(f"Authentication successful for account {credential.account_id}")
        return credential

    def has_pending_state(self, state: Optional[str]) -> bool:
        return bool(state) and state in self.auth_states

    def _prune_states(self):
        cutoff = datetime.now(timezone.utc) - STATE_TTL
        expired = [s for s, info in self.auth_states.items() if info['created_at'] < cutoff]
        for s in expired:
            del self.auth_states[s]

    def _generate_auth_url(self, state: str, scopes: list) -> str:
        """OAuth 인증 URL 생성"""
        params = {
            'client_id': self.config.azure_client_id,
            'response_type': 'code',
            'redirect_uri': self.config.azure_redirect_uri,
            'response_mode': 'query',
            'scope': ' '.join(scopes),
            'state': state
        }

        return f"{self.config.authorize_endpoint}?{urlencode(params)}"
