"""
Token Manager
핸들러/Graph 클라이언트가 사용하는 토큰 생애주기 파사드

- get_valid_token(): 안전 마진 이상 유효한 액세스 토큰 반환 (필요시 갱신)
- force_refresh(): API가 토큰을 거부했을 때 강제 갱신
- 동시 갱신 요청은 하나의 asyncio.Task로 합쳐서 처리 (계정당 in-flight 갱신 1개)

프로세스당 하나의 인스턴스를 만들어 필요한 모든 컴포넌트에 주입합니다.
"""

import asyncio
import logging
from typing import Optional, Dict, Any

from core.errors import AuthenticationRequired, RefreshDenied, RefreshTimeout
from .auth_types import Credential
from .time_utils import time_until_expiry
from .token_refresher import TokenRefresher
from .token_store import TokenStore

logger = logging.getLogger(__name__)


class TokenManager:
    """토큰 매니저 - 검증, 캐싱, 갱신 병합(coalescing)"""

    def __init__(
        self,
        store: TokenStore,
        refresher: TokenRefresher,
        expiry_buffer_seconds: int = 300,
        refresh_timeout_seconds: float = 30,
    ):
        """
        Args:
            store: 토큰 저장소
            refresher: 토큰 갱신기 (같은 store에 결과를 저장해야 함)
            expiry_buffer_seconds: 남은 시간이 이보다 짧으면 만료로 취급
            refresh_timeout_seconds: 공유 갱신 대기 제한 (초과 시 RefreshTimeout)
        """
        self.store = store
        self.refresher = refresher
        self.expiry_buffer_seconds = expiry_buffer_seconds
        self.refresh_timeout_seconds = refresh_timeout_seconds

        self._credential: Optional[Credential] = None
        self._refresh_task: Optional[asyncio.Task] = None

    async def get_valid_token(self) -> str:
        """
        유효한 액세스 토큰 반환 (필요시 자동 갱신)

        Returns:
            안전 마진 이상 유효한 액세스 토큰

        Raises:
            AuthenticationRequired: 자격 증명 없음, refresh token 없음, provider 거부
            RefreshTimeout: 공유 갱신이 제한 시간 안에 끝나지 않음
        """
        credential = self._credential
        if credential is not None and not credential.is_expired(self.expiry_buffer_seconds):
            return credential.access_token

        # 캐시가 없거나 만료 - 다른 프로세스가 갱신했을 수 있으므로 저장소 재확인
        credential = self._load_credential()
        if not credential.is_expired(self.expiry_buffer_seconds):
            return credential.access_token

        logger.info("Access token expired or within buffer time. Refreshing...")
        credential = await self._refresh(force=False)
        return credential.access_token

    async def force_refresh(self, rejected_token: Optional[str] = None) -> str:
        """
        저장된 만료 시각과 무관하게 토큰 갱신

        Args:
            rejected_token: Graph API가 401로 거부한 토큰.
                현재 보유 토큰이 이미 다르면(다른 호출이 갱신 완료) 네트워크 호출 없이 반환

        Returns:
            새 액세스 토큰
        """
        if rejected_token is not None and self._refresh_task is None:
            credential = self._credential or self._load_credential()
            if (
                credential.access_token != rejected_token
                and not credential.is_expired(self.expiry_buffer_seconds)
            ):
                logger.info("Token was already refreshed by another caller")
                return credential.access_token

        logger.info("Forcing token refresh")
        credential = await self._refresh(force=True)
        return credential.access_token

    def _load_credential(self) -> Credential:
        credential = self.store.load()
        if credential is None:
            logger.error("No token found in token store")
            raise AuthenticationRequired("No stored credential. Authentication required.")
        self._credential = credential
        return credential

    async def _refresh(self, force: bool) -> Credential:
        """
        진행 중인 갱신이 있으면 합류, 없으면 새로 시작

        갱신 Task는 asyncio.shield로 감싸서 기다리므로
        개별 호출자의 취소/타임아웃이 공유 갱신을 중단시키지 않습니다.

        Args:
            force: False면 저장소를 다시 읽어 이미 유효한 토큰이 있을 때 갱신 생략
        """
        task = self._refresh_task
        if task is None or task.done():
            task = asyncio.ensure_future(self._run_refresh(force))
            self._refresh_task = task
            task.add_done_callback(self._clear_refresh_task)
        else:
            logger.info("Joining in-flight token refresh")

        try:
            return await asyncio.wait_for(asyncio.shield(task), timeout=self.refresh_timeout_seconds)
        except asyncio.TimeoutError:
            logger.error(f"Token refresh did not complete within {self.refresh_timeout_seconds}s")
            raise RefreshTimeout(
                f"Token refresh did not complete within {self.refresh_timeout_seconds} seconds"
            ) from None

    def _clear_refresh_task(self, task: asyncio.Task) -> None:
        if self._refresh_task is task:
            self._refresh_task = None
        # 모든 대기자가 타임아웃으로 떠난 경우에도 예외가 "never retrieved"로 남지 않게 소비
        if not task.cancelled():
            task.exception()

    async def _run_refresh(self, force: bool) -> Credential:
        """실제 갱신 수행 - 한 번에 하나만 실행됨"""
        credential = self._load_credential()

        if not force and not credential.is_expired(self.expiry_buffer_seconds):
            return credential

        if not credential.can_refresh:
            logger.error("No refresh token available")
            raise AuthenticationRequired("No refresh token available. Re-authentication required.")

        try:
            new_credential = await self.refresher.refresh(credential)
        except RefreshDenied as e:
            logger.error(f"Refresh denied by identity provider: {e.error_code}")
            raise AuthenticationRequired(f"Token refresh denied: {e}. Re-authentication required.") from e

        self._credential = new_credential
        return new_credential

    async def get_status(self) -> Dict[str, Any]:
        """
        토큰 상태 조회 (네트워크 호출 없음)

        Returns:
            토큰 상태 정보
        """
        credential = self.store.load()

        if credential is None:
            return {
                'status': 'not_found',
                'authenticated': False,
                'message': 'No token found. Authentication required.'
            }

        expired = credential.is_expired(self.expiry_buffer_seconds)
        return {
            'status': 'found',
            'authenticated': not expired or credential.can_refresh,
            'account_id': credential.account_id,
            'access_token_expired': expired,
            'access_token_expires_at': credential.expires_at.isoformat(),
            'expires_in': time_until_expiry(credential.expires_at),
            'has_refresh_token': credential.can_refresh,
            'scopes': credential.scopes,
            'needs_reauth': expired and not credential.can_refresh,
        }

    async def close(self):
        """리소스 정리"""
        await self.refresher.close()
        logger.info("Token manager closed")
