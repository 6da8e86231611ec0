"""
Core Protocols - 모듈 간 의존성 추상화를 위한 Protocol 정의

현재 정의:
    - TokenProviderProtocol: graph_client가 auth.TokenManager를 직접 알지 않아도 되게 함

사용 예시:
    # 테스트용 Mock 주입
    mock_provider = MockTokenProvider()
    client = GraphApiClient(token_provider=mock_provider)

    # 기본 사용 - 프로세스당 하나의 TokenManager를 만들어 주입
    client = GraphApiClient(token_provider=token_manager)
"""

from typing import Protocol, Optional, runtime_checkable


@runtime_checkable
class TokenProviderProtocol(Protocol):
    """
    토큰 제공자 프로토콜 - TokenManager 추상화

    OAuth 토큰의 획득과 강제 갱신을 담당하는 인터페이스.
    auth.TokenManager가 이 Protocol을 구현합니다.
    """

    async def get_valid_token(self) -> str:
        """
        유효한 액세스 토큰 반환 (필요시 자동 갱신)

        Returns:
            안전 마진 이상 유효한 액세스 토큰

        Raises:
            AuthenticationRequired: 자격 증명이 없거나 갱신 불가
        """
        ...

    async def force_refresh(self, rejected_token: Optional[str] = None) -> str:
        """
        저장된 만료 시간과 무관하게 토큰 갱신

        Args:
            rejected_token: API가 거부한 토큰 (이미 다른 호출이 갱신했다면 재사용)

        Returns:
            새 액세스 토큰
        """
        ...

    async def close(self) -> None:
        """리소스 정리"""
        ...
