"""
Azure Authentication Module
Azure AD OAuth 2.0 자격 증명의 저장, 갱신, 생애주기 관리를 담당하는 모듈입니다.
"""

from .auth_service import AuthService
from .auth_types import Credential
from .azure_config import AzureConfig
from .token_manager import TokenManager
from .token_refresher import TokenRefresher
from .token_store import TokenStore

# 메인 인터페이스
__all__ = [
    'TokenManager',          # 메인 매니저 - 유효 토큰 제공, 갱신 병합
    'TokenRefresher',        # 토큰 엔드포인트 클라이언트
    'TokenStore',            # 자격 증명 파일 저장소
    'Credential',            # 자격 증명 모델
    'AuthService',           # 인증 서비스 - OAuth 플로우
    'AzureConfig',           # Azure 설정 관리
]

__version__ = '1.0.0'
