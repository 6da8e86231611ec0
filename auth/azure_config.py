"""
Azure AD configuration management module.
Azure AD 앱 설정, 토큰 저장 위치, Graph 엔드포인트 및 타임아웃 설정을 담당합니다.
"""

import os
import logging
from pathlib import Path
from typing import Optional, List

logger = logging.getLogger(__name__)

DEFAULT_TENANT_ID = "common"
DEFAULT_REDIRECT_URI = "http://localhost:5000/callback"
DEFAULT_GRAPH_ENDPOINT = "https://graph.microsoft.com/v1.0/"
DEFAULT_TOKEN_STORE_PATH = "~/.outlook-mcp-tokens.json"
DEFAULT_SCOPES = [
    "offline_access",
    "User.Read",
    "Mail.Read",
    "Mail.ReadWrite",
    "Mail.Send",
    "Calendars.Read",
    "MailboxSettings.Read",
]


def _env_int(name: str, default: int) -> int:
    """정수형 환경변수 로드"""
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


class AzureConfig:
    """Azure AD 설정 관리 클래스"""

    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        tenant_id: Optional[str] = None,
        redirect_uri: Optional[str] = None,
        scopes: Optional[List[str]] = None,
        token_store_path: Optional[str] = None,
        graph_endpoint: Optional[str] = None,
        expiry_buffer_seconds: Optional[int] = None,
        refresh_timeout_seconds: Optional[int] = None,
        request_timeout_seconds: Optional[int] = None,
    ):
        """
        Azure 설정 초기화

        우선순위: 1. 매개변수 2. 환경변수 3. 기본값

        Args:
            client_id: Azure AD 애플리케이션 ID
            client_secret: 애플리케이션 시크릿
            tenant_id: 테넌트 ID (기본 common)
            redirect_uri: OAuth 콜백 URI
            scopes: 요청할 스코프 목록
            token_store_path: 토큰 저장 파일 경로
            graph_endpoint: Graph API 기본 엔드포인트
            expiry_buffer_seconds: 토큰 만료 안전 마진 (초)
            refresh_timeout_seconds: 공유 토큰 갱신 대기 제한 (초)
            request_timeout_seconds: HTTP 요청 타임아웃 (초)
        """
        self.load_config_from_env()

        if client_id is not None:
            self.azure_client_id = client_id
        if client_secret is not None:
            self.azure_client_secret = client_secret
        if tenant_id is not None:
            self.azure_tenant_id = tenant_id
        if redirect_uri is not None:
            self.azure_redirect_uri = redirect_uri
        if scopes is not None:
            self.default_scopes = list(scopes)
        if token_store_path is not None:
            self.token_store_path = str(Path(token_store_path).expanduser())
        if graph_endpoint is not None:
            self.graph_endpoint = graph_endpoint
        if expiry_buffer_seconds is not None:
            self.expiry_buffer_seconds = expiry_buffer_seconds
        if refresh_timeout_seconds is not None:
            self.refresh_timeout_seconds = refresh_timeout_seconds
        if request_timeout_seconds is not None:
            self.request_timeout_seconds = request_timeout_seconds

        if not self.graph_endpoint.endswith("/"):
            self.graph_endpoint += "/"

        self._validate()

    def load_config_from_env(self):
        """환경변수에서 Azure 설정 로드"""
        self.azure_client_id = os.getenv("AZURE_CLIENT_ID")
        self.azure_client_secret = os.getenv("AZURE_CLIENT_SECRET")
        self.azure_tenant_id = os.getenv("AZURE_TENANT_ID", DEFAULT_TENANT_ID)
        self.azure_redirect_uri = os.getenv("AZURE_REDIRECT_URI", DEFAULT_REDIRECT_URI)

        # 토큰 저장 위치 (원본 서버와 동일한 환경변수 사용)
        self.token_store_path = str(
            Path(os.getenv("OUTLOOK_TOKEN_PATH", DEFAULT_TOKEN_STORE_PATH)).expanduser()
        )
        self.graph_endpoint = os.getenv("GRAPH_API_ENDPOINT", DEFAULT_GRAPH_ENDPOINT)

        self.expiry_buffer_seconds = _env_int("TOKEN_EXPIRY_BUFFER_SECONDS", 300)
        self.refresh_timeout_seconds = _env_int("TOKEN_REFRESH_TIMEOUT_SECONDS", 30)
        self.request_timeout_seconds = _env_int("GRAPH_REQUEST_TIMEOUT_SECONDS", 60)

        self._load_scopes_from_env()

        if self.azure_client_id and self.azure_client_secret:
            logger.info(f"✅ Azure config loaded from environment: client_id={self.azure_client_id[:8]}...")
        else:
            logger.warning("⚠️ Azure config not found in environment variables")

    def _load_scopes_from_env(self):
        """환경변수에서 스코프 로드 (공백 구분)"""
        scopes_str = os.getenv("AZURE_SCOPES")
        if scopes_str:
            self.default_scopes = scopes_str.split()
        else:
            self.default_scopes = list(DEFAULT_SCOPES)

    def _validate(self):
        if self.expiry_buffer_seconds < 0:
            raise ValueError("expiry_buffer_seconds must not be negative")
        if self.refresh_timeout_seconds <= 0:
            raise ValueError("refresh_timeout_seconds must be positive")
        if self.request_timeout_seconds <= 0:
            raise ValueError("request_timeout_seconds must be positive")

    @property
    def is_configured(self) -> bool:
        """토큰 갱신/로그인에 필요한 client 자격 증명 보유 여부"""
        return bool(self.azure_client_id and self.azure_client_secret)

    @property
    def authority(self) -> str:
        return f"https://login.microsoftonline.com/{self.azure_tenant_id}"

    @property
    def authorize_endpoint(self) -> str:
        return f"{self.authority}/oauth2/v2.0/authorize"

    @property
    def token_endpoint(self) -> str:
        return f"{self.authority}/oauth2/v2.0/token"

    @property
    def client_id(self):
        """client_id 프로퍼티 (외부 호환성)"""
        return self.azure_client_id

    @property
    def tenant_id(self):
        """tenant_id 프로퍼티 (외부 호환성)"""
        return self.azure_tenant_id

    @property
    def client_secret(self):
        """client_secret 프로퍼티 (외부 호환성)"""
        return self.azure_client_secret

    @property
    def redirect_uri(self):
        """redirect_uri 프로퍼티 (외부 호환성)"""
        return self.azure_redirect_uri

    @property
    def scope_string(self) -> str:
        """토큰 요청용 공백 구분 스코프 문자열"""
        return " ".join(self.default_scopes)
