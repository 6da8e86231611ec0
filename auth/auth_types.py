"""
OAuth2 자격 증명 타입 정의
Pydantic 모델을 사용하여 저장 파일의 유효성 검증과 직렬화 제공
"""

from datetime import datetime
from typing import Optional, List, Dict, Any, Union
from pydantic import BaseModel, Field, ConfigDict, field_validator

from .time_utils import to_utc, parse_iso_to_utc, expires_at_from_lifetime, is_expired, seconds_until

# 저장 파일 포맷 버전 - 구조가 바뀌면 올리고 TokenStore에서 마이그레이션
CREDENTIAL_FORMAT_VERSION = 1

DEFAULT_ACCOUNT_ID = "default"

# Azure AD 기본 access token 수명
DEFAULT_EXPIRES_IN = 3600


class Credential(BaseModel):
    """
    영속화되는 OAuth2 자격 증명 (access/refresh token 쌍 + 메타데이터)

    갱신 시에는 병합하지 않고 새 인스턴스로 통째로 교체합니다.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    access_token: str = Field(..., min_length=1, description="Bearer 액세스 토큰")
    refresh_token: Optional[str] = Field(
        None,
        description="사용자 개입 없이 새 액세스 토큰을 발급받기 위한 토큰 (provider가 발급하지 않으면 None)",
    )
    expires_at: datetime = Field(..., description="액세스 토큰 만료 시각 (절대 시각, UTC)")
    scopes: List[str] = Field(default_factory=list, description="부여된 권한 목록")
    account_id: str = Field(DEFAULT_ACCOUNT_ID, description="계정 식별자 (현재는 단일 계정)")
    client_id: Optional[str] = Field(None, description="이 토큰을 발급받은 Azure AD 앱의 client_id")
    token_type: str = Field("Bearer", description="토큰 타입")

    @field_validator("expires_at", mode="before")
    @classmethod
    def _normalize_expires_at(cls, value: Any) -> Any:
        if isinstance(value, str):
            return parse_iso_to_utc(value)
        if isinstance(value, datetime):
            return to_utc(value)
        return value

    @field_validator("scopes", mode="before")
    @classmethod
    def _split_scopes(cls, value: Any) -> Any:
        # token 응답의 scope는 공백 구분 문자열
        if value is None:
            return []
        if isinstance(value, str):
            return value.split()
        return value

    @property
    def can_refresh(self) -> bool:
        """refresh token 보유 여부"""
        return bool(self.refresh_token)

    def is_expired(self, buffer_seconds: int = 300) -> bool:
        """안전 마진을 고려한 만료 여부"""
        return is_expired(self.expires_at, buffer_seconds)

    def seconds_remaining(self) -> float:
        """만료까지 남은 초"""
        return seconds_until(self.expires_at)

    def to_record(self) -> Dict[str, Any]:
        """저장 파일 레코드로 변환"""
        record = {"format_version": CREDENTIAL_FORMAT_VERSION}
        record.update(self.model_dump(mode="json"))
        return record

    @classmethod
    def from_token_response(
        cls,
        token_data: Dict[str, Any],
        previous: Optional["Credential"] = None,
        client_id: Optional[str] = None,
        account_id: Optional[str] = None,
    ) -> "Credential":
        """
        토큰 엔드포인트 응답으로 새 Credential 생성

        Args:
            token_data: access_token, refresh_token(선택), expires_in, scope를 담은 JSON
            previous: 갱신 전 Credential (refresh token/메타데이터 유지용)
            client_id: 발급 앱의 client_id
            account_id: 계정 식별자

        Returns:
            새 Credential - 응답에 refresh_token이 없으면 이전 것을 유지
        """
        expires_in = token_data.get("expires_in", DEFAULT_EXPIRES_IN)

        # 새 refresh token이 있으면 사용, 없으면 기존 것 유지
        refresh_token = token_data.get("refresh_token")
        if not refresh_token and previous is not None:
            refresh_token = previous.refresh_token

        scopes: Union[str, List[str], None] = token_data.get("scope")
        if not scopes and previous is not None:
            scopes = previous.scopes

        if account_id is None:
            account_id = previous.account_id if previous is not None else DEFAULT_ACCOUNT_ID
        if client_id is None and previous is not None:
            client_id = previous.client_id

        return cls(
            access_token=token_data["access_token"],
            refresh_token=refresh_token,
            expires_at=expires_at_from_lifetime(expires_in),
            scopes=scopes,
            account_id=account_id,
            client_id=client_id,
            token_type=token_data.get("token_type", "Bearer"),
        )
