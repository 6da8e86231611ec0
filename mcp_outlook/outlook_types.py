"""
Outlook 도구 입력 타입 정의
Pydantic 모델을 사용하여 런타임 유효성 검증과 문서화 제공
"""
from typing import Optional, List, Literal, Any
from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator

Importance = Literal["low", "normal", "high"]

# 목록 조회 시 가져올 메일 필드
EMAIL_SELECT_FIELDS = [
    "id",
    "subject",
    "from",
    "toRecipients",
    "ccRecipients",
    "receivedDateTime",
    "bodyPreview",
    "hasAttachments",
    "importance",
    "isRead",
]

# 단건 조회 시 가져올 메일 필드
EMAIL_DETAIL_FIELDS = EMAIL_SELECT_FIELDS + ["bccRecipients", "body", "sentDateTime", "conversationId"]

EVENT_SELECT_FIELDS = ["id", "subject", "start", "end", "location", "organizer", "isAllDay", "bodyPreview"]


def split_recipients(value: Any) -> List[str]:
    """
    수신자 입력을 주소 목록으로 정규화

    Args:
        value: "a@x.com, b@x.com" 형태의 문자열, 리스트, 또는 None

    Returns:
        공백 제거된 주소 목록 (빈 항목 제외)
    """
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    return [address.strip() for address in value if address and address.strip()]


class MessageParams(BaseModel):
    """메일 작성 공통 파라미터"""

    model_config = ConfigDict(extra='ignore')  # 추가 필드 무시

    to: List[str] = Field(
        default_factory=list,
        description="수신자 - 쉼표 구분 문자열 또는 리스트",
        examples=["user@example.com", "a@example.com, b@example.com"]
    )
    cc: List[str] = Field(default_factory=list, description="참조")
    bcc: List[str] = Field(default_factory=list, description="숨은 참조")
    subject: Optional[str] = Field(None, description="메일 제목")
    body: Optional[str] = Field(None, description="메일 본문 (<html 포함 시 HTML로 전송)")
    importance: Importance = Field("normal", description="중요도 (low, normal, high)")

    @field_validator("to", "cc", "bcc", mode="before")
    @classmethod
    def _split_recipients(cls, value: Any) -> List[str]:
        return split_recipients(value)

    @property
    def is_html(self) -> bool:
        return bool(self.body) and "<html" in self.body


class CreateDraftParams(MessageParams):
    """임시 저장 메일 생성 파라미터 - 제목 또는 본문 중 하나는 필수"""

    @model_validator(mode="after")
    def _require_subject_or_body(self) -> "CreateDraftParams":
        if not self.subject and not self.body:
            raise ValueError("Either subject or body content is required to create a draft.")
        return self


class SendEmailParams(MessageParams):
    """메일 발송 파라미터 - 수신자, 제목, 본문 필수"""

    save_to_sent_items: bool = Field(True, description="보낸 편지함에 저장 여부")

    @model_validator(mode="after")
    def _require_fields(self) -> "SendEmailParams":
        if not self.to:
            raise ValueError("Recipient (to) is required.")
        if not self.subject:
            raise ValueError("Subject is required.")
        if not self.body:
            raise ValueError("Body content is required.")
        return self


class ListEmailsParams(BaseModel):
    """메일 목록 조회 파라미터"""

    model_config = ConfigDict(extra='ignore')

    folder: str = Field("inbox", min_length=1, description="메일 폴더 (inbox, sentitems, drafts 또는 폴더 ID)")
    count: int = Field(10, ge=0, le=1000, description="최대 개수 (0이면 전체)")
    unread_only: bool = Field(False, description="읽지 않은 메일만")
    search_filter: Optional[str] = Field(
        None,
        description="추가 OData $filter 식",
        examples=["from/emailAddress/address eq 'boss@example.com'"]
    )

    def build_filter(self) -> Optional[str]:
        """unread_only와 search_filter를 and로 결합한 $filter 식"""
        clauses: List[str] = []
        if self.unread_only:
            clauses.append("isRead eq false")
        if self.search_filter:
            clauses.append(f"({self.search_filter})" if self.unread_only else self.search_filter)
        return " and ".join(clauses) if clauses else None


class ReadEmailParams(BaseModel):
    """메일 단건 조회 파라미터"""

    model_config = ConfigDict(extra='ignore')

    message_id: str = Field(..., min_length=1, description="메일 ID")


class ListEventsParams(BaseModel):
    """일정 목록 조회 파라미터"""

    model_config = ConfigDict(extra='ignore')

    count: int = Field(10, ge=0, le=1000, description="최대 개수 (0이면 전체)")
    start_date_time: Optional[str] = Field(
        None,
        description="이 시각 이후 시작하는 일정만 (ISO 8601)",
        examples=["2026-10-01T00:00:00Z"]
    )
