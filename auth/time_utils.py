"""
시간대 처리 유틸리티
토큰 만료 시각(UTC) 계산과 안전 마진 비교를 담당
"""

from datetime import datetime, timezone, timedelta
from typing import Union


def utc_now() -> datetime:
    """현재 UTC 시간 반환"""
    return datetime.now(timezone.utc)


def to_utc(dt: datetime) -> datetime:
    """
    datetime을 UTC로 변환

    Args:
        dt: 변환할 datetime (timezone aware or naive)

    Returns:
        UTC datetime
    """
    if dt.tzinfo is None:
        # naive datetime은 UTC로 가정
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_iso_to_utc(iso_string: str) -> datetime:
    """
    ISO 형식 문자열을 UTC datetime으로 파싱

    Args:
        iso_string: ISO 형식 시간 문자열 ("Z" 접미사 허용)

    Returns:
        UTC datetime
    """
    if iso_string.endswith("Z"):
        iso_string = iso_string[:-1] + "+00:00"
    return to_utc(datetime.fromisoformat(iso_string))


def expires_at_from_lifetime(expires_in: Union[int, float, str]) -> datetime:
    """
    Provider가 보고한 수명(초)을 절대 만료 시각으로 변환

    Args:
        expires_in: 남은 수명 (초)

    Returns:
        UTC 만료 시각
    """
    return utc_now() + timedelta(seconds=int(expires_in))


def seconds_until(expires_at: datetime) -> float:
    """만료까지 남은 초 (이미 지났으면 음수)"""
    return (to_utc(expires_at) - utc_now()).total_seconds()


def is_expired(expires_at: Union[datetime, str], buffer_seconds: int = 300) -> bool:
    """
    만료 여부 확인 (버퍼 시간 포함)

    Args:
        expires_at: 만료 시간
        buffer_seconds: 버퍼 시간 (기본 5분)

    Returns:
        만료 여부 - 남은 시간이 버퍼보다 짧으면 만료로 취급
    """
    if isinstance(expires_at, str):
        expires_at = parse_iso_to_utc(expires_at)

    # 버퍼 시간을 뺀 시점에서 만료 체크
    return utc_now() >= (to_utc(expires_at) - timedelta(seconds=buffer_seconds))


def time_until_expiry(expires_at: Union[datetime, str]) -> str:
    """
    만료까지 남은 시간을 사람이 읽기 쉬운 형태로 반환

    Args:
        expires_at: 만료 시간 (UTC)

    Returns:
        남은 시간 문자열 (예: "2 hours 30 minutes")
    """
    if isinstance(expires_at, str):
        expires_at = parse_iso_to_utc(expires_at)

    remaining = to_utc(expires_at) - utc_now()

    if remaining.total_seconds() <= 0:
        return "Expired"

    days = remaining.days
    hours, remainder = divmod(remaining.seconds, 3600)
    minutes, _ = divmod(remainder, 60)

    parts = []
    if days > 0:
        parts.append(f"{days} day{'s' if days != 1 else ''}")
    if hours > 0:
        parts.append(f"{hours} hour{'s' if hours != 1 else ''}")
    if minutes > 0 and days == 0:  # 날짜가 있으면 분은 생략
        parts.append(f"{minutes} minute{'s' if minutes != 1 else ''}")

    return " ".join(parts) if parts else "Less than a minute"
