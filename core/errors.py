"""
Core Errors - 인증/Graph API 접근 계층의 예외 계층

모든 예외는 GraphConnectorError를 상속합니다.
핸들러는 AuthenticationRequired를 다른 오류와 구분해서 재인증을 안내해야 합니다.
"""

from typing import Optional


class GraphConnectorError(Exception):
    """Base exception for the token lifecycle and Graph access layer."""


class StorageError(GraphConnectorError):
    """토큰 저장소 읽기/쓰기 실패 (I/O, 역직렬화)"""


class NetworkError(GraphConnectorError):
    """토큰 엔드포인트 또는 Graph API 전송 계층 실패"""


class RefreshTimeout(NetworkError):
    """공유 중인 토큰 갱신을 기다리다 제한 시간을 초과함"""


class RefreshDenied(GraphConnectorError):
    """
    Identity provider가 refresh grant를 거부함

    refresh token 폐기/만료, 잘못된 client 자격 증명 등.
    재시도 대상이 아니며 TokenManager에서 AuthenticationRequired로 변환됩니다.
    """

    def __init__(self, message: str, error_code: Optional[str] = None, description: Optional[str] = None):
        super().__init__(message)
        self.error_code = error_code
        self.description = description


class AuthenticationRequired(GraphConnectorError):
    """사용 가능한 자격 증명이 없음 - 외부 재인증(로그인)이 필요"""


class ApiError(GraphConnectorError):
    """Graph API가 401이 아닌 non-2xx 응답을 반환함"""

    def __init__(self, status: int, body: str):
        super().__init__(f"Graph API call failed with status {status}: {body}")
        self.status = status
        self.body = body


class ResponseFormatError(GraphConnectorError):
    """응답 본문을 구조화된 데이터로 해석할 수 없음"""


class UnsupportedOperation(GraphConnectorError):
    """지원하지 않는 작업 (예: GET 이외의 메서드로 페이지네이션 요청)"""
