"""
Core Module - TokenProviderProtocol 및 공통 예외 정의

graph_client가 auth.TokenManager를 직접 의존하지 않도록 추상화.
"""

from .protocols import TokenProviderProtocol
from .errors import (
    GraphConnectorError,
    StorageError,
    NetworkError,
    RefreshTimeout,
    RefreshDenied,
    AuthenticationRequired,
    ApiError,
    ResponseFormatError,
    UnsupportedOperation,
)

__all__ = [
    'TokenProviderProtocol',
    'GraphConnectorError',
    'StorageError',
    'NetworkError',
    'RefreshTimeout',
    'RefreshDenied',
    'AuthenticationRequired',
    'ApiError',
    'ResponseFormatError',
    'UnsupportedOperation',
]
