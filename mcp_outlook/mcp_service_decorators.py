"""
MCP Service Decorator
OutlookService 메서드를 MCP 도구로 등록하고, 재인증 필요 오류를 로그인 안내 응답으로 변환
"""
import logging
from functools import wraps
from typing import Any, Callable, Dict, Optional

from core.errors import AuthenticationRequired

logger = logging.getLogger(__name__)

# tool_name -> 서비스 메서드 메타데이터
MCP_SERVICE_REGISTRY: Dict[str, Dict[str, Any]] = {}


def mcp_service(
    tool_name: str,
    description: str = "",
    category: str = "",
    tags: list = None,
) -> Callable:
    """
    서비스 메서드를 MCP 도구 구현으로 등록

    stdio 서버는 tool_name으로 이 레지스트리를 조회해 메서드를 호출합니다.

    Args:
        tool_name: MCP Tool 이름
        description: 기능 설명
        category: 카테고리
        tags: 태그 목록
    """
    def decorator(func: Callable) -> Callable:
        MCP_SERVICE_REGISTRY[tool_name] = {
            "function": func,
            "service_name": func.__name__,
            "description": description,
            "category": category,
            "tags": tags or [],
            "module": func.__module__,
        }

        func._mcp_service = True
        func._mcp_tool_name = tool_name
        return func

    return decorator


def auth_required_response(func: Callable) -> Callable:
    """
    AuthenticationRequired를 auth_required 응답 dict로 변환

    서비스 인스턴스의 build_auth_required_response()로 로그인 URL을 포함한 응답을 만듭니다.
    그 외 예외는 그대로 전파합니다.
    """
    @wraps(func)
    async def wrapper(self, *args, **kwargs):
        try:
            return await func(self, *args, **kwargs)
        except AuthenticationRequired as e:
            logger.warning(f"{func.__name__}: authentication required - {e}")
            return await self.build_auth_required_response(str(e))

    return wrapper


def get_mcp_services() -> Dict[str, Any]:
    """등록된 모든 MCP 서비스"""
    return MCP_SERVICE_REGISTRY


def get_mcp_service(tool_name: str) -> Optional[Dict[str, Any]]:
    """tool_name으로 MCP 서비스 조회"""
    return MCP_SERVICE_REGISTRY.get(tool_name)
