"""
Graph URL Builder
상대 경로 + 쿼리 파라미터를 Graph API 요청 URL로 변환

OData $filter는 다른 파라미터와 분리해서 인코딩합니다.
폼 인코딩(공백 -> '+')을 거치면 Graph가 필터 식을 잘못 해석하기 때문에
필터 식 전체를 퍼센트 인코딩해서 마지막 파라미터로 붙입니다.
"""

from typing import Optional, Dict, Any
from urllib.parse import quote, urlencode

FILTER_PARAM = "$filter"

# JavaScript encodeURIComponent가 인코딩하지 않는 문자 집합
URI_COMPONENT_SAFE = "-_.!~*'()"


def is_absolute_url(path: str) -> bool:
    """nextLink 같은 완전한 URL인지 여부"""
    return path.startswith("http://") or path.startswith("https://")


def encode_path(path: str) -> str:
    """
    경로의 각 세그먼트를 퍼센트 인코딩

    Args:
        path: "me/mailFolders/inbox/messages" 형태의 상대 경로

    Returns:
        세그먼트별로 인코딩된 경로 ('/' 구분자는 유지)
    """
    return "/".join(quote(segment, safe=URI_COMPONENT_SAFE) for segment in path.split("/"))


def build_query_string(query_params: Optional[Dict[str, Any]] = None) -> str:
    """
    쿼리 문자열 생성

    Args:
        query_params: 쿼리 파라미터 (값이 None인 항목은 제외, 호출자 dict는 수정하지 않음)

    Returns:
        "?"로 시작하는 쿼리 문자열, 파라미터가 없으면 ""

    Examples:
        >>> build_query_string({"$top": "5", "$filter": "subject eq 'hello world'"})
        "?$top=5&$filter=subject%20eq%20'hello%20world'"
    """
    if not query_params:
        return ""

    params = {key: value for key, value in query_params.items() if value is not None}
    filter_expr = params.pop(FILTER_PARAM, None)

    # 일반 파라미터는 폼 인코딩 ($ 접두사는 그대로)
    query_string = urlencode(params, safe="$")

    if filter_expr:
        filter_part = f"{FILTER_PARAM}={quote(str(filter_expr), safe=URI_COMPONENT_SAFE)}"
        query_string = f"{query_string}&{filter_part}" if query_string else filter_part

    return f"?{query_string}" if query_string else ""


def build_graph_url(base_url: str, path: str, query_params: Optional[Dict[str, Any]] = None) -> str:
    """
    요청 URL 생성

    완전한 URL(페이지네이션 커서)은 수정 없이 그대로 사용합니다.

    Args:
        base_url: Graph 기본 엔드포인트 (예: https://graph.microsoft.com/v1.0/)
        path: 상대 경로 또는 완전한 URL
        query_params: 쿼리 파라미터

    Returns:
        요청 URL
    """
    if is_absolute_url(path):
        return path

    if not base_url.endswith("/"):
        base_url += "/"

    return f"{base_url}{encode_path(path.lstrip('/'))}{build_query_string(query_params)}"
