"""
Graph Paginator
@odata.nextLink 커서를 따라가며 목록 응답을 하나로 합침
"""

import logging
from typing import Optional, Dict, Any, List

from core.errors import ResponseFormatError, UnsupportedOperation
from .graph_api_client import GraphApiClient

logger = logging.getLogger(__name__)

NEXT_LINK = "@odata.nextLink"


class GraphPaginator:
    """페이지네이션 집계기"""

    def __init__(self, api_client: GraphApiClient):
        self.api_client = api_client

    async def collect(
        self,
        path: str,
        query_params: Optional[Dict[str, Any]] = None,
        max_count: int = 0,
        method: str = "GET",
    ) -> List[Dict[str, Any]]:
        """
        모든 페이지의 value 항목 수집

        첫 요청에만 query_params를 사용하고, 이후 페이지는 서버가 준
        nextLink를 추가 파라미터 없이 그대로 요청합니다.

        Args:
            path: 첫 페이지 경로
            query_params: 첫 요청의 쿼리 파라미터
            max_count: 최대 항목 수 (0이면 제한 없음)
            method: HTTP 메서드 (GET만 지원)

        Returns:
            원래 순서를 유지한 항목 목록 (max_count > 0이면 정확히 최대 max_count개)

        Raises:
            UnsupportedOperation: GET 이외의 메서드
            ValueError: 음수 max_count
        """
        if method.upper() != "GET":
            raise UnsupportedOperation("Pagination only supports GET requests")
        if max_count < 0:
            raise ValueError("max_count must be 0 (unbounded) or a positive integer")

        items: List[Dict[str, Any]] = []
        page = await self.api_client.request("GET", path, query_params=query_params)
        page_count = 1

        while True:
            items.extend(self._page_items(page))

            next_link = page.get(NEXT_LINK)
            if not next_link:
                break
            if max_count and len(items) >= max_count:
                break

            logger.debug(f"Following nextLink (page {page_count + 1}, {len(items)} items so far)")
            page = await self.api_client.request("GET", next_link)
            page_count += 1

        if max_count:
            items = items[:max_count]

        logger.info(f"Pagination complete: {len(items)} items from {page_count} page(s)")
        return items

    @staticmethod
    def _page_items(page: Dict[str, Any]) -> List[Dict[str, Any]]:
        value = page.get("value")
        if value is None:
            return []
        if not isinstance(value, list):
            raise ResponseFormatError("Paginated response 'value' is not a list")
        return value
