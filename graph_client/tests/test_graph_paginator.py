"""
GraphPaginator Tests
nextLink 추적, max_count 정확성, 입력 검증
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

import os
import sys
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from core.errors import ResponseFormatError, UnsupportedOperation
from graph_client.graph_paginator import GraphPaginator

PAGE_2 = "https://graph.microsoft.com/v1.0/me/messages?$skiptoken=page2"
PAGE_3 = "https://graph.microsoft.com/v1.0/me/messages?$skiptoken=page3"


def _items(start, count):
    return [{"id": f"msg-{i}"} for i in range(start, start + count)]


class TestGraphPaginator:
    """GraphPaginator 테스트"""

    @pytest.fixture
    def api_client(self):
        """10, 10, 5개 항목의 3페이지 응답"""
        pages = {
            "me/messages": {"value": _items(0, 10), "@odata.nextLink": PAGE_2},
            PAGE_2: {"value": _items(10, 10), "@odata.nextLink": PAGE_3},
            PAGE_3: {"value": _items(20, 5)},
        }

        async def fake_request(method, path, body=None, query_params=None):
            return pages[path]

        client = MagicMock()
        client.request = AsyncMock(side_effect=fake_request)
        return client

    @pytest.fixture
    def paginator(self, api_client):
        return GraphPaginator(api_client)

    @pytest.mark.asyncio
    async def test_unbounded_collects_all_pages_in_order(self, paginator, api_client):
        items = await paginator.collect("me/messages", {"$top": 10}, max_count=0)

        assert [item["id"] for item in items] == [f"msg-{i}" for i in range(25)]
        assert api_client.request.await_count == 3

    @pytest.mark.asyncio
    async def test_bounded_stops_following_cursors(self, paginator, api_client):
        items = await paginator.collect("me/messages", {"$top": 10}, max_count=15)

        assert [item["id"] for item in items] == [f"msg-{i}" for i in range(15)]
        assert api_client.request.await_count == 2

    @pytest.mark.asyncio
    async def test_bound_within_first_page(self, paginator, api_client):
        items = await paginator.collect("me/messages", max_count=3)

        assert len(items) == 3
        assert api_client.request.await_count == 1

    @pytest.mark.asyncio
    async def test_bound_larger_than_total(self, paginator):
        items = await paginator.collect("me/messages", max_count=100)

        assert len(items) == 25

    @pytest.mark.asyncio
    async def test_next_link_followed_verbatim(self, paginator, api_client):
        await paginator.collect("me/messages", {"$top": 10, "$filter": "isRead eq false"})

        calls = api_client.request.await_args_list
        assert calls[0].args == ("GET", "me/messages")
        assert calls[0].kwargs == {"query_params": {"$top": 10, "$filter": "isRead eq false"}}
        assert calls[1].args == ("GET", PAGE_2)
        assert calls[1].kwargs == {}
        assert calls[2].args == ("GET", PAGE_3)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", ["POST", "PATCH", "DELETE"])
    async def test_non_get_rejected_before_request(self, paginator, api_client, method):
        with pytest.raises(UnsupportedOperation):
            await paginator.collect("me/messages", method=method)

        api_client.request.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_negative_max_count_rejected(self, paginator, api_client):
        with pytest.raises(ValueError):
            await paginator.collect("me/messages", max_count=-1)

        api_client.request.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_value_counts_as_empty_page(self):
        client = MagicMock()
        client.request = AsyncMock(return_value={"@odata.context": "x"})

        assert await GraphPaginator(client).collect("me/mailFolders") == []

    @pytest.mark.asyncio
    async def test_non_list_value_raises(self):
        client = MagicMock()
        client.request = AsyncMock(return_value={"value": {"id": "oops"}})

        with pytest.raises(ResponseFormatError):
            await GraphPaginator(client).collect("me/mailFolders")
