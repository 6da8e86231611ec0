"""
Graph Client Module
인증된 Microsoft Graph API 호출과 페이지네이션을 담당하는 모듈입니다.

토큰은 core.TokenProviderProtocol(auth.TokenManager)을 통해 주입받습니다.
"""

from .graph_api_client import GraphApiClient, Attempt
from .graph_paginator import GraphPaginator
from .graph_url import build_graph_url, build_query_string, encode_path, is_absolute_url

__all__ = [
    'GraphApiClient',
    'Attempt',
    'GraphPaginator',
    'build_graph_url',
    'build_query_string',
    'encode_path',
    'is_absolute_url',
]
