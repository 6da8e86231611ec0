"""
Graph URL Builder Tests
경로 인코딩과 $filter 분리 인코딩
"""

import os
import sys
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from graph_client.graph_url import build_graph_url, build_query_string, encode_path, is_absolute_url

BASE = "https://graph.microsoft.com/v1.0/"


class TestBuildQueryString:
    """쿼리 문자열 생성 테스트"""

    def test_filter_and_top_combined(self):
        query = build_query_string({"$filter": "subject eq 'hello world'", "$top": "5"})

        assert query == "?$top=5&$filter=subject%20eq%20'hello%20world'"

    def test_filter_is_trailing_regardless_of_insertion_order(self):
        query = build_query_string({"$top": "5", "$filter": "isRead eq false", "$select": "id,subject"})

        assert query.startswith("?$top=5&$select=id%2Csubject&")
        assert query.endswith("&$filter=isRead%20eq%20false")

    def test_filter_alone(self):
        assert build_query_string({"$filter": "subject eq 'hello world'"}) == "?$filter=subject%20eq%20'hello%20world'"

    def test_top_alone(self):
        assert build_query_string({"$top": "5"}) == "?$top=5"

    def test_filter_special_characters_percent_encoded(self):
        query = build_query_string({"$filter": "from/emailAddress/address eq 'a&b@x.com'"})

        assert query == "?$filter=from%2FemailAddress%2Faddress%20eq%20'a%26b%40x.com'"

    def test_regular_params_are_form_encoded(self):
        assert build_query_string({"$orderby": "receivedDateTime desc"}) == "?$orderby=receivedDateTime+desc"

    def test_empty_and_none(self):
        assert build_query_string(None) == ""
        assert build_query_string({}) == ""
        assert build_query_string({"$top": None, "$filter": None}) == ""

    def test_caller_params_not_mutated(self):
        params = {"$filter": "isRead eq false", "$top": 10}

        build_query_string(params)

        assert params == {"$filter": "isRead eq false", "$top": 10}


class TestBuildGraphUrl:
    """요청 URL 생성 테스트"""

    def test_relative_path(self):
        url = build_graph_url(BASE, "me/mailFolders/inbox/messages", {"$top": 10})

        assert url == "https://graph.microsoft.com/v1.0/me/mailFolders/inbox/messages?$top=10"

    def test_path_segments_are_encoded(self):
        assert encode_path("me/messages/AAMk+abc=") == "me/messages/AAMk%2Babc%3D"
        assert build_graph_url(BASE, "me/mailFolders/Sent Items") == (
            "https://graph.microsoft.com/v1.0/me/mailFolders/Sent%20Items"
        )

    def test_absolute_url_used_verbatim(self):
        next_link = "https://graph.microsoft.com/v1.0/me/messages?$skip=10&$top=10"

        assert build_graph_url(BASE, next_link, {"$top": 99}) == next_link
        assert is_absolute_url(next_link)
        assert not is_absolute_url("me/messages")

    def test_base_without_trailing_slash(self):
        assert build_graph_url("https://graph.microsoft.com/v1.0", "/me") == "https://graph.microsoft.com/v1.0/me"
