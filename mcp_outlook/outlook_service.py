"""
Outlook Service - Graph API Facade
MCP 도구 호출을 Graph API 요청으로 변환하는 서비스 레이어

- 입력은 outlook_types의 Pydantic 모델로 검증 (ValidationError는 호출자에게 전파)
- 목록 조회는 GraphPaginator.collect, 단건 요청은 GraphApiClient.request 사용
- AuthenticationRequired는 로그인 URL을 담은 auth_required 응답으로 변환
"""

import logging
from typing import Dict, Any, Optional, List, Union

from auth.auth_service import AuthService
from auth.token_manager import TokenManager
from graph_client.graph_api_client import GraphApiClient
from graph_client.graph_paginator import GraphPaginator
from .mcp_service_decorators import mcp_service, auth_required_response
from .outlook_types import (
    CreateDraftParams, SendEmailParams, ListEmailsParams, ReadEmailParams, ListEventsParams,
    MessageParams, EMAIL_SELECT_FIELDS, EMAIL_DETAIL_FIELDS, EVENT_SELECT_FIELDS,
)

logger = logging.getLogger(__name__)

# Graph 목록 API의 페이지 크기 상한
MAX_PAGE_SIZE = 50

Recipients = Optional[Union[str, List[str]]]


def _recipients(addresses: List[str]) -> List[Dict[str, Any]]:
    return [{"emailAddress": {"address": address}} for address in addresses]


def build_message(params: MessageParams) -> Dict[str, Any]:
    """
    Graph message 리소스 생성 (camelCase 필드)

    수신자 목록은 비어 있으면 생략합니다.
    """
    message: Dict[str, Any] = {
        "subject": params.subject or "",
        "body": {
            "contentType": "HTML" if params.is_html else "Text",
            "content": params.body or "",
        },
        "importance": params.importance,
    }
    if params.to:
        message["toRecipients"] = _recipients(params.to)
    if params.cc:
        message["ccRecipients"] = _recipients(params.cc)
    if params.bcc:
        message["bccRecipients"] = _recipients(params.bcc)
    return message


def summarize_email(email: Dict[str, Any]) -> Dict[str, Any]:
    """목록 응답용 메일 요약"""
    sender = (email.get("from") or {}).get("emailAddress") or {}
    return {
        "id": email.get("id"),
        "subject": email.get("subject"),
        "from": sender.get("address"),
        "from_name": sender.get("name"),
        "received": email.get("receivedDateTime"),
        "preview": email.get("bodyPreview"),
        "is_read": email.get("isRead"),
        "has_attachments": email.get("hasAttachments"),
        "importance": email.get("importance"),
    }


def _page_size(count: int) -> int:
    return min(count, MAX_PAGE_SIZE) if count else MAX_PAGE_SIZE


class OutlookService:
    """
    Outlook 메일/일정 서비스

    모든 컴포넌트는 같은 TokenManager 인스턴스를 공유해야 합니다.
    """

    def __init__(
        self,
        api_client: GraphApiClient,
        paginator: GraphPaginator,
        token_manager: TokenManager,
        auth_service: Optional[AuthService] = None,
        callback_server=None,
    ):
        """
        Args:
            api_client: Graph API 클라이언트
            paginator: 페이지네이션 집계기
            token_manager: 공유 토큰 매니저
            auth_service: 로그인 URL 생성용 (없으면 auth_required 응답에 URL 없음)
            callback_server: 로그인 콜백을 받을 CallbackServer (있으면 URL 발급 시 시작)
        """
        self.api_client = api_client
        self.paginator = paginator
        self.token_manager = token_manager
        self.auth_service = auth_service
        self.callback_server = callback_server

    async def close(self):
        """리소스 정리"""
        if self.callback_server is not None:
            await self.callback_server.stop()
        await self.api_client.close()
        await self.token_manager.close()

    async def _start_login(self) -> Optional[Dict[str, str]]:
        """로그인 URL 발급 (콜백 서버가 있으면 함께 시작)"""
        if self.auth_service is None:
            return None

        if self.callback_server is not None and not self.callback_server.is_running():
            try:
                await self.callback_server.start()
            except OSError as e:
                logger.warning(f"Callback server not started: {e}")

        return self.auth_service.start_auth_flow()

    async def build_auth_required_response(self, message: str) -> Dict[str, Any]:
        """재인증 안내 응답 (로그인 URL 포함)"""
        response: Dict[str, Any] = {
            "status": "auth_required",
            "message": message,
        }
        login = await self._start_login()
        if login:
            response["auth_url"] = login["auth_url"]
            response["instructions"] = "Open auth_url in a browser to sign in, then retry the request."
        return response

    # ------------------------------------------------------------------
    # Mail
    # ------------------------------------------------------------------

    @mcp_service(
        tool_name="create_draft",
        description="Create a draft email in the Drafts folder",
        category="outlook_mail",
        tags=["draft", "compose"],
    )
    @auth_required_response
    async def create_draft(
        self,
        to: Recipients = None,
        cc: Recipients = None,
        bcc: Recipients = None,
        subject: Optional[str] = None,
        body: Optional[str] = None,
        importance: str = "normal",
    ) -> Dict[str, Any]:
        """임시 저장 메일 생성 - POST me/messages"""
        params = CreateDraftParams(to=to, cc=cc, bcc=bcc, subject=subject, body=body, importance=importance)

        result = await self.api_client.request("POST", "me/messages", body=build_message(params))
        logger.info(f"Draft created: {result.get('id')}")

        return {
            "success": True,
            "message": "Draft created successfully. It has been saved in your Drafts folder.",
            "draft_id": result.get("id"),
            "subject": params.subject or "(no subject)",
            "recipients": {"to": len(params.to), "cc": len(params.cc), "bcc": len(params.bcc)},
            "body_length": len(params.body or ""),
        }

    @mcp_service(
        tool_name="send_email",
        description="Send an email",
        category="outlook_mail",
        tags=["send", "compose"],
    )
    @auth_required_response
    async def send_email(
        self,
        to: Recipients = None,
        subject: Optional[str] = None,
        body: Optional[str] = None,
        cc: Recipients = None,
        bcc: Recipients = None,
        importance: str = "normal",
        save_to_sent_items: bool = True,
    ) -> Dict[str, Any]:
        """메일 발송 - POST me/sendMail"""
        params = SendEmailParams(
            to=to, cc=cc, bcc=bcc, subject=subject, body=body,
            importance=importance, save_to_sent_items=save_to_sent_items,
        )

        await self.api_client.request(
            "POST",
            "me/sendMail",
            body={"message": build_message(params), "saveToSentItems": params.save_to_sent_items},
        )
        logger.info(f"Email sent to {len(params.to)} recipient(s)")

        return {
            "success": True,
            "message": "Email sent successfully.",
            "subject": params.subject,
            "recipients": {"to": len(params.to), "cc": len(params.cc), "bcc": len(params.bcc)},
        }

    @mcp_service(
        tool_name="list_emails",
        description="List recent emails in a mail folder",
        category="outlook_mail",
        tags=["query", "list"],
    )
    @auth_required_response
    async def list_emails(
        self,
        folder: str = "inbox",
        count: int = 10,
        unread_only: bool = False,
        search_filter: Optional[str] = None,
    ) -> Dict[str, Any]:
        """메일 목록 조회 - nextLink를 따라 count개까지 수집"""
        params = ListEmailsParams(folder=folder, count=count, unread_only=unread_only, search_filter=search_filter)

        query_params = {
            "$top": _page_size(params.count),
            "$select": ",".join(EMAIL_SELECT_FIELDS),
            "$orderby": "receivedDateTime desc",
            "$filter": params.build_filter(),
        }

        emails = await self.paginator.collect(
            f"me/mailFolders/{params.folder}/messages",
            query_params,
            max_count=params.count,
        )

        return {
            "success": True,
            "folder": params.folder,
            "count": len(emails),
            "emails": [summarize_email(email) for email in emails],
        }

    @mcp_service(
        tool_name="read_email",
        description="Read a single email by ID",
        category="outlook_mail",
        tags=["query"],
    )
    @auth_required_response
    async def read_email(self, message_id: Optional[str] = None) -> Dict[str, Any]:
        """메일 단건 조회 - GET me/messages/{id}"""
        params = ReadEmailParams(message_id=message_id)

        email = await self.api_client.request(
            "GET",
            f"me/messages/{params.message_id}",
            query_params={"$select": ",".join(EMAIL_DETAIL_FIELDS)},
        )

        return {"success": True, "email": email}

    @mcp_service(
        tool_name="list_folders",
        description="List mail folders",
        category="outlook_mail",
        tags=["query", "folder"],
    )
    @auth_required_response
    async def list_folders(self) -> Dict[str, Any]:
        """메일 폴더 목록 - GET me/mailFolders"""
        folders = await self.paginator.collect("me/mailFolders", {"$top": 100})

        return {
            "success": True,
            "count": len(folders),
            "folders": [
                {
                    "id": folder.get("id"),
                    "name": folder.get("displayName"),
                    "total": folder.get("totalItemCount"),
                    "unread": folder.get("unreadItemCount"),
                }
                for folder in folders
            ],
        }

    @mcp_service(
        tool_name="list_rules",
        description="List inbox message rules",
        category="outlook_mail",
        tags=["query", "rules"],
    )
    @auth_required_response
    async def list_rules(self) -> Dict[str, Any]:
        """받은 편지함 규칙 - GET me/mailFolders/inbox/messageRules"""
        result = await self.api_client.request("GET", "me/mailFolders/inbox/messageRules")
        rules = result.get("value", [])

        return {
            "success": True,
            "count": len(rules),
            "rules": [
                {
                    "id": rule.get("id"),
                    "name": rule.get("displayName"),
                    "sequence": rule.get("sequence"),
                    "enabled": rule.get("isEnabled"),
                    "conditions": rule.get("conditions", {}),
                    "actions": rule.get("actions", {}),
                }
                for rule in rules
            ],
        }

    # ------------------------------------------------------------------
    # Calendar
    # ------------------------------------------------------------------

    @mcp_service(
        tool_name="list_events",
        description="List calendar events",
        category="outlook_calendar",
        tags=["query", "calendar"],
    )
    @auth_required_response
    async def list_events(self, count: int = 10, start_date_time: Optional[str] = None) -> Dict[str, Any]:
        """일정 목록 - GET me/calendar/events"""
        params = ListEventsParams(count=count, start_date_time=start_date_time)

        query_params = {
            "$top": _page_size(params.count),
            "$select": ",".join(EVENT_SELECT_FIELDS),
            "$orderby": "start/dateTime",
        }
        if params.start_date_time:
            query_params["$filter"] = f"start/dateTime ge '{params.start_date_time}'"

        events = await self.paginator.collect("me/calendar/events", query_params, max_count=params.count)

        return {"success": True, "count": len(events), "events": events}

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    @mcp_service(
        tool_name="auth_status",
        description="Show the stored token status",
        category="auth",
        tags=["auth"],
    )
    async def auth_status(self) -> Dict[str, Any]:
        """토큰 상태 조회 (네트워크 호출 없음)"""
        return await self.token_manager.get_status()

    @mcp_service(
        tool_name="authenticate",
        description="Get a Microsoft login URL",
        category="auth",
        tags=["auth", "login"],
    )
    async def authenticate(self) -> Dict[str, Any]:
        """로그인 URL 발급"""
        login = await self._start_login()
        if login is None:
            return {"success": False, "message": "Authentication service is not configured."}

        return {
            "success": True,
            "auth_url": login["auth_url"],
            "message": "Open auth_url in a browser to sign in with your Microsoft account.",
        }
