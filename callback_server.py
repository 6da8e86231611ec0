#!/usr/bin/env python3
"""
OAuth Callback Server
Azure AD 인증 콜백을 처리하는 웹서버입니다.
main.py 로그인과 MCP authenticate 도구에서 AuthService와 함께 사용합니다.
"""

import asyncio
import html
import socket
import logging
from typing import Optional
from urllib.parse import urlparse

from aiohttp import web

from auth.auth_service import AuthService
from core.errors import AuthenticationRequired, GraphConnectorError

logger = logging.getLogger(__name__)

PAGE_STYLE = """
    body { font-family: Arial, sans-serif; margin: 40px; background: #f0f0f0; }
    .container { background: white; padding: 30px; border-radius: 10px; max-width: 600px; margin: auto; }
    h1.ok { color: #27ae60; }
    h1.fail { color: #d73027; }
    .detail { background: #f7f7f7; padding: 20px; border-radius: 5px; margin: 20px 0; }
    .message { color: #666; margin-top: 20px; }
"""


def _render_page(title: str, heading: str, detail: str, ok: bool, auto_close: bool = False) -> str:
    script = "<script>setTimeout(function() { window.close(); }, 3000);</script>" if auto_close else ""
    return f"""
    <html>
    <head>
        <title>{title}</title>
        <style>{PAGE_STYLE}</style>
        {script}
    </head>
    <body>
        <div class="container">
            <h1 class="{'ok' if ok else 'fail'}">{heading}</h1>
            <div class="detail">{detail}</div>
        </div>
    </body>
    </html>
    """


class CallbackServer:
    """OAuth 콜백 서버 클래스"""

    def __init__(self, auth_service: AuthService, host: str = "localhost", port: Optional[int] = None):
        """
        콜백 서버 초기화

        Args:
            auth_service: 인증 플로우를 완료할 AuthService
            host: 바인딩 호스트
            port: 서버 포트 (기본값은 redirect URI의 포트, 없으면 5000)
        """
        self.auth_service = auth_service
        self.host = host
        self.callback_path = "/callback"

        redirect = urlparse(auth_service.config.azure_redirect_uri or "")
        if redirect.path:
            self.callback_path = redirect.path
        self.port = port or redirect.port or 5000

        self.app = None
        self.runner = None
        self.site = None
        self.auth_completed = asyncio.Event()
        self.authenticated_account: Optional[str] = None

    def is_running(self) -> bool:
        """서버 실행 상태 확인"""
        return self.site is not None

    def check_port_availability(self) -> bool:
        """
        포트 사용 가능 여부 확인

        Returns:
            포트가 사용 가능하면 True
        """
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.bind((self.host, self.port))
            return True
        except OSError:
            return False
        finally:
            sock.close()

    async def handle_callback(self, request: web.Request) -> web.Response:
        """OAuth 콜백 처리"""
        logger.info(f"Callback received - Path: {request.path}")

        code = request.query.get('code')
        state = request.query.get('state')
        error = request.query.get('error')
        error_description = request.query.get('error_description')

        if error:
            logger.error(f"Authorization failed: {error}")
            detail = (
                f"<strong>Error:</strong> {html.escape(error)}<br>"
                f"<strong>Description:</strong> {html.escape(error_description or 'No additional information')}"
            )
            return web.Response(
                text=_render_page("Authentication Failed", "❌ Authentication Failed", detail, ok=False),
                content_type='text/html',
                status=400,
            )

        if not code or not state:
            return web.Response(text="Missing authorization code or state", status=400)

        logger.info(f"Processing callback with state: {state[:10]}...")

        try:
            credential = await self.auth_service.complete_auth_flow(code, state)
        except AuthenticationRequired as e:
            return web.Response(
                text=_render_page("Authentication Failed", "❌ Authentication Failed", html.escape(str(e)), ok=False),
                content_type='text/html',
                status=400,
            )
        except GraphConnectorError as e:
            logger.error(f"Error during callback processing: {e}")
            return web.Response(text=f"Server error: {html.escape(str(e))}", status=500)

        logger.info(f"✅ Authentication successful for account: {credential.account_id}")

        self.authenticated_account = credential.account_id
        self.auth_completed.set()

        detail = (
            f"<strong>Granted scopes:</strong> {html.escape(' '.join(credential.scopes))}"
            "<p class=\"message\">This window will close automatically in 3 seconds...</p>"
        )
        return web.Response(
            text=_render_page("Authentication Successful", "✅ Authentication Successful!", detail, ok=True, auto_close=True),
            content_type='text/html',
        )

    async def handle_status(self, request: web.Request) -> web.Response:
        """Status endpoint - returns JSON status"""
        status = {
            'status': 'running',
            'port': self.port,
            'callback_url': f'http://{self.host}:{self.port}{self.callback_path}',
            'auth_completed': self.auth_completed.is_set(),
        }
        return web.json_response(status)

    async def init_app(self) -> web.Application:
        """Initialize the web application"""
        self.app = web.Application()

        self.app.router.add_get(self.callback_path, self.handle_callback)
        self.app.router.add_get('/status', self.handle_status)

        return self.app

    async def start(self):
        """서버 시작"""
        if self.is_running():
            logger.warning("Server already running")
            return

        if not self.check_port_availability():
            logger.warning(f"Port {self.port} is already in use")
            raise OSError(f"Port {self.port} is already in use")

        await self.init_app()

        self.runner = web.AppRunner(self.app)
        await self.runner.setup()
        self.site = web.TCPSite(self.runner, self.host, self.port)
        await self.site.start()

        logger.info(f"Callback server started on http://{self.host}:{self.port}{self.callback_path}")

    async def stop(self):
        """서버 종료"""
        if self.site:
            await self.site.stop()
            self.site = None
            logger.info("Server site stopped")

        if self.runner:
            await self.runner.cleanup()
            self.runner = None
            logger.info("Server runner cleaned up")

    async def wait_for_auth(self, timeout: int = 300) -> Optional[str]:
        """
        인증 완료 대기

        Args:
            timeout: 대기 시간 (초)

        Returns:
            인증된 계정 ID 또는 None (타임아웃)
        """
        try:
            await asyncio.wait_for(self.auth_completed.wait(), timeout=timeout)
            return self.authenticated_account
        except asyncio.TimeoutError:
            logger.warning("Authentication timeout")
            return None

    def reset_auth_event(self):
        """인증 이벤트 초기화"""
        self.auth_completed.clear()
        self.authenticated_account = None
