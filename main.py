"""
Outlook Graph Connector - Main Entry Point

    python main.py          # 브라우저 로그인 (콜백 서버 포함), 토큰 파일 저장
    python main.py status   # 저장된 토큰 상태 출력
    python main.py serve    # MCP STDIO 서버 실행
"""

import asyncio
import os
import sys
import webbrowser
import logging

from dotenv import load_dotenv

from auth.auth_service import AuthService
from auth.azure_config import AzureConfig
from auth.token_manager import TokenManager
from auth.token_refresher import TokenRefresher
from auth.token_store import TokenStore
from callback_server import CallbackServer

# Load environment variables (프로젝트 루트 기준)
_env_path = os.path.join(os.path.dirname(os.path.abspath(__file__)), ".env")
load_dotenv(_env_path, encoding="utf-8-sig")

logger = logging.getLogger(__name__)

LOGIN_TIMEOUT_SECONDS = 300


def _configure_logging():
    logging.basicConfig(
        level=os.getenv('LOG_LEVEL', 'INFO'),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr
    )


async def show_status(config: AzureConfig):
    """저장된 토큰 상태 출력"""
    store = TokenStore(config.token_store_path)
    manager = TokenManager(store, TokenRefresher(config, store), expiry_buffer_seconds=config.expiry_buffer_seconds)

    try:
        status = await manager.get_status()
    finally:
        await manager.close()

    print("\n" + "="*60)
    print("Token Status")
    print("="*60)
    if status['status'] == 'not_found':
        print(f"No token stored at {config.token_store_path}")
    else:
        state = "[OK] Active" if not status['access_token_expired'] else "[EXPIRED] Refresh on next use"
        if status['needs_reauth']:
            state = "[FAIL] Login required"
        print(f"Account: {status['account_id']}: {state}")
        print(f"Expires in: {status['expires_in']}")
        print(f"Scopes: {' '.join(status['scopes'])}")
    print("="*60)


async def login(config: AzureConfig) -> bool:
    """
    브라우저 로그인 - 콜백 서버를 띄우고 인증 완료까지 대기

    Returns:
        성공 여부
    """
    if not config.is_configured:
        print("\n[ERROR] AZURE_CLIENT_ID and AZURE_CLIENT_SECRET must be set (.env or environment).")
        return False

    store = TokenStore(config.token_store_path)
    refresher = TokenRefresher(config, store)
    auth_service = AuthService(config, refresher)
    server = CallbackServer(auth_service)

    try:
        await server.start()

        flow = auth_service.start_auth_flow()

        print("\n" + "="*60)
        print("Azure AD Authentication")
        print("="*60)
        print("Browser will open automatically. If it does not, open this URL:")
        print(f"\n{flow['auth_url']}\n")
        print("="*60)

        webbrowser.open(flow['auth_url'])

        account = await server.wait_for_auth(timeout=LOGIN_TIMEOUT_SECONDS)
        if account is None:
            print("\n[WARN] Authentication timeout. Please try again.")
            return False

        print("\n" + "="*60)
        print("[OK] Authentication Successful!")
        print("="*60)
        print(f"Token saved to: {config.token_store_path}")
        print("="*60)
        return True

    finally:
        await server.stop()
        await refresher.close()


async def main(argv=None):
    """메인 함수"""
    argv = sys.argv[1:] if argv is None else argv
    command = argv[0] if argv else "login"

    if command == "serve":
        from mcp_outlook.mcp_server.server_stdio import handle_stdio
        await handle_stdio()
        return 0

    config = AzureConfig()

    if command == "status":
        await show_status(config)
        return 0

    if command == "login":
        return 0 if await login(config) else 1

    print(f"Unknown command: {command} (expected login, status or serve)")
    return 2


if __name__ == "__main__":
    _configure_logging()
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        print("\nStopped by user")
