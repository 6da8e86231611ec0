"""
STDIO MCP Server for Outlook MCP Server
Handles MCP protocol via standard input/output
"""
import json
import sys
import os
import logging
import asyncio
from typing import Dict, Any, Optional

from dotenv import load_dotenv

# Add project root to path for direct script execution
current_dir = os.path.dirname(os.path.abspath(__file__))
project_root = os.path.dirname(os.path.dirname(current_dir))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from auth.auth_service import AuthService
from auth.azure_config import AzureConfig
from auth.token_manager import TokenManager
from auth.token_refresher import TokenRefresher
from auth.token_store import TokenStore
from callback_server import CallbackServer
from core.errors import GraphConnectorError
from graph_client.graph_api_client import GraphApiClient
from graph_client.graph_paginator import GraphPaginator
from mcp_outlook.mcp_service_decorators import get_mcp_service
from mcp_outlook.mcp_server.tool_definitions import MCP_TOOLS, get_tool_config
from mcp_outlook.outlook_service import OutlookService

logger = logging.getLogger(__name__)

PROTOCOL_VERSION = "2024-11-05"
SERVER_NAME = "outlook"
SERVER_VERSION = "1.0.0"


def build_service(config: Optional[AzureConfig] = None) -> OutlookService:
    """
    컴포넌트 조립 - 프로세스당 TokenManager 하나를 만들어 모든 컴포넌트에 주입

    Args:
        config: AzureConfig (없으면 환경변수에서 로드)

    Returns:
        OutlookService
    """
    config = config or AzureConfig()

    store = TokenStore(config.token_store_path)
    refresher = TokenRefresher(config, store)
    token_manager = TokenManager(
        store,
        refresher,
        expiry_buffer_seconds=config.expiry_buffer_seconds,
        refresh_timeout_seconds=config.refresh_timeout_seconds,
    )
    api_client = GraphApiClient(
        token_manager,
        base_url=config.graph_endpoint,
        timeout_seconds=config.request_timeout_seconds,
    )
    auth_service = AuthService(config, refresher)

    return OutlookService(
        api_client,
        GraphPaginator(api_client),
        token_manager,
        auth_service=auth_service,
        callback_server=CallbackServer(auth_service),
    )


def build_mcp_content(payload: Any, is_error: bool = False) -> Dict[str, Any]:
    """Wrap payload into MCP content envelope"""
    text = payload if isinstance(payload, str) else json.dumps(payload, ensure_ascii=False, indent=2)
    result: Dict[str, Any] = {
        "content": [
            {
                "type": "text",
                "text": text
            }
        ]
    }
    if is_error:
        result["isError"] = True
    return result


class StdioMCPServer:
    """MCP STDIO Protocol Server

    Handles MCP protocol communication via standard input/output using JSON-RPC format.
    Messages are delimited by newlines for easy parsing.
    """

    def __init__(self, service: OutlookService, reader=None, writer=None):
        self.service = service
        self.reader = reader or sys.stdin
        self.writer = writer or sys.stdout
        self.running = False
        logger.info("Outlook MCP Server STDIO Server initialized")

    async def read_line(self) -> str:
        """Read a single line from the input stream ("" on EOF)"""
        return await asyncio.get_event_loop().run_in_executor(None, self.reader.readline)

    def write_message(self, message: Dict[str, Any]):
        """Write a JSON-RPC message to stdout"""
        json_str = json.dumps(message, ensure_ascii=False)
        self.writer.write(json_str + '\n')
        self.writer.flush()
        logger.debug(f"Sent message: {message}")

    def send_error(self, request_id: Any, code: int, message: str, data: Any = None):
        """Send JSON-RPC error response"""
        error_response = {
            "jsonrpc": "2.0",
            "id": request_id,
            "error": {
                "code": code,
                "message": message
            }
        }
        if data is not None:
            error_response["error"]["data"] = data
        self.write_message(error_response)

    def send_result(self, request_id: Any, result: Any):
        """Send JSON-RPC success response"""
        response = {
            "jsonrpc": "2.0",
            "id": request_id,
            "result": result
        }
        self.write_message(response)

    async def handle_initialize(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Handle initialize request"""
        client_info = params.get("clientInfo", {})
        logger.info(f"Client connected: {client_info.get('name', 'unknown')}")

        return {
            "protocolVersion": PROTOCOL_VERSION,
            "capabilities": {
                "tools": {}
            },
            "serverInfo": {
                "name": SERVER_NAME,
                "version": SERVER_VERSION
            }
        }

    async def handle_tools_list(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Handle tools/list request"""
        return {"tools": MCP_TOOLS}

    def apply_schema_defaults(self, tool_name: str, arguments: Dict[str, Any]) -> Dict[str, Any]:
        """Apply inputSchema defaults and drop arguments the tool does not declare."""
        properties = get_tool_config(tool_name).get("inputSchema", {}).get("properties", {})

        merged_args = {}
        for name, value in (arguments or {}).items():
            if name in properties:
                merged_args[name] = value
            else:
                logger.debug(f"Ignoring undeclared argument for {tool_name}: {name}")

        for prop_name, prop_def in properties.items():
            if prop_name not in merged_args and "default" in prop_def:
                merged_args[prop_name] = prop_def["default"]

        return merged_args

    async def handle_tools_call(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Handle tools/call request"""
        tool_name = params.get("name")
        arguments = params.get("arguments") or {}

        if not tool_name:
            raise ValueError("Tool name is required")
        if not isinstance(arguments, dict):
            raise ValueError("Tool arguments must be an object")

        implementation = get_mcp_service(tool_name)
        if implementation is None:
            raise ValueError(f"Unknown tool: {tool_name}")

        arguments = self.apply_schema_defaults(tool_name, arguments)

        try:
            result = await implementation["function"](self.service, **arguments)
        except GraphConnectorError as e:
            logger.error(f"Error executing tool {tool_name}: {e}")
            return build_mcp_content({"status": "error", "error": type(e).__name__, "message": str(e)}, is_error=True)

        # auth_required 응답은 로그인 URL과 함께 오류로 표시
        if isinstance(result, dict) and result.get("status") == "auth_required":
            return build_mcp_content(result, is_error=True)

        return build_mcp_content(result)

    async def handle_request(self, request: Dict[str, Any]):
        """Handle a single JSON-RPC request"""
        request_id = request.get("id")
        method = request.get("method")
        params = request.get("params") or {}

        if not method:
            self.send_error(request_id, -32600, "Invalid Request: missing method")
            return

        try:
            if method == "initialize":
                result = await self.handle_initialize(params)
            elif method == "tools/list":
                result = await self.handle_tools_list(params)
            elif method == "tools/call":
                result = await self.handle_tools_call(params)
            elif method == "shutdown":
                logger.info("Shutdown requested")
                self.running = False
                result = {}
            elif method == "ping":
                result = {}
            else:
                self.send_error(request_id, -32601, f"Method not found: {method}")
                return

            self.send_result(request_id, result)

        except ValueError as e:
            # pydantic ValidationError 포함
            self.send_error(request_id, -32602, f"Invalid params: {str(e)}")
        except Exception as e:
            logger.error(f"Error handling request: {e}", exc_info=True)
            self.send_error(request_id, -32603, f"Internal error: {str(e)}")

    async def handle_notification(self, notification: Dict[str, Any]):
        """Handle JSON-RPC notifications (no response expected)"""
        method = notification.get("method")
        params = notification.get("params") or {}

        logger.info(f"Received notification: {method}")

        if method == "notifications/initialized":
            logger.info("Client initialization complete")
        elif method == "notifications/cancelled":
            logger.info(f"Request cancelled: {params.get('requestId')}")

    async def handle_line(self, line: str):
        """Parse and dispatch a single input line"""
        line = line.strip()
        if not line:
            return

        try:
            message = json.loads(line)
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON received: {e}")
            self.send_error(None, -32700, "Parse error")
            return

        if not isinstance(message, dict):
            self.send_error(None, -32600, "Invalid Request")
            return

        if "id" in message:
            await self.handle_request(message)
        else:
            await self.handle_notification(message)

    async def run(self):
        """Main server loop"""
        self.running = True

        logger.info("Outlook MCP Server STDIO Server started")
        logger.info("Waiting for messages on stdin...")

        try:
            while self.running:
                line = await self.read_line()
                if not line:
                    logger.info("Input stream closed, shutting down")
                    break
                await self.handle_line(line)
        finally:
            await self.service.close()
            logger.info("Outlook MCP Server STDIO Server stopped")


async def handle_stdio(config: Optional[AzureConfig] = None):
    """Handle MCP protocol via stdin/stdout"""
    server = StdioMCPServer(build_service(config))
    await server.run()


def main():
    """STDIO 서버 실행 (로그는 stderr로만 출력)"""
    load_dotenv(os.path.join(project_root, ".env"), encoding="utf-8-sig")

    logging.basicConfig(
        level=os.getenv('LOG_LEVEL', 'INFO'),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        stream=sys.stderr  # stdout은 JSON-RPC 전용
    )

    try:
        asyncio.run(handle_stdio())
    except KeyboardInterrupt:
        logger.info("Interrupted by user")


if __name__ == "__main__":
    main()
