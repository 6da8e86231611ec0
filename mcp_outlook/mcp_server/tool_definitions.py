"""
MCP Tool Definitions
Outlook MCP 서버가 tools/list로 노출하는 도구 스키마
"""
from typing import List, Dict, Any

_RECIPIENTS = {
    "oneOf": [
        {"type": "string"},
        {"type": "array", "items": {"type": "string"}}
    ],
}

_IMPORTANCE = {
    "type": "string",
    "enum": ["low", "normal", "high"],
    "default": "normal",
    "description": "Email importance",
}

MCP_TOOLS: List[Dict[str, Any]] = [
    {
        "name": "create_draft",
        "description": "Create a draft email. At least one of subject or body is required.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "to": {**_RECIPIENTS, "description": "Comma-separated recipient addresses"},
                "cc": {**_RECIPIENTS, "description": "Comma-separated CC addresses"},
                "bcc": {**_RECIPIENTS, "description": "Comma-separated BCC addresses"},
                "subject": {"type": "string", "description": "Email subject"},
                "body": {"type": "string", "description": "Email body (HTML when it contains <html)"},
                "importance": _IMPORTANCE,
            }
        }
    },
    {
        "name": "send_email",
        "description": "Send an email",
        "inputSchema": {
            "type": "object",
            "properties": {
                "to": {**_RECIPIENTS, "description": "Comma-separated recipient addresses"},
                "cc": {**_RECIPIENTS, "description": "Comma-separated CC addresses"},
                "bcc": {**_RECIPIENTS, "description": "Comma-separated BCC addresses"},
                "subject": {"type": "string", "description": "Email subject"},
                "body": {"type": "string", "description": "Email body (HTML when it contains <html)"},
                "importance": _IMPORTANCE,
                "save_to_sent_items": {
                    "type": "boolean",
                    "default": True,
                    "description": "Save a copy in Sent Items"
                },
            },
            "required": ["to", "subject", "body"]
        }
    },
    {
        "name": "list_emails",
        "description": "List recent emails in a mail folder, newest first",
        "inputSchema": {
            "type": "object",
            "properties": {
                "folder": {
                    "type": "string",
                    "default": "inbox",
                    "description": "Folder name (inbox, sentitems, drafts) or folder ID"
                },
                "count": {
                    "type": "integer",
                    "default": 10,
                    "minimum": 0,
                    "maximum": 1000,
                    "description": "Maximum number of emails (0 = all)"
                },
                "unread_only": {"type": "boolean", "default": False, "description": "Only unread emails"},
                "search_filter": {"type": "string", "description": "Additional OData $filter expression"},
            }
        }
    },
    {
        "name": "read_email",
        "description": "Read the full content of an email",
        "inputSchema": {
            "type": "object",
            "properties": {
                "message_id": {"type": "string", "description": "Email ID"},
            },
            "required": ["message_id"]
        }
    },
    {
        "name": "list_folders",
        "description": "List mail folders with item counts",
        "inputSchema": {"type": "object", "properties": {}}
    },
    {
        "name": "list_rules",
        "description": "List inbox message rules",
        "inputSchema": {"type": "object", "properties": {}}
    },
    {
        "name": "list_events",
        "description": "List calendar events",
        "inputSchema": {
            "type": "object",
            "properties": {
                "count": {
                    "type": "integer",
                    "default": 10,
                    "minimum": 0,
                    "maximum": 1000,
                    "description": "Maximum number of events (0 = all)"
                },
                "start_date_time": {"type": "string", "description": "Only events starting after this time (ISO 8601)"},
            }
        }
    },
    {
        "name": "auth_status",
        "description": "Show whether a Microsoft account is signed in and when the token expires",
        "inputSchema": {"type": "object", "properties": {}}
    },
    {
        "name": "authenticate",
        "description": "Get a Microsoft login URL to sign in",
        "inputSchema": {"type": "object", "properties": {}}
    },
]


def get_tool_config(tool_name: str) -> Dict[str, Any]:
    """도구 정의 조회 (없으면 빈 dict)"""
    for tool in MCP_TOOLS:
        if tool["name"] == tool_name:
            return tool
    return {}
