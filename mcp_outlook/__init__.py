"""
MCP Outlook Module
Microsoft Graph API를 사용한 Outlook 메일/일정 서비스
"""

from .outlook_service import OutlookService
from .outlook_types import (
    CreateDraftParams,
    SendEmailParams,
    ListEmailsParams,
    ReadEmailParams,
    ListEventsParams,
)

__all__ = [
    # Service
    "OutlookService",
    # Types
    "CreateDraftParams",
    "SendEmailParams",
    "ListEmailsParams",
    "ReadEmailParams",
    "ListEventsParams",
]

__version__ = "1.0.0"
