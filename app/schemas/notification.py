"""
Notification Schemas

Payloads delivered over the real-time notification channel.
"""

from typing import Optional

from pydantic import BaseModel, Field

from app.schemas.issue import IssueStatus


class StatusChangeNotification(BaseModel):
    """Sent to an issue's reporter when the issue status changes."""

    type: str = "status_change"
    issue_id: int
    issue_title: str
    previous_status: Optional[IssueStatus] = None
    new_status: IssueStatus
    comment: str
    timestamp: str


class SystemNotification(BaseModel):
    """Broadcast to everyone, or to the admin room with ``type="admin"``."""

    type: str = "system"
    message: str = Field(..., min_length=1)
    issue_id: Optional[int] = None
    timestamp: str
