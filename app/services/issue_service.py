"""
Issue service for handling issue-related business logic.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from app.core.exceptions import InvalidLocationError, IssueNotFoundError
from app.models.issue import Issue
from app.schemas.geo import Coordinates
from app.schemas.issue import IssueCreate, IssueStatus, IssueStatusUpdate
from app.services.geolocation_service import geolocation_service
from app.services.notification_service import notification_service

logger = logging.getLogger(__name__)


class IssueService:
    """Service for handling issue operations."""

    @staticmethod
    def get_issue(db: Session, issue_id: int, include_hidden: bool = False) -> Optional[Issue]:
        """
        Get an issue by ID.

        Args:
            db: Database session
            issue_id: Issue ID to search for
            include_hidden: Also return issues hidden by moderation

        Returns:
            Issue object if found, None otherwise
        """
        query = db.query(Issue).filter(Issue.id == issue_id)
        if not include_hidden:
            query = query.filter(Issue.is_hidden.is_(False))
        return query.first()

    @staticmethod
    async def create_issue(db: Session, issue_in: IssueCreate, location: Coordinates) -> Issue:
        """
        Create a new issue and tell connected admins about it.

        Args:
            db: Database session
            issue_in: Issue creation data
            location: Issue coordinates from the request

        Returns:
            Created Issue object

        Raises:
            InvalidLocationError: If the location is not acceptable for reporting
        """
        result = geolocation_service.validate_reporting_location(
            location.latitude, location.longitude
        )
        if not result.is_valid or result.location is None:
            raise InvalidLocationError(result.error)
        location = result.location

        issue = Issue(
            title=issue_in.title.strip(),
            description=issue_in.description.strip(),
            category=issue_in.category.value,
            latitude=location.latitude,
            longitude=location.longitude,
            address=issue_in.address,
            reporter_id=issue_in.reporter_id,
            is_anonymous=issue_in.is_anonymous,
        )
        db.add(issue)
        db.commit()
        db.refresh(issue)

        logger.info("Created issue %s (%s) at %s", issue.id, issue.category, location)
        await notification_service.notify_new_issue(issue)
        return issue

    @classmethod
    async def update_status(
        cls, db: Session, issue_id: int, status_in: IssueStatusUpdate
    ) -> Issue:
        """
        Change an issue's status and notify its reporter.

        Notification failures are logged and never undo the status change.

        Raises:
            IssueNotFoundError: If the issue does not exist
        """
        issue = cls.get_issue(db, issue_id, include_hidden=True)
        if not issue:
            raise IssueNotFoundError()

        previous_status = IssueStatus(issue.status)
        issue.status = status_in.status.value  # type: ignore[assignment]
        db.commit()
        db.refresh(issue)

        logger.info(
            "Issue %s status changed: %s -> %s",
            issue.id,
            previous_status.value,
            status_in.status.value,
        )

        await notification_service.notify_status_change(
            issue, previous_status, status_in.status, status_in.comment
        )
        return issue


# Create a singleton instance
issue_service = IssueService()
