import logging
from typing import Any, Dict, List

from sqlalchemy import insert
from sqlalchemy.orm import Session

from ..models.sql_models import ContentFlag, Notification, User

logger = logging.getLogger(__name__)

CONTENT_FLAGGED = "content_flagged"


def build_flag_notifications(flag: ContentFlag, admin_ids: List[str]) -> List[Dict[str, Any]]:
    """Build one notification row per administrator for a newly created flag.

    Metadata keys are camelCase: the notification centre that reads them
    expects that shape.
    """
    payload = {
        "contentType": flag.content_type,
        "contentId": flag.content_id,
        "flaggedUserId": flag.user_id,
        "matchedKeywords": list(flag.matched_keywords or []),
    }
    return [
        {
            "user_id": admin_id,
            "type": CONTENT_FLAGGED,
            "title": "Content Flagged for Review",
            "message": f"A {flag.content_type} has been flagged for moderation: {flag.flag_reason}",
            "link_url": f"/admin/moderation/{flag.content_type}/{flag.content_id}",
            "metadata_json": dict(payload),
            "is_read": False,
        }
        for admin_id in admin_ids
    ]


class AdminNotifier:
    """Fans a new flag out to every administrator."""

    def __init__(self, db: Session):
        self.db = db

    def admin_ids(self) -> List[str]:
        rows = self.db.query(User.id).filter(User.role == "admin").all()
        return [row.id for row in rows]

    def notify_flag(self, flag: ContentFlag) -> int:
        """Queue notifications for *flag* as one multi-row insert.

        Does not commit: the caller owns the transaction so the flag and its
        notifications persist together. Returns the number of notifications.
        """
        rows = build_flag_notifications(flag, self.admin_ids())
        if not rows:
            logger.warning("No administrators to notify for flag %s", flag.id)
            return 0
        self.db.execute(insert(Notification), rows)
        return len(rows)
