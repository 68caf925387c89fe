import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from fastapi import Depends, HTTPException, status
from sqlalchemy import func, update
from sqlalchemy.orm import Session, joinedload

from ..config import get_settings
from ..db.base import SessionLocal, get_db
from ..models.moderation import ContentType, FlagStatistics, FlagStatus
from ..models.sql_models import ContentFlag, Message, Review
from ..policies.keywords import KeywordPolicyStore
from ..safety.guard import ScreeningResult, screen
from .notifications import AdminNotifier

logger = logging.getLogger(__name__)

def low_rating_reason(threshold: int) -> str:
    if threshold <= 1:
        return "Low rating (1 star)"
    return f"Low rating (1-{threshold} stars)"


LOW_RATING_REASON = low_rating_reason(2)

RESOLUTION_STATUSES = (FlagStatus.REVIEWED, FlagStatus.DISMISSED, FlagStatus.ACTION_TAKEN)


class ModerationService:
    """Screens reviews and messages, records flags and resolves them."""

    def __init__(self, db: Session):
        self.db = db
        self.keywords = KeywordPolicyStore(db)
        self.notifier = AdminNotifier(db)
        settings = get_settings()
        self.low_rating_threshold = settings.MODERATION_LOW_RATING_THRESHOLD
        self.profanity_severity = settings.MODERATION_PROFANITY_SEVERITY

    async def check_content(self, content: Any) -> ScreeningResult:
        """Screen *content* against profanity and the active keyword rules."""
        if not content or not isinstance(content, str):
            return ScreeningResult()
        rules = await self.keywords.list_active_rules()
        return screen(content, rules, profanity_severity=self.profanity_severity)

    async def flag_content(
        self,
        content_type: ContentType,
        content_id: str,
        user_id: Optional[str],
        reason: str,
        matched_keywords: Optional[List[str]] = None,
        severity: int = 0,
    ) -> ContentFlag:
        """Record a pending flag and notify every administrator.

        The flag and its notifications are committed together; on failure
        neither is kept.
        """
        flag = ContentFlag(
            content_type=ContentType(content_type).value,
            content_id=content_id,
            user_id=user_id,
            flag_reason=reason,
            matched_keywords=list(matched_keywords or []),
            severity=severity,
            status=FlagStatus.PENDING.value,
            created_at=datetime.now(timezone.utc),
        )
        try:
            self.db.add(flag)
            self.db.flush()
            notified = self.notifier.notify_flag(flag)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(flag)
        logger.info(
            "Flagged %s %s (flag=%s, keywords=%s); notified %s admins",
            flag.content_type, flag.content_id, flag.id, flag.matched_keywords, notified,
        )
        return flag

    async def moderate_review(self, review_id: str) -> Optional[ContentFlag]:
        """Evaluate a review and flag it when it breaks policy.

        A low rating is a reason on its own. Matched keywords are only
        recorded when the review text trips a keyword rule. Returns the
        created flag, or None when nothing was flagged or the review is gone.
        """
        review = self.db.query(Review).filter(Review.id == review_id).first()
        if review is None:
            logger.debug("moderate_review: review %s not found", review_id)
            return None

        should_flag = False
        reasons: List[str] = []
        matched_keywords: List[str] = []
        severity = 0

        if review.overall_rating is not None and review.overall_rating <= self.low_rating_threshold:
            should_flag = True
            reasons.append(low_rating_reason(self.low_rating_threshold))

        if review.review_text:
            check = await self.check_content(review.review_text)
            if check.is_flagged:
                should_flag = True
                reasons.extend(check.reasons)
                matched_keywords = check.matched_keywords
                severity = check.severity

        if not should_flag:
            return None

        return await self.flag_content(
            ContentType.REVIEW,
            review.id,
            review.creator_id,
            ", ".join(reasons),
            matched_keywords,
            severity=severity,
        )

    async def moderate_message(self, message_id: str) -> Optional[ContentFlag]:
        """Evaluate a message and flag it when the screener fires."""
        message = self.db.query(Message).filter(Message.id == message_id).first()
        if message is None or not message.content:
            return None

        check = await self.check_content(message.content)
        if not check.is_flagged:
            return None

        return await self.flag_content(
            ContentType.MESSAGE,
            message.id,
            message.sender_id,
            ", ".join(check.reasons),
            check.matched_keywords,
            severity=check.severity,
        )

    async def get_flag(self, flag_id: str) -> ContentFlag:
        flag = self.db.query(ContentFlag).filter(ContentFlag.id == flag_id).first()
        if flag is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Flag not found")
        return flag

    async def review_flagged_content(
        self,
        flag_id: str,
        admin_id: str,
        new_status: str,
        admin_notes: Optional[str] = None,
        action_taken: Optional[str] = None,
    ) -> ContentFlag:
        """Resolve a pending flag.

        Raises:
            HTTPException: 400 for a non-resolution status, 404 if the flag
                does not exist, 409 if it was already resolved
        """
        try:
            target = FlagStatus(new_status)
        except ValueError:
            target = None
        if target not in RESOLUTION_STATUSES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"invalid resolution status: {new_status}",
            )

        # Single conditional UPDATE: of two concurrent resolutions only one
        # matches the pending row, the other sees rowcount 0.
        result = self.db.execute(
            update(ContentFlag)
            .where(ContentFlag.id == flag_id, ContentFlag.status == FlagStatus.PENDING.value)
            .values(
                status=target.value,
                reviewed_by=admin_id,
                reviewed_at=datetime.now(timezone.utc),
                admin_notes=admin_notes,
                action_taken=action_taken,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            self.db.rollback()
            flag = await self.get_flag(flag_id)
            self.db.refresh(flag)
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Flag already resolved as {flag.status}",
            )
        self.db.commit()

        flag = await self.get_flag(flag_id)
        self.db.refresh(flag)
        logger.info("Flag %s resolved as %s by %s", flag.id, flag.status, admin_id)
        return flag

    async def list_flags(self, flag_status: FlagStatus = FlagStatus.PENDING) -> List[ContentFlag]:
        """Flags in *flag_status* with their authors loaded, newest first."""
        return (
            self.db.query(ContentFlag)
            .options(joinedload(ContentFlag.user))
            .filter(ContentFlag.status == FlagStatus(flag_status).value)
            .order_by(ContentFlag.created_at.desc())
            .all()
        )

    async def get_pending_flags(self) -> List[ContentFlag]:
        return await self.list_flags(FlagStatus.PENDING)

    async def get_flag_statistics(self) -> FlagStatistics:
        rows = (
            self.db.query(ContentFlag.status, func.count(ContentFlag.id))
            .group_by(ContentFlag.status)
            .all()
        )
        counts: Dict[str, int] = {s.value: 0 for s in FlagStatus}
        for flag_status, count in rows:
            counts[flag_status] = count
        return FlagStatistics(
            pending=counts[FlagStatus.PENDING.value],
            reviewed=counts[FlagStatus.REVIEWED.value],
            dismissed=counts[FlagStatus.DISMISSED.value],
            action_taken=counts[FlagStatus.ACTION_TAKEN.value],
            total=sum(counts.values()),
        )


def get_moderation_service(db: Session = Depends(get_db)) -> ModerationService:
    """Dependency for getting the moderation service."""
    return ModerationService(db)


async def run_review_moderation(review_id: str, session_factory: Callable[[], Session] = SessionLocal) -> None:
    """Background entry point for review moderation.

    Failures are logged and swallowed; the review has already been saved.
    """
    db = session_factory()
    try:
        await ModerationService(db).moderate_review(review_id)
    except Exception as e:
        logger.exception("Review moderation failed for %s: %s", review_id, e)
    finally:
        db.close()


async def run_message_moderation(message_id: str, session_factory: Callable[[], Session] = SessionLocal) -> None:
    """Background entry point for message moderation."""
    db = session_factory()
    try:
        await ModerationService(db).moderate_message(message_id)
    except Exception as e:
        logger.exception("Message moderation failed for %s: %s", message_id, e)
    finally:
        db.close()
