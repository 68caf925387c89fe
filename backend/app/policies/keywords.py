import logging
from dataclasses import dataclass
from typing import List, Sequence

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..models.moderation import KeywordCategory, KeywordRuleCreate, KeywordRuleUpdate
from ..models.sql_models import BannedKeyword
from .validator import normalize_keyword, validate_keyword_rule

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DefaultKeyword:
    keyword: str
    category: KeywordCategory
    severity: int
    description: str


# Built-in policy inserted into an empty store, in this order
DEFAULT_KEYWORDS: Sequence[DefaultKeyword] = (
    DefaultKeyword("scam", KeywordCategory.SPAM, 4, "Potential scam-related content"),
    DefaultKeyword("fraud", KeywordCategory.LEGAL, 5, "Fraud-related term"),
    DefaultKeyword("guaranteed money", KeywordCategory.SPAM, 3, "Misleading financial claims"),
    DefaultKeyword("get rich quick", KeywordCategory.SPAM, 3, "Misleading financial claims"),
    DefaultKeyword("free money", KeywordCategory.SPAM, 3, "Spam-like promotional content"),
    DefaultKeyword("testbadword", KeywordCategory.CUSTOM, 2, "Test keyword for moderation testing"),
)


class KeywordPolicyStore:
    """Persistence-backed set of banned keyword rules."""

    def __init__(self, db: Session):
        self.db = db

    async def list_active_rules(self) -> List[BannedKeyword]:
        """Return the rules screening should apply, in insertion order."""
        return (
            self.db.query(BannedKeyword)
            .filter(BannedKeyword.is_active.is_(True))
            .order_by(BannedKeyword.created_at)
            .all()
        )

    async def seed_defaults_if_empty(self, defaults: Sequence[DefaultKeyword] = DEFAULT_KEYWORDS) -> int:
        """Insert *defaults* when the store holds no rules at all.

        Returns the number of rules inserted. Store failures are logged and
        swallowed so that startup is never blocked by seeding.
        """
        try:
            existing = self.db.query(func.count(BannedKeyword.id)).scalar() or 0
            if existing:
                logger.info("Found %s existing banned keywords", existing)
                return 0

            logger.info("No banned keywords found, seeding defaults...")
            self.db.add_all(
                [
                    BannedKeyword(
                        keyword=normalize_keyword(kw.keyword),
                        category=kw.category.value,
                        severity=kw.severity,
                        description=kw.description,
                        is_active=True,
                    )
                    for kw in defaults
                ]
            )
            self.db.commit()
            logger.info("Seeded %s default banned keywords", len(defaults))
            return len(defaults)
        except IntegrityError:
            # Another process won the race on the unique keyword index
            self.db.rollback()
            logger.info("Default banned keywords already seeded by another process")
            return 0
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Error initializing banned keywords: %s", e, exc_info=True)
            return 0

    async def list_rules(self, include_inactive: bool = True) -> List[BannedKeyword]:
        query = self.db.query(BannedKeyword)
        if not include_inactive:
            query = query.filter(BannedKeyword.is_active.is_(True))
        return query.order_by(BannedKeyword.keyword).all()

    async def get_rule(self, rule_id: str) -> BannedKeyword:
        rule = self.db.query(BannedKeyword).filter(BannedKeyword.id == rule_id).first()
        if rule is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Keyword rule not found")
        return rule

    async def create_rule(self, rule_in: KeywordRuleCreate) -> BannedKeyword:
        """Create a new active rule.

        Raises:
            HTTPException: 400 if the rule is invalid, 409 if the keyword exists
        """
        ok, errors = validate_keyword_rule(rule_in.keyword, rule_in.category, rule_in.severity)
        if not ok:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=errors)

        keyword = normalize_keyword(rule_in.keyword)
        if self.db.query(BannedKeyword).filter(BannedKeyword.keyword == keyword).first():
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Keyword already exists: {keyword}",
            )

        rule = BannedKeyword(
            keyword=keyword,
            category=rule_in.category.value,
            severity=rule_in.severity,
            description=rule_in.description,
            is_active=True,
        )
        self.db.add(rule)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Keyword already exists: {keyword}",
            )
        self.db.refresh(rule)
        logger.info("Created banned keyword %r (category=%s, severity=%s)", rule.keyword, rule.category, rule.severity)
        return rule

    async def update_rule(self, rule_id: str, rule_in: KeywordRuleUpdate) -> BannedKeyword:
        rule = await self.get_rule(rule_id)
        if rule_in.severity is not None:
            ok, errors = validate_keyword_rule(rule.keyword, rule.category, rule_in.severity)
            if not ok:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=errors)
            rule.severity = rule_in.severity
        if rule_in.description is not None:
            rule.description = rule_in.description
        self.db.commit()
        self.db.refresh(rule)
        return rule

    async def set_active(self, rule_id: str, is_active: bool) -> BannedKeyword:
        rule = await self.get_rule(rule_id)
        rule.is_active = is_active
        self.db.commit()
        self.db.refresh(rule)
        logger.info("Banned keyword %r is now %s", rule.keyword, "active" if is_active else "inactive")
        return rule

    async def toggle_rule(self, rule_id: str) -> BannedKeyword:
        rule = await self.get_rule(rule_id)
        return await self.set_active(rule_id, not rule.is_active)

    async def deactivate_rule(self, rule_id: str) -> BannedKeyword:
        """Soft-delete: rules are kept so past matches stay explainable."""
        return await self.set_active(rule_id, False)

