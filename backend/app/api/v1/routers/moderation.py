from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ....core.security import get_current_admin
from ....db.base import get_db
from ....models.moderation import (
    FlagReviewRequest,
    FlagStatistics,
    FlagStatus,
    FlagWithUser,
    KeywordRule,
    KeywordRuleCreate,
    KeywordRuleUpdate,
)
from ....models.moderation import ContentFlag as ContentFlagSchema
from ....models.user import User
from ....policies.keywords import KeywordPolicyStore
from ....services.moderation import ModerationService, get_moderation_service

router = APIRouter(prefix="/admin/moderation", tags=["moderation"])


def get_keyword_store(db: Session = Depends(get_db)) -> KeywordPolicyStore:
    """Dependency for getting the keyword policy store."""
    return KeywordPolicyStore(db)


@router.get("/flags", response_model=List[FlagWithUser])
async def list_flags(
    flag_status: FlagStatus = Query(FlagStatus.PENDING, alias="status"),
    admin: User = Depends(get_current_admin),
    service: ModerationService = Depends(get_moderation_service),
):
    """List flags in a given status (pending by default), newest first."""
    flags = await service.list_flags(flag_status)
    return [FlagWithUser.model_validate(f) for f in flags]


@router.get("/statistics", response_model=FlagStatistics)
async def flag_statistics(
    admin: User = Depends(get_current_admin),
    service: ModerationService = Depends(get_moderation_service),
):
    return await service.get_flag_statistics()


@router.patch("/flags/{flag_id}/review", response_model=ContentFlagSchema)
async def review_flag(
    flag_id: str,
    body: FlagReviewRequest,
    admin: User = Depends(get_current_admin),
    service: ModerationService = Depends(get_moderation_service),
):
    """Resolve a pending flag as reviewed, dismissed or action_taken."""
    flag = await service.review_flagged_content(
        flag_id,
        admin.id,
        body.status,
        admin_notes=body.admin_notes,
        action_taken=body.action_taken,
    )
    return ContentFlagSchema.model_validate(flag)


@router.get("/keywords", response_model=List[KeywordRule])
async def list_keywords(
    include_inactive: bool = True,
    admin: User = Depends(get_current_admin),
    store: KeywordPolicyStore = Depends(get_keyword_store),
):
    rules = await store.list_rules(include_inactive=include_inactive)
    return [KeywordRule.model_validate(r) for r in rules]


@router.post("/keywords", response_model=KeywordRule, status_code=status.HTTP_201_CREATED)
async def create_keyword(
    body: KeywordRuleCreate,
    admin: User = Depends(get_current_admin),
    store: KeywordPolicyStore = Depends(get_keyword_store),
):
    rule = await store.create_rule(body)
    return KeywordRule.model_validate(rule)


@router.put("/keywords/{rule_id}", response_model=KeywordRule)
async def update_keyword(
    rule_id: str,
    body: KeywordRuleUpdate,
    admin: User = Depends(get_current_admin),
    store: KeywordPolicyStore = Depends(get_keyword_store),
):
    rule = await store.update_rule(rule_id, body)
    return KeywordRule.model_validate(rule)


@router.patch("/keywords/{rule_id}/toggle", response_model=KeywordRule)
async def toggle_keyword(
    rule_id: str,
    admin: User = Depends(get_current_admin),
    store: KeywordPolicyStore = Depends(get_keyword_store),
):
    rule = await store.toggle_rule(rule_id)
    return KeywordRule.model_validate(rule)


@router.delete("/keywords/{rule_id}", response_model=KeywordRule)
async def delete_keyword(
    rule_id: str,
    admin: User = Depends(get_current_admin),
    store: KeywordPolicyStore = Depends(get_keyword_store),
):
    """Deactivate a rule. Rules are never removed from the store."""
    rule = await store.deactivate_rule(rule_id)
    return KeywordRule.model_validate(rule)
