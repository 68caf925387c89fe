import pytest
from fastapi import HTTPException
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from backend.app.models.moderation import KeywordCategory, KeywordRuleCreate, KeywordRuleUpdate
from backend.app.models.sql_models import BannedKeyword
from backend.app.policies.keywords import DEFAULT_KEYWORDS, DefaultKeyword, KeywordPolicyStore
from backend.app.policies.validator import normalize_keyword, validate_keyword_rule


@pytest.mark.anyio
async def test_seed_inserts_defaults_into_empty_store(db):
    store = KeywordPolicyStore(db)
    inserted = await store.seed_defaults_if_empty(DEFAULT_KEYWORDS)
    assert inserted == len(DEFAULT_KEYWORDS)

    rules = await store.list_active_rules()
    assert sorted(r.keyword for r in rules) == sorted(k.keyword for k in DEFAULT_KEYWORDS)
    assert all(r.is_active for r in rules)
    scam = next(r for r in rules if r.keyword == "scam")
    assert scam.category == "spam"
    assert scam.severity == 4


@pytest.mark.anyio
async def test_seed_is_a_noop_when_rules_exist(db):
    store = KeywordPolicyStore(db)
    await store.seed_defaults_if_empty(DEFAULT_KEYWORDS)
    assert await store.seed_defaults_if_empty(DEFAULT_KEYWORDS) == 0
    assert db.query(BannedKeyword).count() == len(DEFAULT_KEYWORDS)


@pytest.mark.anyio
async def test_seed_skips_store_with_admin_rules(db):
    store = KeywordPolicyStore(db)
    await store.create_rule(KeywordRuleCreate(keyword="pyramid scheme", category="legal", severity=5))
    assert await store.seed_defaults_if_empty(DEFAULT_KEYWORDS) == 0
    assert [r.keyword for r in await store.list_rules()] == ["pyramid scheme"]


@pytest.mark.anyio
async def test_seed_accepts_custom_default_set(db):
    defaults = (DefaultKeyword("Crypto Giveaway", KeywordCategory.SPAM, 4, "Giveaway bait"),)
    store = KeywordPolicyStore(db)
    assert await store.seed_defaults_if_empty(defaults) == 1
    rules = await store.list_active_rules()
    assert [r.keyword for r in rules] == ["crypto giveaway"]


@pytest.mark.anyio
async def test_seed_collision_on_unique_keyword_is_absorbed(db):
    defaults = (
        DefaultKeyword("scam", KeywordCategory.SPAM, 4, "first"),
        DefaultKeyword("SCAM", KeywordCategory.SPAM, 4, "same keyword, different case"),
    )
    store = KeywordPolicyStore(db)
    assert await store.seed_defaults_if_empty(defaults) == 0
    assert db.query(BannedKeyword).count() == 0


@pytest.mark.anyio
async def test_seed_swallows_store_failures():
    # No tables were created on this engine, so every query fails
    broken = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    session = sessionmaker(bind=broken)()
    try:
        assert await KeywordPolicyStore(session).seed_defaults_if_empty(DEFAULT_KEYWORDS) == 0
    finally:
        session.close()
        broken.dispose()


@pytest.mark.anyio
async def test_inactive_rules_are_not_listed_for_screening(seeded):
    store = KeywordPolicyStore(seeded)
    scam = next(r for r in await store.list_rules() if r.keyword == "scam")
    await store.deactivate_rule(scam.id)

    active = [r.keyword for r in await store.list_active_rules()]
    assert "scam" not in active
    # Soft-deleted rules stay in the store
    assert "scam" in [r.keyword for r in await store.list_rules(include_inactive=True)]
    assert "scam" not in [r.keyword for r in await store.list_rules(include_inactive=False)]


@pytest.mark.anyio
async def test_create_rule_normalizes_keyword(db):
    store = KeywordPolicyStore(db)
    rule = await store.create_rule(
        KeywordRuleCreate(keyword="  Wire   Transfer  Only ", category="spam", severity=3, description="Off-platform payment")
    )
    assert rule.keyword == "wire transfer only"
    assert rule.is_active is True
    assert rule.description == "Off-platform payment"


@pytest.mark.anyio
async def test_create_rule_rejects_duplicates(db):
    store = KeywordPolicyStore(db)
    await store.create_rule(KeywordRuleCreate(keyword="spam", category="spam", severity=2))
    with pytest.raises(HTTPException) as exc:
        await store.create_rule(KeywordRuleCreate(keyword="SPAM", category="custom", severity=1))
    assert exc.value.status_code == 409


@pytest.mark.anyio
async def test_create_rule_rejects_keyword_without_letters(db):
    with pytest.raises(HTTPException) as exc:
        await KeywordPolicyStore(db).create_rule(KeywordRuleCreate(keyword="!!!", category="custom", severity=1))
    assert exc.value.status_code == 400


@pytest.mark.anyio
async def test_update_rule_changes_severity_and_description(seeded):
    store = KeywordPolicyStore(seeded)
    scam = next(r for r in await store.list_rules() if r.keyword == "scam")
    updated = await store.update_rule(scam.id, KeywordRuleUpdate(severity=2, description="downgraded"))
    assert updated.severity == 2
    assert updated.description == "downgraded"
    assert updated.keyword == "scam"
    assert updated.category == "spam"


@pytest.mark.anyio
async def test_toggle_rule_flips_active_flag(seeded):
    store = KeywordPolicyStore(seeded)
    fraud = next(r for r in await store.list_rules() if r.keyword == "fraud")
    assert (await store.toggle_rule(fraud.id)).is_active is False
    assert (await store.toggle_rule(fraud.id)).is_active is True


@pytest.mark.anyio
async def test_unknown_rule_is_not_found(db):
    with pytest.raises(HTTPException) as exc:
        await KeywordPolicyStore(db).get_rule("missing")
    assert exc.value.status_code == 404


def test_normalize_keyword():
    assert normalize_keyword("  Get  Rich\tQuick ") == "get rich quick"
    assert normalize_keyword("") == ""


def test_validator_accepts_valid_rule():
    ok, errs = validate_keyword_rule("scam", KeywordCategory.SPAM, 4)
    assert ok is True, f"Unexpected errors: {errs}"


@pytest.mark.parametrize(
    "keyword,category,severity",
    [
        ("", "spam", 3),
        ("   ", "spam", 3),
        ("???", "spam", 3),
        ("scam", "politics", 3),
        ("scam", "spam", 0),
        ("scam", "spam", 6),
        ("scam", "spam", "high"),
        ("scam", "spam", True),
        (None, "spam", 3),
    ],
)
def test_validator_rejects_invalid_rules(keyword, category, severity):
    ok, errs = validate_keyword_rule(keyword, category, severity)
    assert ok is False
    assert len(errs) == 1
