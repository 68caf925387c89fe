"""Lexical screening of user-generated text.

``screen`` is a pure function over the text and the rules it is given: it
combines a word-level profanity check with whole-word, case-insensitive
keyword matching and never raises.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Iterable, List, Protocol

from better_profanity import profanity

PROFANITY_REASON = "Contains profanity"
DEFAULT_PROFANITY_SEVERITY = 3

profanity.load_censor_words()


class KeywordRuleLike(Protocol):
    keyword: str
    category: Any
    severity: int


@dataclass
class ScreeningResult:
    is_flagged: bool = False
    reasons: List[str] = field(default_factory=list)
    matched_keywords: List[str] = field(default_factory=list)
    severity: int = 0


@lru_cache(maxsize=1024)
def _keyword_pattern(keyword: str) -> re.Pattern:
    # Lookarounds instead of \b so keywords that start or end with a symbol still match
    return re.compile(rf"(?<!\w){re.escape(keyword.strip())}(?!\w)", re.IGNORECASE)


def keyword_reason(category: Any) -> str:
    return f"Contains banned keyword: {getattr(category, 'value', category)}"


def matches_keyword(text: str, keyword: str) -> bool:
    """True when *keyword* appears in *text* as a whole word (or phrase)."""
    if not keyword or not keyword.strip():
        return False
    return _keyword_pattern(keyword).search(text) is not None


def screen(
    text: Any,
    rules: Iterable[KeywordRuleLike] = (),
    profanity_severity: int = DEFAULT_PROFANITY_SEVERITY,
) -> ScreeningResult:
    """Screen *text* for profanity and the given active keyword rules.

    Every rule is evaluated, so one text can collect several matches. Reasons
    and matched keywords follow the iteration order of *rules*. Anything that
    is not a non-empty string yields an unflagged result.
    """
    result = ScreeningResult()
    if not text or not isinstance(text, str):
        return result

    if profanity.contains_profanity(text):
        result.is_flagged = True
        result.reasons.append(PROFANITY_REASON)
        result.severity = max(result.severity, profanity_severity)

    for rule in rules:
        if matches_keyword(text, rule.keyword):
            result.is_flagged = True
            result.matched_keywords.append(rule.keyword)
            result.reasons.append(keyword_reason(rule.category))
            result.severity = max(result.severity, rule.severity)

    return result
