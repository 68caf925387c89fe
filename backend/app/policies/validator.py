from typing import Any, List, Optional, Tuple

from ..models.moderation import KeywordCategory

MIN_SEVERITY = 1
MAX_SEVERITY = 5


def normalize_keyword(keyword: str) -> str:
    """Canonical storage form of a keyword: trimmed, single-spaced, lower-case."""
    return " ".join((keyword or "").split()).lower()


def validate_keyword_rule(
    keyword: Optional[str],
    category: Any,
    severity: Any,
) -> Tuple[bool, List[str]]:
    """Validate a keyword rule beyond basic Pydantic constraints.

    Returns (ok, errors)
    """
    errors: List[str] = []

    # Symbols are allowed around the keyword but a punctuation-only rule is rejected
    kw = normalize_keyword(keyword) if isinstance(keyword, str) else ""
    if not kw:
        errors.append("keyword must not be empty")
    elif not any(c.isalnum() for c in kw):
        errors.append(f"keyword must contain letters or digits: {keyword!r}")

    cat = getattr(category, "value", category)
    if cat not in {c.value for c in KeywordCategory}:
        errors.append(f"invalid category: {category}")

    # bool is an int subclass; reject it explicitly
    if isinstance(severity, bool) or not isinstance(severity, int):
        errors.append(f"severity must be an integer, got {severity!r}")
    elif not (MIN_SEVERITY <= severity <= MAX_SEVERITY):
        errors.append(f"severity out of range ({MIN_SEVERITY}-{MAX_SEVERITY}): {severity}")

    return (len(errors) == 0, errors)
