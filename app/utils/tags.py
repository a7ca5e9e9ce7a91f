"""
Tag normalization for evidence bullets
"""
from typing import Any, List, Optional, Tuple

MAX_TAG_LENGTH = 30
MAX_TAGS_PER_BULLET = 20


def normalize_tags(tags: Any) -> Optional[List[str]]:
    """
    Normalize a tag list for storage and filtering

    Trims, lowercases, drops empty or non-string tags, truncates each tag,
    deduplicates (first occurrence wins) and caps the number of tags.

    Args:
        tags: Raw tag list (anything else is treated as no tags)

    Returns:
        Normalized tags, or None when no valid tag remains
    """
    if not tags or not isinstance(tags, (list, tuple)):
        return None

    normalized: List[str] = []
    for tag in tags:
        if not isinstance(tag, str):
            continue
        trimmed = tag.strip().lower()
        if not trimmed:
            continue
        trimmed = trimmed[:MAX_TAG_LENGTH]
        if trimmed not in normalized:
            normalized.append(trimmed)

    limited = normalized[:MAX_TAGS_PER_BULLET]
    return limited or None


def validate_tag(tag: Any) -> Tuple[bool, Optional[str]]:
    """Validate a single tag, returning (valid, error message)."""
    if not isinstance(tag, str):
        return False, "Tag must be a string"

    trimmed = tag.strip()
    if not trimmed:
        return False, "Tag cannot be empty"
    if len(trimmed) > MAX_TAG_LENGTH:
        return False, f"Tag cannot exceed {MAX_TAG_LENGTH} characters"

    return True, None
