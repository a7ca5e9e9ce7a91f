"""
Rule-based mapping of job requirements to evidence bullets.

Deterministic keyword-overlap scoring with a bonus for exact tag matches.
No model calls, no I/O: every call builds its own local state.
"""
import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from app.models.mapping import EvidenceBullet, MappingProposal, RequirementItem
from app.utils.logging_config import get_logger

logger = get_logger(__name__)

STOPWORDS = frozenset({
    "a", "an", "and", "are", "as", "at", "be", "by", "for", "from",
    "has", "have", "in", "is", "it", "of", "on", "or", "should",
    "the", "to", "was", "will", "with",
})

# Minimum score for a bullet to be suggested
MIN_SCORE_THRESHOLD = 2

MAX_SUGGESTIONS = 3

# Added once per item token that equals one of the bullet's tags
TAG_MATCH_BONUS = 3

_PUNCTUATION_RE = re.compile(r"[^A-Za-z0-9_\s]")
_WHITESPACE_RE = re.compile(r"\s+")

ItemLike = Union[RequirementItem, Mapping[str, Any]]
BulletLike = Union[EvidenceBullet, Mapping[str, Any]]


def normalize_text(text: Any) -> str:
    """Lowercase, turn punctuation into spaces and collapse whitespace."""
    if not text or not isinstance(text, str):
        return ""
    text = _PUNCTUATION_RE.sub(" ", text.lower())
    return _WHITESPACE_RE.sub(" ", text).strip()


def tokenize(text: str) -> List[str]:
    """Split normalized text into non-stopword tokens, keeping order and duplicates."""
    if not text:
        return []
    return [word for word in text.split(" ") if word and word not in STOPWORDS]


def calculate_score(
    item_tokens: Sequence[str],
    bullet_tokens: Iterable[str],
    bullet_tags: Optional[Iterable[str]] = None,
) -> int:
    # Repeated item tokens count every time they match
    token_set = set(bullet_tokens)
    score = sum(1 for token in item_tokens if token in token_set)

    tag_set = {str(tag).lower() for tag in (bullet_tags or [])}
    if tag_set:
        score += TAG_MATCH_BONUS * sum(1 for token in item_tokens if token in tag_set)

    return score


def bullet_corpus(bullet: EvidenceBullet) -> str:
    """Searchable text of a bullet: text, title and impact joined by spaces."""
    return " ".join(field for field in (bullet.text, bullet.title, bullet.impact) if field)


def rank_bullets(scores: Mapping[str, int]) -> List[str]:
    """Ids above the threshold, best first, ties by ascending id, capped."""
    ranked = sorted(
        ((bullet_id, score) for bullet_id, score in scores.items() if score >= MIN_SCORE_THRESHOLD),
        key=lambda entry: (-entry[1], entry[0]),
    )
    return [bullet_id for bullet_id, _ in ranked[:MAX_SUGGESTIONS]]


def _as_item(item: ItemLike) -> RequirementItem:
    if isinstance(item, RequirementItem):
        return item
    return RequirementItem.model_validate(item)


def _as_bullet(bullet: BulletLike) -> EvidenceBullet:
    if isinstance(bullet, EvidenceBullet):
        return bullet
    return EvidenceBullet.model_validate(bullet)


def propose_mapping(
    items: Optional[Sequence[ItemLike]],
    bullets: Optional[Sequence[BulletLike]],
) -> List[MappingProposal]:
    """
    Propose up to three evidence bullets for every requirement item.

    Args:
        items: Responsibilities/requirements in display order
        bullets: The user's evidence bank

    Returns:
        One MappingProposal per item, in the same order as ``items``
    """
    if not items:
        return []

    kind_counters: Dict[str, int] = {}

    def next_item_key(kind: str) -> str:
        current = kind_counters.get(kind, 0)
        kind_counters[kind] = current + 1
        return f"{kind}-{current}"

    parsed_items = [_as_item(item) for item in items]

    if not bullets:
        logger.debug(f"No bullets supplied; returning {len(parsed_items)} empty proposals")
        return [
            MappingProposal(
                item_key=next_item_key(item.kind),
                kind=item.kind,
                text=item.text,
                suggested_bullet_ids=[],
                score_by_bullet_id={},
            )
            for item in parsed_items
        ]

    processed = []
    for bullet in (_as_bullet(b) for b in bullets):
        tokens = tokenize(normalize_text(bullet_corpus(bullet)))
        processed.append((bullet.id, tokens, bullet.tags or []))

    proposals = []
    for item in parsed_items:
        item_key = next_item_key(item.kind)
        item_tokens = tokenize(normalize_text(item.text))

        scores: Dict[str, int] = {}
        for bullet_id, tokens, tags in processed:
            score = calculate_score(item_tokens, tokens, tags)
            if score > 0:
                scores[bullet_id] = score

        suggested = rank_bullets(scores)
        proposals.append(MappingProposal(
            item_key=item_key,
            kind=item.kind,
            text=item.text,
            suggested_bullet_ids=suggested,
            score_by_bullet_id={bullet_id: scores[bullet_id] for bullet_id in suggested},
        ))

    matched = sum(1 for p in proposals if p.suggested_bullet_ids)
    logger.debug(
        f"Proposed mapping for {len(proposals)} items against {len(processed)} bullets "
        f"({matched} with suggestions)"
    )
    return proposals


def build_items(extracted_requirements: Optional[Mapping[str, Any]]) -> List[RequirementItem]:
    """Flatten extracted requirements into items, responsibilities first."""
    if not extracted_requirements:
        return []

    items = []
    for kind, key in (("responsibility", "responsibilities"), ("requirement", "requirements")):
        values = extracted_requirements.get(key) or []
        if not isinstance(values, (list, tuple)):
            continue
        for text in values:
            if text and isinstance(text, str):
                items.append(RequirementItem(kind=kind, text=text))
    return items


def has_requirements(extracted_requirements: Optional[Mapping[str, Any]]) -> bool:
    if not extracted_requirements or not isinstance(extracted_requirements, Mapping):
        return False
    return bool(
        extracted_requirements.get("responsibilities")
        or extracted_requirements.get("requirements")
    )
