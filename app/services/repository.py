"""
Read-side data access for applications and project bullets.
"""
from typing import Any, Dict, List, Optional

from app.models.mapping import Application, EvidenceBullet
from app.services.db import applications_coll, project_bullets_coll
from app.utils.exceptions import ExceptionContext, ValidationError
from app.utils.logging_config import get_logger
from app.utils.tags import normalize_tags, validate_tag

logger = get_logger(__name__)


def _to_application(doc: Optional[Dict[str, Any]]) -> Optional[Application]:
    if not doc:
        return None
    extracted = doc.get("extracted_requirements")
    return Application(
        id=str(doc.get("id") or doc.get("_id")),
        user_id=doc.get("user_id"),
        company=doc.get("company"),
        role=doc.get("role"),
        status=doc.get("status") or "saved",
        extracted_requirements=extracted if isinstance(extracted, dict) else None,
        created_at=doc.get("created_at"),
        updated_at=doc.get("updated_at"),
    )


def _to_bullet(doc: Dict[str, Any]) -> EvidenceBullet:
    return EvidenceBullet(
        id=str(doc.get("id") or doc.get("_id")),
        text=doc.get("text") or "",
        title=doc.get("title"),
        tags=normalize_tags(doc.get("tags")),
        impact=doc.get("impact"),
    )


async def get_application_by_id(user_id: str, application_id: str) -> Optional[Application]:
    """Return the application if it exists and belongs to the user, else None."""
    with ExceptionContext("get_application_by_id", logger, user_id=user_id, application_id=application_id):
        doc = await applications_coll.find_one({"id": application_id, "user_id": user_id})
    return _to_application(doc)


async def list_project_bullets(
    user_id: str,
    project_id: Optional[str] = None,
    tag: Optional[str] = None,
) -> List[EvidenceBullet]:
    """
    List the user's project bullets, most recently updated first

    The mapping endpoint loads every bullet; the filters serve narrower listings.

    Args:
        user_id: Owner of the bullets
        project_id: Optional project filter
        tag: Optional exact tag filter (normalized before matching)

    Returns:
        Bullets as EvidenceBullet models
    """
    query: Dict[str, Any] = {"user_id": user_id}
    if project_id:
        query["project_id"] = project_id
    if tag is not None:
        valid, error = validate_tag(tag)
        if not valid:
            raise ValidationError(error, field="tag", value=tag)
        query["tags"] = normalize_tags([tag])[0]

    with ExceptionContext("list_project_bullets", logger, user_id=user_id):
        cursor = project_bullets_coll.find(query).sort("updated_at", -1)
        docs = await cursor.to_list(length=None)

    logger.debug(f"Loaded {len(docs)} project bullets for user {user_id}")
    return [_to_bullet(doc) for doc in docs]
