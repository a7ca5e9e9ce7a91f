from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, Dict, List, Literal, Optional
from datetime import datetime

ItemKind = Literal["responsibility", "requirement"]

# -------- Mapping inputs --------
class RequirementItem(BaseModel):
    kind: ItemKind
    text: str = ""

    @field_validator('text', mode='before')
    def coerce_text(cls, v):
        return v if isinstance(v, str) else ""

class EvidenceBullet(BaseModel):
    id: str
    text: Optional[str] = None
    title: Optional[str] = None
    tags: Optional[List[str]] = None
    impact: Optional[str] = None

    @field_validator('text', 'title', 'impact', mode='before')
    def drop_non_string_fields(cls, v):
        return v if isinstance(v, str) else None

    @field_validator('tags', mode='before')
    def drop_non_string_tags(cls, v):
        if not isinstance(v, (list, tuple)):
            return None
        return [tag for tag in v if isinstance(tag, str)]

# -------- Mapping output --------
class MappingProposal(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    item_key: str = Field(alias="itemKey")
    kind: ItemKind
    text: str
    suggested_bullet_ids: List[str] = Field(default_factory=list, alias="suggestedBulletIds")
    score_by_bullet_id: Dict[str, int] = Field(default_factory=dict, alias="scoreByBulletId")

# -------- Applications --------
class Application(BaseModel):
    id: str
    user_id: str
    company: Optional[str] = None
    role: Optional[str] = None
    status: str = "saved"   # saved, applied, interviewing, offer, rejected
    # {"responsibilities": [...], "requirements": [...]} as written by the extractor
    extracted_requirements: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
