# models/response.py
import uuid
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, List, Optional
from datetime import datetime, timezone

from app.models.mapping import MappingProposal


class ProposeMappingRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    application_id: str = Field(alias="applicationId")

    @field_validator('application_id')
    def validate_application_id(cls, v):
        try:
            uuid.UUID(v)
        except ValueError:
            raise ValueError('Application ID must be a valid UUID')
        return v


class ErrorBody(BaseModel):
    code: str
    message: Optional[str] = None
    field: Optional[str] = None


class Envelope(BaseModel):
    data: Optional[Any] = None
    error: Optional[ErrorBody] = None


class MappingProposalData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    proposal: List[MappingProposal]
    generated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), alias="generatedAt"
    )


class MappingProposalEnvelope(Envelope):
    data: Optional[MappingProposalData] = None
